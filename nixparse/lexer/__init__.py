"""
nixparse Lexer Package

Implements a hand-written lexical analyzer (tokenizer) for Nix-style
expressions.

Key Features:
- Full source span tracking (line, column and offset) for every token
- Newlines and comments preserved as tokens for formatting tools
- Recursive lexing of ${...} interpolations inside strings
- Multi-line '' strings and path literals with escapes
- Structured diagnostics with codes and suggestions

Author: xwest
"""

from .tokens import Token, TokenType, SourceLocation, SourceSpan
from .lexer import Lexer, lex, tokenize_file
from .errors import Diagnostic, LexerError, LexerWarning

__all__ = [
    "Lexer",
    "lex",
    "tokenize_file",
    "Token",
    "TokenType",
    "SourceLocation",
    "SourceSpan",
    "Diagnostic",
    "LexerError",
    "LexerWarning",
]
