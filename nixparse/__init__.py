"""
nixparse Package

A from-scratch lexer and parser for Nix-style expressions, built for tools
that need to read source without evaluating it: formatters, linters and
editor integrations.

Architecture:
    nixparse/
    ├── lexer/           # Tokenization with full source spans
    ├── parser/          # Recursive descent parsing and AST nodes
    └── serialize.py     # Lossless dict/JSON form of tokens and ASTs

Author: xwest
License: MIT
"""

__version__ = "0.1.0"
__author__ = "xwest"
__email__ = "dev@nixparse.org"
__license__ = "MIT"

from .lexer import Lexer, lex, LexerError, LexerWarning
from .parser import Parser, parse, ParseError

__all__ = [
    # Core classes
    "Lexer",
    "Parser",

    # Entry points
    "lex",
    "parse",

    # Errors
    "LexerError",
    "LexerWarning",
    "ParseError",

    # Version info
    "__version__",
    "__author__",
    "__email__",
    "__license__",
]
