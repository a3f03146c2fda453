"""
nixparse Lexer - turns expression source into tokens

Hand-written scanner. Every token carries a full source span, newlines
are kept as tokens, and ${...} interpolations are lexed recursively into
nested token tuples.

A \\r\\n pair is treated as one unit everywhere: it advances the line
once, and peeking or consuming it yields both characters together.

xwest
"""

import re
from typing import List, Optional, Union

from .tokens import (
    Token, TokenType, SourceLocation, SourceSpan, KEYWORDS, LITERAL_WORDS,
    PUNCTUATION, OPERATORS, OPERATOR_TABLE, OPERATOR_START_CHARS
)
from .errors import (
    LexerError, LexerWarning, create_invalid_character_error,
    create_invalid_character_warning, create_unterminated_string_error,
    create_unterminated_interpolation_error, create_unknown_operator_error,
    create_unterminated_comment_error
)


PATH_START_CHARS = frozenset("./~")
PATH_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_@.-$/~"
)
NEWLINES = frozenset({"\n", "\r\n"})


class Lexer:
    """
    Lexical analyzer for Nix-style expressions.

    Converts source text into a list of tokens that always ends with an
    EOF token. Lexing stops at the first fatal error.

    By default an unrecognized character ends the token stream early: an
    EOF token is emitted in its place and a LexerWarning is recorded on
    ``warnings``. With ``strict=True`` the same situation raises a
    LexerError instead.
    """

    def __init__(self, source: str, filename: str = "<string>", strict: bool = False):
        """
        Initialize the lexer with source code.

        Args:
            source: Source code string
            filename: Name of source file for error reporting
            strict: Raise on unrecognized characters instead of truncating
        """
        self.source = source
        self.filename = filename
        self.strict = strict
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []
        self.warnings: List[LexerWarning] = []

        self._compile_patterns()

    def _compile_patterns(self):
        """Compile regex patterns used by the lexer."""

        # Hyphens and primes are legal after the first character
        self.identifier_pattern = re.compile(r"[A-Za-z_][A-Za-z0-9_'\-]*")

        # A single fractional part; a second '.' ends the literal
        self.number_pattern = re.compile(r"[0-9]+(?:\.[0-9]+)?")

    def tokenize(self) -> List[Token]:
        """
        Tokenize the entire source code.

        Returns:
            List of tokens ending with an EOF token

        Raises:
            LexerError: On unterminated literals, unknown operators, or
                (in strict mode) unrecognized characters
        """
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens = []
        self.warnings.clear()

        while True:
            token = self._next_token()
            self.tokens.append(token)
            if token.type == TokenType.EOF:
                break

        return self.tokens

    def _next_token(self) -> Token:
        """Lex one token, skipping any leading whitespace."""
        self._skip_whitespace()

        char = self._current()

        # A lone '.' is attribute selection; './' and '..' start paths
        if char == "." and self._peek() not in ("/", "."):
            return self._tokenize_simple(TokenType.PERIOD)

        if not char:
            return self._make_eof()

        if char in NEWLINES:
            return self._tokenize_simple(TokenType.NEWLINE)

        if char in PUNCTUATION:
            return self._tokenize_simple(PUNCTUATION[char])

        if char == "$" and self._peek() == "{":
            return self._tokenize_interp()

        if self.identifier_pattern.match(self.source, self.pos):
            return self._tokenize_identifier_or_keyword()

        if self.source.startswith("...", self.pos):
            return self._tokenize_operator()

        if self.source.startswith("/*", self.pos):
            return self._tokenize_block_comment()

        if self._at_path_start():
            return self._tokenize_path()

        if char.isdigit() and self.number_pattern.match(self.source, self.pos):
            return self._tokenize_number()

        if char in OPERATOR_START_CHARS:
            return self._tokenize_operator()

        if char == '"' or (char == "'" and self._peek() == "'"):
            return self._tokenize_string()

        if char == "#":
            return self._tokenize_line_comment()

        return self._unrecognized_character(char)

    def _unrecognized_character(self, char: str) -> Token:
        """Stop lexing at a character that cannot start any token."""
        location = self._location()
        if self.strict:
            raise create_invalid_character_error(char, location)

        self.warnings.append(create_invalid_character_warning(char, location))
        return self._make_eof()

    def _tokenize_simple(self, token_type: TokenType) -> Token:
        """Tokenize a single-unit token such as punctuation or a newline."""
        start = self._location()
        self._advance()
        return self._make_token(token_type, start, None)

    def _tokenize_identifier_or_keyword(self) -> Token:
        """Tokenize an identifier, keyword, or literal word."""
        start = self._location()
        match = self.identifier_pattern.match(self.source, self.pos)
        word = match.group(0)
        self._advance_by(len(word))

        if word in LITERAL_WORDS:
            token_type, value = LITERAL_WORDS[word]
            return self._make_token(token_type, start, value)

        if word in KEYWORDS:
            return self._make_token(TokenType.KEYWORD, start, word)

        return self._make_token(TokenType.IDENTIFIER, start, word)

    def _at_path_start(self) -> bool:
        """Check if the cursor sits on the start of a path literal."""
        char = self._current()
        if char not in PATH_START_CHARS:
            return False
        following = self._peek()
        return following in PATH_CHARS and char + following != "//"

    def _tokenize_path(self) -> Token:
        """Tokenize a path literal, resolving backslash escapes."""
        start = self._location()
        path = self._advance()

        while self.pos < len(self.source):
            char = self._current()
            if char == "\\":
                self._advance()
                if self.pos < len(self.source):
                    path += self._advance()
                continue
            if char not in PATH_CHARS:
                break
            path += self._advance()

        return self._make_token(TokenType.PATH, start, path)

    def _tokenize_number(self) -> Token:
        """Tokenize an integer or float literal."""
        start = self._location()
        match = self.number_pattern.match(self.source, self.pos)
        text = match.group(0)
        self._advance_by(len(text))

        if "." in text:
            return self._make_token(TokenType.FLOAT, start, float(text))
        return self._make_token(TokenType.INT, start, int(text))

    def _tokenize_operator(self) -> Token:
        """Tokenize an operator using longest match over the operator table."""
        start = self._location()
        operator = self._advance()

        while self.pos < len(self.source) and operator + self._current() in OPERATOR_TABLE:
            operator += self._advance()

        token_type = OPERATORS.get(operator)
        if token_type is None:
            raise create_unknown_operator_error(operator, start)

        return self._make_token(token_type, start, None)

    def _tokenize_interp(self) -> Token:
        """
        Tokenize a ${...} interpolation.

        Inner tokens are lexed recursively until the brace that closes the
        interpolation. That brace is consumed but not part of the payload.
        """
        start = self._location()
        self._advance_by(2)  # Skip ${

        depth = 0
        inner: List[Token] = []

        while True:
            token = self._next_token()

            if token.type == TokenType.EOF:
                raise create_unterminated_interpolation_error(start)
            if token.type == TokenType.OPEN_CURLY:
                depth += 1
            elif token.type == TokenType.CLOSE_CURLY:
                depth -= 1

            if depth == -1:
                break

            inner.append(token)

        return self._make_token(TokenType.INTERP, start, tuple(inner))

    def _tokenize_string(self) -> Token:
        """
        Tokenize a "..." or ''...'' string.

        The payload alternates text fragments and INTERP tokens and always
        begins and ends with a text fragment. ``\\x`` embeds x verbatim.
        """
        start = self._location()
        multiline = self._current() == "'"
        quote = "''" if multiline else '"'
        self._advance_by(len(quote))

        parts: List[Union[str, Token]] = [""]

        while True:
            if self.pos >= len(self.source):
                raise create_unterminated_string_error(quote, start)

            if self.source.startswith(quote, self.pos):
                self._advance_by(len(quote))
                break

            char = self._current()

            if char == "\\":
                self._advance()
                if self.pos >= len(self.source):
                    raise create_unterminated_string_error(quote, start)
                parts[-1] += self._advance()
                continue

            if char == "$" and self._peek() == "{":
                parts.append(self._tokenize_interp())
                parts.append("")
                continue

            parts[-1] += self._advance()

        return self._make_token(TokenType.STRING, start, tuple(parts), multiline=multiline)

    def _tokenize_line_comment(self) -> Token:
        """Tokenize a # comment. The terminating newline is not included."""
        start = self._location()
        self._advance()  # Skip #

        text = ""
        while self.pos < len(self.source) and self._current() not in NEWLINES:
            text += self._advance()

        return self._make_token(TokenType.COMMENT, start, text)

    def _tokenize_block_comment(self) -> Token:
        """Tokenize a /* */ comment, ending at the first */."""
        start = self._location()
        self._advance_by(2)  # Skip /*

        end = self.source.find("*/", self.pos)
        if end == -1:
            raise create_unterminated_comment_error(start)

        text = self.source[self.pos:end]
        self._advance_by(end - self.pos)
        self._advance_by(2)  # Skip */

        return self._make_token(TokenType.COMMENT, start, text, multiline=True)

    def _skip_whitespace(self):
        """Skip whitespace other than newlines."""
        while self.pos < len(self.source):
            char = self._current()
            if char in NEWLINES or not char.isspace():
                break
            self._advance()

    def _make_token(self, token_type: TokenType, start: SourceLocation, value,
                    multiline: bool = False) -> Token:
        """Build a token spanning from start to the current position."""
        lexeme = self.source[start.offset:self.pos]
        span = SourceSpan(start, self._location())
        return Token(token_type, lexeme, value, span, multiline)

    def _make_eof(self) -> Token:
        """EOF is a zero-width token at the current position."""
        location = self._location()
        return Token(TokenType.EOF, "", None, SourceSpan(location, location))

    def _location(self) -> SourceLocation:
        return SourceLocation(self.filename, self.line, self.column, self.pos)

    def _current(self) -> str:
        """The unit under the cursor, or an empty string at end of input."""
        if self.pos >= len(self.source):
            return ""
        if self.source.startswith("\r\n", self.pos):
            return "\r\n"
        return self.source[self.pos]

    def _advance(self) -> str:
        """Consume one unit, updating line/column, and return it."""
        char = self._current()
        if not char:
            return char

        self.pos += len(char)
        if char in NEWLINES:
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def _advance_by(self, count: int):
        """Advance position by multiple characters."""
        target = self.pos + count
        while self.pos < target and self.pos < len(self.source):
            self._advance()

    def _peek(self, offset: int = 1) -> str:
        """
        Peek at the unit ``offset`` positions ahead without advancing.

        Implemented as a trial consume followed by a restore, so \\r\\n is
        skipped as a single unit exactly like _advance does.
        """
        saved = (self.pos, self.line, self.column)
        try:
            for _ in range(offset):
                self._advance()
            return self._current()
        finally:
            self.pos, self.line, self.column = saved

    def has_warnings(self) -> bool:
        """Check if lexer recorded any warnings."""
        return len(self.warnings) > 0

    def get_diagnostics(self) -> List[LexerWarning]:
        """Get all non-fatal diagnostics."""
        return list(self.warnings)


def lex(source: str, filename: str = "<string>", strict: bool = False) -> List[Token]:
    """
    Convenience function to tokenize a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting
        strict: Raise on unrecognized characters instead of truncating

    Returns:
        List of tokens, always ending with EOF

    Raises:
        LexerError: If lexing fails
    """
    return Lexer(source, filename, strict=strict).tokenize()


def tokenize_file(filepath: str, strict: bool = False) -> List[Token]:
    """
    Convenience function to tokenize a UTF-8 source file.

    Args:
        filepath: Path to source file
        strict: Raise on unrecognized characters instead of truncating

    Returns:
        List of tokens

    Raises:
        LexerError: If lexing fails
        IOError: If file cannot be read
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        source = f.read()

    return lex(source, filepath, strict=strict)
