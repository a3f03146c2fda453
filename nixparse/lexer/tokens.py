"""
Token definitions for the nixparse lexer.

This module defines all token types produced when lexing Nix-style
expression source, including:
- Literals (null, booleans, integers, floats, strings, paths)
- Keywords and identifiers
- Operators and punctuation
- Trivia that tooling cares about (newlines and comments)

Author: xwest
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """
    Enumeration of all token types in the expression language.

    Organized by category for clarity and maintainability.
    """

    # ========================================================================
    # Special Tokens
    # ========================================================================
    EOF = auto()                    # End of input
    NEWLINE = auto()                # \n or \r\n (line sensitive constructs)
    COMMENT = auto()                # # line comment or /* block */

    # ========================================================================
    # Literals
    # ========================================================================
    NULL = auto()                   # null
    BOOL = auto()                   # true, false
    INT = auto()                    # 42
    FLOAT = auto()                  # 3.14
    STRING = auto()                 # "hello ${name}", ''multi-line''
    PATH = auto()                   # ./a/b, /etc/nixos, ~/src
    INTERP = auto()                 # ${ ... }

    # ========================================================================
    # Identifiers and Keywords
    # ========================================================================
    IDENTIFIER = auto()             # pkgs, some-thing, foldl'
    KEYWORD = auto()                # let, in, rec, with, inherit, ...

    # ========================================================================
    # Operators
    # ========================================================================
    HAS = auto()                    # ?
    AT = auto()                     # @
    COLON = auto()                  # :
    EQ = auto()                     # =
    EQ_EQ = auto()                  # ==
    NOT_EQ = auto()                 # !=
    NOT = auto()                    # !
    LT = auto()                     # <
    LTE = auto()                    # <=
    GT = auto()                     # >
    GTE = auto()                    # >=
    ADD = auto()                    # +
    SUB = auto()                    # -
    MUL = auto()                    # *
    DIV = auto()                    # /
    IMP = auto()                    # -> (logical implication)
    UPDATE = auto()                 # //
    CONCAT = auto()                 # ++
    OR = auto()                     # ||
    AND = auto()                    # &&
    PERIOD = auto()                 # .
    COMMA = auto()                  # ,
    ELLIPSIS = auto()               # ...

    # ========================================================================
    # Punctuation and Delimiters
    # ========================================================================
    OPEN_PAREN = auto()             # (
    CLOSE_PAREN = auto()            # )
    OPEN_CURLY = auto()             # {
    CLOSE_CURLY = auto()            # }
    OPEN_BRACKET = auto()           # [
    CLOSE_BRACKET = auto()          # ]
    SEMI = auto()                   # ;


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a point in the source code.

    Lines and columns are 1-based. The offset is the 0-based character
    index into the source string, so a \\r\\n pair advances it by two while
    counting as a single line break.
    """
    filename: str
    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


@dataclass(frozen=True)
class SourceSpan:
    """Half-open span of source code between two locations."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename == self.end.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start}-{self.end}"

    def contains(self, other: "SourceSpan") -> bool:
        """Check whether another span lies entirely within this one."""
        return self.start.offset <= other.start.offset and other.end.offset <= self.end.offset


@dataclass(frozen=True)
class Token:
    """
    Represents a lexical token.

    Contains the token type, lexeme (raw text), semantic payload and the
    source span. The payload depends on the type:

    - IDENTIFIER, KEYWORD, PATH, COMMENT: str
    - INT: int, FLOAT: float, BOOL: bool
    - INTERP: tuple of the tokens between ``${`` and the closing ``}``
    - STRING: tuple alternating str fragments and INTERP tokens, always
      starting and ending with a (possibly empty) str fragment
    """
    type: TokenType
    lexeme: str                     # Raw text from source
    value: Any                      # Parsed/semantic payload
    span: SourceSpan                # Source span
    multiline: bool = False         # '' strings and /* */ comments

    def __str__(self) -> str:
        if self.value is not None and self.value != self.lexeme:
            return f"{self.type.name}({self.lexeme!r} -> {self.value!r})"
        return f"{self.type.name}({self.lexeme!r})"

    def __repr__(self) -> str:
        return (f"Token({self.type.name}, {self.lexeme!r}, "
                f"{self.value!r}, {self.span.start!r})")

    @property
    def location(self) -> SourceLocation:
        """Start location of the token."""
        return self.span.start

    @property
    def is_operator(self) -> bool:
        """Check if this token is a binary operator."""
        return self.type in BINARY_OPERATORS

    @property
    def is_trivia(self) -> bool:
        """Newlines and comments, which the grammar mostly looks past."""
        return self.type in (TokenType.NEWLINE, TokenType.COMMENT)

    def is_keyword(self, word: Optional[str] = None) -> bool:
        """Check if this token is a keyword, optionally a specific one."""
        if self.type != TokenType.KEYWORD:
            return False
        return word is None or self.value == word


# Lookup tables used by the lexer for keyword/operator recognition

KEYWORDS = frozenset({
    "let",
    "in",
    "rec",
    "with",
    "inherit",
    "assert",
    "or",
    "import",
    "if",
    "then",
    "else",
})

# Identifier-shaped words that lex as literals rather than identifiers
LITERAL_WORDS = {
    "null": (TokenType.NULL, None),
    "true": (TokenType.BOOL, True),
    "false": (TokenType.BOOL, False),
}

PUNCTUATION = {
    ";": TokenType.SEMI,
    "(": TokenType.OPEN_PAREN,
    ")": TokenType.CLOSE_PAREN,
    "{": TokenType.OPEN_CURLY,
    "}": TokenType.CLOSE_CURLY,
    "[": TokenType.OPEN_BRACKET,
    "]": TokenType.CLOSE_BRACKET,
}

# Every entry may be grown into by longest-match lexing. ".." has no token
# type of its own; it only exists as a prefix of "...".
OPERATOR_TABLE = frozenset({
    "=", "==", "!=", "!", "+", "-", "*", "/", "->", "//", "++",
    "<", ">", "<=", ">=", ":", "@", "..", "...", ",", "?", "||", "&&",
})

OPERATOR_START_CHARS = frozenset("=!+-*/<>:@.,?|&")

OPERATORS = {
    "?": TokenType.HAS,
    "@": TokenType.AT,
    ":": TokenType.COLON,
    "=": TokenType.EQ,
    "==": TokenType.EQ_EQ,
    "!=": TokenType.NOT_EQ,
    "!": TokenType.NOT,
    "<": TokenType.LT,
    "<=": TokenType.LTE,
    ">": TokenType.GT,
    ">=": TokenType.GTE,
    "+": TokenType.ADD,
    "-": TokenType.SUB,
    "*": TokenType.MUL,
    "/": TokenType.DIV,
    "->": TokenType.IMP,
    "//": TokenType.UPDATE,
    "++": TokenType.CONCAT,
    "||": TokenType.OR,
    "&&": TokenType.AND,
    ",": TokenType.COMMA,
    "...": TokenType.ELLIPSIS,
}

# Token types the parser treats as binary operators
BINARY_OPERATORS = frozenset({
    TokenType.ADD,
    TokenType.SUB,
    TokenType.MUL,
    TokenType.DIV,
    TokenType.EQ,
    TokenType.EQ_EQ,
    TokenType.NOT_EQ,
    TokenType.LT,
    TokenType.LTE,
    TokenType.GT,
    TokenType.GTE,
    TokenType.IMP,
    TokenType.UPDATE,
    TokenType.CONCAT,
    TokenType.OR,
    TokenType.AND,
    TokenType.PERIOD,
    TokenType.HAS,
})
