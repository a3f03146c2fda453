"""
Error handling for the nixparse lexer.

Provides error reporting with source location information and
IDE-friendly diagnostics.

Author: xwest
"""

from typing import Optional, List
from dataclasses import dataclass
from .tokens import SourceLocation


@dataclass
class Diagnostic:
    """Base class for lexer diagnostics (errors, warnings, info)."""
    message: str
    location: SourceLocation
    severity: str  # "error", "warning", "info", "hint"
    code: Optional[str] = None
    help_text: Optional[str] = None
    suggestions: Optional[List[str]] = None

    def __str__(self) -> str:
        severity_prefix = self.severity.upper()
        result = f"{severity_prefix}: {self.message}\n"
        result += f"  --> {self.location}\n"

        if self.help_text:
            result += f"  help: {self.help_text}\n"

        if self.suggestions:
            result += "  suggestions:\n"
            for suggestion in self.suggestions:
                result += f"    - {suggestion}\n"

        return result


class LexerError(Exception):
    """
    Exception raised when the lexer encounters a fatal error.

    Contains detailed diagnostic information for error reporting.
    """

    def __init__(
        self,
        message: str,
        location: SourceLocation,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="error",
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    @property
    def location(self) -> SourceLocation:
        return self.diagnostic.location

    def __str__(self) -> str:
        return str(self.diagnostic)


class LexerWarning:
    """
    Represents a lexer warning that doesn't stop lexing.
    """

    def __init__(
        self,
        message: str,
        location: SourceLocation,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="warning",
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    def __str__(self) -> str:
        return str(self.diagnostic)


def _describe_char(char: str) -> str:
    if char.isprintable():
        return f"'{char}'"
    return f"U+{ord(char):04X}"


# Helper functions for creating common errors
def create_invalid_character_error(char: str, location: SourceLocation) -> LexerError:
    """Create an error for a character that cannot start any token."""
    if char.isprintable():
        help_text = f"The character '{char}' cannot start a token."
    else:
        help_text = f"Non-printable character (Unicode: U+{ord(char):04X}) is not allowed."

    suggestions = []
    if char == "'":
        suggestions.append("Multi-line strings open with two single quotes: ''")
    elif char == "$":
        suggestions.append("Interpolation is written ${ expr }")

    return LexerError(
        message=f"Invalid character: {_describe_char(char)}",
        location=location,
        code="L001",
        help_text=help_text,
        suggestions=suggestions or None
    )


def create_invalid_character_warning(char: str, location: SourceLocation) -> LexerWarning:
    """Create the warning recorded when lexing stops early at an unknown character."""
    return LexerWarning(
        message=f"Lexing stopped at unrecognized character {_describe_char(char)}",
        location=location,
        code="L001",
        help_text="The remaining input was not tokenized. Pass strict=True to make this an error.",
    )


def create_unterminated_string_error(quote_type: str, location: SourceLocation) -> LexerError:
    """Create an error for an unterminated string literal."""
    return LexerError(
        message="Unterminated string literal",
        location=location,
        code="L002",
        help_text=f"String literals must be closed with a matching {quote_type} quote.",
        suggestions=[f"Add a closing {quote_type} quote", "Check for unescaped quotes in the string"]
    )


def create_unterminated_interpolation_error(location: SourceLocation) -> LexerError:
    """Create an error for a ${ that is never closed."""
    return LexerError(
        message="Unterminated interpolation",
        location=location,
        code="L003",
        help_text="Interpolations opened with '${' must be closed with a matching '}'.",
        suggestions=["Add a closing '}'", "Check for unbalanced braces inside the interpolation"]
    )


def create_unknown_operator_error(operator: str, location: SourceLocation) -> LexerError:
    """Create an error for operator characters that form no known operator."""
    suggestions = []
    if operator == "|":
        suggestions.append("Did you mean '||'?")
    elif operator == "&":
        suggestions.append("Did you mean '&&'?")
    elif operator == "..":
        suggestions.append("Did you mean '...'?")

    return LexerError(
        message=f"Unknown operator: '{operator}'",
        location=location,
        code="L004",
        help_text="Operators are matched against a fixed table; this one has no meaning.",
        suggestions=suggestions or None
    )


def create_unterminated_comment_error(location: SourceLocation) -> LexerError:
    """Create an error for a /* comment without a closing */."""
    return LexerError(
        message="Unterminated block comment",
        location=location,
        code="L005",
        help_text="Block comments must be closed with '*/' and do not nest.",
        suggestions=["Add a closing '*/'"]
    )
