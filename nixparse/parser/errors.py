"""
Error handling for the nixparse parser.

Parsing stops at the first syntax error. Each ParseError carries the
offending token and a Diagnostic with a code, help text and suggestions.

Author: xwest
"""

from typing import Optional, List, Union

from ..lexer.tokens import Token, TokenType, SourceLocation, KEYWORDS
from ..lexer.errors import Diagnostic


class ParseError(Exception):
    """
    Exception raised when the parser encounters a fatal syntax error.

    Contains detailed diagnostic information for error reporting.
    """

    def __init__(
        self,
        message: str,
        location: SourceLocation,
        token: Optional[Token] = None,
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
        self.token = token

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    @property
    def location(self) -> SourceLocation:
        return self.diagnostic.location

    def __str__(self) -> str:
        return str(self.diagnostic)


class SyntaxErrorRecovery:
    """
    Suggestion helpers used when building parse errors.
    """

    @staticmethod
    def suggest_missing_token(expected: TokenType) -> List[str]:
        """Suggest what token might be missing."""
        token_suggestions = {
            TokenType.SEMI: ["Add a semicolon ';' to end the binding"],
            TokenType.CLOSE_PAREN: ["Add a closing parenthesis ')'"],
            TokenType.CLOSE_BRACKET: ["Add a closing bracket ']'"],
            TokenType.CLOSE_CURLY: ["Add a closing brace '}'"],
            TokenType.COLON: ["Add a colon ':' between the parameters and the function body"],
            TokenType.EQ: ["Add an equals sign '=' between the name and the value"],
        }

        return list(token_suggestions.get(expected, []))

    @staticmethod
    def suggest_keyword_corrections(word: str) -> List[str]:
        """Suggest keywords within edit distance 2 of a misspelled word."""
        candidates = [
            keyword for keyword in KEYWORDS
            if SyntaxErrorRecovery._edit_distance(word.lower(), keyword) <= 2
        ]
        candidates.sort(key=lambda k: (SyntaxErrorRecovery._edit_distance(word.lower(), k), k))
        return candidates[:3]

    @staticmethod
    def _edit_distance(s1: str, s2: str) -> int:
        """Calculate Levenshtein distance between two strings."""
        if len(s1) < len(s2):
            return SyntaxErrorRecovery._edit_distance(s2, s1)

        if len(s2) == 0:
            return len(s1)

        previous_row = list(range(len(s2) + 1))
        for i, c1 in enumerate(s1):
            current_row = [i + 1]
            for j, c2 in enumerate(s2):
                insertions = previous_row[j + 1] + 1
                deletions = current_row[j] + 1
                substitutions = previous_row[j] + (c1 != c2)
                current_row.append(min(insertions, deletions, substitutions))
            previous_row = current_row

        return previous_row[-1]


def _describe(token: Token) -> str:
    if token.type in (TokenType.KEYWORD, TokenType.IDENTIFIER):
        return f"{token.type.name} '{token.value}'"
    if token.type == TokenType.EOF:
        return "end of input"
    return token.type.name


# Helper functions for creating common parser errors

def create_unexpected_token_error(
    expected: Union[TokenType, str],
    found: Token,
    display: Optional[str] = None
) -> ParseError:
    """
    Create an error for an unexpected token.

    When expected is a TokenType, display (if given) is how it appears in
    the message, and the error suggests adding the missing token.
    """
    if isinstance(expected, TokenType):
        expected_str = display or expected.name
        suggestions = SyntaxErrorRecovery.suggest_missing_token(expected)
    else:
        expected_str = expected
        suggestions = []

    if found.type == TokenType.EOF:
        return create_unexpected_eof_error(expected_str, found)

    found_str = _describe(found)

    # A misspelled keyword lexes as an identifier
    if found.type == TokenType.IDENTIFIER and expected_str.startswith("keyword '"):
        for keyword in SyntaxErrorRecovery.suggest_keyword_corrections(found.value):
            suggestions.append(f"Did you mean '{keyword}'?")

    return ParseError(
        message=f"Expected {expected_str}, found {found_str}",
        location=found.location,
        token=found,
        code="P001",
        help_text=f"The parser expected to see {expected_str} at this position, but found {found_str} instead.",
        suggestions=suggestions
    )


def create_unexpected_eof_error(expected: str, token: Token) -> ParseError:
    """Create an error for unexpected end of input."""
    return ParseError(
        message=f"Unexpected end of input, expected {expected}",
        location=token.location,
        token=token,
        code="P002",
        help_text=f"The parser reached the end of the input while expecting {expected}.",
        suggestions=[f"Add the missing {expected}", "Check for unclosed brackets or braces"]
    )


def create_invalid_expression_error(reason: str, token: Token) -> ParseError:
    """Create an error for a token that cannot start or continue an expression."""
    suggestions = []
    if token.type == TokenType.KEYWORD:
        suggestions.append(f"'{token.value}' cannot start an expression here")

    return ParseError(
        message=f"Invalid expression: {reason}",
        location=token.location,
        token=token,
        code="P003",
        help_text=reason,
        suggestions=suggestions or ["Check the expression syntax", "Ensure all operators have operands"]
    )


def create_malformed_params_error(reason: str, token: Token) -> ParseError:
    """Create an error for a destructured parameter list that does not parse."""
    return ParseError(
        message=f"Malformed function parameters: {reason}",
        location=token.location,
        token=token,
        code="P004",
        help_text="Destructured parameters look like { a, b ? default, ... }.",
        suggestions=["Separate parameters with commas", "Place '...' last in the pattern"]
    )
