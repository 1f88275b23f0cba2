"""Errors raised while tokenizing, parsing and formatting GROQ queries."""

from __future__ import annotations


class GroqError(Exception):
    """Base exception for every groq-format failure."""


class FormatError(GroqError):
    """Raised by the public formatting API."""


class EmptyQueryError(FormatError):
    """Raised when the query is empty or contains only whitespace."""

    def __init__(self, message: str = "no query provided") -> None:
        super().__init__(message)


class QueryParseError(FormatError):
    """Raised when query text cannot be tokenized or parsed."""


class LexError(GroqError):
    """Raised when query text cannot be split into tokens."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(message)
        self.position = position


class UnterminatedStringError(LexError):
    """A string literal is missing its closing quote."""

    def __init__(self, position: int) -> None:
        super().__init__(
            f"unterminated string literal starting at position {position}", position
        )


class InvalidCharacterError(LexError):
    """A character that cannot start any token."""

    def __init__(self, character: str, position: int) -> None:
        super().__init__(f"invalid character {character!r} at position {position}", position)
        self.character = character


class QuerySyntaxError(GroqError):
    """Raised when the token stream does not form a valid query."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(message)
        self.position = position


class UnexpectedTokenError(QuerySyntaxError):
    """A token that is not allowed at this point of the grammar."""

    def __init__(self, expected: str, found: str, position: int) -> None:
        super().__init__(
            f"unexpected {found} at position {position}, expected {expected}", position
        )
        self.expected = expected
        self.found = found


class UnclosedDelimiterError(QuerySyntaxError):
    """An opening bracket, brace or parenthesis is never closed."""

    def __init__(self, opener: str, position: int) -> None:
        super().__init__(f"unclosed {opener!r} opened at position {position}", position)
        self.opener = opener


class IncompleteExpressionError(QuerySyntaxError):
    """Input ended where an expression was required."""

    def __init__(self, position: int) -> None:
        super().__init__(f"incomplete expression at position {position}", position)


class RecursionLimitExceededError(QuerySyntaxError):
    """Nesting is deeper than the parser accepts."""

    def __init__(self, limit: int, position: int) -> None:
        super().__init__(
            f"expression nesting exceeds the limit of {limit} at position {position}",
            position,
        )
        self.limit = limit
