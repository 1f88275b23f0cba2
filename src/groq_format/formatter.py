"""Formatter for GROQ queries."""

from __future__ import annotations

import logging

from groq_format.builder import build
from groq_format.doc import render
from groq_format.errors import (
    EmptyQueryError,
    LexError,
    QueryParseError,
    QuerySyntaxError,
)
from groq_format.lexer import tokenize
from groq_format.parser import parse


logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 80


def _line_and_column(query: str, position: int) -> tuple[int, int]:
    """Return the zero-based line and column of a character offset."""
    position = max(0, min(position, len(query)))
    line_number = query.count("\n", 0, position)
    column_number = position - (query.rfind("\n", 0, position) + 1)
    return line_number, column_number


def _format_parse_error(query: str, exc: LexError | QuerySyntaxError) -> str:
    """Build a parse error message with a pointer into the query."""
    line_number, column_number = _line_and_column(query, exc.position)
    query_lines = query.splitlines() or [query]
    error_line = query_lines[line_number] if line_number < len(query_lines) else ""
    pointer = " " * column_number + "^"
    return (
        f"parse error: {exc} (line {line_number + 1}, column {column_number + 1})"
        f"\n\n{error_line}\n{pointer}"
    )


def format_query(query: str, width: int = DEFAULT_WIDTH) -> str:
    """Format a GROQ query.

    Args:
        query: A GROQ query string.
        width: Maximum line width. Atomic tokens longer than the width are
            still emitted whole.

    Returns:
        The formatted query, without a trailing newline.

    Raises:
        EmptyQueryError: If the query is empty or only whitespace.
        QueryParseError: If the query cannot be tokenized or parsed.
        ValueError: If ``width`` is smaller than 1.
    """
    if width < 1:
        raise ValueError(f"width must be a positive integer, got {width}")
    if not query.strip():
        raise EmptyQueryError()

    try:
        tree = parse(tokenize(query))
    except (LexError, QuerySyntaxError) as exc:
        logger.debug("rejecting query: %s", exc)
        raise QueryParseError(_format_parse_error(query, exc)) from exc

    return render(build(tree), width)


format = format_query
