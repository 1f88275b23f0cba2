"""GROQ query formatter: a hand-written parser and a Wadler-style pretty printer."""

from __future__ import annotations

from groq_format.errors import EmptyQueryError, FormatError, QueryParseError
from groq_format.formatter import DEFAULT_WIDTH, format, format_query
from groq_format.lexer import tokenize
from groq_format.parser import parse, parse_query, parse_to_dict, tree_to_sexp

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_WIDTH",
    "EmptyQueryError",
    "FormatError",
    "QueryParseError",
    "format",
    "format_query",
    "parse",
    "parse_query",
    "parse_to_dict",
    "tokenize",
    "tree_to_sexp",
]
