"""Tokenizer for GROQ query text, built from parsy regex parsers."""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass
from enum import Enum

from parsy import ParseError, Parser, alt, eof, index, regex, seq

from groq_format.errors import InvalidCharacterError, LexError, UnterminatedStringError


logger = logging.getLogger(__name__)


class TokenKind(Enum):
    """Kinds of tokens produced by :func:`tokenize`."""

    IDENTIFIER = "identifier"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    PARAMETER = "parameter"
    SYMBOL = "symbol"
    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    """A lexical token with its source span.

    ``value`` holds the decoded contents of string literals and is ``None``
    for every other kind.
    """

    kind: TokenKind
    text: str
    start: int
    end: int
    value: str | None = None

    def describe(self) -> str:
        """Human-readable description used in error messages."""
        if self.kind is TokenKind.EOF:
            return "end of input"
        if self.kind is TokenKind.SYMBOL:
            return repr(self.text)
        return f"{self.kind.value} {self.text!r}"


SYMBOLS = (
    "...",
    "..",
    "->",
    "=>",
    "==",
    "!=",
    "<=",
    ">=",
    "&&",
    "||",
    "::",
    "**",
    "[",
    "]",
    "{",
    "}",
    "(",
    ")",
    ",",
    ":",
    ".",
    "|",
    "!",
    "<",
    ">",
    "+",
    "-",
    "*",
    "/",
    "%",
    "@",
    "^",
    "=",
    ";",
)

_KEYWORD_KINDS = {
    "true": TokenKind.BOOLEAN,
    "false": TokenKind.BOOLEAN,
    "null": TokenKind.NULL,
}

_SIMPLE_ESCAPES = {"b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t"}
_ESCAPE_RE = re.compile(r"\\(u\{[0-9A-Fa-f]+\}|u[0-9A-Fa-f]{4}|.)", re.DOTALL)
_QUOTES = "\"'"


def _unescape(match: re.Match[str]) -> str:
    body = match.group(1)
    if body.startswith("u{"):
        code = int(body[2:-1], 16)
        return chr(code) if code <= 0x10FFFF else body
    if body.startswith("u") and len(body) == 5:
        return chr(int(body[1:], 16))
    return _SIMPLE_ESCAPES.get(body, body)


def decode_string(literal: str) -> str:
    """Decode a quoted string literal, including its escape sequences.

    Escaped UTF-16 surrogate pairs (``\\ud83d\\ude00``) are joined into a
    single code point.
    """
    value = _ESCAPE_RE.sub(_unescape, literal[1:-1])
    return value.encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")


def _token(kind: TokenKind, pattern: Parser) -> Parser:
    return seq(index, pattern, index).combine(
        lambda start, text, end: Token(kind, text, start, end)
    )


def _keyword(token: Token) -> Token:
    kind = _KEYWORD_KINDS.get(token.text)
    if kind is None:
        return token
    return dataclasses.replace(token, kind=kind)


def _decoded(token: Token) -> Token:
    return dataclasses.replace(token, value=decode_string(token.text))


def _make_tokenizer() -> Parser:
    """Create the parser turning a whole source text into a token list."""
    whitespace = regex(r"(?:\s+|//[^\n]*)*")
    word = _token(TokenKind.IDENTIFIER, regex(r"[A-Za-z_][A-Za-z0-9_]*")).map(_keyword)
    number = _token(TokenKind.NUMBER, regex(r"\d+(?:\.\d+)?(?:[eE][+-]?\d+)?"))
    string_literal = _token(
        TokenKind.STRING,
        regex(r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'", flags=re.DOTALL),
    ).map(_decoded)
    parameter = _token(TokenKind.PARAMETER, regex(r"\$[A-Za-z_][A-Za-z0-9_]*"))
    ordered = sorted(SYMBOLS, key=len, reverse=True)
    symbol = _token(TokenKind.SYMBOL, regex("|".join(re.escape(s) for s in ordered)))

    token = alt(string_literal, number, word, parameter, symbol)
    return whitespace >> (token << whitespace).many() << eof


TOKENIZER = _make_tokenizer()


def _lex_error(source: str, position: int) -> LexError:
    if position >= len(source):
        return InvalidCharacterError("", position)
    character = source[position]
    if character in _QUOTES:
        return UnterminatedStringError(position)
    return InvalidCharacterError(character, position)


def tokenize(source: str) -> tuple[Token, ...]:
    """Split GROQ query text into tokens.

    Args:
        source: Raw query text.

    Returns:
        The tokens in source order, terminated by a single EOF token.

    Raises:
        UnterminatedStringError: If a string literal has no closing quote.
        InvalidCharacterError: If a character cannot start any token.
    """
    try:
        tokens = TOKENIZER.parse(source)
    except ParseError as exc:
        raise _lex_error(source, exc.index) from exc
    end = len(source)
    result = (*tokens, Token(TokenKind.EOF, "", end, end))
    logger.debug("tokenized %d characters into %d tokens", end, len(result))
    return result
