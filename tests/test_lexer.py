"""Tests for the GROQ tokenizer."""

from __future__ import annotations

import pytest

from groq_format.errors import InvalidCharacterError, UnterminatedStringError
from groq_format.lexer import Token, TokenKind, decode_string, tokenize


def _texts(source: str) -> list[str]:
    return [token.text for token in tokenize(source) if token.kind is not TokenKind.EOF]


def test_tokenize_filter() -> None:
    tokens = tokenize('*[_type == "a"]')
    assert [t.kind for t in tokens] == [
        TokenKind.SYMBOL,
        TokenKind.SYMBOL,
        TokenKind.IDENTIFIER,
        TokenKind.SYMBOL,
        TokenKind.STRING,
        TokenKind.SYMBOL,
        TokenKind.EOF,
    ]
    assert [t.text for t in tokens[:-1]] == ["*", "[", "_type", "==", '"a"', "]"]


def test_tokenize_ends_with_single_eof() -> None:
    tokens = tokenize("a")
    assert tokens[-1] == Token(TokenKind.EOF, "", 1, 1)
    assert sum(t.kind is TokenKind.EOF for t in tokens) == 1


def test_tokenize_empty_source() -> None:
    assert tokenize("   ") == (Token(TokenKind.EOF, "", 3, 3),)


def test_token_spans() -> None:
    tokens = tokenize("  foo  ->")
    assert (tokens[0].start, tokens[0].end) == (2, 5)
    assert (tokens[1].start, tokens[1].end) == (7, 9)


class TestTokenKinds:
    @pytest.mark.parametrize(
        ("source", "kind"),
        [
            pytest.param("title", TokenKind.IDENTIFIER, id="identifier"),
            pytest.param("_id", TokenKind.IDENTIFIER, id="underscore_identifier"),
            pytest.param("true", TokenKind.BOOLEAN, id="true"),
            pytest.param("false", TokenKind.BOOLEAN, id="false"),
            pytest.param("null", TokenKind.NULL, id="null"),
            pytest.param("$slug", TokenKind.PARAMETER, id="parameter"),
            pytest.param("42", TokenKind.NUMBER, id="integer"),
            pytest.param("3.14", TokenKind.NUMBER, id="decimal"),
            pytest.param("1.5e-3", TokenKind.NUMBER, id="exponent"),
            pytest.param("'x'", TokenKind.STRING, id="single_quoted"),
            pytest.param('"x"', TokenKind.STRING, id="double_quoted"),
        ],
    )
    def test_single_token(self, source: str, kind: TokenKind) -> None:
        tokens = tokenize(source)
        assert len(tokens) == 2
        assert tokens[0].kind is kind
        assert tokens[0].text == source


class TestSymbols:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            pytest.param("a...b", ["a", "...", "b"], id="exclusive_range"),
            pytest.param("a..b", ["a", "..", "b"], id="inclusive_range"),
            pytest.param("1..5", ["1", "..", "5"], id="range_of_numbers"),
            pytest.param("a->b", ["a", "->", "b"], id="dereference"),
            pytest.param("a=>b", ["a", "=>", "b"], id="pair"),
            pytest.param("a<=b", ["a", "<=", "b"], id="less_equal"),
            pytest.param("a!=b", ["a", "!=", "b"], id="not_equal"),
            pytest.param("a&&!b", ["a", "&&", "!", "b"], id="and_not"),
            pytest.param("a||b", ["a", "||", "b"], id="or"),
            pytest.param("a**2", ["a", "**", "2"], id="power"),
            pytest.param("math::sum(x)", ["math", "::", "sum", "(", "x", ")"], id="namespace"),
            pytest.param("a|order(b)", ["a", "|", "order", "(", "b", ")"], id="pipe"),
            pytest.param("@.a^", ["@", ".", "a", "^"], id="scope_symbols"),
        ],
    )
    def test_longest_match(self, source: str, expected: list[str]) -> None:
        assert _texts(source) == expected


class TestStrings:
    @pytest.mark.parametrize(
        ("literal", "value"),
        [
            pytest.param('"plain"', "plain", id="plain"),
            pytest.param("'it\\'s'", "it's", id="escaped_single_quote"),
            pytest.param('"say \\"hi\\""', 'say "hi"', id="escaped_double_quote"),
            pytest.param('"a\\\\b"', "a\\b", id="backslash"),
            pytest.param('"a\\/b"', "a/b", id="slash"),
            pytest.param('"line\\nbreak\\ttab"', "line\nbreak\ttab", id="control_escapes"),
            pytest.param('"\\u00e9"', "é", id="unicode_escape"),
            pytest.param('"\\u{1F600}"', "\U0001f600", id="braced_unicode_escape"),
            pytest.param('"\\ud83d\\ude00"', "\U0001f600", id="surrogate_pair"),
        ],
    )
    def test_decode_string(self, literal: str, value: str) -> None:
        assert decode_string(literal) == value

    def test_string_token_carries_decoded_value(self) -> None:
        token = tokenize("'it\\'s'")[0]
        assert token.text == "'it\\'s'"
        assert token.value == "it's"

    def test_non_string_tokens_have_no_value(self) -> None:
        assert tokenize("title")[0].value is None


class TestComments:
    def test_line_comment_is_skipped(self) -> None:
        assert _texts("a // the first\nb") == ["a", "b"]

    def test_trailing_comment(self) -> None:
        assert _texts('*[_type == "a"] // all articles') == ["*", "[", "_type", "==", '"a"', "]"]


class TestLexErrors:
    def test_unterminated_string(self) -> None:
        with pytest.raises(UnterminatedStringError) as exc_info:
            tokenize('x == "abc')
        assert exc_info.value.position == 5
        assert "unterminated string literal" in str(exc_info.value)

    def test_unterminated_single_quoted_string(self) -> None:
        with pytest.raises(UnterminatedStringError):
            tokenize("'abc")

    def test_invalid_character(self) -> None:
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize("a # b")
        assert exc_info.value.position == 2
        assert exc_info.value.character == "#"
        assert str(exc_info.value) == "invalid character '#' at position 2"
