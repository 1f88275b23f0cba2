"""Tests for the GROQ formatter."""

from __future__ import annotations

import pytest

from groq_format import format
from groq_format.ast import (
    BinaryOp,
    Dereference,
    Filter,
    Identifier,
    ObjectEntry,
    ObjectLiteral,
    Projection,
    RangeSlice,
    Tuple,
    UnaryOp,
)
from groq_format.builder import build, quote_string
from groq_format.doc import render
from groq_format.errors import (
    EmptyQueryError,
    FormatError,
    QueryParseError,
    UnclosedDelimiterError,
)
from groq_format.formatter import DEFAULT_WIDTH, format_query
from groq_format.parser import parse_query

README_QUERY = (
    '*[_type == "article" && published == true && category in ["tech", "science"]]'
    '{ title, "slug": slug.current, author->{ name, image } }'
)

README_FORMATTED = """\
*[_type == "article"
    && published == true
    && category in ["tech", "science"]] {
  title,
  "slug": slug.current,
  author-> { name, image }
}"""

PIPE_QUERY = '*[_type == "post"] | order(publishedAt desc) | score(title match "x")'

SAMPLE_QUERIES = [
    README_QUERY,
    PIPE_QUERY,
    '*[_type == "movie" && (releaseYear >= 1980 || director->name == $name)] | order(title asc)',
    '*[_type == "post"][0...10]{ _id, "tags": tags[]->title, "n": count(comments) }',
    '{ "a": 1, "b": [1, 2.50, -3], "c": { ... }, "d": null, "e": !true }',
    '*[_type == "a"] { _type == "b" => { x }, "total": (price + tax) * qty }',
    "fn ex::double($x) = $x * 2; *[count(items) > ex::double(1)]{ items[0], items[-1] }",
    '*[references(^._id)] { "parent": @, "slice": list[1..3], "p": 2 ** -n }',
    "*[a asc == b][0]",
    "(author->) { name }",
    "*[(a, b) == (1, 2)] { x }",
]

# Separators that only appear inside a line when their group renders flat.
_BREAK_POINTS = (", ", "{ ", " && ", " || ", " | ")


def test_default_width() -> None:
    assert DEFAULT_WIDTH == 80


def test_format_alias() -> None:
    assert format is format_query


class TestScenarios:
    def test_readme_example(self) -> None:
        assert format_query(README_QUERY, 80) == README_FORMATTED

    def test_wide_width_collapses_to_one_line(self) -> None:
        assert format_query(README_QUERY, 300) == (
            '*[_type == "article" && published == true && category in ["tech", "science"]]'
            ' { title, "slug": slug.current, author-> { name, image } }'
        )

    def test_compact_query_unchanged(self) -> None:
        assert format_query('*[_type == "article"]', 80) == '*[_type == "article"]'

    def test_no_trailing_newline(self) -> None:
        assert not format_query(README_QUERY).endswith("\n")

    def test_pipe_chain_breaks_per_stage(self) -> None:
        assert format_query(PIPE_QUERY, 40) == (
            '*[_type == "post"]\n'
            "  | order(publishedAt desc)\n"
            '  | score(title match "x")'
        )

    def test_pipe_chain_stays_on_one_line(self) -> None:
        assert format_query(PIPE_QUERY, 80) == PIPE_QUERY

    def test_projection_breaks_without_chain(self) -> None:
        assert format_query('*[_type=="movie"]{title}', 20) == (
            '*[_type == "movie"] {\n  title\n}'
        )

    def test_long_call_arguments_wrap(self) -> None:
        query = 'coalesce(firstName, lastName, nickname, "anonymous")'
        assert format_query(query, 30) == (
            "coalesce(\n"
            "  firstName,\n"
            "  lastName,\n"
            "  nickname,\n"
            '  "anonymous"\n'
            ")"
        )

    def test_tuple_breaks_between_members(self) -> None:
        assert format_query("*[(a, b) == (1, 2)]", 10) == "*[(a,\nb) == (1,\n2)]"

    def test_function_definitions(self) -> None:
        query = 'fn ex::double($x)=$x*2;*[_type=="a"]{"d":ex::double(count)}'
        assert format_query(query) == (
            "fn ex::double($x) = $x * 2;\n"
            "\n"
            '*[_type == "a"] { "d": ex::double(count) }'
        )


class TestCanonicalStyle:
    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            pytest.param(
                '*[_type=="movie"]{title,year}',
                '*[_type == "movie"] { title, year }',
                id="spacing",
            ),
            pytest.param("((a)) && (b || c)", "a && (b || c)", id="redundant_parens"),
            pytest.param("(a + b) * c", "(a + b) * c", id="needed_parens"),
            pytest.param("a + (b * c)", "a + b * c", id="tighter_right_operand"),
            pytest.param("a - (b - c)", "a - (b - c)", id="same_power_right_operand"),
            pytest.param("author->name", "author->name", id="dereference_attribute"),
            pytest.param("*{ author-> }", "* { author-> }", id="bare_dereference"),
            pytest.param("*[_type=='a'][0...10]", '*[_type == "a"][0...10]', id="slice"),
            pytest.param("*[_type == 'a'][-1]", '*[_type == "a"][-1]', id="element"),
            pytest.param("tags[]", "tags[]", id="traversal"),
            pytest.param("'it\\'s'", '"it\'s"', id="single_quotes"),
            pytest.param('"a\\"b"', '"a\\"b"', id="escaped_quote"),
            pytest.param('{"a":1,"b":[1,2]}', '{ "a": 1, "b": [1, 2] }', id="object_literal"),
            pytest.param("*[_type == 'a']{}", '*[_type == "a"] {}', id="empty_projection"),
            pytest.param("count([])", "count([])", id="empty_array"),
            pytest.param("now( )", "now()", id="empty_call"),
            pytest.param(
                "*|order(_createdAt desc,title asc)",
                "* | order(_createdAt desc, title asc)",
                id="ordering",
            ),
            pytest.param("*[_type == 'a'] // all", '*[_type == "a"]', id="comment_dropped"),
            pytest.param("a asc == b", "(a asc) == b", id="postfix_operand"),
            pytest.param("- - 1", "--1", id="nested_prefix"),
            pytest.param("a .. b", "a..b", id="range"),
            pytest.param("a=>b", "a => b", id="pair"),
            pytest.param("(author->){name}", "(author->) { name }", id="projected_dereference"),
            pytest.param("*[(a,b)==(1,2)]", "*[(a, b) == (1, 2)]", id="tuple"),
            pytest.param("((a),(b||c))", "(a, b || c)", id="tuple_members"),
        ],
    )
    def test_canonical(self, query: str, expected: str) -> None:
        assert format_query(query) == expected


class TestProperties:
    @pytest.mark.parametrize("width", [1, 10, 24, 40, 80, 300])
    @pytest.mark.parametrize("query", SAMPLE_QUERIES)
    def test_idempotent(self, query: str, width: int) -> None:
        once = format_query(query, width)
        assert format_query(once, width) == once

    @pytest.mark.parametrize("width", [1, 24, 80])
    @pytest.mark.parametrize("query", SAMPLE_QUERIES)
    def test_round_trip(self, query: str, width: int) -> None:
        assert parse_query(format_query(query, width)) == parse_query(query)

    @pytest.mark.parametrize("query", SAMPLE_QUERIES)
    def test_deterministic(self, query: str) -> None:
        assert format_query(query, 24) == format_query(query, 24)

    def test_width_bound(self) -> None:
        for width in (40, 50, 60, 80):
            for line in format_query(README_QUERY, width).splitlines():
                assert len(line) <= width, f"line exceeds {width} chars: {line!r}"

    @pytest.mark.parametrize("width", [1, 10, 20])
    @pytest.mark.parametrize("query", SAMPLE_QUERIES)
    def test_over_width_lines_are_unbreakable(self, query: str, width: int) -> None:
        for line in format_query(query, width).splitlines():
            if len(line) > width:
                body = line.strip()
                assert not any(mark in body for mark in _BREAK_POINTS), (
                    f"line exceeds {width} chars with a break point left: {line!r}"
                )

    def test_comparison_has_no_break_point(self) -> None:
        lines = format_query(README_QUERY, 20).splitlines()
        assert '  "slug": slug.current,' in lines


class TestErrors:
    @pytest.mark.parametrize("query", ["", "   ", "\n\t"])
    def test_empty_query(self, query: str) -> None:
        with pytest.raises(EmptyQueryError, match="no query provided"):
            format_query(query)

    @pytest.mark.parametrize("width", [1, 80, 300])
    def test_parse_error(self, width: int) -> None:
        with pytest.raises(QueryParseError) as exc_info:
            format_query("*[", width)
        assert isinstance(exc_info.value.__cause__, UnclosedDelimiterError)
        assert str(exc_info.value) == (
            "parse error: unclosed '[' opened at position 1 (line 1, column 2)\n\n*[\n ^"
        )

    def test_parse_error_pointer_on_later_line(self) -> None:
        with pytest.raises(QueryParseError) as exc_info:
            format_query('*[_type == "a"]\n  { title, # }')
        message = str(exc_info.value)
        assert "invalid character '#'" in message
        assert "(line 2, column 12)" in message
        assert message.endswith("  { title, # }\n           ^")

    def test_lex_error_is_a_format_error(self) -> None:
        with pytest.raises(FormatError, match="unterminated string literal"):
            format_query('*[_type == "a]')

    @pytest.mark.parametrize("width", [0, -1])
    def test_invalid_width(self, width: int) -> None:
        with pytest.raises(ValueError, match="positive integer"):
            format_query("*", width)


class TestBuilder:
    def test_adds_parens_required_by_precedence(self) -> None:
        tree = BinaryOp("*", BinaryOp("+", Identifier("a"), Identifier("b")), Identifier("c"))
        assert render(build(tree), 80) == "(a + b) * c"

    def test_range_operand(self) -> None:
        tree = BinaryOp("==", RangeSlice(Identifier("a"), Identifier("b"), True), Identifier("c"))
        assert render(build(tree), 80) == "a..b == c"

    def test_prefix_operand(self) -> None:
        tree = UnaryOp("!", BinaryOp("&&", Identifier("a"), Identifier("b")))
        assert render(build(tree), 80) == "!(a && b)"

    def test_projected_bare_dereference(self) -> None:
        fields = ObjectLiteral((ObjectEntry(None, Identifier("name")),))
        tree = Projection(Dereference(Identifier("author")), fields)
        assert render(build(tree), 80) == "(author->) { name }"

    def test_filter_base_parens(self) -> None:
        tree = Filter(UnaryOp("-", Identifier("a")), Identifier("b"))
        assert render(build(tree), 80) == "(-a)[b]"

    def test_tuple(self) -> None:
        tree = Tuple((Identifier("a"), BinaryOp("||", Identifier("b"), Identifier("c"))))
        assert render(build(tree), 80) == "(a, b || c)"
        assert render(build(tree), 1) == "(a,\nb\n    || c)"

    def test_unknown_node(self) -> None:
        with pytest.raises(TypeError, match="unknown syntax node"):
            build(ObjectEntry(None, Identifier("a")))  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("value", "literal"),
        [
            pytest.param("plain", '"plain"', id="plain"),
            pytest.param('a"b', '"a\\"b"', id="quote"),
            pytest.param("a\\b", '"a\\\\b"', id="backslash"),
            pytest.param("a\nb\tc", '"a\\nb\\tc"', id="control"),
            pytest.param("\x01", '"\\u0001"', id="other_control"),
            pytest.param("é", '"é"', id="unicode_kept"),
        ],
    )
    def test_quote_string(self, value: str, literal: str) -> None:
        assert quote_string(value) == literal
