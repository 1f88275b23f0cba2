"""Parser for GROQ queries.

Primary expressions and their postfix suffixes are parsed by recursive
descent; prefix, infix and postfix operators by precedence climbing driven
by :data:`groq_format.precedence.PRECEDENCE`.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import re
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import cast

from groq_format.ast import (
    ArrayLiteral,
    ArrayTraversal,
    Attribute,
    BinaryOp,
    BooleanLiteral,
    Dereference,
    Element,
    EllipsisOperator,
    Everything,
    Expr,
    Filter,
    FunctionCall,
    FunctionDefinition,
    Identifier,
    NullLiteral,
    NumberLiteral,
    ObjectEntry,
    ObjectLiteral,
    Parameter,
    Paren,
    Parent,
    PipeCall,
    Projection,
    Query,
    RangeSlice,
    Slice,
    StringLiteral,
    This,
    Tuple,
    UnaryOp,
)
from groq_format.errors import (
    IncompleteExpressionError,
    RecursionLimitExceededError,
    UnclosedDelimiterError,
    UnexpectedTokenError,
)
from groq_format.lexer import Token, TokenKind, tokenize
from groq_format.precedence import (
    PRECEDENCE,
    RANGE_OPERATORS,
    Associativity,
    OperatorInfo,
    Position,
    PrecedenceTable,
)


logger = logging.getLogger(__name__)

MAX_DEPTH = 256

_CLOSERS = {"[": "]", "{": "}", "(": ")"}
_PRIMARY_SYMBOLS = {"*": Everything, "@": This, "^": Parent}
_WORD_OPERATORS = frozenset({"in", "match", "asc", "desc"})


def _strip(expr: Expr) -> Expr:
    """Drop parentheses that only delimit a whole expression."""
    while isinstance(expr, Paren):
        expr = expr.inner
    return expr


def _is_index(expr: Expr) -> bool:
    if isinstance(expr, UnaryOp) and expr.operator == "-":
        expr = expr.operand
    return isinstance(expr, NumberLiteral)


class Parser:
    """Single-use parser over a token sequence.

    Nesting depth is tracked explicitly: every nested expression, delimited
    construct and folded suffix counts one level, and exceeding
    :data:`MAX_DEPTH` raises :class:`RecursionLimitExceededError` long before
    the interpreter stack is at risk.
    """

    def __init__(self, tokens: Sequence[Token], table: PrecedenceTable = PRECEDENCE) -> None:
        if not tokens or tokens[-1].kind is not TokenKind.EOF:
            end = tokens[-1].end if tokens else 0
            tokens = (*tokens, Token(TokenKind.EOF, "", end, end))
        self._tokens = tokens
        self._table = table
        self._position = 0
        self._depth = 0

    def parse(self) -> Expr:
        """Parse the whole token sequence into a single AST."""
        functions: list[FunctionDefinition] = []
        while self._at_function_definition():
            functions.append(self._function_definition())

        token = self._peek()
        if token.kind is TokenKind.EOF:
            raise IncompleteExpressionError(token.start)
        body = _strip(self._expression(0))

        token = self._peek()
        if token.kind is not TokenKind.EOF:
            raise UnexpectedTokenError("end of input", token.describe(), token.start)
        if functions:
            return Query(tuple(functions), body)
        return body

    # Token helpers

    def _peek(self, offset: int = 0) -> Token:
        return self._tokens[min(self._position + offset, len(self._tokens) - 1)]

    def _advance(self) -> Token:
        token = self._tokens[self._position]
        if token.kind is not TokenKind.EOF:
            self._position += 1
        return token

    def _at_symbol(self, *symbols: str, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token.kind is TokenKind.SYMBOL and token.text in symbols

    def _expect(self, symbol: str) -> Token:
        token = self._peek()
        if token.kind is TokenKind.SYMBOL and token.text == symbol:
            return self._advance()
        raise UnexpectedTokenError(repr(symbol), token.describe(), token.start)

    def _close(self, opener: Token) -> Token:
        closer = _CLOSERS[opener.text]
        token = self._peek()
        if token.kind is TokenKind.SYMBOL and token.text == closer:
            return self._advance()
        if token.kind is TokenKind.EOF:
            raise UnclosedDelimiterError(opener.text, opener.start)
        raise UnexpectedTokenError(repr(closer), token.describe(), token.start)

    def _identifier(self, expected: str) -> Token:
        token = self._peek()
        if token.kind is TokenKind.IDENTIFIER:
            return self._advance()
        if token.kind is TokenKind.EOF:
            raise IncompleteExpressionError(token.start)
        raise UnexpectedTokenError(expected, token.describe(), token.start)

    def _namespaced_name(self) -> str:
        name = self._identifier("function name").text
        if self._at_symbol("::"):
            self._advance()
            name = f"{name}::{self._identifier('function name').text}"
        return name

    # Depth accounting

    def _descend(self) -> None:
        self._depth += 1
        if self._depth > MAX_DEPTH:
            raise RecursionLimitExceededError(MAX_DEPTH, self._peek().start)

    @contextmanager
    def _nested(self) -> Iterator[None]:
        self._descend()
        try:
            yield
        finally:
            self._depth -= 1

    def _operand(
        self,
        child: Expr,
        power: int,
        position: Position,
        associativity: Associativity = Associativity.LEFT,
    ) -> Expr:
        """Normalize the parentheses around ``child``.

        Redundant parentheses are dropped. A looser operand taken in without
        parentheses (``a asc == b``) is wrapped so the tree records the
        grouping the parse actually used.
        """
        inner = child.inner if isinstance(child, Paren) else child
        if self._table.needs_parens(inner, power, position, associativity):
            return child if isinstance(child, Paren) else Paren(child)
        return inner

    def _base(self, node: Expr) -> Expr:
        return self._operand(node, self._table.suffix_power, Position.BASE)

    # Operators

    def _operator(self, token: Token) -> str | None:
        if token.kind is TokenKind.SYMBOL and token.text in self._table.infix:
            return token.text
        if token.kind is TokenKind.IDENTIFIER and token.text in _WORD_OPERATORS:
            return token.text
        return None

    def _expression(self, min_power: int) -> Expr:
        with self._nested():
            left = self._unary()
            folds = 0
            try:
                while True:
                    operator = self._operator(self._peek())
                    if operator is None:
                        break

                    postfix = self._table.postfix.get(operator)
                    if postfix is not None:
                        if postfix.power < min_power:
                            break
                        self._advance()
                        self._descend()
                        folds += 1
                        left = UnaryOp(
                            operator, self._operand(left, postfix.power, Position.OPERAND)
                        )
                        continue

                    info = self._table.infix.get(operator)
                    if info is None or info.power < min_power:
                        break
                    self._advance()
                    if operator in RANGE_OPERATORS:
                        self._descend()
                        folds += 1
                    if info.associativity is Associativity.LEFT:
                        right = self._expression(info.power + 1)
                    else:
                        right = self._expression(info.power)
                    left = self._combine(info, left, right)
            finally:
                self._depth -= folds
        return left

    def _combine(self, info: OperatorInfo, left: Expr, right: Expr) -> Expr:
        left = self._operand(left, info.power, Position.LEFT, info.associativity)
        right = self._operand(right, info.power, Position.RIGHT, info.associativity)
        if info.symbol in RANGE_OPERATORS:
            return RangeSlice(left, right, inclusive=info.symbol == "..")
        return BinaryOp(info.symbol, left, right)

    def _unary(self) -> Expr:
        token = self._peek()
        info = self._table.prefix.get(token.text) if token.kind is TokenKind.SYMBOL else None
        if info is None:
            return self._suffixes(self._primary())
        self._advance()
        operand = self._expression(info.power)
        return UnaryOp(token.text, self._operand(operand, info.power, Position.OPERAND))

    # Primaries

    def _primary(self) -> Expr:
        token = self._peek()
        match token.kind:
            case TokenKind.EOF:
                raise IncompleteExpressionError(token.start)
            case TokenKind.IDENTIFIER:
                self._advance()
                if self._at_symbol("::"):
                    self._advance()
                    name = f"{token.text}::{self._identifier('function name').text}"
                    if not self._at_symbol("("):
                        next_token = self._peek()
                        raise UnexpectedTokenError(
                            "'('", next_token.describe(), next_token.start
                        )
                    return self._call(name)
                return Identifier(token.text)
            case TokenKind.STRING:
                self._advance()
                return StringLiteral(token.value or "")
            case TokenKind.NUMBER:
                self._advance()
                return NumberLiteral(token.text)
            case TokenKind.BOOLEAN:
                self._advance()
                return BooleanLiteral(token.text == "true")
            case TokenKind.NULL:
                self._advance()
                return NullLiteral()
            case TokenKind.PARAMETER:
                self._advance()
                return Parameter(token.text[1:])
            case TokenKind.SYMBOL if token.text in _PRIMARY_SYMBOLS:
                self._advance()
                return _PRIMARY_SYMBOLS[token.text]()
            case TokenKind.SYMBOL if token.text == "(":
                return self._parenthesized()
            case TokenKind.SYMBOL if token.text == "[":
                return ArrayLiteral(tuple(self._delimited()))
            case TokenKind.SYMBOL if token.text == "{":
                return self._object()
        raise UnexpectedTokenError("expression", token.describe(), token.start)

    def _parenthesized(self) -> Paren | Tuple:
        opener = self._advance()
        with self._nested():
            if self._peek().kind is TokenKind.EOF:
                raise UnclosedDelimiterError(opener.text, opener.start)
            members = [_strip(self._expression(0))]
            while self._at_symbol(","):
                self._advance()
                members.append(_strip(self._expression(0)))
            self._close(opener)
        if len(members) > 1:
            return Tuple(tuple(members))
        return Paren(members[0])

    def _delimited(self) -> list[Expr]:
        """Parse a comma-separated list up to the closer of the current opener."""
        opener = self._advance()
        closer = _CLOSERS[opener.text]
        items: list[Expr] = []
        with self._nested():
            while not self._at_symbol(closer):
                if self._peek().kind is TokenKind.EOF:
                    raise UnclosedDelimiterError(opener.text, opener.start)
                items.append(_strip(self._expression(0)))
                if not self._at_symbol(","):
                    break
                self._advance()
            self._close(opener)
        return items

    def _object(self) -> ObjectLiteral:
        opener = self._advance()
        entries: list[ObjectEntry] = []
        with self._nested():
            while not self._at_symbol("}"):
                if self._peek().kind is TokenKind.EOF:
                    raise UnclosedDelimiterError(opener.text, opener.start)
                entries.append(self._entry())
                if not self._at_symbol(","):
                    break
                self._advance()
            self._close(opener)
        return ObjectLiteral(tuple(entries))

    def _entry(self) -> ObjectEntry:
        if self._at_symbol("..."):
            self._advance()
            return ObjectEntry(None, EllipsisOperator())
        value = _strip(self._expression(0))
        if not self._at_symbol(":"):
            return ObjectEntry(None, value)
        self._advance()
        return ObjectEntry(value, _strip(self._expression(0)))

    def _call(self, name: str) -> FunctionCall:
        return FunctionCall(name, tuple(self._delimited()))

    # Suffixes

    def _suffixes(self, node: Expr) -> Expr:
        folds = 0
        try:
            while True:
                token = self._peek()
                if token.kind is not TokenKind.SYMBOL:
                    break
                symbol = token.text
                is_attribute = symbol == "." and self._peek(1).kind is TokenKind.IDENTIFIER
                callee = node.name if isinstance(node, Identifier) and symbol == "(" else None
                if not (symbol in ("[", "{", "->", "|") or is_attribute or callee):
                    break

                self._descend()
                folds += 1
                if symbol == "[":
                    node = self._bracket(node)
                elif symbol == "{":
                    node = Projection(self._base(node), self._object())
                elif symbol == "->":
                    node = self._dereference(node)
                elif symbol == "|":
                    node = self._pipe(node)
                elif callee is not None:
                    node = self._call(callee)
                else:
                    self._advance()
                    node = Attribute(self._base(node), self._advance().text)
        finally:
            self._depth -= folds
        return node

    def _bracket(self, node: Expr) -> Expr:
        opener = self._advance()
        base = self._base(node)
        if self._at_symbol("]"):
            self._advance()
            return ArrayTraversal(base)
        if self._peek().kind is TokenKind.EOF:
            raise UnclosedDelimiterError(opener.text, opener.start)

        with self._nested():
            inner = _strip(self._expression(0))
            self._close(opener)
        if isinstance(inner, RangeSlice):
            return Slice(base, inner)
        if _is_index(inner):
            return Element(base, inner)
        return Filter(base, inner)

    def _dereference(self, node: Expr) -> Expr:
        self._advance()
        base = self._base(node)
        if self._at_symbol("{"):
            return Dereference(base, self._object())
        if self._peek().kind is TokenKind.IDENTIFIER:
            return Attribute(Dereference(base), self._advance().text)
        return Dereference(base)

    def _pipe(self, node: Expr) -> PipeCall:
        self._advance()
        base = self._base(node)
        name = self._namespaced_name()
        if not self._at_symbol("("):
            token = self._peek()
            raise UnexpectedTokenError("'('", token.describe(), token.start)
        call = self._call(name)
        return PipeCall(base, call.name, call.arguments)

    # Function definitions

    def _at_function_definition(self) -> bool:
        token = self._peek()
        return (
            token.kind is TokenKind.IDENTIFIER
            and token.text == "fn"
            and self._peek(1).kind is TokenKind.IDENTIFIER
            and self._at_symbol("::", offset=2)
        )

    def _function_definition(self) -> FunctionDefinition:
        self._advance()
        name = self._namespaced_name()
        opener = self._expect("(")
        parameters: list[str] = []
        while not self._at_symbol(")"):
            token = self._peek()
            if token.kind is TokenKind.EOF:
                raise UnclosedDelimiterError(opener.text, opener.start)
            if token.kind is not TokenKind.PARAMETER:
                raise UnexpectedTokenError("parameter", token.describe(), token.start)
            parameters.append(self._advance().text[1:])
            if not self._at_symbol(","):
                break
            self._advance()
        self._close(opener)
        self._expect("=")
        body = _strip(self._expression(0))
        self._expect(";")
        return FunctionDefinition(name, tuple(parameters), body)


def parse(tokens: Sequence[Token], *, table: PrecedenceTable = PRECEDENCE) -> Expr:
    """Parse a token sequence into an AST.

    Args:
        tokens: Tokens as produced by :func:`groq_format.lexer.tokenize`.
        table: Operator precedence table.

    Returns:
        The root expression, or a :class:`Query` when the source starts with
        function definitions.

    Raises:
        QuerySyntaxError: On the first syntax error; no partial tree is built.
    """
    tree = Parser(tokens, table).parse()
    logger.debug("parsed %d tokens into %s", len(tokens), type(tree).__name__)
    return tree


def parse_query(query: str) -> Expr:
    """Tokenize and parse GROQ query text."""
    return parse(tokenize(query))


def _type_name(node: object) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", type(node).__name__).lower()


def _to_dict(value: object) -> object:
    if isinstance(value, tuple):
        return [_to_dict(item) for item in value]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        result: dict[str, object] = {"type": _type_name(value)}
        for field in dataclasses.fields(value):
            result[field.name] = _to_dict(getattr(value, field.name))
        return result
    return value


def parse_to_dict(node: Expr | None = None, *, query: str | None = None) -> dict:
    """Return a dictionary representation of a GROQ syntax tree.

    Either provide a parsed node or a query string to parse.

    Args:
        node: An AST node to convert. If None, query must be provided.
        query: A GROQ query string to parse. Ignored if node is provided.

    Returns:
        A dictionary with a "type" key naming the node and one key per
        node field; child nodes are converted recursively.
    """
    if node is None:
        if query is None:
            raise ValueError("Either node or query must be provided")
        node = parse_query(query)
    return cast(dict, _to_dict(node))


def _sexp(value: object) -> str:
    if isinstance(value, tuple):
        return "[" + " ".join(_sexp(item) for item in value) + "]"
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        parts = [_type_name(value)]
        parts.extend(_sexp(getattr(value, field.name)) for field in dataclasses.fields(value))
        return "(" + " ".join(parts) + ")"
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value, ensure_ascii=False)


def tree_to_sexp(query: str) -> str:
    """Parse a GROQ query and return its S-expression representation.

    This is useful for debugging and testing the parser.
    """
    return _sexp(parse_query(query))
