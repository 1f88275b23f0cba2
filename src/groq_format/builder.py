"""Map GROQ syntax trees to layout documents.

The builder encodes the canonical style: which constructs may break and how
far broken lines are indented. Whether they break is left to
:func:`groq_format.doc.render`.
"""

from __future__ import annotations

import logging

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
from groq_format.doc import (
    HARDLINE,
    LINE,
    SOFTLINE,
    Doc,
    concat,
    group,
    join,
    nest,
)
from groq_format.precedence import (
    LOGICAL_OPERATORS,
    PRECEDENCE,
    Associativity,
    Position,
    PrecedenceTable,
)


logger = logging.getLogger(__name__)

CHAIN_INDENT = 4
BLOCK_INDENT = 2

_STRING_ESCAPES = {'"': '\\"', "\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def quote_string(value: str) -> str:
    """Return ``value`` as a double-quoted GROQ string literal."""
    chars = ['"']
    for char in value:
        code = ord(char)
        if char in _STRING_ESCAPES:
            chars.append(_STRING_ESCAPES[char])
        elif code < 0x20 or code == 0x7F or 0xD800 <= code <= 0xDFFF:
            chars.append(f"\\u{code:04x}")
        else:
            chars.append(char)
    chars.append('"')
    return "".join(chars)


def _is_chain(expr: Expr) -> bool:
    return isinstance(expr, BinaryOp) and expr.operator in LOGICAL_OPERATORS


class DocBuilder:
    """Build a :class:`~groq_format.doc.Doc` for a syntax tree."""

    def __init__(self, table: PrecedenceTable = PRECEDENCE) -> None:
        self._table = table

    def build(self, expr: Expr) -> Doc:
        match expr:
            case Everything():
                return concat("*")
            case This():
                return concat("@")
            case Parent():
                return concat("^")
            case EllipsisOperator():
                return concat("...")
            case Identifier(name=name):
                return concat(name)
            case Parameter(name=name):
                return concat(f"${name}")
            case StringLiteral(value=value):
                return concat(quote_string(value))
            case NumberLiteral(text=text):
                return concat(text)
            case BooleanLiteral(value=value):
                return concat("true" if value else "false")
            case NullLiteral():
                return concat("null")
            case ArrayLiteral(elements=elements):
                return self._bracketed("[", [self.build(e) for e in elements], "]")
            case ObjectLiteral():
                return group(self._object_body(expr))
            case UnaryOp():
                return self._unary(expr)
            case BinaryOp():
                return self._binary(expr)
            case RangeSlice():
                return self._range(expr)
            case Filter(base=base, condition=condition):
                return concat(self._base(base), "[", self.build(condition), "]")
            case Element(base=base, index=index):
                return concat(self._base(base), "[", self.build(index), "]")
            case Slice(base=base, range=range_):
                return concat(self._base(base), "[", self._range(range_), "]")
            case ArrayTraversal(base=base):
                return concat(self._base(base), "[]")
            case Attribute(base=Dereference(base=target, projection=None), name=name):
                return concat(self._base(target), "->", name)
            case Attribute(base=base, name=name):
                return concat(self._base(base), ".", name)
            case Projection():
                return self._projection(expr)
            case Dereference(base=base, projection=None):
                return concat(self._base(base), "->")
            case Dereference(base=base, projection=projection):
                return group(self._base(base), "-> ", self._object_body(projection))
            case FunctionCall(name=name, arguments=arguments):
                return self._call(name, arguments)
            case PipeCall():
                return self._pipe(expr)
            case Paren(inner=inner):
                return concat("(", self.build(inner), ")")
            case Tuple(members=members):
                items = join(concat(",", LINE), [self.build(m) for m in members])
                return concat("(", group(items), ")")
            case Query(functions=functions, body=body):
                definitions = join(HARDLINE, [self._definition(f) for f in functions])
                return concat(definitions, HARDLINE, HARDLINE, self.build(body))
        raise TypeError(f"unknown syntax node: {expr!r}")

    # Parenthesization

    def _child(
        self,
        child: Expr,
        power: int,
        position: Position,
        associativity: Associativity = Associativity.LEFT,
    ) -> Doc:
        doc = self.build(child)
        if self._table.needs_parens(child, power, position, associativity):
            return concat("(", doc, ")")
        return doc

    def _base(self, base: Expr) -> Doc:
        return self._child(base, self._table.suffix_power, Position.BASE)

    # Operators

    def _unary(self, expr: UnaryOp) -> Doc:
        postfix = self._table.postfix.get(expr.operator)
        if postfix is not None:
            operand = self._child(expr.operand, postfix.power, Position.OPERAND)
            return concat(operand, " ", expr.operator)
        info = self._table.prefix[expr.operator]
        return concat(expr.operator, self._child(expr.operand, info.power, Position.OPERAND))

    def _binary(self, expr: BinaryOp) -> Doc:
        doc = self._operator_chain(expr)
        if _is_chain(expr):
            return group(doc)
        return doc

    def _operator_chain(self, expr: BinaryOp) -> Doc:
        """Render ``expr`` with its same-power left operands unrolled.

        A logical chain puts every continuation on its own line when broken,
        prefixed by the operator. The caller decides which group owns it.
        """
        info = self._table.infix[expr.operator]
        steps: list[tuple[str, Expr]] = []
        node: Expr = expr
        while isinstance(node, BinaryOp) and self._table.infix[node.operator].power == info.power:
            steps.append((node.operator, node.right))
            node = node.left
            if info.associativity is Associativity.RIGHT:
                break
        steps.reverse()

        parts = [self._child(node, info.power, Position.LEFT, info.associativity)]
        for operator, right in steps:
            operand = self._child(right, info.power, Position.RIGHT, info.associativity)
            if operator in LOGICAL_OPERATORS:
                parts.append(concat(LINE, operator, " ", operand))
            else:
                parts.append(concat(f" {operator} ", operand))
        if _is_chain(expr):
            return nest(CHAIN_INDENT, *parts)
        return concat(*parts)

    def _range(self, expr: RangeSlice) -> Doc:
        info = self._table.infix[".." if expr.inclusive else "..."]
        return concat(
            self._child(expr.start, info.power, Position.LEFT, info.associativity),
            info.symbol,
            self._child(expr.end, info.power, Position.RIGHT, info.associativity),
        )

    # Delimited constructs

    def _bracketed(self, opener: str, items: list[Doc], closer: str) -> Doc:
        if not items:
            return concat(opener, closer)
        return group(
            opener,
            nest(BLOCK_INDENT, SOFTLINE, join(concat(",", LINE), items)),
            SOFTLINE,
            closer,
        )

    def _entry(self, entry: ObjectEntry) -> Doc:
        if entry.key is None:
            return self.build(entry.value)
        return concat(self.build(entry.key), ": ", self.build(entry.value))

    def _object_body(self, obj: ObjectLiteral) -> Doc:
        """``{ a, b }`` without its own group, so a caller can share one."""
        if not obj.entries:
            return concat("{}")
        fields = join(concat(",", LINE), [self._entry(entry) for entry in obj.entries])
        return concat("{", nest(BLOCK_INDENT, LINE, fields), LINE, "}")

    def _projection(self, expr: Projection) -> Doc:
        base = expr.base
        if isinstance(base, Filter) and isinstance(base.condition, BinaryOp) and _is_chain(
            base.condition
        ):
            # The filter's chain breaks together with the projection.
            chain = self._operator_chain(base.condition)
            base_doc = concat(self._base(base.base), "[", chain, "]")
        elif isinstance(base, Dereference) and base.projection is None:
            base_doc = concat("(", self.build(base), ")")
        else:
            base_doc = self._base(base)
        return group(base_doc, " ", self._object_body(expr.projection))

    def _call(self, name: str, arguments: tuple[Expr, ...]) -> Doc:
        items = [self.build(argument) for argument in arguments]
        return concat(name, self._bracketed("(", items, ")"))

    def _pipe(self, expr: PipeCall) -> Doc:
        stages: list[PipeCall] = []
        node: Expr = expr
        while isinstance(node, PipeCall):
            stages.append(node)
            node = node.base
        calls = [concat(LINE, "| ", self._call(s.name, s.arguments)) for s in reversed(stages)]
        return group(self._base(node), nest(BLOCK_INDENT, *calls))

    def _definition(self, definition: FunctionDefinition) -> Doc:
        parameters = ", ".join(f"${name}" for name in definition.parameters)
        return concat(
            f"fn {definition.name}({parameters}) = ", self.build(definition.body), ";"
        )


def build(tree: Expr, *, table: PrecedenceTable = PRECEDENCE) -> Doc:
    """Build the layout document for a parsed query."""
    doc = DocBuilder(table).build(tree)
    logger.debug("built document for %s", type(tree).__name__)
    return doc
