"""AST nodes for GROQ queries."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Expr:
    """Base AST expression type."""


@dataclass(frozen=True, slots=True)
class Everything(Expr):
    """The ``*`` dataset expression."""


@dataclass(frozen=True, slots=True)
class This(Expr):
    """The ``@`` current-value expression."""


@dataclass(frozen=True, slots=True)
class Parent(Expr):
    """The ``^`` parent-scope expression."""


@dataclass(frozen=True, slots=True)
class EllipsisOperator(Expr):
    """The ``...`` entry of an object expanding all attributes."""


@dataclass(frozen=True, slots=True)
class Identifier(Expr):
    """Attribute lookup on the current value."""

    name: str


@dataclass(frozen=True, slots=True)
class Parameter(Expr):
    """Query parameter reference ``$name``."""

    name: str


@dataclass(frozen=True, slots=True)
class StringLiteral(Expr):
    """String literal; ``value`` is the decoded text."""

    value: str


@dataclass(frozen=True, slots=True)
class NumberLiteral(Expr):
    """Numeric literal kept in its source spelling."""

    text: str

    @property
    def value(self) -> int | float:
        if any(mark in self.text for mark in ".eE"):
            return float(self.text)
        return int(self.text)


@dataclass(frozen=True, slots=True)
class BooleanLiteral(Expr):
    value: bool


@dataclass(frozen=True, slots=True)
class NullLiteral(Expr):
    pass


@dataclass(frozen=True, slots=True)
class ArrayLiteral(Expr):
    elements: tuple[Expr, ...]


@dataclass(frozen=True, slots=True)
class ObjectEntry:
    """One entry of an object literal or projection.

    ``key`` is ``None`` for shorthand fields (``title``) and passthrough
    expressions (``author->name``, ``...``).
    """

    key: Expr | None
    value: Expr


@dataclass(frozen=True, slots=True)
class ObjectLiteral(Expr):
    entries: tuple[ObjectEntry, ...]


@dataclass(frozen=True, slots=True)
class UnaryOp(Expr):
    """Prefix (``!``, ``-``, ``+``) or postfix (``asc``, ``desc``) operation."""

    operator: str
    operand: Expr


@dataclass(frozen=True, slots=True)
class BinaryOp(Expr):
    operator: str
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class RangeSlice(Expr):
    """Range ``start..end`` (inclusive) or ``start...end`` (exclusive)."""

    start: Expr
    end: Expr
    inclusive: bool


@dataclass(frozen=True, slots=True)
class Filter(Expr):
    """Filter suffix ``base[condition]``."""

    base: Expr
    condition: Expr


@dataclass(frozen=True, slots=True)
class Element(Expr):
    """Element access ``base[index]`` with a constant index."""

    base: Expr
    index: Expr


@dataclass(frozen=True, slots=True)
class Slice(Expr):
    """Slice suffix ``base[start..end]``."""

    base: Expr
    range: RangeSlice


@dataclass(frozen=True, slots=True)
class ArrayTraversal(Expr):
    """Traversal suffix ``base[]``."""

    base: Expr


@dataclass(frozen=True, slots=True)
class Attribute(Expr):
    """Attribute access ``base.name``."""

    base: Expr
    name: str


@dataclass(frozen=True, slots=True)
class Projection(Expr):
    """Projection suffix ``base { ... }``."""

    base: Expr
    projection: ObjectLiteral


@dataclass(frozen=True, slots=True)
class Dereference(Expr):
    """Reference lookup ``base->`` with an optional attached projection."""

    base: Expr
    projection: ObjectLiteral | None = None


@dataclass(frozen=True, slots=True)
class FunctionCall(Expr):
    """Function invocation; ``name`` may be namespaced (``string::split``)."""

    name: str
    arguments: tuple[Expr, ...]


@dataclass(frozen=True, slots=True)
class PipeCall(Expr):
    """Pipe stage ``base | name(arguments)``."""

    base: Expr
    name: str
    arguments: tuple[Expr, ...]


@dataclass(frozen=True, slots=True)
class Paren(Expr):
    """Parenthesized expression whose parentheses change the parse."""

    inner: Expr


@dataclass(frozen=True, slots=True)
class Tuple(Expr):
    """Parenthesized list of two or more expressions, ``(a, b)``."""

    members: tuple[Expr, ...]


@dataclass(frozen=True, slots=True)
class FunctionDefinition:
    """Custom function ``fn ns::name($a, $b) = body;``."""

    name: str
    parameters: tuple[str, ...]
    body: Expr


@dataclass(frozen=True, slots=True)
class Query(Expr):
    """Query preceded by custom function definitions."""

    functions: tuple[FunctionDefinition, ...]
    body: Expr
