"""Static operator precedence and associativity table.

The same table drives the parser (how tightly operators bind) and the doc
builder (where parentheses are required to keep the parse unchanged).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from groq_format.ast import (
    BinaryOp,
    Expr,
    Paren,
    RangeSlice,
    UnaryOp,
)


class Fixity(Enum):
    """Where an operator sits relative to its operands."""

    INFIX = "infix"
    PREFIX = "prefix"
    POSTFIX = "postfix"


class Associativity(Enum):
    """Grouping of a chain of operators with the same power."""

    LEFT = "left"
    RIGHT = "right"


class Position(Enum):
    """Syntactic slot a child expression occupies under its parent."""

    LEFT = "left"
    RIGHT = "right"
    OPERAND = "operand"
    BASE = "base"


@dataclass(frozen=True, slots=True)
class OperatorInfo:
    """Binding power and shape of a single operator."""

    symbol: str
    power: int
    fixity: Fixity
    associativity: Associativity = Associativity.LEFT


RANGE_OPERATORS = ("..", "...")
LOGICAL_OPERATORS = ("&&", "||")


@dataclass(frozen=True, slots=True)
class PrecedenceTable:
    """Immutable lookup of operators by fixity.

    ``suffix_power`` is the binding power of postfix suffixes (filters,
    projections, attribute access, pipes) and of every primary expression.
    """

    infix: Mapping[str, OperatorInfo]
    prefix: Mapping[str, OperatorInfo]
    postfix: Mapping[str, OperatorInfo]
    suffix_power: int

    @classmethod
    def build(cls, operators: Iterable[OperatorInfo], suffix_power: int) -> PrecedenceTable:
        by_fixity: dict[Fixity, dict[str, OperatorInfo]] = {fixity: {} for fixity in Fixity}
        for info in operators:
            by_fixity[info.fixity][info.symbol] = info
        return cls(
            infix=MappingProxyType(by_fixity[Fixity.INFIX]),
            prefix=MappingProxyType(by_fixity[Fixity.PREFIX]),
            postfix=MappingProxyType(by_fixity[Fixity.POSTFIX]),
            suffix_power=suffix_power,
        )

    def power_of(self, expr: Expr) -> int:
        """Return how tightly ``expr`` binds as a whole."""
        match expr:
            case BinaryOp(operator=operator):
                return self.infix[operator].power
            case RangeSlice(inclusive=inclusive):
                return self.infix[".." if inclusive else "..."].power
            case UnaryOp(operator=operator) if operator in self.postfix:
                return self.postfix[operator].power
            case UnaryOp(operator=operator):
                return self.prefix[operator].power
        return self.suffix_power

    def needs_parens(
        self,
        child: Expr,
        power: int,
        position: Position,
        associativity: Associativity = Associativity.LEFT,
    ) -> bool:
        """Return True if ``child`` must be parenthesized in ``position``.

        ``power`` and ``associativity`` describe the parent operator.
        """
        if isinstance(child, Paren):
            return False
        is_prefix = isinstance(child, UnaryOp) and child.operator in self.prefix
        if is_prefix and position in (Position.RIGHT, Position.OPERAND):
            # A prefix operator cannot be taken apart from the left.
            return False
        child_power = self.power_of(child)
        if child_power != power:
            return child_power < power
        if position is Position.LEFT:
            return associativity is Associativity.RIGHT
        if position is Position.RIGHT:
            return associativity is Associativity.LEFT
        return False


SUFFIX_POWER = 12

PRECEDENCE = PrecedenceTable.build(
    [
        OperatorInfo("=>", 1, Fixity.INFIX, Associativity.RIGHT),
        OperatorInfo("||", 2, Fixity.INFIX),
        OperatorInfo("&&", 3, Fixity.INFIX),
        OperatorInfo("asc", 4, Fixity.POSTFIX),
        OperatorInfo("desc", 4, Fixity.POSTFIX),
        *(
            OperatorInfo(symbol, 5, Fixity.INFIX)
            for symbol in ("==", "!=", "<", "<=", ">", ">=", "in", "match")
        ),
        OperatorInfo("..", 6, Fixity.INFIX),
        OperatorInfo("...", 6, Fixity.INFIX),
        OperatorInfo("+", 7, Fixity.INFIX),
        OperatorInfo("-", 7, Fixity.INFIX),
        OperatorInfo("*", 8, Fixity.INFIX),
        OperatorInfo("/", 8, Fixity.INFIX),
        OperatorInfo("%", 8, Fixity.INFIX),
        OperatorInfo("-", 9, Fixity.PREFIX),
        OperatorInfo("+", 9, Fixity.PREFIX),
        OperatorInfo("**", 10, Fixity.INFIX, Associativity.RIGHT),
        OperatorInfo("!", 11, Fixity.PREFIX),
    ],
    suffix_power=SUFFIX_POWER,
)
