"""
Portable metadata filter expression model.

A filter is a small tree built from four node kinds:

- Key: a metadata field name
- Value: a literal (str, int, float, bool, or a list of those)
- Expression: a binary comparison or boolean combination
- Group: a parenthesized sub-expression

Trees are immutable. Vector store converters walk them to produce a
backend-native predicate.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ExpressionType(str, Enum):
    """Operators that can appear in an Expression node."""

    AND = "AND"
    OR = "OR"
    EQ = "EQ"
    NE = "NE"
    LT = "LT"
    LTE = "LTE"
    GT = "GT"
    GTE = "GTE"
    IN = "IN"
    NIN = "NIN"
    NOT = "NOT"


@dataclass(frozen=True)
class Key:
    """Metadata field reference."""

    key: str


@dataclass(frozen=True)
class Value:
    """Literal operand. Lists are used with IN / NIN."""

    value: Any


@dataclass(frozen=True)
class Expression:
    """
    Operator applied to two operands.

    NOT is unary and leaves `right` unset.
    """

    type: ExpressionType
    left: "Operand"
    right: "Operand | None" = None


@dataclass(frozen=True)
class Group:
    """Parenthesized sub-expression; its grouping is preserved on conversion."""

    content: "Expression | Group"


Operand = Union[Key, Value, Expression, Group]


_NEGATIONS = {
    ExpressionType.EQ: ExpressionType.NE,
    ExpressionType.NE: ExpressionType.EQ,
    ExpressionType.LT: ExpressionType.GTE,
    ExpressionType.GTE: ExpressionType.LT,
    ExpressionType.GT: ExpressionType.LTE,
    ExpressionType.LTE: ExpressionType.GT,
    ExpressionType.IN: ExpressionType.NIN,
    ExpressionType.NIN: ExpressionType.IN,
}


def negate(operand: Operand) -> Operand:
    """
    Push a logical negation down to the comparisons of a tree.

    AND/OR are swapped (De Morgan) with both sides negated, comparisons
    flip to their complement and a NOT node is removed. Groups keep their
    parentheses around the negated content.

    Raises:
        ValueError: If the operand is a bare Key or Value
    """
    if isinstance(operand, Group):
        return Group(negate(operand.content))

    if not isinstance(operand, Expression):
        raise ValueError(f"Cannot negate operand: {operand!r}")

    if operand.type == ExpressionType.NOT:
        return operand.left

    if operand.type == ExpressionType.AND:
        return Expression(ExpressionType.OR, negate(operand.left), negate(operand.right))

    if operand.type == ExpressionType.OR:
        return Expression(ExpressionType.AND, negate(operand.left), negate(operand.right))

    return Expression(_NEGATIONS[operand.type], operand.left, operand.right)
