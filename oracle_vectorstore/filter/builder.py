"""
Fluent builder for filter expressions.

Usage:
    b = FilterExpressionBuilder()
    expr = b.and_(b.eq("country", "BG"), b.gte("year", 2020)).build()
"""

from dataclasses import dataclass
from typing import Any

from oracle_vectorstore.filter.expression import (
    Expression,
    ExpressionType,
    Group,
    Key,
    Operand,
    Value,
    negate,
)


@dataclass(frozen=True)
class Op:
    """Wrapper around a built node so builder calls can be nested."""

    expression: Expression | Group

    def build(self) -> Expression | Group:
        return self.expression


class FilterExpressionBuilder:
    """Builds Expression trees without going through the text parser."""

    def eq(self, key: str, value: Any) -> Op:
        return self._compare(ExpressionType.EQ, key, value)

    def ne(self, key: str, value: Any) -> Op:
        return self._compare(ExpressionType.NE, key, value)

    def lt(self, key: str, value: Any) -> Op:
        return self._compare(ExpressionType.LT, key, value)

    def lte(self, key: str, value: Any) -> Op:
        return self._compare(ExpressionType.LTE, key, value)

    def gt(self, key: str, value: Any) -> Op:
        return self._compare(ExpressionType.GT, key, value)

    def gte(self, key: str, value: Any) -> Op:
        return self._compare(ExpressionType.GTE, key, value)

    def in_(self, key: str, *values: Any) -> Op:
        return self._compare(ExpressionType.IN, key, self._flatten(values))

    def nin(self, key: str, *values: Any) -> Op:
        return self._compare(ExpressionType.NIN, key, self._flatten(values))

    def and_(self, left: Op, right: Op) -> Op:
        return Op(Expression(ExpressionType.AND, left.expression, right.expression))

    def or_(self, left: Op, right: Op) -> Op:
        return Op(Expression(ExpressionType.OR, left.expression, right.expression))

    def group(self, content: Op) -> Op:
        return Op(Group(content.expression))

    def not_(self, content: Op) -> Op:
        """Negate a sub-tree; the result contains no NOT node."""
        negated: Operand = negate(content.expression)
        return Op(negated)  # type: ignore[arg-type]

    def _compare(self, op: ExpressionType, key: str, value: Any) -> Op:
        return Op(Expression(op, Key(key), Value(value)))

    @staticmethod
    def _flatten(values: tuple[Any, ...]) -> list[Any]:
        # in_("k", ["a", "b"]) and in_("k", "a", "b") are equivalent
        if len(values) == 1 and isinstance(values[0], (list, tuple)):
            return list(values[0])
        return list(values)
