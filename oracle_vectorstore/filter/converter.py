"""
Converts portable filter expressions into Oracle SQL/JSON path predicates.

The output is the body of a JSON path filter, evaluated against the
metadata JSON document:

    country == 'BG' && year >= 2020   ->   @.country == 'BG' && @.year >= 2020

The vector store embeds it as json_exists(metadata, '$?( <predicate> )').
"""

import re
from typing import Any

from oracle_vectorstore.filter.expression import (
    Expression,
    ExpressionType,
    Group,
    Key,
    Operand,
    Value,
)

_OPERATION_SYMBOLS = {
    ExpressionType.AND: " && ",
    ExpressionType.OR: " || ",
    ExpressionType.EQ: " == ",
    ExpressionType.NE: " != ",
    ExpressionType.LT: " < ",
    ExpressionType.LTE: " <= ",
    ExpressionType.GT: " > ",
    ExpressionType.GTE: " >= ",
    ExpressionType.IN: " in ",
    ExpressionType.NIN: " nin ",
}

_SIMPLE_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


class UnsupportedFilterOperatorError(ValueError):
    """Raised when a node or operator has no Oracle JSON path equivalent."""

    def __init__(self, operator: Any):
        super().__init__(f"Not supported expression type: {operator}")
        self.operator = operator


class OracleFilterExpressionConverter:
    """
    Stateless converter from Expression trees to Oracle JSON path filters.

    Grouping is emitted exactly as encoded in the tree; operands are never
    re-associated.
    """

    def convert_expression(self, expression: Expression | Group) -> str:
        """
        Convert a filter tree to its predicate string.

        Raises:
            UnsupportedFilterOperatorError: On NOT or any unknown operator/node
        """
        parts: list[str] = []
        self._convert_operand(expression, parts)
        return "".join(parts)

    def _convert_operand(self, operand: Operand, parts: list[str]) -> None:
        if isinstance(operand, Expression):
            self._do_expression(operand, parts)
        elif isinstance(operand, Group):
            parts.append("(")
            self._convert_operand(operand.content, parts)
            parts.append(")")
        elif isinstance(operand, Key):
            self._do_key(operand, parts)
        elif isinstance(operand, Value):
            self._do_value(operand.value, parts)
        else:
            raise UnsupportedFilterOperatorError(type(operand).__name__)

    def _do_expression(self, expression: Expression, parts: list[str]) -> None:
        symbol = _OPERATION_SYMBOLS.get(expression.type)
        if symbol is None or expression.right is None:
            raise UnsupportedFilterOperatorError(expression.type)

        self._convert_operand(expression.left, parts)
        parts.append(symbol)
        self._convert_operand(expression.right, parts)

    def _do_key(self, key: Key, parts: list[str]) -> None:
        if _SIMPLE_FIELD_RE.match(key.key):
            parts.append(f"@.{key.key}")
        else:
            escaped = key.key.replace('"', '\\"')
            parts.append(f'@."{escaped}"')

    def _do_value(self, value: Any, parts: list[str]) -> None:
        if isinstance(value, (list, tuple)):
            parts.append("[")
            for i, item in enumerate(value):
                if i > 0:
                    parts.append(", ")
                self._do_single_value(item, parts)
            parts.append("]")
        else:
            self._do_single_value(value, parts)

    @staticmethod
    def _do_single_value(value: Any, parts: list[str]) -> None:
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            parts.append("true" if value else "false")
        elif isinstance(value, (int, float)):
            parts.append(str(value))
        else:
            escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
            parts.append(f"'{escaped}'")
