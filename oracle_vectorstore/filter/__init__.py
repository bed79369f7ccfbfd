"""
Metadata filter expressions.

Main components:
- Expression, Group, Key, Value: Immutable filter tree nodes
- FilterExpressionBuilder: Fluent construction of filter trees
- FilterExpressionTextParser: Parses filter text ("country == 'BG' && year > 2020")
- OracleFilterExpressionConverter: Compiles trees to Oracle JSON path predicates
"""

from oracle_vectorstore.filter.builder import FilterExpressionBuilder
from oracle_vectorstore.filter.converter import (
    OracleFilterExpressionConverter,
    UnsupportedFilterOperatorError,
)
from oracle_vectorstore.filter.expression import (
    Expression,
    ExpressionType,
    Group,
    Key,
    Value,
    negate,
)
from oracle_vectorstore.filter.parser import (
    FilterExpressionTextParser,
    FilterParseError,
    parse_filter,
)

__all__ = [
    "Expression",
    "ExpressionType",
    "FilterExpressionBuilder",
    "FilterExpressionTextParser",
    "FilterParseError",
    "Group",
    "Key",
    "OracleFilterExpressionConverter",
    "UnsupportedFilterOperatorError",
    "Value",
    "negate",
    "parse_filter",
]
