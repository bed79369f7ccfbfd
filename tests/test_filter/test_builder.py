"""Tests for FilterExpressionBuilder and negate()."""

import pytest

from oracle_vectorstore.filter.builder import FilterExpressionBuilder
from oracle_vectorstore.filter.converter import OracleFilterExpressionConverter
from oracle_vectorstore.filter.expression import (
    Expression,
    ExpressionType,
    Group,
    Key,
    Value,
    negate,
)
from oracle_vectorstore.filter.parser import parse_filter


@pytest.fixture
def b() -> FilterExpressionBuilder:
    return FilterExpressionBuilder()


class TestFilterExpressionBuilder:
    """Tests for builder output."""

    def test_eq(self, b):
        assert b.eq("country", "BG").build() == Expression(
            ExpressionType.EQ, Key("country"), Value("BG")
        )

    def test_matches_parser(self, b):
        built = b.and_(b.eq("country", "BG"), b.gte("year", 2020)).build()

        assert built == parse_filter("country == 'BG' && year >= 2020")

    def test_group(self, b):
        built = b.and_(
            b.group(b.or_(b.gte("year", 2020), b.eq("country", "BG"))),
            b.ne("city", "Sofia"),
        ).build()

        assert built == parse_filter("(year >= 2020 || country == 'BG') && city != 'Sofia'")

    def test_in_accepts_varargs_or_list(self, b):
        assert b.in_("genre", "drama", "comedy").build() == b.in_("genre", ["drama", "comedy"]).build()

    def test_nin(self, b):
        assert b.nin("year", 2020, 2021).build() == Expression(
            ExpressionType.NIN, Key("year"), Value([2020, 2021])
        )

    def test_not_has_no_not_node(self, b):
        built = b.not_(b.and_(b.eq("a", 1), b.lt("b", 2))).build()

        assert built == Expression(
            ExpressionType.OR,
            Expression(ExpressionType.NE, Key("a"), Value(1)),
            Expression(ExpressionType.GTE, Key("b"), Value(2)),
        )

    def test_built_tree_converts(self, b):
        built = b.and_(b.eq("isOpen", True), b.in_("country", "BG", "NL")).build()

        result = OracleFilterExpressionConverter().convert_expression(built)

        assert result == "@.isOpen == true && @.country in ['BG', 'NL']"


class TestNegate:
    """Tests for negate()."""

    @pytest.mark.parametrize(
        "op,negated",
        [
            (ExpressionType.EQ, ExpressionType.NE),
            (ExpressionType.NE, ExpressionType.EQ),
            (ExpressionType.LT, ExpressionType.GTE),
            (ExpressionType.LTE, ExpressionType.GT),
            (ExpressionType.GT, ExpressionType.LTE),
            (ExpressionType.GTE, ExpressionType.LT),
            (ExpressionType.IN, ExpressionType.NIN),
            (ExpressionType.NIN, ExpressionType.IN),
        ],
    )
    def test_comparison_complements(self, op, negated):
        expression = Expression(op, Key("k"), Value(1))

        assert negate(expression) == Expression(negated, Key("k"), Value(1))

    def test_de_morgan(self):
        expression = parse_filter("a == 1 || b == 2")

        assert negate(expression) == parse_filter("a != 1 && b != 2")

    def test_double_negation_is_identity(self):
        expression = parse_filter("(a == 1 && b in [1, 2]) || c > 3")

        assert negate(negate(expression)) == expression

    def test_not_node_is_removed(self):
        inner = Expression(ExpressionType.EQ, Key("a"), Value(1))

        assert negate(Expression(ExpressionType.NOT, inner)) == inner

    def test_group_kept(self):
        assert negate(Group(parse_filter("a == 1"))) == Group(parse_filter("a != 1"))

    def test_bare_operand_rejected(self):
        with pytest.raises(ValueError):
            negate(Key("a"))
