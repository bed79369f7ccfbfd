"""
Text parser for the portable filter expression language.

Grammar (AND binds tighter than OR, both left-associative):

    filter      := or_expr EOF
    or_expr     := and_expr (("||" | OR) and_expr)*
    and_expr    := unary (("&&" | AND) unary)*
    unary       := NOT unary | primary
    primary     := "(" or_expr ")" | comparison
    comparison  := identifier ("==" | "!=" | "<" | "<=" | ">" | ">=") constant
                 | identifier IN array
                 | identifier (NIN | NOT IN) array
    identifier  := name ("." name)* | quoted string
    constant    := quoted string | number | true | false
    array       := "[" constant ("," constant)* "]"

Examples:
    country == 'BG' && year >= 2020
    (country == 'BG' && year == 2020) || country == 'NL'
    NOT(genre in ['drama', 'comedy'])
    "foo bar 1" == 'bar.foo'
"""

import re
from dataclasses import dataclass
from typing import Any

from oracle_vectorstore.filter.expression import (
    Expression,
    ExpressionType,
    Group,
    Key,
    Value,
    negate,
)

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
    |(?P<number>[+-]?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)
    |(?P<compare>==|!=|<=|>=|<|>)
    |(?P<and>&&)
    |(?P<or>\|\|)
    |(?P<punct>[()\[\],])
    |(?P<ident>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)
    """,
    re.VERBOSE,
)

_KEYWORDS = {
    "AND": "and",
    "and": "and",
    "OR": "or",
    "or": "or",
    "NOT": "not",
    "not": "not",
    "IN": "in",
    "in": "in",
    "NIN": "nin",
    "nin": "nin",
    "TRUE": "true",
    "true": "true",
    "FALSE": "false",
    "false": "false",
}

_PUNCT = {
    "(": "lparen",
    ")": "rparen",
    "[": "lbracket",
    "]": "rbracket",
    ",": "comma",
}

_COMPARISONS = {
    "==": ExpressionType.EQ,
    "!=": ExpressionType.NE,
    "<": ExpressionType.LT,
    "<=": ExpressionType.LTE,
    ">": ExpressionType.GT,
    ">=": ExpressionType.GTE,
}

_ESCAPE_RE = re.compile(r"\\(.)")


class FilterParseError(ValueError):
    """
    Raised for malformed filter text.

    Attributes:
        message: Description of the problem
        line: 1-based line of the offending token
        column: 1-based column of the offending token
    """

    def __init__(self, message: str, line: int, column: int):
        super().__init__(f"Line: {line}:{column}, Error: {message}")
        self.message = message
        self.line = line
        self.column = column


@dataclass(frozen=True)
class Token:
    """Lexical token with its 1-based source position."""

    type: str
    text: str
    line: int
    column: int


def _position(text: str, offset: int) -> tuple[int, int]:
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


def tokenize(text: str) -> list[Token]:
    """
    Split filter text into tokens, ending with an "eof" token.

    Raises:
        FilterParseError: On a character that starts no valid token
    """
    tokens: list[Token] = []
    offset = 0

    while offset < len(text):
        match = _TOKEN_RE.match(text, offset)
        if match is None:
            line, column = _position(text, offset)
            raise FilterParseError(
                f"token recognition error at: '{text[offset]}'", line, column
            )

        kind = match.lastgroup
        lexeme = match.group()
        line, column = _position(text, offset)
        offset = match.end()

        if kind == "ws":
            continue
        if kind == "ident" and lexeme in _KEYWORDS:
            kind = _KEYWORDS[lexeme]
        elif kind == "punct":
            kind = _PUNCT[lexeme]

        tokens.append(Token(kind, lexeme, line, column))

    line, column = _position(text, len(text))
    tokens.append(Token("eof", "<EOF>", line, column))
    return tokens


class FilterExpressionTextParser:
    """
    Recursive-descent parser producing Expression trees.

    NOT is eliminated during parsing by pushing the negation down to the
    comparisons, so the resulting tree only contains AND, OR, comparison,
    IN and NIN operators.
    """

    def parse(self, text: str) -> Expression | Group:
        """
        Parse filter text.

        Raises:
            FilterParseError: If the text is empty or malformed
        """
        if text is None or not text.strip():
            raise FilterParseError("empty filter expression", 1, 1)

        self._tokens = tokenize(text)
        self._index = 0

        expression = self._or_expr()
        self._expect("eof")
        return expression

    # Token helpers

    def _peek(self, ahead: int = 0) -> Token:
        index = min(self._index + ahead, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        token = self._peek()
        self._index += 1
        return token

    def _accept(self, *types: str) -> Token | None:
        if self._peek().type in types:
            return self._advance()
        return None

    def _expect(self, *types: str) -> Token:
        token = self._accept(*types)
        if token is None:
            self._fail(self._peek())
        return token  # type: ignore[return-value]

    @staticmethod
    def _fail(token: Token) -> None:
        raise FilterParseError(
            f"no viable alternative at input '{token.text}'",
            token.line,
            token.column,
        )

    # Grammar rules

    def _or_expr(self) -> Expression | Group:
        left = self._and_expr()
        while self._accept("or"):
            right = self._and_expr()
            left = Expression(ExpressionType.OR, left, right)
        return left

    def _and_expr(self) -> Expression | Group:
        left = self._unary()
        while self._accept("and"):
            right = self._unary()
            left = Expression(ExpressionType.AND, left, right)
        return left

    def _unary(self) -> Expression | Group:
        # "NOT IN" only follows an identifier, so a leading NOT is negation
        if self._accept("not"):
            return negate(self._unary())  # type: ignore[return-value]
        return self._primary()

    def _primary(self) -> Expression | Group:
        if self._accept("lparen"):
            content = self._or_expr()
            self._expect("rparen")
            return Group(content)
        return self._comparison()

    def _comparison(self) -> Expression:
        key = self._identifier()
        token = self._peek()

        if token.type == "compare":
            self._advance()
            return Expression(_COMPARISONS[token.text], key, Value(self._constant()))

        if token.type == "in":
            self._advance()
            return Expression(ExpressionType.IN, key, Value(self._array()))

        if token.type == "nin":
            self._advance()
            return Expression(ExpressionType.NIN, key, Value(self._array()))

        if token.type == "not" and self._peek(1).type == "in":
            self._advance()
            self._advance()
            return Expression(ExpressionType.NIN, key, Value(self._array()))

        self._fail(token)
        raise AssertionError("unreachable")

    def _identifier(self) -> Key:
        token = self._expect("ident", "string")
        if token.type == "string":
            return Key(_unquote(token.text))
        return Key(token.text)

    def _constant(self) -> Any:
        token = self._peek()
        if token.type == "string":
            self._advance()
            return _unquote(token.text)
        if token.type == "number":
            self._advance()
            return _number(token.text)
        if token.type == "true":
            self._advance()
            return True
        if token.type == "false":
            self._advance()
            return False
        self._fail(token)

    def _array(self) -> list[Any]:
        self._expect("lbracket")
        values = [self._constant()]
        while self._accept("comma"):
            values.append(self._constant())
        self._expect("rbracket")
        return values


def _unquote(lexeme: str) -> str:
    return _ESCAPE_RE.sub(r"\1", lexeme[1:-1])


def _number(lexeme: str) -> int | float:
    if any(ch in lexeme for ch in ".eE"):
        return float(lexeme)
    return int(lexeme)


def parse_filter(text: str) -> Expression | Group:
    """Parse filter text with a fresh parser."""
    return FilterExpressionTextParser().parse(text)
