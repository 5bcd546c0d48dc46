"""
Textual query language.

    SELECT * | expr [AS name], ... FROM collection
      [WHERE expr]
      [ORDER BY expr [ASC|DESC], ...]
      [LIMIT n]

Expressions support comparisons, AND/OR/NOT, parentheses, numbers,
'strings', TRUE/FALSE/NULL, bracketed arrays such as [1.0, 0.0],
@parameters, dotted field paths and registered function calls, e.g.
VECTOR_DISTANCE(embedding, [1.0, 0.0]).
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ..core.errors import QuerySyntaxError, UnknownOperatorError
from .expressions import (
    COMPARISON_OPERATORS,
    And,
    Call,
    Comparison,
    Expression,
    Field,
    Literal,
    Not,
    Or,
    Parameter,
)
from .operators import OperatorRegistry, default_registry
from .plan import Cursor, Projection, QueryPlan, SortKey

KEYWORDS = {
    "SELECT", "FROM", "WHERE", "ORDER", "BY", "ASC", "DESC", "LIMIT",
    "AS", "AND", "OR", "NOT", "TRUE", "FALSE", "NULL",
}

_TOKEN_SPEC = [
    ("WS", r"\s+"),
    ("NUMBER", r"-?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?"),
    ("STRING", r"'(?:[^']|'')*'"),
    ("PARAM", r"@[A-Za-z_][A-Za-z0-9_]*"),
    ("NAME", r"[A-Za-z_][A-Za-z0-9_]*(?:\.(?:[A-Za-z_][A-Za-z0-9_]*|\d+))*"),
    ("OP", r"<=|>=|<>|!=|==|=|<|>"),
    ("PUNCT", r"[()\[\],*]"),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPEC))


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int

    @property
    def keyword(self) -> Optional[str]:
        if self.kind == "NAME" and self.text.upper() in KEYWORDS:
            return self.text.upper()
        return None


def tokenize(text: str) -> List[Token]:
    """Split query text into tokens; raises QuerySyntaxError on stray characters."""
    tokens = []
    position = 0
    while position < len(text):
        match = _TOKEN_RE.match(text, position)
        if match is None:
            raise QuerySyntaxError(f"Unexpected character {text[position]!r}", position)
        kind = match.lastgroup
        if kind != "WS":
            tokens.append(Token(kind, match.group(), position))
        position = match.end()
    tokens.append(Token("EOF", "", len(text)))
    return tokens


class Parser:
    """Recursive-descent parser producing expressions and query plans."""

    def __init__(self, text: str, registry: Optional[OperatorRegistry] = None):
        self.text = text
        self.registry = registry or default_registry
        self.tokens = tokenize(text)
        self.index = 0

    # Token helpers

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        if token.kind != "EOF":
            self.index += 1
        return token

    def at_keyword(self, *keywords: str) -> bool:
        return self.current.keyword in keywords

    def accept_keyword(self, keyword: str) -> bool:
        if self.at_keyword(keyword):
            self.advance()
            return True
        return False

    def expect_keyword(self, keyword: str) -> Token:
        if not self.at_keyword(keyword):
            self.error(f"Expected {keyword}")
        return self.advance()

    def at_punct(self, symbol: str) -> bool:
        return self.current.kind == "PUNCT" and self.current.text == symbol

    def expect_punct(self, symbol: str) -> Token:
        if not self.at_punct(symbol):
            self.error(f"Expected {symbol!r}")
        return self.advance()

    def error(self, message: str):
        found = self.current.text or "end of input"
        raise QuerySyntaxError(f"{message}, found {found!r}", self.current.position)

    # Grammar

    def parse_query(self) -> QueryPlan:
        self.expect_keyword("SELECT")
        projection = self.parse_select_list()

        self.expect_keyword("FROM")
        collection = self.parse_name("collection name")

        predicate = None
        if self.accept_keyword("WHERE"):
            predicate = self.parse_expression()

        order_by: List[SortKey] = []
        if self.accept_keyword("ORDER"):
            self.expect_keyword("BY")
            order_by.append(self.parse_sort_key())
            while self.at_punct(","):
                self.advance()
                order_by.append(self.parse_sort_key())

        limit = None
        if self.accept_keyword("LIMIT"):
            token = self.advance()
            if token.kind != "NUMBER" or not re.fullmatch(r"-?\d+", token.text):
                raise QuerySyntaxError("LIMIT expects an integer", token.position)
            limit = int(token.text)

        if self.current.kind != "EOF":
            self.error("Unexpected trailing input")

        return QueryPlan(
            collection=collection,
            predicate=predicate,
            order_by=order_by,
            limit=limit,
            projection=projection,
        )

    def parse_select_list(self) -> Optional[List[Projection]]:
        if self.at_punct("*"):
            self.advance()
            return None

        items = [self.parse_select_item()]
        while self.at_punct(","):
            self.advance()
            items.append(self.parse_select_item())
        return items

    def parse_select_item(self) -> Projection:
        expression = self.parse_expression()
        alias = None
        if self.accept_keyword("AS"):
            alias = self.parse_name("alias")
        return Projection(expression, alias)

    def parse_sort_key(self) -> SortKey:
        expression = self.parse_expression()
        descending = False
        if self.accept_keyword("DESC"):
            descending = True
        else:
            self.accept_keyword("ASC")
        return SortKey(expression, descending)

    def parse_name(self, what: str) -> str:
        token = self.current
        if token.kind != "NAME" or token.keyword:
            self.error(f"Expected {what}")
        self.advance()
        return token.text

    def parse_expression(self) -> Expression:
        return self.parse_or()

    def parse_or(self) -> Expression:
        operands = [self.parse_and()]
        while self.accept_keyword("OR"):
            operands.append(self.parse_and())
        return operands[0] if len(operands) == 1 else Or(*operands)

    def parse_and(self) -> Expression:
        operands = [self.parse_not()]
        while self.accept_keyword("AND"):
            operands.append(self.parse_not())
        return operands[0] if len(operands) == 1 else And(*operands)

    def parse_not(self) -> Expression:
        if self.accept_keyword("NOT"):
            return Not(self.parse_not())
        return self.parse_comparison()

    def parse_comparison(self) -> Expression:
        left = self.parse_primary()
        if self.current.kind == "OP" and self.current.text in COMPARISON_OPERATORS:
            op = self.advance().text
            right = self.parse_primary()
            return Comparison(op, left, right)
        return left

    def parse_primary(self) -> Expression:
        token = self.current

        if token.kind == "NUMBER":
            self.advance()
            return Literal(_number(token.text))
        if token.kind == "STRING":
            self.advance()
            return Literal(token.text[1:-1].replace("''", "'"))
        if token.kind == "PARAM":
            self.advance()
            return Parameter(token.text[1:])
        if self.at_punct("["):
            return Literal(self.parse_array())
        if self.at_punct("("):
            self.advance()
            expression = self.parse_expression()
            self.expect_punct(")")
            return expression

        keyword = token.keyword
        if keyword in ("TRUE", "FALSE"):
            self.advance()
            return Literal(keyword == "TRUE")
        if keyword == "NULL":
            self.advance()
            return Literal(None)

        if token.kind == "NAME" and not keyword:
            self.advance()
            if self.at_punct("("):
                return self.parse_call(token)
            return Field(token.text)

        self.error("Expected an expression")

    def parse_call(self, name_token: Token) -> Expression:
        self.expect_punct("(")
        arguments: List[Expression] = []
        if not self.at_punct(")"):
            arguments.append(self.parse_expression())
            while self.at_punct(","):
                self.advance()
                arguments.append(self.parse_expression())
        self.expect_punct(")")

        try:
            operator = self.registry.resolve(name_token.text, len(arguments))
        except UnknownOperatorError as e:
            raise QuerySyntaxError(str(e), name_token.position) from e
        return Call(operator, arguments)

    def parse_array(self) -> List[Any]:
        """Bracketed literal array; elements are validated when the value is used."""
        self.expect_punct("[")
        items: List[Any] = []
        if not self.at_punct("]"):
            items.append(self.parse_array_item())
            while self.at_punct(","):
                self.advance()
                items.append(self.parse_array_item())
        self.expect_punct("]")
        return items

    def parse_array_item(self) -> Any:
        token = self.current
        if token.kind == "NUMBER":
            self.advance()
            return _number(token.text)
        if token.kind == "STRING":
            self.advance()
            return token.text[1:-1].replace("''", "'")
        if token.keyword in ("TRUE", "FALSE"):
            self.advance()
            return token.keyword == "TRUE"
        if token.keyword == "NULL":
            self.advance()
            return None
        if self.at_punct("["):
            return self.parse_array()
        self.error("Expected an array element")


def _number(text: str) -> Any:
    if re.fullmatch(r"-?\d+", text):
        return int(text)
    return float(text)


def parse_expression(text: str, registry: Optional[OperatorRegistry] = None) -> Expression:
    """Parse a standalone expression such as a WHERE clause body."""
    parser = Parser(text, registry)
    expression = parser.parse_expression()
    if parser.current.kind != "EOF":
        parser.error("Unexpected trailing input")
    return expression


def parse_query(text: str, registry: Optional[OperatorRegistry] = None) -> QueryPlan:
    """Parse a full SELECT statement into a QueryPlan."""
    return Parser(text, registry).parse_query()


def run_query(
    text: str,
    params: Optional[Dict[str, Any]] = None,
    source: Optional[Iterable[Dict[str, Any]]] = None,
    registry: Optional[OperatorRegistry] = None,
) -> Cursor:
    """Parse and execute a textual query."""
    return parse_query(text, registry).execute(source=source, params=params)
