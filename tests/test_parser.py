"""
Textual query language tests - tokenizer, grammar and error positions.
"""

import pytest

from docvec.core.errors import QuerySyntaxError
from docvec.query.expressions import And, Call, Comparison, Field, Literal, Not, Or, Parameter
from docvec.query.operators import OperatorRegistry
from docvec.query.parser import parse_expression, parse_query, run_query, tokenize


class TestTokenizer:

    def test_token_kinds(self):
        kinds = [t.kind for t in tokenize("SELECT a.b, -1.5e3 FROM c WHERE x <= @p AND s = 'it''s'")]
        assert kinds == [
            "NAME", "NAME", "PUNCT", "NUMBER", "NAME", "NAME", "NAME",
            "NAME", "OP", "PARAM", "NAME", "NAME", "OP", "STRING", "EOF",
        ]

    def test_keywords_are_case_insensitive(self):
        tokens = tokenize("select Where")
        assert tokens[0].keyword == "SELECT"
        assert tokens[1].keyword == "WHERE"

    def test_stray_character(self):
        with pytest.raises(QuerySyntaxError) as exc_info:
            tokenize("SELECT * FROM c WHERE a = $1")
        assert exc_info.value.position == 26


class TestExpressions:

    def test_precedence(self):
        expr = parse_expression("a = 1 OR b = 2 AND NOT c = 3")
        assert isinstance(expr, Or)
        assert isinstance(expr.operands[1], And)
        assert isinstance(expr.operands[1].operands[1], Not)

    def test_parentheses(self):
        expr = parse_expression("(a = 1 OR b = 2) AND c = 3")
        assert isinstance(expr, And)
        assert isinstance(expr.operands[0], Or)

    def test_literals(self):
        assert parse_expression("'it''s'") == Literal("it's")
        assert parse_expression("42") == Literal(42)
        assert parse_expression("-0.5") == Literal(-0.5)
        assert parse_expression("TRUE") == Literal(True)
        assert parse_expression("null") == Literal(None)
        assert parse_expression("[1.0, -2, 3e-1]") == Literal([1.0, -2, 0.3])
        assert parse_expression("[]") == Literal([])

    def test_field_and_parameter(self):
        assert parse_expression("meta.chunks.0.embedding") == Field("meta.chunks.0.embedding")
        assert isinstance(parse_expression("@target"), Parameter)

    def test_function_call(self):
        expr = parse_expression("VECTOR_DISTANCE(embedding, [1.0, 0.0], 'euclidean') < 0.5")
        assert isinstance(expr, Comparison)
        assert isinstance(expr.left, Call)
        assert expr.left.operator.arity == 3
        assert expr.left.arguments[0] == Field("embedding")

    def test_lowercase_function_name(self):
        expr = parse_expression("vector_distance(e, @q)")
        assert isinstance(expr, Call)

    def test_unknown_function(self):
        with pytest.raises(QuerySyntaxError) as exc_info:
            parse_expression("COSINE(e, [1.0])")
        assert exc_info.value.position == 0

    def test_wrong_arity(self):
        with pytest.raises(QuerySyntaxError):
            parse_expression("VECTOR_DISTANCE(e)")

    def test_custom_registry_has_no_builtins(self):
        with pytest.raises(QuerySyntaxError):
            parse_expression("VECTOR_DISTANCE(e, [1.0])", registry=OperatorRegistry())

    def test_trailing_input(self):
        with pytest.raises(QuerySyntaxError):
            parse_expression("a = 1 b")


class TestQueries:

    def test_full_query(self):
        plan = parse_query(
            "SELECT _id, VECTOR_DISTANCE(embedding, @q) AS distance FROM docs "
            "WHERE lang = 'en' ORDER BY distance ASC, _id DESC LIMIT 3"
        )
        assert plan.collection == "docs"
        assert [p.name for p in plan.projection] == ["_id", "distance"]
        assert isinstance(plan.predicate, Comparison)
        assert [key.descending for key in plan.order_by] == [False, True]
        assert plan.limit == 3
        assert plan.strategy == "sort"

    def test_select_star(self):
        plan = parse_query("SELECT * FROM docs")
        assert plan.projection is None
        assert plan.predicate is None
        assert plan.order_by == []
        assert plan.limit is None
        assert plan.strategy == "stream"

    def test_top_k_strategy(self):
        plan = parse_query("SELECT * FROM docs ORDER BY VECTOR_DISTANCE(e, [1.0]) LIMIT 5")
        assert plan.strategy == "top_k"

    def test_limit_zero_is_empty(self):
        assert parse_query("SELECT * FROM docs LIMIT 0").strategy == "empty"

    @pytest.mark.parametrize("text", [
        "SELECT FROM docs",
        "SELECT * docs",
        "SELECT * FROM",
        "SELECT * FROM docs LIMIT 1.5",
        "SELECT * FROM docs ORDER distance",
        "SELECT * FROM docs WHERE",
        "SELECT * FROM docs WHERE (a = 1",
        "SELECT * FROM docs LIMIT 3 extra",
    ])
    def test_syntax_errors(self, text):
        with pytest.raises(QuerySyntaxError):
            parse_query(text)

    def test_error_message_has_position(self):
        with pytest.raises(QuerySyntaxError) as exc_info:
            parse_query("SELECT * FROM docs LIMIT x")
        assert "position 25" in str(exc_info.value)


def test_run_query_over_source(sample_docs):
    rows = run_query(
        "SELECT _id FROM docs WHERE title <> 'north' ORDER BY _id DESC",
        source=sample_docs,
    ).fetchall()
    assert rows == [{"_id": "3"}, {"_id": "1"}]
