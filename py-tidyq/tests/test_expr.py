"""
Unit tests for Expr classes and source parsing.

Tests verify:
- Serialization format (nested dicts)
- Operator overloads (+ - * / > < == & | ~)
- Deparsing back to source text
- Parsing of source text into trees
"""

import pytest

from tidyq.errors import NameNotFoundError
from tidyq.expr import (
    BinOpExpr,
    CallExpr,
    ColumnExpr,
    EnvExpr,
    Expr,
    LiteralExpr,
    NameExpr,
    SchemaProxy,
    UnaryOpExpr,
    _source_to_expr,
)
from tidyq.expr.base import if_else


class TestColumnExpr:
    """Tests for ColumnExpr"""

    def test_column_expr_serialize(self):
        """ColumnExpr serializes to dict with type and name"""
        expr = ColumnExpr("age")
        assert expr.serialize() == {"type": "Column", "name": "age"}

    def test_column_expr_with_operators(self):
        """ColumnExpr works with operators"""
        expr = ColumnExpr("age") + 5
        assert isinstance(expr, BinOpExpr)
        assert expr.op == "Add"

    def test_method_call_creates_call_expr(self):
        """r.col.mean() becomes a CallExpr targeting the column"""
        expr = ColumnExpr("price").mean()
        assert isinstance(expr, CallExpr)
        assert expr.func == "mean"
        assert expr.serialize()["on"] == {"type": "Column", "name": "price"}

    def test_private_attribute_raises(self):
        with pytest.raises(AttributeError):
            ColumnExpr("x")._hidden


class TestLiteralExpr:
    """Tests for LiteralExpr"""

    def test_literal_int(self):
        serialized = LiteralExpr(42).serialize()
        assert serialized["type"] == "Literal"
        assert serialized["value"] == 42
        assert serialized["dtype"] == "int64"

    def test_literal_float(self):
        assert LiteralExpr(3.14).serialize()["dtype"] == "float64"

    def test_literal_string(self):
        assert LiteralExpr("hello").serialize()["dtype"] == "string"

    def test_literal_bool(self):
        """bool is checked before int"""
        assert LiteralExpr(True).serialize()["dtype"] == "bool"

    def test_literal_none(self):
        assert LiteralExpr(None).serialize()["dtype"] == "null"


class TestBinOpExpr:
    """Tests for BinOpExpr"""

    @pytest.mark.parametrize(
        "build,op",
        [
            (lambda c: c + 1, "Add"),
            (lambda c: c - 1, "Sub"),
            (lambda c: c * 2, "Mul"),
            (lambda c: c / 3, "Div"),
            (lambda c: c // 4, "FloorDiv"),
            (lambda c: c % 5, "Mod"),
            (lambda c: c ** 2, "Pow"),
            (lambda c: c == 1, "Eq"),
            (lambda c: c != 1, "Ne"),
            (lambda c: c < 1, "Lt"),
            (lambda c: c <= 1, "Le"),
            (lambda c: c > 1, "Gt"),
            (lambda c: c >= 1, "Ge"),
        ],
    )
    def test_operator_names(self, build, op):
        assert build(ColumnExpr("x")).serialize()["op"] == op

    def test_reflected_operator_keeps_order(self):
        """2 - r.x keeps the literal on the left"""
        expr = 2 - ColumnExpr("x")
        serialized = expr.serialize()
        assert serialized["op"] == "Sub"
        assert serialized["left"]["type"] == "Literal"
        assert serialized["right"] == {"type": "Column", "name": "x"}

    def test_logical_operators(self):
        expr = (ColumnExpr("a") > 1) & (ColumnExpr("b") < 2) | ColumnExpr("c")
        assert expr.serialize()["op"] == "Or"
        assert expr.serialize()["left"]["op"] == "And"

    def test_invert(self):
        expr = ~ColumnExpr("flag")
        assert isinstance(expr, UnaryOpExpr)
        assert expr.serialize() == {
            "type": "UnaryOp",
            "op": "Not",
            "operand": {"type": "Column", "name": "flag"},
        }

    def test_truth_value_is_an_error(self):
        """Using 'and' on expressions must fail loudly"""
        with pytest.raises(TypeError):
            bool(ColumnExpr("x") > 1)


class TestDeparse:
    def test_simple_ratio(self):
        assert (ColumnExpr("var1") / ColumnExpr("var2")).deparse() == "var1 / var2"

    def test_nested_operands_are_parenthesized(self):
        expr = (ColumnExpr("a") + ColumnExpr("b")) / ColumnExpr("c")
        assert expr.deparse() == "(a + b) / c"

    def test_call(self):
        assert ColumnExpr("x").mean().deparse() == "x.mean()"
        assert if_else(ColumnExpr("x") > 1, "hi", "lo").deparse() == "if_else(x > 1, 'hi', 'lo')"

    def test_env_expr(self):
        assert EnvExpr("limit").deparse() == "_env.limit"


class TestSourceParsing:
    """Tests for _source_to_expr"""

    def test_bare_name_is_masked_reference(self):
        expr = _source_to_expr("x")
        assert isinstance(expr, NameExpr)
        assert expr.serialize() == {"type": "Name", "name": "x"}

    def test_dotted_name_is_single_name(self):
        assert _source_to_expr("Sepal.Length").serialize() == {
            "type": "Name",
            "name": "Sepal.Length",
        }

    def test_data_and_env_pronouns(self):
        assert _source_to_expr("_data.x").serialize() == {"type": "Column", "name": "x"}
        assert _source_to_expr("_data['a b']").serialize() == {"type": "Column", "name": "a b"}
        assert _source_to_expr("_env.x").serialize() == {"type": "Env", "name": "x"}

    def test_bare_pronoun_rejected(self):
        with pytest.raises(ValueError):
            _source_to_expr("_data")

    def test_arithmetic_and_comparison(self):
        serialized = _source_to_expr("var1 / var2 > 2").serialize()
        assert serialized["op"] == "Gt"
        assert serialized["left"]["op"] == "Div"

    def test_chained_comparison_becomes_and(self):
        serialized = _source_to_expr("1 < x < 5").serialize()
        assert serialized["op"] == "And"
        assert serialized["left"]["op"] == "Lt"
        assert serialized["right"]["op"] == "Lt"

    def test_boolean_keywords(self):
        serialized = _source_to_expr("not (a and b)").serialize()
        assert serialized["type"] == "UnaryOp"
        assert serialized["operand"]["op"] == "And"

    def test_is_none(self):
        serialized = _source_to_expr("x is not None").serialize()
        assert serialized["op"] == "Ne"
        assert serialized["right"]["value"] is None

    def test_in_list(self):
        serialized = _source_to_expr("Species in ['setosa', 'virginica']").serialize()
        assert serialized["func"] == "is_in"
        assert serialized["args"][1]["value"] == ["setosa", "virginica"]

    def test_conditional_expression(self):
        serialized = _source_to_expr("'big' if x > 5 else 'small'").serialize()
        assert serialized["func"] == "if_else"

    def test_function_call(self):
        serialized = _source_to_expr("min(Sepal.Length)").serialize()
        assert serialized["type"] == "Call"
        assert serialized["func"] == "min"
        assert serialized["args"] == [{"type": "Name", "name": "Sepal.Length"}]

    def test_method_call_on_dotted_name(self):
        serialized = _source_to_expr("Sepal.Length.mean()").serialize()
        assert serialized["func"] == "mean"
        assert serialized["on"] == {"type": "Name", "name": "Sepal.Length"}

    def test_syntax_error_surfaces(self):
        with pytest.raises(SyntaxError):
            _source_to_expr("x +")

    def test_unsupported_syntax(self):
        with pytest.raises(ValueError, match="Unsupported"):
            _source_to_expr("[i for i in x]")


class TestSchemaProxy:
    def test_attribute_and_item_access(self):
        r = SchemaProxy({"age": "int64", "Sepal.Length": "float64"})
        assert r.age.serialize() == {"type": "Column", "name": "age"}
        assert r["Sepal.Length"].name == "Sepal.Length"

    def test_missing_column(self):
        r = SchemaProxy({"age": "int64"})
        with pytest.raises(NameNotFoundError) as exc_info:
            r.height
        assert exc_info.value.name == "height"
        assert exc_info.value.available == ["age"]
