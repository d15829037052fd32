"""AST transformation and lambda expression capturing for tidyq."""

import ast
from typing import Callable, Dict, Union

from .base import Expr
from .proxy import SchemaProxy
from .types import (
    BinOpExpr,
    CallExpr,
    ColumnExpr,
    EnvExpr,
    LiteralExpr,
    NameExpr,
    UnaryOpExpr,
)

# Pronouns usable in source text: _data.x is column-only, _env.x is environment-only
DATA_PRONOUN = "_data"
ENV_PRONOUN = "_env"

_AST_BINOPS = {
    ast.Add: "Add",
    ast.Sub: "Sub",
    ast.Mult: "Mul",
    ast.Div: "Div",
    ast.FloorDiv: "FloorDiv",
    ast.Mod: "Mod",
    ast.Pow: "Pow",
    ast.BitAnd: "And",
    ast.BitOr: "Or",
}

_AST_COMPARE = {
    ast.Eq: "Eq",
    ast.NotEq: "Ne",
    ast.Lt: "Lt",
    ast.LtE: "Le",
    ast.Gt: "Gt",
    ast.GtE: "Ge",
    # 'x is None' and 'x is not None' compare against the null literal
    ast.Is: "Eq",
    ast.IsNot: "Ne",
}


def _dotted_name(node: ast.AST):
    """Return 'a.b.c' for a chain of Name/Attribute nodes, or None."""
    parts = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    return ".".join(reversed(parts))


class SourceTransformer(ast.NodeVisitor):
    """
    Convert a parsed Python expression into a tidyq Expr tree.

    Bare names become NameExpr (column first, then environment). A dotted
    chain like Sepal.Length stays a single NameExpr so it can match a column
    whose name contains dots.
    """

    def generic_visit(self, node):
        raise ValueError(
            f"Unsupported syntax in expression: {type(node).__name__}"
        )

    def visit_Expression(self, node):
        return self.visit(node.body)

    def visit_Constant(self, node):
        return LiteralExpr(node.value)

    def visit_Name(self, node):
        if node.id in (DATA_PRONOUN, ENV_PRONOUN):
            raise ValueError(f"Pronoun '{node.id}' must be followed by a name")
        return NameExpr(node.id)

    def visit_Attribute(self, node):
        if isinstance(node.value, ast.Name) and node.value.id == DATA_PRONOUN:
            return ColumnExpr(node.attr)
        if isinstance(node.value, ast.Name) and node.value.id == ENV_PRONOUN:
            return EnvExpr(node.attr)
        dotted = _dotted_name(node)
        if dotted is None:
            raise ValueError(
                "Attribute access is only supported on names, e.g. Sepal.Length"
            )
        return NameExpr(dotted)

    def visit_Subscript(self, node):
        key = node.slice
        if (
            isinstance(node.value, ast.Name)
            and node.value.id in (DATA_PRONOUN, ENV_PRONOUN)
            and isinstance(key, ast.Constant)
            and isinstance(key.value, str)
        ):
            if node.value.id == DATA_PRONOUN:
                return ColumnExpr(key.value)
            return EnvExpr(key.value)
        raise ValueError(
            f"Subscripts are only supported on {DATA_PRONOUN} and {ENV_PRONOUN} "
            "with a string key"
        )

    def visit_BinOp(self, node):
        op = _AST_BINOPS.get(type(node.op))
        if op is None:
            raise ValueError(f"Unsupported operator: {type(node.op).__name__}")
        return BinOpExpr(op, self.visit(node.left), self.visit(node.right))

    def visit_BoolOp(self, node):
        op = "And" if isinstance(node.op, ast.And) else "Or"
        result = self.visit(node.values[0])
        for value in node.values[1:]:
            result = BinOpExpr(op, result, self.visit(value))
        return result

    def visit_UnaryOp(self, node):
        operand = self.visit(node.operand)
        # ~ is logical negation here, not bitwise; it only accepts booleans
        if isinstance(node.op, (ast.Not, ast.Invert)):
            return UnaryOpExpr("Not", operand)
        if isinstance(node.op, ast.USub):
            return UnaryOpExpr("Neg", operand)
        return operand

    def visit_Compare(self, node):
        # a < b < c becomes (a < b) & (b < c)
        result = None
        left = self.visit(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            right = self.visit(comparator)
            if isinstance(op, (ast.In, ast.NotIn)):
                part = CallExpr("is_in", (left, right))
                if isinstance(op, ast.NotIn):
                    part = UnaryOpExpr("Not", part)
            else:
                name = _AST_COMPARE.get(type(op))
                if name is None:
                    raise ValueError(f"Unsupported comparison: {type(op).__name__}")
                if isinstance(op, (ast.Is, ast.IsNot)) and not (
                    isinstance(right, LiteralExpr) and right.value is None
                ):
                    raise ValueError("'is' comparisons are only supported with None")
                part = BinOpExpr(name, left, right)
            result = part if result is None else BinOpExpr("And", result, part)
            left = right
        return result

    def visit_IfExp(self, node):
        return CallExpr(
            "if_else",
            (self.visit(node.test), self.visit(node.body), self.visit(node.orelse)),
        )

    def visit_List(self, node):
        values = [self.visit(elt) for elt in node.elts]
        if not all(isinstance(v, LiteralExpr) for v in values):
            raise ValueError("List literals may only contain constants")
        return LiteralExpr([v.value for v in values])

    visit_Tuple = visit_List

    def visit_Call(self, node):
        args = tuple(self.visit(arg) for arg in node.args)
        kwargs = {}
        for keyword in node.keywords:
            if keyword.arg is None:
                raise ValueError("**kwargs are not supported in expressions")
            kwargs[keyword.arg] = self.visit(keyword.value)

        if isinstance(node.func, ast.Name):
            return CallExpr(node.func.id, args, kwargs)
        if isinstance(node.func, ast.Attribute):
            # x.mean() or np.log(x): the target is resolved at evaluation time
            return CallExpr(node.func.attr, args, kwargs, on=self.visit(node.func.value))
        raise ValueError("Only named functions and methods can be called")


def _source_to_expr(source: str) -> Expr:
    """
    Parse Python source text into an Expr tree.

    Args:
        source: Expression text, e.g. "Sepal.Length / Sepal.Width"

    Returns:
        The Expr tree

    Raises:
        SyntaxError: If the text is not a Python expression
        ValueError: If the text uses unsupported syntax

    Example:
        >>> _source_to_expr("var1 / var2").serialize()["op"]
        'Div'
    """
    tree = ast.parse(source.strip(), mode="eval")
    return SourceTransformer().visit(tree)


def _lambda_to_expr(fn: Callable, schema: Dict[str, str]) -> Union[Expr, Dict[str, Expr]]:
    """
    Execute a lambda with a SchemaProxy to capture its expression tree.

    Args:
        fn: Lambda function, e.g., lambda r: r.age > 18 or lambda r: {"col": r.age}
        schema: Dict mapping column name -> type string

    Returns:
        An Expr, or for dict lambdas a dict of {column_name: Expr}

    Raises:
        TypeError: If dict keys are not strings
        NameNotFoundError: If lambda references a non-existent column

    Example:
        >>> schema = {"age": "int64", "name": "string"}
        >>> _lambda_to_expr(lambda r: r.age > 18, schema).op
        'Gt'
    """
    proxy = SchemaProxy(schema)
    result = fn(proxy)

    if isinstance(result, dict):
        exprs = {}
        for key, value in result.items():
            if not isinstance(key, str):
                raise TypeError(f"Dict keys must be strings, got {type(key).__name__}")
            exprs[key] = Expr._coerce(value)
        return exprs
    return Expr._coerce(result)


def _label_of(resolved: Union[Expr, Dict[str, Expr]]) -> str:
    """Source text for a resolved lambda: the deparsed tree, or the dict keys."""
    if isinstance(resolved, dict):
        return ", ".join(resolved.keys())
    return resolved.deparse()
