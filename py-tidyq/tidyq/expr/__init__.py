"""
Expression system for tidyq: captures expressions as trees for deferred evaluation.

Expressions are written either as Python source text ("x / y") or as lambdas
over a row proxy (lambda r: r.x / r.y). Neither is evaluated when written:
both are turned into a tree of Expr nodes that the evaluator resolves later
against a table or against each group of a grouped table.

Core Classes:
  - Expr: Abstract base class for all expressions
  - ColumnExpr: Column-only reference (r.age, _data.age)
  - NameExpr: Masked reference from source text (column first, then environment)
  - EnvExpr: Environment-only reference (_env.age)
  - LiteralExpr: Constant value (e.g., 42, "hello")
  - BinOpExpr: Binary operation (e.g., r.age + 5, r.price > 10)
  - UnaryOpExpr: Unary operation (e.g., ~r.flag)
  - CallExpr: Function/method call (e.g., mean(x), r.x.lag(1))
  - InjectExpr: Another Capture spliced into a tree
  - SchemaProxy: Row proxy for capturing expressions in lambdas
  - Capture: An expression plus the environment it was written in

Example:
  >>> schema = {"age": "int64", "name": "string"}
  >>> r = SchemaProxy(schema)
  >>> expr = r.age > 18
  >>> expr.serialize()
  {'type': 'BinOp', 'op': 'Gt', 'left': {'type': 'Column', 'name': 'age'}, ...}
"""

# Re-export base expression class and helper constructors
from .base import Expr, coalesce, if_else, n

# Re-export concrete expression types
from .types import (
    BinOpExpr,
    CallExpr,
    ColumnExpr,
    EnvExpr,
    InjectExpr,
    LiteralExpr,
    NameExpr,
    UnaryOpExpr,
)

# Re-export schema proxy
from .proxy import SchemaProxy

# Re-export transformation and conversion functions
from .transforms import _lambda_to_expr, _source_to_expr

# Re-export captures
from .capture import (
    Capture,
    capture,
    capture_arg,
    capture_args,
    captures,
    sym,
    syms,
)

__all__ = [
    "Expr",
    "ColumnExpr",
    "NameExpr",
    "EnvExpr",
    "LiteralExpr",
    "BinOpExpr",
    "UnaryOpExpr",
    "CallExpr",
    "InjectExpr",
    "SchemaProxy",
    "Capture",
    "capture",
    "capture_arg",
    "capture_args",
    "captures",
    "sym",
    "syms",
    "if_else",
    "coalesce",
    "n",
    "_lambda_to_expr",
    "_source_to_expr",
]
