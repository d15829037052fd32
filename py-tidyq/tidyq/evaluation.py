"""Deferred evaluator: resolves captured expressions against table data."""

import logging
import operator
import types
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

import pandas as pd

from .errors import NameNotFoundError, TidyqError, TypeMismatchError
from .expr import Capture
from .functions import CONSTANTS, FUNCTIONS
from .helpers import _is_boolean, _normalize_schema

if TYPE_CHECKING:
    from .core import Table

logger = logging.getLogger(__name__)

_BINARY_OPS = {
    "Add": operator.add,
    "Sub": operator.sub,
    "Mul": operator.mul,
    "Div": operator.truediv,
    "FloorDiv": operator.floordiv,
    "Mod": operator.mod,
    "Pow": operator.pow,
    "Eq": operator.eq,
    "Ne": operator.ne,
    "Lt": operator.lt,
    "Le": operator.le,
    "Gt": operator.gt,
    "Ge": operator.ge,
}

_LOGICAL_OPS = {
    "And": operator.and_,
    "Or": operator.or_,
}

_MISSING = object()


def _describe(value: Any) -> str:
    if isinstance(value, pd.Series):
        return f"column of {value.dtype}"
    return type(value).__name__


class EvalContext:
    """
    Data and scope an expression is evaluated against.

    Attributes:
        data (DataFrame): Rows visible to the expression (a whole table or one group)
        env (mapping): Names from the capture's environment
        overlay (dict): Values produced earlier in the same verb call; they
                        shadow table columns
    """

    def __init__(
        self,
        data: pd.DataFrame,
        env: Mapping[str, Any],
        overlay: Optional[Dict[str, Any]] = None,
    ):
        self.data = data
        self.env = env
        self.overlay = overlay if overlay is not None else {}

    @property
    def nrows(self) -> int:
        return len(self.data)

    def schema(self) -> Dict[str, str]:
        schema = _normalize_schema(self.data)
        for name in self.overlay:
            schema.setdefault(name, "unknown")
        return schema

    def available(self) -> List[str]:
        return list(self.data.columns) + [n for n in self.overlay if n not in self.data.columns]

    def with_env(self, env: Mapping[str, Any]) -> "EvalContext":
        return EvalContext(self.data, env, self.overlay)

    def lookup_column(self, name: str) -> Any:
        if name in self.overlay:
            return self.overlay[name]
        if name in self.data.columns:
            return self.data[name]
        return _MISSING

    def lookup_env(self, name: str) -> Any:
        # Dotted names such as np.pi resolve attribute by attribute
        head, _, rest = name.partition(".")
        if head in self.env:
            value = self.env[head]
        elif head in CONSTANTS:
            value = CONSTANTS[head]
        else:
            return _MISSING
        for attr in rest.split(".") if rest else ():
            if not hasattr(value, attr):
                return _MISSING
            value = getattr(value, attr)
        return value


def _eval_expr(expr_dict: Dict[str, Any], ctx: EvalContext) -> Any:
    """
    Evaluate a serialized expression tree in a context.

    Args:
        expr_dict: Serialized expression dict
        ctx: EvalContext bound to the current rows

    Returns:
        A pandas Series (one value per row) or a scalar
    """
    expr_type = expr_dict.get("type")

    if expr_type == "Column":
        value = ctx.lookup_column(expr_dict["name"])
        if value is _MISSING:
            raise NameNotFoundError(expr_dict["name"], ctx.available(), where="table")
        return value

    elif expr_type == "Name":
        name = expr_dict["name"]
        value = ctx.lookup_column(name)
        if value is _MISSING:
            value = ctx.lookup_env(name)
        if value is _MISSING:
            raise NameNotFoundError(name, ctx.available())
        if isinstance(value, Capture):
            return _eval_capture(value, ctx)
        return value

    elif expr_type == "Env":
        value = ctx.lookup_env(expr_dict["name"])
        if value is _MISSING:
            raise NameNotFoundError(expr_dict["name"], ctx.available(), where="environment")
        if isinstance(value, Capture):
            return _eval_capture(value, ctx)
        return value

    elif expr_type == "Literal":
        return expr_dict["value"]

    elif expr_type == "Inject":
        return _eval_capture(expr_dict["capture"], ctx)

    elif expr_type == "BinOp":
        op = expr_dict["op"]
        left = _eval_expr(expr_dict["left"], ctx)
        right = _eval_expr(expr_dict["right"], ctx)
        return _apply_binop(op, left, right)

    elif expr_type == "UnaryOp":
        op = expr_dict["op"]
        operand = _eval_expr(expr_dict["operand"], ctx)
        if op == "Not":
            if not _is_boolean(operand):
                raise TypeMismatchError(
                    f"Cannot apply 'Not' to {_describe(operand)}: operand must be boolean"
                )
            if isinstance(operand, pd.Series):
                if pd.api.types.is_bool_dtype(operand):
                    return ~operand
                return ~operand.astype("boolean")
            if operand is None or pd.isna(operand):
                return operand
            return not operand
        try:
            if op == "Neg":
                return -operand
        except TypeError as e:
            raise TypeMismatchError(
                f"Cannot apply '{op}' to {_describe(operand)}: {e}"
            ) from e
        raise ValueError(f"Unknown unary operator: {op}")

    elif expr_type == "Call":
        return _eval_call(expr_dict, ctx)

    else:
        raise ValueError(f"Unknown expression type: {expr_type}")


def _apply_binop(op: str, left: Any, right: Any) -> Any:
    # Comparing against None tests for missing values
    if op in ("Eq", "Ne") and (left is None or right is None):
        other = right if left is None else left
        missing = pd.isna(other)
        if op == "Eq":
            return missing
        return ~missing if isinstance(missing, pd.Series) else not missing

    if op in _LOGICAL_OPS:
        for operand in (left, right):
            if not _is_boolean(operand):
                raise TypeMismatchError(
                    f"Cannot apply '{op}' to {_describe(left)} and {_describe(right)}: "
                    "operands must be boolean"
                )
        try:
            return _LOGICAL_OPS[op](left, right)
        except TypeError as e:
            raise TypeMismatchError(f"Cannot apply '{op}' to missing values: {e}") from e

    func = _BINARY_OPS.get(op)
    if func is None:
        raise ValueError(f"Unknown binary operator: {op}")
    try:
        return func(left, right)
    except (TypeError, NotImplementedError) as e:
        raise TypeMismatchError(
            f"Cannot apply '{op}' to {_describe(left)} and {_describe(right)}: {e}"
        ) from e


def _eval_call(expr_dict: Dict[str, Any], ctx: EvalContext) -> Any:
    func_name = expr_dict["func"]
    args = [_eval_expr(a, ctx) for a in expr_dict.get("args", [])]
    kwargs = {k: _eval_expr(v, ctx) for k, v in expr_dict.get("kwargs", {}).items()}
    on = expr_dict.get("on")

    if on is not None:
        target = _eval_expr(on, ctx)
        if func_name in FUNCTIONS and not isinstance(target, types.ModuleType):
            func = FUNCTIONS[func_name]
            args = [target] + args
        elif hasattr(target, func_name):
            func = getattr(target, func_name)
        else:
            raise NameNotFoundError(func_name, ctx.available(), where="function registry")
    elif func_name == "n":
        if args or kwargs:
            raise TypeError("n() takes no arguments")
        return ctx.nrows
    elif func_name in FUNCTIONS:
        func = FUNCTIONS[func_name]
    else:
        func = ctx.lookup_env(func_name)
        if func is _MISSING or not callable(func):
            raise NameNotFoundError(func_name, ctx.available(), where="function registry or environment")

    try:
        return func(*args, **kwargs)
    except TidyqError:
        raise
    except (TypeError, NotImplementedError) as e:
        raise TypeMismatchError(f"{func_name}() failed: {e}") from e


def _eval_capture(capture: Capture, ctx: EvalContext) -> Any:
    """Evaluate a capture in a context, switching to the capture's own environment."""
    inner = ctx.with_env(capture.env)
    expr = capture.resolve(inner.schema())
    if isinstance(expr, dict):
        raise TypeError(
            f"Expression '{capture.label}' returned a dict; only mutate() accepts dicts"
        )
    return _eval_expr(expr.serialize(), inner)


def evaluate_in(
    capture: Capture,
    data: pd.DataFrame,
    overlay: Optional[Dict[str, Any]] = None,
) -> Any:
    """Evaluate a capture against one block of rows."""
    return _eval_capture(capture, EvalContext(data, capture.env, overlay))


def evaluate(capture: Capture, table: "Table") -> Any:
    """
    Evaluate a capture once against the whole table, ignoring grouping.

    Args:
        capture: The capture to evaluate
        table: The table supplying columns

    Returns:
        A pandas Series with one value per row, or a scalar

    Raises:
        NameNotFoundError: If a name resolves in neither the table nor the environment
        TypeMismatchError: If an operation is applied to incompatible types

    Example:
        >>> evaluate(capture("var1 / var2"), t)
    """
    logger.debug("evaluate %r on %d rows", capture, len(table))
    return evaluate_in(capture, table._frame)


def evaluate_groups(capture: Capture, table: "Table") -> List[Any]:
    """
    Evaluate a capture once per group of the table.

    An ungrouped table is a single group. Results come back in group order
    (first-seen key order).

    Example:
        >>> evaluate_groups(capture("min(Sepal.Length)"), iris.group_by("Species"))
        [4.3, 4.9, 4.9]
    """
    frame = table._frame
    logger.debug("evaluate %r over %d groups", capture, table.grouping.n_groups)
    return [evaluate_in(capture, frame.iloc[positions]) for positions in table.grouping.positions]
