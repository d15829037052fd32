"""Expression captures: an unevaluated expression plus the scope it was written in."""

import inspect
from collections import ChainMap
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from .base import Expr
from .transforms import _label_of, _lambda_to_expr, _source_to_expr
from .types import ColumnExpr, LiteralExpr


def _caller_env(depth: int = 1) -> Mapping[str, Any]:
    """
    Return the scope of a calling frame as a mapping.

    depth=1 is the caller of the function that calls _caller_env. Locals are
    snapshotted; globals stay live.
    """
    frame = inspect.currentframe()
    try:
        for _ in range(depth + 1):
            frame = frame.f_back
        return ChainMap(dict(frame.f_locals), frame.f_globals)
    finally:
        del frame


class Capture:
    """
    An unevaluated expression together with its environment.

    A capture holds either an Expr tree (from source text or sym()) or a
    lambda over a row proxy. Lambdas are only called at evaluation time, so
    a missing column never fails at capture time. A lambda's label is its
    deparsed expression once it has been resolved against a table, and the
    function name before that.

    Captures are immutable once created.

    Attributes:
        expr (Expr or None): The expression tree, None for lambda captures
        fn (callable or None): The lambda, None for tree captures
        env (mapping): Names visible to the expression besides table columns
        label (str): Source text used to name output columns
    """

    __slots__ = ("_expr", "_fn", "_env", "_label")

    def __init__(
        self,
        expr: Optional[Expr] = None,
        env: Optional[Mapping[str, Any]] = None,
        fn: Optional[Callable] = None,
        label: Optional[str] = None,
    ):
        if (expr is None) == (fn is None):
            raise ValueError("Capture needs exactly one of expr or fn")
        if label is None and expr is not None:
            label = expr.deparse()
        object.__setattr__(self, "_expr", expr)
        object.__setattr__(self, "_fn", fn)
        object.__setattr__(self, "_env", MappingProxyType(env) if env is not None else MappingProxyType({}))
        object.__setattr__(self, "_label", label)

    def __setattr__(self, name, value):
        raise AttributeError("Capture objects are immutable")

    def __delattr__(self, name):
        raise AttributeError("Capture objects are immutable")

    @property
    def expr(self) -> Optional[Expr]:
        return self._expr

    @property
    def fn(self) -> Optional[Callable]:
        return self._fn

    @property
    def env(self) -> Mapping[str, Any]:
        return self._env

    @property
    def label(self) -> str:
        if self._label is None:
            return getattr(self._fn, "__name__", "expr")
        return self._label

    @property
    def column_name(self) -> Optional[str]:
        """The referenced column if this capture is a bare column/name reference."""
        if isinstance(self._expr, ColumnExpr):
            return self._expr.name
        return None

    def resolve(self, schema: Dict[str, str]) -> Union[Expr, Dict[str, Expr]]:
        """
        Produce the expression tree to evaluate against a table with this schema.

        Lambda captures are invoked here; tree captures are returned as-is.
        """
        if self._fn is not None:
            resolved = _lambda_to_expr(self._fn, schema)
            if self._label is None:
                object.__setattr__(self, "_label", _label_of(resolved))
            return resolved
        return self._expr

    def __repr__(self) -> str:
        kind = "lambda" if self._fn is not None else "expr"
        return f"<Capture {kind}: {self.label}>"


def _make_capture(value: Any, env: Mapping[str, Any]) -> Capture:
    if isinstance(value, Capture):
        return value
    if isinstance(value, str):
        return Capture(expr=_source_to_expr(value), env=env, label=value.strip())
    if isinstance(value, Expr):
        return Capture(expr=value, env=env)
    if callable(value):
        return Capture(fn=value, env=env)
    if value is None or isinstance(value, (bool, int, float)):
        return Capture(expr=LiteralExpr(value), env=env)
    raise TypeError(
        f"Cannot capture {type(value).__name__}; expected str, callable, Expr or Capture"
    )


def capture(expr: Any, env: Optional[Mapping[str, Any]] = None) -> Capture:
    """
    Capture an expression without evaluating it.

    The environment defaults to the scope of the code calling capture().

    Args:
        expr: Source text ("x / y"), a lambda (lambda r: r.x / r.y), an Expr,
              a constant, or an existing Capture (returned unchanged)
        env: Mapping used to resolve names that are not table columns

    Returns:
        A Capture

    Raises:
        SyntaxError: If source text cannot be parsed
        TypeError: If expr has an unsupported type

    Example:
        >>> threshold = 5
        >>> cap = capture("Sepal.Length > threshold")
        >>> t.filter(cap)
    """
    if env is None and not isinstance(expr, Capture):
        env = _caller_env(1)
    return _make_capture(expr, env)


def capture_arg(expr: Any, env: Optional[Mapping[str, Any]] = None) -> Capture:
    """
    Capture a function argument in the scope of the function's caller.

    Use this inside a user-defined function to take an expression argument
    and forward it to table verbs:

    Example:
        >>> def grouped_mean(t, group, value):
        ...     group = capture_arg(group)
        ...     value = capture_arg(value)
        ...     return t.group_by(group).summarize(mean=capture("mean(value)"))
    """
    if env is None and not isinstance(expr, Capture):
        env = _caller_env(2)
    return _make_capture(expr, env)


def captures(*exprs: Any, env: Optional[Mapping[str, Any]] = None) -> Tuple[Capture, ...]:
    """Capture several expressions in the caller's scope."""
    if env is None:
        env = _caller_env(1)
    return tuple(_make_capture(e, env) for e in exprs)


def capture_args(*exprs: Any, env: Optional[Mapping[str, Any]] = None) -> Tuple[Capture, ...]:
    """Capture a variadic argument list in the scope of the function's caller."""
    if env is None:
        env = _caller_env(2)
    return tuple(_make_capture(e, env) for e in exprs)


def sym(name: str) -> Capture:
    """
    Build a column reference from a string computed at run time.

    Unlike capture("..."), the name is never parsed, so column names with
    spaces or dots are fine.

    Example:
        >>> col = "Sepal.Length"
        >>> t.summarize(top=lambda r: r[col].max())
        >>> t.arrange(sym(col))
    """
    if not isinstance(name, str):
        raise TypeError(f"sym() expects a str, got {type(name).__name__}")
    return Capture(expr=ColumnExpr(name), label=name)


def syms(*names: str) -> Tuple[Capture, ...]:
    """Build several column references from strings."""
    return tuple(sym(name) for name in names)
