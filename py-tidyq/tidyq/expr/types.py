"""Concrete expression types for tidyq."""

from typing import Any, Dict, Optional

from .base import Expr

# Operator name -> source symbol, used by deparse()
_BINOP_SYMBOLS = {
    "Add": "+",
    "Sub": "-",
    "Mul": "*",
    "Div": "/",
    "FloorDiv": "//",
    "Mod": "%",
    "Pow": "**",
    "Eq": "==",
    "Ne": "!=",
    "Lt": "<",
    "Le": "<=",
    "Gt": ">",
    "Ge": ">=",
    "And": "&",
    "Or": "|",
}

_UNARY_SYMBOLS = {"Not": "~", "Neg": "-"}


def _deparse_operand(expr: Expr) -> str:
    if isinstance(expr, (BinOpExpr, UnaryOpExpr)):
        return f"({expr.deparse()})"
    return expr.deparse()


class ColumnExpr(Expr):
    """
    Represents a column-only reference, e.g. r.age in a lambda or _data.age in source.

    Never falls back to the environment. When accessed as r.col.mean(),
    __getattr__ returns a callable that creates a CallExpr when invoked.

    Attributes:
        name (str): The column name
    """

    def __init__(self, name: str):
        self.name = name

    def serialize(self) -> Dict[str, Any]:
        """
        Serialize to dict.

        Returns:
            {"type": "Column", "name": self.name}
        """
        return {"type": "Column", "name": self.name}

    def deparse(self) -> str:
        return self.name

    def __getattr__(self, method_name: str):
        """
        Handle method calls like r.col.mean(), r.col.lag(1), etc.

        Returns a callable that, when invoked with arguments, creates a CallExpr
        with this column as its target.

        Raises:
            AttributeError: If method_name starts with underscore (private)
        """
        if method_name.startswith("_"):
            # Avoid issues with __dict__, __class__, etc.
            raise AttributeError(f"No attribute {method_name}")

        def method_call(*args, **kwargs):
            """Create a CallExpr when the method is invoked."""
            return CallExpr(method_name, args, kwargs, on=self)

        return method_call


class NameExpr(ColumnExpr):
    """
    A bare name from source text, resolved with data masking.

    Looked up as a table column first and in the capture's environment
    second.
    """

    def serialize(self) -> Dict[str, Any]:
        return {"type": "Name", "name": self.name}


class EnvExpr(Expr):
    """
    An environment-only reference, e.g. _env.threshold in source text.

    Attributes:
        name (str): Variable name in the capture's environment
    """

    def __init__(self, name: str):
        self.name = name

    def serialize(self) -> Dict[str, Any]:
        return {"type": "Env", "name": self.name}

    def deparse(self) -> str:
        return f"_env.{self.name}"


class LiteralExpr(Expr):
    """
    Represents a constant value: int, float, str, bool, None.

    Attributes:
        value: The Python value
    """

    def __init__(self, value: Any):
        self.value = value

    def serialize(self) -> Dict[str, Any]:
        """
        Serialize to dict with inferred dtype.

        Returns:
            {"type": "Literal", "value": self.value, "dtype": inferred_type_string}
        """
        return {"type": "Literal", "value": self.value, "dtype": self._infer_dtype()}

    def deparse(self) -> str:
        return repr(self.value)

    def _infer_dtype(self) -> str:
        """
        Infer a type string from the Python value.

        Returns:
            A type string: "bool", "int64", "float64", "string", "null" or "object"
        """
        if isinstance(self.value, bool):
            # Must check bool before int (bool is subclass of int)
            return "bool"
        elif isinstance(self.value, int):
            return "int64"
        elif isinstance(self.value, float):
            return "float64"
        elif isinstance(self.value, str):
            return "string"
        elif self.value is None:
            return "null"
        else:
            return "object"


class BinOpExpr(Expr):
    """
    Represents a binary operation: +, -, >, <, ==, &, |, etc.

    Attributes:
        op (str): Operation name ("Add", "Gt", "And", etc.)
        left (Expr): Left operand
        right (Expr): Right operand
    """

    def __init__(self, op: str, left: Expr, right: Expr):
        self.op = op
        self.left = left
        self.right = right

    def serialize(self) -> Dict[str, Any]:
        """Serialize to dict with recursive serialization of operands."""
        return {
            "type": "BinOp",
            "op": self.op,
            "left": self.left.serialize(),
            "right": self.right.serialize(),
        }

    def deparse(self) -> str:
        symbol = _BINOP_SYMBOLS.get(self.op, self.op)
        return f"{_deparse_operand(self.left)} {symbol} {_deparse_operand(self.right)}"


class UnaryOpExpr(Expr):
    """
    Represents a unary operation: NOT (~), negation (-).

    Attributes:
        op (str): Operation name ("Not" or "Neg")
        operand (Expr): The operand
    """

    def __init__(self, op: str, operand: Expr):
        self.op = op
        self.operand = operand

    def serialize(self) -> Dict[str, Any]:
        """Serialize to dict with recursive serialization of operand."""
        return {"type": "UnaryOp", "op": self.op, "operand": self.operand.serialize()}

    def deparse(self) -> str:
        return f"{_UNARY_SYMBOLS.get(self.op, self.op)}{_deparse_operand(self.operand)}"


class CallExpr(Expr):
    """
    Represents a function/method call: min(x), r.col.mean(), r.col.lag(1).

    Supports both method calls (where 'on' is not None) and standalone functions.
    A method call is evaluated as the function with 'on' as its first argument.

    Attributes:
        func (str): Function/method name
        args (tuple): Positional arguments
        kwargs (dict): Keyword arguments
        on (Expr or None): Object the method is called on (None for functions)
    """

    def __init__(
        self,
        func: str,
        args: tuple = (),
        kwargs: Optional[Dict[str, Any]] = None,
        on: Optional[Expr] = None,
    ):
        self.func = func
        self.args = args
        self.kwargs = kwargs if kwargs is not None else {}
        self.on = on

    def serialize(self) -> Dict[str, Any]:
        """
        Serialize to dict with recursive serialization of args/kwargs/on.

        Returns:
            {
                "type": "Call",
                "func": self.func,
                "args": [...],
                "kwargs": {...},
                "on": serialized_on or None
            }
        """
        return {
            "type": "Call",
            "func": self.func,
            "args": [self._coerce(arg).serialize() for arg in self.args],
            "kwargs": {k: self._coerce(v).serialize() for k, v in self.kwargs.items()},
            "on": self.on.serialize() if self.on is not None else None,
        }

    def deparse(self) -> str:
        parts = [self._coerce(a).deparse() for a in self.args]
        parts += [f"{k}={self._coerce(v).deparse()}" for k, v in self.kwargs.items()]
        call = f"{self.func}({', '.join(parts)})"
        if self.on is not None:
            return f"{_deparse_operand(self.on)}.{call}"
        return call

    def __getattr__(self, method_name: str):
        """
        Allow chaining: r.col.lag(1).mean().

        This CallExpr becomes the 'on' of the next CallExpr.
        """
        if method_name.startswith("_"):
            raise AttributeError(f"No attribute {method_name}")

        def chained_call(*args, **kwargs):
            """Create a CallExpr with self as the 'on' target."""
            return CallExpr(method_name, args, kwargs, on=self)

        return chained_call


class InjectExpr(Expr):
    """
    Splices another Capture into an expression tree.

    The injected capture is evaluated in the same data context, against
    its own environment.

    Attributes:
        capture (Capture): The capture to splice
    """

    def __init__(self, capture):
        self.capture = capture

    def serialize(self) -> Dict[str, Any]:
        return {"type": "Inject", "capture": self.capture}

    def deparse(self) -> str:
        return self.capture.label
