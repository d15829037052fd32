"""Base expression class for tidyq."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Union


def if_else(condition: "Expr", true_value: Any, false_value: Any) -> "CallExpr":
    """
    Conditional expression: returns true_value where condition else false_value.

    Args:
        condition: A boolean expression to evaluate
        true_value: Value to use where condition is True
        false_value: Value to use where condition is False

    Returns:
        Expression that evaluates to one of the two values per row

    Example:
        >>> t.mutate(size=lambda r: if_else(r.price > 100, "big", "small"))
    """
    from .types import CallExpr

    return CallExpr(
        "if_else",
        (Expr._coerce(condition), Expr._coerce(true_value), Expr._coerce(false_value)),
    )


def coalesce(*args: Any) -> "CallExpr":
    """
    Return the first non-missing value from the arguments, row by row.

    Example:
        >>> t.mutate(name=lambda r: coalesce(r.nickname, r.full_name, "Unknown"))
    """
    from .types import CallExpr

    return CallExpr("coalesce", tuple(Expr._coerce(a) for a in args))


def n() -> "CallExpr":
    """Number of rows in the current group."""
    from .types import CallExpr

    return CallExpr("n", ())


class Expr(ABC):
    """
    Abstract base class for all expression types.

    Implements magic methods (__add__, __gt__, etc.) that return new Expr objects
    instead of evaluating. This allows building expression trees from Python code.
    """

    @abstractmethod
    def serialize(self) -> Dict[str, Any]:
        """
        Convert this expression to a nested dict.

        Returns:
            A dict with at least a 'type' key, ready for the evaluator.
        """
        pass

    @abstractmethod
    def deparse(self) -> str:
        """Render this expression back to source text."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.deparse()}>"

    def __bool__(self):
        raise TypeError(
            "Expressions have no truth value; use & | ~ instead of and/or/not"
        )

    # Arithmetic operators
    def __add__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Addition operator: expr + other"""
        from .types import BinOpExpr

        return BinOpExpr("Add", self, self._coerce(other))

    def __sub__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Subtraction operator: expr - other"""
        from .types import BinOpExpr

        return BinOpExpr("Sub", self, self._coerce(other))

    def __mul__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Multiplication operator: expr * other"""
        from .types import BinOpExpr

        return BinOpExpr("Mul", self, self._coerce(other))

    def __truediv__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Division operator: expr / other"""
        from .types import BinOpExpr

        return BinOpExpr("Div", self, self._coerce(other))

    def __floordiv__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Floor division operator: expr // other"""
        from .types import BinOpExpr

        return BinOpExpr("FloorDiv", self, self._coerce(other))

    def __mod__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Modulo operator: expr % other"""
        from .types import BinOpExpr

        return BinOpExpr("Mod", self, self._coerce(other))

    def __pow__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Power operator: expr ** other"""
        from .types import BinOpExpr

        return BinOpExpr("Pow", self, self._coerce(other))

    # Reflected arithmetic, for literals on the left: 2 * r.x
    def __radd__(self, other: Any) -> "BinOpExpr":
        from .types import BinOpExpr

        return BinOpExpr("Add", self._coerce(other), self)

    def __rsub__(self, other: Any) -> "BinOpExpr":
        from .types import BinOpExpr

        return BinOpExpr("Sub", self._coerce(other), self)

    def __rmul__(self, other: Any) -> "BinOpExpr":
        from .types import BinOpExpr

        return BinOpExpr("Mul", self._coerce(other), self)

    def __rtruediv__(self, other: Any) -> "BinOpExpr":
        from .types import BinOpExpr

        return BinOpExpr("Div", self._coerce(other), self)

    def __rfloordiv__(self, other: Any) -> "BinOpExpr":
        from .types import BinOpExpr

        return BinOpExpr("FloorDiv", self._coerce(other), self)

    def __rmod__(self, other: Any) -> "BinOpExpr":
        from .types import BinOpExpr

        return BinOpExpr("Mod", self._coerce(other), self)

    def __rpow__(self, other: Any) -> "BinOpExpr":
        from .types import BinOpExpr

        return BinOpExpr("Pow", self._coerce(other), self)

    # Comparison operators
    # Note: These override object.__eq__ and __ne__, intentionally returning Expr instead of bool
    def __eq__(self, other: Union["Expr", Any]):  # type: ignore
        """Equality operator: expr == other"""
        from .types import BinOpExpr

        return BinOpExpr("Eq", self, self._coerce(other))

    def __ne__(self, other: Union["Expr", Any]):  # type: ignore
        """Inequality operator: expr != other"""
        from .types import BinOpExpr

        return BinOpExpr("Ne", self, self._coerce(other))

    def __lt__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Less than operator: expr < other"""
        from .types import BinOpExpr

        return BinOpExpr("Lt", self, self._coerce(other))

    def __le__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Less than or equal operator: expr <= other"""
        from .types import BinOpExpr

        return BinOpExpr("Le", self, self._coerce(other))

    def __gt__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Greater than operator: expr > other"""
        from .types import BinOpExpr

        return BinOpExpr("Gt", self, self._coerce(other))

    def __ge__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Greater than or equal operator: expr >= other"""
        from .types import BinOpExpr

        return BinOpExpr("Ge", self, self._coerce(other))

    __hash__ = None  # type: ignore

    # Logical operators
    def __and__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Logical AND operator: expr & other"""
        from .types import BinOpExpr

        return BinOpExpr("And", self, self._coerce(other))

    def __or__(self, other: Union["Expr", Any]) -> "BinOpExpr":
        """Logical OR operator: expr | other"""
        from .types import BinOpExpr

        return BinOpExpr("Or", self, self._coerce(other))

    def __rand__(self, other: Any) -> "BinOpExpr":
        from .types import BinOpExpr

        return BinOpExpr("And", self._coerce(other), self)

    def __ror__(self, other: Any) -> "BinOpExpr":
        from .types import BinOpExpr

        return BinOpExpr("Or", self._coerce(other), self)

    def __invert__(self) -> "UnaryOpExpr":
        """Logical NOT operator: ~expr"""
        from .types import UnaryOpExpr

        return UnaryOpExpr("Not", self)

    def __neg__(self) -> "UnaryOpExpr":
        """Negation operator: -expr"""
        from .types import UnaryOpExpr

        return UnaryOpExpr("Neg", self)

    def is_na(self) -> "CallExpr":
        """Missing-value test: r.col.is_na()"""
        from .types import CallExpr

        return CallExpr("is_na", (self,))

    def between(self, lower: Any, upper: Any) -> "CallExpr":
        """Inclusive range test: r.col.between(1, 5)"""
        from .types import CallExpr

        return CallExpr("between", (self, self._coerce(lower), self._coerce(upper)))

    @staticmethod
    def _coerce(value: Any) -> "Expr":
        """
        Convert a value to an Expr if it isn't already.

        Captures are spliced in with an InjectExpr; everything else becomes
        a LiteralExpr.
        """
        from .capture import Capture
        from .types import InjectExpr, LiteralExpr

        if isinstance(value, Expr):
            return value
        if isinstance(value, Capture):
            return InjectExpr(value)
        return LiteralExpr(value)
