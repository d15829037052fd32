"""Schema proxy passed to lambda captures."""

from typing import Dict

from ..errors import NameNotFoundError
from .types import ColumnExpr


class SchemaProxy:
    """
    Represents the row proxy ('r') passed into lambda captures.

    When user accesses r.age or r["Sepal.Length"], this returns a ColumnExpr.
    Validates that the column exists in the schema, raising NameNotFoundError
    if not. The proxy only ever sees table columns; free variables of the
    lambda are ordinary Python values from its closure.

    Attributes:
        _schema (dict): Mapping of column name -> type string
    """

    def __init__(self, schema: Dict[str, str]):
        """
        Initialize a SchemaProxy.

        Args:
            schema: Dict mapping column name -> type string
                    E.g., {"age": "int64", "name": "string", "price": "float64"}
        """
        self._schema = schema

    def __getattr__(self, name: str) -> ColumnExpr:
        if name.startswith("_"):
            # Avoid issues with internal attributes like _schema
            raise AttributeError(f"No attribute {name}")
        return self[name]

    def __getitem__(self, name: str) -> ColumnExpr:
        if not isinstance(name, str):
            raise TypeError(f"Column name must be str, got {type(name).__name__}")
        if name not in self._schema:
            raise NameNotFoundError(name, list(self._schema.keys()), where="table")
        return ColumnExpr(name)
