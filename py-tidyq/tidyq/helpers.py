"""Helper functions for tidyq table operations."""

from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .errors import TypeMismatchError
from .expr import Capture
from .expr.capture import _make_capture


def _normalize_schema(frame: pd.DataFrame) -> Dict[str, str]:
    """
    Map pandas dtypes to simplified type names.

    Args:
        frame: DataFrame whose columns are described

    Returns:
        Dict mapping column names to "int64", "float64", "bool", "string",
        "datetime" or the raw dtype string
    """
    schema = {}
    for col_name in frame.columns:
        dtype = frame[col_name].dtype
        if pd.api.types.is_bool_dtype(dtype):
            schema[col_name] = "bool"
        elif pd.api.types.is_integer_dtype(dtype):
            schema[col_name] = "int64"
        elif pd.api.types.is_float_dtype(dtype):
            schema[col_name] = "float64"
        elif pd.api.types.is_datetime64_any_dtype(dtype):
            schema[col_name] = "datetime"
        elif pd.api.types.is_string_dtype(dtype):
            schema[col_name] = "string"
        else:
            schema[col_name] = str(dtype)
    return schema


def _frame_from_data(data: Any) -> pd.DataFrame:
    """Build the backing DataFrame for a Table, validating column lengths."""
    if data is None:
        return pd.DataFrame()
    if isinstance(data, pd.DataFrame):
        frame = data.copy()
    elif isinstance(data, Mapping):
        lengths = {name: len(values) for name, values in data.items() if hasattr(values, "__len__") and not isinstance(values, str)}
        if len(set(lengths.values())) > 1:
            raise ValueError(
                f"All columns must have the same length, got {lengths}"
            )
        frame = pd.DataFrame(dict(data))
    else:
        raise TypeError(
            f"Table data must be a dict of columns or a DataFrame, got {type(data).__name__}"
        )
    non_str = [c for c in frame.columns if not isinstance(c, str)]
    if non_str:
        raise TypeError(f"Column names must be strings, got {non_str}")
    if frame.columns.duplicated().any():
        raise ValueError(
            f"Duplicate column names: {list(frame.columns[frame.columns.duplicated()])}"
        )
    return frame.reset_index(drop=True)


def _broadcast(value: Any, index: pd.Index, label: str) -> pd.Series:
    """
    Shape an evaluation result to one value per row of a block.

    Scalars and length-1 results are recycled; anything else must match the
    block length.
    """
    size = len(index)
    if isinstance(value, pd.Series):
        if len(value) == size:
            return value.set_axis(index)
        if len(value) == 1:
            return pd.Series([value.iloc[0]] * size, index=index, dtype=value.dtype)
    elif isinstance(value, (np.ndarray, list, tuple)):
        if len(value) == size:
            return pd.Series(value if isinstance(value, np.ndarray) else list(value), index=index)
        if len(value) == 1:
            return pd.Series([value[0]] * size, index=index)
    else:
        return pd.Series([value] * size, index=index, dtype=object if value is None else None)
    raise ValueError(
        f"Expression '{label}' must produce {size} values or 1, got {len(value)}"
    )


def _as_scalar(value: Any, label: str) -> Any:
    """Reduce a summary result to a single value."""
    if isinstance(value, (pd.Series, np.ndarray, list, tuple)):
        if len(value) != 1:
            raise ValueError(
                f"summarize() expression '{label}' must produce a single value "
                f"per group, got {len(value)}"
            )
        value = value.iloc[0] if isinstance(value, pd.Series) else value[0]
    if isinstance(value, np.generic):
        return value.item()
    return value


def _is_boolean(value: Any) -> bool:
    """True for a boolean or missing value, or a column holding only those."""
    if isinstance(value, pd.Series):
        if pd.api.types.is_bool_dtype(value):
            return True
        return all(isinstance(v, (bool, np.bool_)) for v in value.dropna())
    if isinstance(value, (bool, np.bool_)):
        return True
    if isinstance(value, float):
        return bool(np.isnan(value))
    return value is None or value is pd.NA


def _as_mask(values: pd.Series, label: str) -> np.ndarray:
    """
    Convert a predicate result to a boolean row mask.

    Missing values count as False.

    Raises:
        TypeMismatchError: If the predicate is not boolean
    """
    if not _is_boolean(values):
        raise TypeMismatchError(
            f"filter() predicate '{label}' must be boolean, got {values.dtype}"
        )
    return np.array([bool(v) if not pd.isna(v) else False for v in values], dtype=bool)


def _split_named(
    exprs: Tuple[Any, ...],
    named: Dict[str, Any],
    env: Mapping[str, Any],
) -> List[Tuple[Optional[str], Capture]]:
    """
    Turn positional and keyword verb arguments into (output name, capture) pairs.

    Positional captures have no name yet; see _resolve_names().
    """
    items: List[Tuple[Optional[str], Capture]] = []
    for expr in exprs:
        items.append((None, _make_capture(expr, env)))
    for name, expr in named.items():
        items.append((name, _make_capture(expr, env)))
    return items


def _resolve_names(
    items: List[Tuple[Optional[str], Capture]],
    schema: Dict[str, str],
) -> List[Tuple[str, Capture]]:
    """
    Name positional captures by their label.

    A lambda's label is its deparsed body, so unnamed lambdas are resolved
    against the schema first.
    """
    named = []
    for name, cap in items:
        if name is None:
            if cap.fn is not None:
                cap.resolve(schema)
            name = cap.label
        named.append((name, cap))
    return named
