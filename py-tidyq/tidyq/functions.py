"""Functions callable by name inside expressions: aggregates and vectorised helpers."""

from typing import Any, Callable, Dict

import numpy as np
import pandas as pd

from .errors import TypeMismatchError


def _as_series(values: Any) -> pd.Series:
    if isinstance(values, pd.Series):
        return values
    if isinstance(values, (list, tuple, np.ndarray)):
        return pd.Series(values)
    return pd.Series([values])


def _require_numeric(values: pd.Series, func: str) -> pd.Series:
    if pd.api.types.is_bool_dtype(values):
        return values.astype("int64")
    if not pd.api.types.is_numeric_dtype(values):
        valid = values.dropna()
        if len(valid) and not all(
            isinstance(v, (int, float, np.number)) for v in valid
        ):
            raise TypeMismatchError(
                f"{func}() requires a numeric column, got {values.dtype}"
            )
    return values


def _scalar(value: Any) -> Any:
    """Unwrap numpy scalars so results compare naturally with Python values."""
    if isinstance(value, np.generic):
        return value.item()
    return value


# -- Aggregates ---------------------------------------------------------------
# Missing values are skipped, matching the group aggregation behaviour of the
# rest of the library.


def agg_sum(values):
    return _scalar(_require_numeric(_as_series(values), "sum").sum(skipna=True))


def agg_mean(values):
    return _scalar(_require_numeric(_as_series(values), "mean").mean(skipna=True))


def agg_median(values):
    return _scalar(_require_numeric(_as_series(values), "median").median(skipna=True))


def agg_min(values):
    valid = _as_series(values).dropna()
    return _scalar(valid.min()) if len(valid) else None


def agg_max(values):
    valid = _as_series(values).dropna()
    return _scalar(valid.max()) if len(valid) else None


def agg_sd(values):
    """Sample standard deviation (n - 1 denominator)."""
    valid = _require_numeric(_as_series(values), "sd").dropna()
    return _scalar(valid.std(ddof=1)) if len(valid) >= 2 else None


def agg_var(values):
    """Sample variance (n - 1 denominator)."""
    valid = _require_numeric(_as_series(values), "var").dropna()
    return _scalar(valid.var(ddof=1)) if len(valid) >= 2 else None


def agg_n_distinct(values):
    return int(_as_series(values).nunique(dropna=True))


def agg_first(values):
    values = _as_series(values)
    return _scalar(values.iloc[0]) if len(values) else None


def agg_last(values):
    values = _as_series(values)
    return _scalar(values.iloc[-1]) if len(values) else None


# -- Vectorised helpers -------------------------------------------------------


def _ufunc(name: str, ufunc: Callable) -> Callable:
    def apply(values, *args):
        if isinstance(values, pd.Series):
            values = _require_numeric(values, name)
        return ufunc(values, *args)

    apply.__name__ = name
    return apply


def vec_round(values, digits: int = 0):
    if isinstance(values, pd.Series):
        return _require_numeric(values, "round").round(digits)
    return round(values, digits)


def vec_is_na(values):
    return pd.isna(values)


def vec_if_else(condition, true_value, false_value):
    if isinstance(condition, pd.Series):
        # Missing conditions pick the false branch
        chosen = np.where(condition.fillna(False).astype(bool), true_value, false_value)
        return pd.Series(chosen, index=condition.index)
    return true_value if condition else false_value


def vec_coalesce(*values):
    result = None
    for value in values:
        if result is None:
            result = value
        elif isinstance(result, pd.Series):
            result = result.where(result.notna(), value)
        elif pd.isna(result):
            result = value
    return result


def vec_lag(values, n: int = 1, default=None):
    return _as_series(values).shift(n, fill_value=default)


def vec_lead(values, n: int = 1, default=None):
    return _as_series(values).shift(-n, fill_value=default)


def vec_cumsum(values):
    return _require_numeric(_as_series(values), "cumsum").cumsum()


def vec_between(values, lower, upper):
    if isinstance(values, pd.Series):
        return values.between(lower, upper)
    return lower <= values <= upper


def vec_is_in(values, candidates):
    candidates = list(candidates) if not isinstance(candidates, str) else [candidates]
    if isinstance(values, pd.Series):
        return values.isin(candidates)
    return values in candidates


def _str_method(name: str, method: str) -> Callable:
    def apply(values):
        values = _as_series(values)
        try:
            return getattr(values.str, method)()
        except AttributeError as e:
            raise TypeMismatchError(
                f"{name}() requires a string column, got {values.dtype}"
            ) from e

    apply.__name__ = name
    return apply


FUNCTIONS: Dict[str, Callable] = {
    # aggregates
    "sum": agg_sum,
    "mean": agg_mean,
    "avg": agg_mean,
    "median": agg_median,
    "min": agg_min,
    "max": agg_max,
    "sd": agg_sd,
    "std": agg_sd,
    "var": agg_var,
    "n_distinct": agg_n_distinct,
    "first": agg_first,
    "last": agg_last,
    # vectorised
    "abs": _ufunc("abs", np.abs),
    "sqrt": _ufunc("sqrt", np.sqrt),
    "log": _ufunc("log", np.log),
    "exp": _ufunc("exp", np.exp),
    "round": vec_round,
    "is_na": vec_is_na,
    "if_else": vec_if_else,
    "coalesce": vec_coalesce,
    "lag": vec_lag,
    "lead": vec_lead,
    "cumsum": vec_cumsum,
    "between": vec_between,
    "is_in": vec_is_in,
    "str_upper": _str_method("str_upper", "upper"),
    "str_lower": _str_method("str_lower", "lower"),
}

CONSTANTS: Dict[str, Any] = {
    "nan": np.nan,
    "pi": np.pi,
    "inf": np.inf,
}
