"""Transform operations for tables: filter, select, mutate, arrange, distinct, slice."""

import logging
import warnings
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .errors import NameNotFoundError
from .evaluation import evaluate_in
from .expr import Capture, Expr, SchemaProxy
from .expr.capture import _caller_env, _make_capture
from .helpers import _as_mask, _broadcast, _split_named

logger = logging.getLogger(__name__)


def _column_name_of(col: Any, columns: List[str], env: Mapping[str, Any]) -> List[str]:
    """Resolve a select()/rename() argument to column names."""
    if isinstance(col, str):
        names = [col]
    elif callable(col) and not isinstance(col, Capture):
        # Lambdas may return one column or a list of columns
        result = col(SchemaProxy({name: "" for name in columns}))
        items = result if isinstance(result, (list, tuple)) else [result]
        names = []
        for item in items:
            if not isinstance(item, Expr) or item.serialize().get("type") != "Column":
                raise TypeError(
                    f"select() lambdas must return columns, got {type(item).__name__}"
                )
            names.append(item.name)
    else:
        name = _make_capture(col, env).column_name
        if name is None:
            raise TypeError(
                f"select() accepts column names only, got '{_make_capture(col, env).label}'. "
                "Use mutate() to compute new columns."
            )
        names = [name]

    for name in names:
        if name not in columns:
            raise NameNotFoundError(name, columns, where="table")
    return names


def _sort_capture(key: Any, columns: List[str], env: Mapping[str, Any]) -> Capture:
    """Plain column names are taken literally; anything else is captured."""
    if isinstance(key, str) and key in columns:
        from .expr import sym

        return sym(key)
    return _make_capture(key, env)


def _desc_flags(desc: Union[bool, list], count: int) -> List[bool]:
    if isinstance(desc, bool):
        return [desc] * count
    if isinstance(desc, list):
        if len(desc) != count:
            raise ValueError(
                f"desc list length ({len(desc)}) must match number of sort keys ({count})"
            )
        return desc
    raise TypeError(f"desc must be bool or list, got {type(desc).__name__}")


class TransformMixin:
    """Mixin class providing row and column transforms for Table."""

    def filter(self, *predicates: Any, **named: Any) -> "Table":
        """
        Keep rows for which every predicate is true.

        Predicates are combined with AND. A missing result counts as false.
        On a grouped table, aggregates inside a predicate are computed per
        group, e.g. keeping rows above their group's mean.

        Args:
            *predicates: Source text ("Sepal.Length > 5"), lambdas
                        (lambda r: r.x > 5) or Captures

        Returns:
            A new Table with the matching rows, same grouping

        Raises:
            TypeError: If given keyword arguments (use == to compare)
            NameNotFoundError: If a name resolves nowhere
            TypeMismatchError: If a predicate is not boolean

        Example:
            >>> t.filter("Species == 'setosa'", lambda r: r.Petal_Width > 0.2)
            >>> t.group_by("Species").filter("Sepal.Length > mean(Sepal.Length)")
        """
        if named:
            raise TypeError(
                f"filter() got keyword arguments {list(named)}; "
                "predicates must be expressions, did you mean '=='?"
            )
        env = _caller_env(1)

        mask = np.ones(len(self), dtype=bool)
        for predicate in predicates:
            cap = _make_capture(predicate, env)
            mask &= _as_mask(self._eval_rowwise(cap), cap.label)

        logger.debug("filter kept %d of %d rows", int(mask.sum()), len(self))
        return self._new(self._frame[mask], self._group_keys)

    def select(self, *cols: Any) -> "Table":
        """
        Keep the given columns, in the given order.

        Grouping columns are always kept and are added in front when missing.

        Args:
            *cols: Column names, sym() captures or lambdas returning columns
                   (lambda r: [r.a, r.b])

        Example:
            >>> t.select("Species", "Sepal.Length")
            >>> t.select(lambda r: [r.x, r.y])
        """
        env = _caller_env(1)
        columns = self.columns

        names: List[str] = []
        for col in cols:
            for name in _column_name_of(col, columns, env):
                if name not in names:
                    names.append(name)

        missing_keys = [k for k in self._group_keys if k not in names]
        if missing_keys:
            logger.info("Adding missing grouping variables: %s", missing_keys)
            names = missing_keys + names

        return self._new(self._frame[names], self._group_keys)

    def mutate(self, *exprs: Any, **named: Any) -> "Table":
        """
        Add or replace columns computed from existing ones.

        All existing columns are kept in order; new columns are appended.
        Later expressions can use columns created by earlier ones. On a
        grouped table, aggregates are computed per group and recycled.

        Supports two API styles:
        1. Keyword arguments: mutate(ratio="var1 / var2", double=lambda r: r.x * 2)
        2. Single callable returning dict: mutate(lambda r: {"ratio": r.var1 / r.var2})

        Positional source text or lambdas are named by their text.

        Returns:
            A new Table with the computed columns

        Raises:
            NameNotFoundError: If a name resolves nowhere
            TypeMismatchError: If an operation is applied to incompatible types
            ValueError: If a result has the wrong length

        Example:
            >>> t.mutate(ratio="Sepal.Length / Sepal.Width")
            >>> t.group_by("g").mutate(centered="x - mean(x)")
        """
        env = _caller_env(1)
        return self._mutate(_split_named(exprs, named, env))

    def derive(self, *exprs: Any, **named: Any) -> "Table":
        """Deprecated alias for mutate()."""
        warnings.warn(
            "derive() is deprecated, use mutate() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        env = _caller_env(1)
        return self._mutate(_split_named(exprs, named, env))

    def _mutate(self, items: List[Tuple[Optional[str], Capture]]) -> "Table":
        current = self
        for name, cap in items:
            resolved = cap.resolve(current.schema) if cap.fn is not None else None
            if isinstance(resolved, dict):
                # A dict-returning lambda adds one column per key
                for sub_name, expr in resolved.items():
                    current = current._with_column(sub_name, Capture(expr=expr, env=cap.env))
            else:
                current = current._with_column(name or cap.label, cap)
        return current

    def _with_column(self, name: str, cap: Capture) -> "Table":
        values = self._eval_rowwise(cap, label=name)
        frame = self._frame.copy()
        frame[name] = values
        logger.debug("mutate %s = %s", name, cap.label)
        return self._new(frame, self._group_keys)

    def arrange(self, *keys: Any, desc: Union[bool, list] = False) -> "Table":
        """
        Sort rows by one or more keys. The sort is stable; missing values go last.

        Grouping is ignored for sorting and kept on the result.

        Args:
            *keys: Column names, source text or lambdas
            desc: A bool for all keys, or one bool per key

        Example:
            >>> t.arrange("Species", "Sepal.Length", desc=[False, True])
            >>> t.arrange(lambda r: r.x / r.y)
        """
        env = _caller_env(1)
        return self._arrange(keys, desc, env)

    def sort(self, *keys: Any, desc: Union[bool, list] = False) -> "Table":
        """Deprecated alias for arrange()."""
        warnings.warn(
            "sort() is deprecated, use arrange() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        env = _caller_env(1)
        return self._arrange(keys, desc, env)

    def _arrange(self, keys, desc, env) -> "Table":
        if not keys:
            return self._new(self._frame, self._group_keys)
        flags = _desc_flags(desc, len(keys))
        key_frame = self._key_frame(keys, env)
        order = key_frame.sort_values(
            list(key_frame.columns),
            ascending=[not d for d in flags],
            kind="mergesort",
            na_position="last",
        ).index
        return self._new(self._frame.loc[order], self._group_keys)

    def _key_frame(self, keys, env) -> pd.DataFrame:
        frame = self._frame
        columns = self.columns
        key_cols = {}
        for i, key in enumerate(keys):
            cap = _sort_capture(key, columns, env)
            key_cols[f"__key{i}__"] = _broadcast(evaluate_in(cap, frame), frame.index, cap.label)
        return pd.DataFrame(key_cols, index=frame.index)

    def distinct(self, *keys: Any) -> "Table":
        """
        Remove duplicate rows, keeping the first occurrence.

        Args:
            *keys: Columns or expressions identifying duplicates. With no keys,
                   whole rows are compared.

        Example:
            >>> t.distinct("Species")
        """
        env = _caller_env(1)
        if not keys:
            return self._new(self._frame.drop_duplicates(keep="first"), self._group_keys)
        duplicated = self._key_frame(keys, env).duplicated(keep="first")
        return self._new(self._frame[~duplicated.to_numpy()], self._group_keys)

    def slice(self, offset: int = 0, length: Optional[int] = None) -> "Table":
        """
        Select a contiguous range of rows.

        Args:
            offset: Starting row index (0-based). Default: 0
            length: Number of rows to include. If None, all rows from offset to end.

        Raises:
            ValueError: If offset < 0 or length < 0

        Example:
            >>> t.slice(10, 5)      # Rows 10-14
        """
        if offset < 0:
            raise ValueError(f"offset must be non-negative, got {offset}")
        if length is not None and length < 0:
            raise ValueError(f"length must be non-negative, got {length}")
        end = None if length is None else offset + length
        return self._new(self._frame.iloc[offset:end], self._group_keys)

    def head(self, n: int = 5) -> "Table":
        """First n rows."""
        return self.slice(0, n)

    def rename(self, **new_to_old: Any) -> "Table":
        """
        Rename columns: rename(new_name="old_name").

        Grouping columns follow their new names.

        Example:
            >>> t.rename(sepal_length="Sepal.Length")
        """
        env = _caller_env(1)
        columns = self.columns
        mapping = {}
        for new, old in new_to_old.items():
            (old_name,) = _column_name_of(old, columns, env)
            mapping[old_name] = new
        frame = self._frame.rename(columns=mapping)
        keys = tuple(mapping.get(k, k) for k in self._group_keys)
        return self._new(frame, keys)

    def pull(self, col: Any) -> pd.Series:
        """
        Extract one column (or evaluated expression) as a pandas Series.

        Example:
            >>> t.pull("Sepal.Length").max()
        """
        env = _caller_env(1)
        if isinstance(col, str) and col in self._frame.columns:
            return self._frame[col].copy()
        cap = _make_capture(col, env)
        values = _broadcast(evaluate_in(cap, self._frame), self._frame.index, cap.label)
        return values.rename(cap.label)

    def pipe(self, fn: Callable, *args: Any, **kwargs: Any) -> Any:
        """
        Call fn(table, *args, **kwargs), or run a Pipeline on this table.

        Example:
            >>> t.pipe(my_summary, "Sepal.Length")
        """
        from .pipeline import Pipeline

        if isinstance(fn, Pipeline):
            return fn.run(self)
        return fn(self, *args, **kwargs)
