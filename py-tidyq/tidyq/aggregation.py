"""Aggregation operations for tables: group_by, summarize, count."""

import logging
from typing import Any, Dict, List

import pandas as pd

from .evaluation import evaluate_in
from .expr import Capture, n
from .expr.capture import _caller_env, _make_capture
from .helpers import _as_scalar, _resolve_names, _split_named

logger = logging.getLogger(__name__)


class AggregationMixin:
    """Mixin class providing grouping and aggregation operations for Table."""

    def group_by(self, *keys: Any, add: bool = False, **named: Any) -> "Table":
        """
        Group rows by one or more keys.

        Keys are column names, or expressions which are first added as
        columns (named by their text, or by keyword). Groups are ordered by
        first appearance of each key.

        Args:
            *keys: Column names, source text, lambdas or Captures
            add: If True, add to the existing grouping instead of replacing it
            **named: Computed keys, e.g. big="Sepal.Length > 6"

        Returns:
            A grouped Table with the same rows

        Example:
            >>> iris.group_by("Species")
            >>> t.group_by(decade=lambda r: r.year // 10 * 10)
        """
        env = _caller_env(1)
        return self._group_by(keys, named, add, env)

    def _group_by(self, keys, named, add: bool, env) -> "Table":
        columns = self.columns
        plain = []
        computed = []
        for key in keys:
            if isinstance(key, str) and key in columns:
                plain.append(key)
                continue
            cap = _make_capture(key, env)
            if cap.column_name is not None and cap.column_name in columns:
                plain.append(cap.column_name)
            else:
                computed.append((None, cap))
        computed.extend(_split_named((), named, env))
        computed = _resolve_names(computed, self.schema)

        table = self._mutate(computed) if computed else self
        new_keys = plain + [name for name, _ in computed]
        if add:
            new_keys = list(self._group_keys) + new_keys
        deduped = list(dict.fromkeys(new_keys))
        logger.debug("group_by %s", deduped)
        return self._new(table._frame, deduped)

    def ungroup(self) -> "Table":
        """Drop the grouping."""
        return self._new(self._frame)

    def summarize(self, *exprs: Any, **named: Any) -> "Table":
        """
        Reduce each group to one row.

        Every expression is evaluated once per group and must produce a
        single value. Later expressions can refer to earlier results by name.
        The output has the grouping columns first, then one column per
        expression; it is grouped by all but the last grouping column.

        Args:
            *exprs: Expressions named by their text
            **named: Output name -> expression

        Returns:
            A Table with one row per group (one row for an ungrouped table)

        Raises:
            ValueError: If an expression produces more than one value per group

        Example:
            >>> iris.group_by("Species").summarize(
            ...     n="n()", min="min(Sepal.Length)", max="max(Sepal.Length)"
            ... )
        """
        env = _caller_env(1)
        return self._summarize(_split_named(exprs, named, env))

    def summarise(self, *exprs: Any, **named: Any) -> "Table":
        """Alias for summarize()."""
        env = _caller_env(1)
        return self._summarize(_split_named(exprs, named, env))

    def _summarize(self, items) -> "Table":
        items = _resolve_names(items, self.schema)
        grouping = self.grouping
        frame = self._frame

        results: Dict[str, List[Any]] = {name: [] for name, _ in items}
        for positions in grouping.positions:
            block = frame.iloc[positions]
            overlay: Dict[str, Any] = {}
            for name, cap in items:
                value = _as_scalar(evaluate_in(cap, block, overlay), cap.label)
                overlay[name] = value
                results[name].append(value)

        out = {key: [kv[i] for kv in grouping.key_values] for i, key in enumerate(grouping.keys)}
        for name, values in results.items():
            out[name] = values
        out_frame = pd.DataFrame(out, columns=list(dict.fromkeys(list(grouping.keys) + list(results))))
        for key in grouping.keys:
            if key not in results and len(out_frame) == 0:
                out_frame[key] = out_frame[key].astype(frame[key].dtype)

        new_keys = list(grouping.keys[:-1])
        if new_keys:
            logger.info("summarize() has grouped output by %s", new_keys)
        return self._new(out_frame, new_keys)

    def count(self, *keys: Any, name: str = "n", sort: bool = False) -> "Table":
        """
        Count rows per group of the given keys (and of the existing grouping).

        Args:
            *keys: Extra grouping keys
            name: Name of the count column (default "n")
            sort: If True, largest groups first

        Returns:
            A Table with one row per key combination, grouped like the input

        Example:
            >>> iris.count("Species")
        """
        env = _caller_env(1)
        grouped = self._group_by(keys, {}, True, env)
        counted = grouped._summarize([(name, Capture(expr=n()))])
        result = self._new(counted._frame, self._group_keys)
        if sort:
            result = result._arrange((name,), True, env)
        return result
