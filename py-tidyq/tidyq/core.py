"""Core tidyq Table class."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .aggregation import AggregationMixin
from .errors import NameNotFoundError
from .evaluation import evaluate_in
from .expr import Capture
from .grouping import Grouping
from .helpers import _broadcast, _frame_from_data, _normalize_schema
from .io_ops import IOMixin
from .transforms import TransformMixin

logger = logging.getLogger(__name__)

DEFAULT_SHOW_ROWS = 10


class Table(IOMixin, TransformMixin, AggregationMixin):
    """
    An immutable in-memory table with optional row grouping.

    Every verb returns a new Table; the backing DataFrame is never modified.

    Args:
        data: Dict of column name -> values, or a pandas DataFrame
        group_keys: Names of grouping columns

    Example:
        >>> t = Table({"x": [1, 2, 3], "g": ["a", "b", "a"]})
        >>> t.group_by("g").summarize(total="sum(x)").show()
    """

    def __init__(self, data: Any = None, group_keys: Sequence[str] = ()):
        self._frame = _frame_from_data(data)
        self._group_keys: Tuple[str, ...] = ()
        self._grouping: Optional[Grouping] = None
        self._set_group_keys(group_keys)

    @classmethod
    def _new(cls, frame: pd.DataFrame, group_keys: Sequence[str] = ()) -> "Table":
        """Wrap an already-validated frame without copying it again."""
        t = cls.__new__(cls)
        t._frame = frame.reset_index(drop=True)
        t._group_keys = ()
        t._grouping = None
        t._set_group_keys(group_keys)
        return t

    def _set_group_keys(self, group_keys: Sequence[str]) -> None:
        keys = tuple(group_keys)
        missing = [k for k in keys if k not in self._frame.columns]
        if missing:
            raise NameNotFoundError(missing[0], list(self._frame.columns), where="table")
        self._group_keys = keys

    # -- Introspection -------------------------------------------------------

    @property
    def columns(self) -> List[str]:
        """Column names in order."""
        return list(self._frame.columns)

    @property
    def schema(self) -> Dict[str, str]:
        """Mapping of column name -> simplified type string."""
        return _normalize_schema(self._frame)

    @property
    def shape(self) -> Tuple[int, int]:
        return self._frame.shape

    @property
    def group_keys(self) -> Tuple[str, ...]:
        return self._group_keys

    @property
    def is_grouped(self) -> bool:
        return bool(self._group_keys)

    @property
    def grouping(self) -> Grouping:
        """The row partition for the current group keys (one group when ungrouped)."""
        if self._grouping is None:
            self._grouping = Grouping.from_frame(self._frame, self._group_keys)
        return self._grouping

    @property
    def n_groups(self) -> int:
        return self.grouping.n_groups

    def group_sizes(self) -> List[int]:
        """Number of rows per group, in first-seen key order."""
        return self.grouping.sizes()

    def __len__(self) -> int:
        """
        Get the number of rows in the table.

        Example:
            >>> print(len(t))  # Number of rows
        """
        return len(self._frame)

    def __contains__(self, name: str) -> bool:
        return name in self._frame.columns

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return self._group_keys == other._group_keys and self._frame.equals(other._frame)

    __hash__ = None  # type: ignore

    # -- Display -------------------------------------------------------------

    def _header(self) -> str:
        rows, cols = self.shape
        header = f"# Table: {rows} x {cols}"
        if self._group_keys:
            header += f"\n# Groups: {', '.join(self._group_keys)} [{self.n_groups}]"
        return header

    def __repr__(self) -> str:
        return f"{self._header()}\n{self._frame.head(DEFAULT_SHOW_ROWS).to_string(index=False)}"

    def show(self, n: int = DEFAULT_SHOW_ROWS) -> None:
        """
        Print the first n rows as a plain-text table.

        Args:
            n: Maximum number of rows to display (default 10)

        Example:
            >>> t.show()
        """
        print(self._header())
        print(self._frame.head(n).to_string(index=False))
        if len(self) > n:
            print(f"# ... with {len(self) - n} more rows")

    # -- Evaluation ----------------------------------------------------------

    def _eval_rowwise(self, cap: Capture, label: Optional[str] = None) -> pd.Series:
        """
        Evaluate a capture to one value per row, group by group.

        Aggregates inside the expression see only their own group; scalar
        results are recycled over the group.
        """
        frame = self._frame
        if not self._group_keys:
            return _broadcast(evaluate_in(cap, frame), frame.index, label or cap.label)

        parts = []
        for positions in self.grouping.positions:
            block = frame.iloc[positions]
            parts.append(_broadcast(evaluate_in(cap, block), block.index, label or cap.label))
        if not parts:
            return pd.Series([], index=frame.index, dtype=object)
        return pd.concat(parts).reindex(frame.index)
