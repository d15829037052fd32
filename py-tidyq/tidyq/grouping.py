"""Row partitioning for grouped tables."""

from typing import Any, List, Sequence, Tuple

import numpy as np
import pandas as pd


class Grouping:
    """
    A partition of a table's rows into disjoint groups.

    Groups are keyed by the values of one or more key columns and ordered
    by the first row in which each key appears. Missing key values form
    their own group. With no key columns, all rows form a single group.

    Attributes:
        keys (tuple): Key column names
        positions (list): One array of row positions per group
        key_values (list): One tuple of key values per group
    """

    def __init__(self, keys: Tuple[str, ...], positions: List[np.ndarray], key_values: List[tuple]):
        self.keys = keys
        self.positions = positions
        self.key_values = key_values

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, keys: Sequence[str]) -> "Grouping":
        """
        Partition the rows of a DataFrame by key columns.

        Args:
            frame: The rows to partition
            keys: Key column names; empty means one group of all rows

        Returns:
            A Grouping whose group sizes sum to len(frame)
        """
        keys = tuple(keys)
        if not keys:
            return cls(keys, [np.arange(len(frame))], [()])

        grouped = frame.groupby(list(keys), sort=False, dropna=False)
        # ngroup() with sort=False numbers groups in first-seen order
        codes = grouped.ngroup().to_numpy()
        positions = [np.flatnonzero(codes == i) for i in range(grouped.ngroups)]
        key_frame = frame[list(keys)]
        key_values = [
            tuple(_plain(v) for v in key_frame.iloc[pos[0]]) for pos in positions
        ]
        return cls(keys, positions, key_values)

    @property
    def n_groups(self) -> int:
        return len(self.positions)

    def sizes(self) -> List[int]:
        """Number of rows in each group, in group order."""
        return [len(pos) for pos in self.positions]

    def __len__(self) -> int:
        return self.n_groups

    def __repr__(self) -> str:
        return f"Grouping(keys={list(self.keys)}, n_groups={self.n_groups})"


def _plain(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    return value
