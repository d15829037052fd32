"""I/O operations for tidyq tables: CSV, pandas, Arrow and plain dicts."""

from typing import Any, Dict, List

import pandas as pd


class IOMixin:
    """Mixin class providing I/O operations for Table."""

    @classmethod
    def read_csv(cls, path: str, has_header: bool = True) -> "Table":
        """
        Load a CSV file and return a Table.

        Args:
            path: Path to the CSV file
            has_header: Whether the first row is a header (default: True).
                       If False, columns are named column_1, column_2, etc.

        Returns:
            New ungrouped Table

        Raises:
            FileNotFoundError: If path does not exist

        Example:
            >>> t = Table.read_csv("iris.csv")
            >>> t_no_header = Table.read_csv("data.csv", has_header=False)
        """
        if has_header:
            frame = pd.read_csv(path)
        else:
            frame = pd.read_csv(path, header=None)
            frame.columns = [f"column_{i + 1}" for i in range(frame.shape[1])]
        return cls._new(frame)

    def write_csv(self, path: str) -> None:
        """
        Write the table to a CSV file (without grouping information).

        Example:
            >>> t.write_csv("output.csv")
        """
        self._frame.to_csv(path, index=False)

    @classmethod
    def from_pandas(cls, df) -> "Table":
        """
        Create a Table from a pandas DataFrame.

        The DataFrame is copied; its index is discarded.

        Example:
            >>> import pandas as pd
            >>> t = Table.from_pandas(pd.DataFrame({"x": [1, 2, 3]}))
        """
        if not isinstance(df, pd.DataFrame):
            raise TypeError(f"Expected pandas.DataFrame, got {type(df).__name__}")
        return cls(df)

    @classmethod
    def from_dict(cls, data: Dict[str, List[Any]]) -> "Table":
        """Create a Table from a dict of column name -> values."""
        return cls(data)

    @classmethod
    def from_arrow(cls, arrow_table) -> "Table":
        """
        Create a Table from a PyArrow Table.

        Example:
            >>> import pyarrow as pa
            >>> t = Table.from_arrow(pa.table({"x": [1, 2, 3], "y": ["a", "b", "c"]}))
        """
        import pyarrow as pa

        if not isinstance(arrow_table, pa.Table):
            raise TypeError(
                f"Expected pyarrow.Table, got {type(arrow_table).__name__}"
            )
        return cls._new(arrow_table.to_pandas())

    def to_pandas(self) -> pd.DataFrame:
        """Return a copy of the data as a pandas DataFrame."""
        return self._frame.copy()

    def to_arrow(self):
        """Return the data as a pyarrow.Table."""
        import pyarrow as pa

        return pa.Table.from_pandas(self._frame, preserve_index=False)

    def to_dict(self) -> Dict[str, List[Any]]:
        """Return the data as a dict of column name -> list of values."""
        return {name: self._frame[name].tolist() for name in self._frame.columns}
