"""Tests for table construction, conversion and CSV I/O."""

import pandas as pd
import pyarrow as pa
import pytest

from tidyq import Table
from tidyq.errors import NameNotFoundError


class TestConstruction:
    def test_from_dict(self):
        t = Table({"x": [1, 2, 3], "y": ["a", "b", "c"]})
        assert len(t) == 3
        assert t.columns == ["x", "y"]
        assert t.shape == (3, 2)
        assert t.schema == {"x": "int64", "y": "string"}

    def test_empty(self):
        t = Table()
        assert len(t) == 0
        assert t.columns == []

    def test_ragged_columns(self):
        with pytest.raises(ValueError, match="same length"):
            Table({"x": [1, 2, 3], "y": [1, 2]})

    def test_non_string_column_names(self):
        with pytest.raises(TypeError, match="strings"):
            Table(pd.DataFrame({0: [1], 1: [2]}))

    def test_duplicate_column_names(self):
        df = pd.DataFrame([[1, 2]], columns=["a", "a"])
        with pytest.raises(ValueError, match="Duplicate"):
            Table(df)

    def test_unsupported_data(self):
        with pytest.raises(TypeError):
            Table([1, 2, 3])

    def test_unknown_group_key(self):
        with pytest.raises(NameNotFoundError):
            Table({"x": [1]}, group_keys=["g"])

    def test_contains_and_equality(self, numbers):
        assert "var1" in numbers
        assert "ratio" not in numbers
        assert numbers == Table(numbers.to_pandas())
        assert numbers != numbers.group_by("group")


class TestPandas:
    def test_from_pandas_copies(self):
        df = pd.DataFrame({"x": [1, 2, 3]}, index=[10, 20, 30])
        t = Table.from_pandas(df)
        df.loc[10, "x"] = 99
        assert t.to_dict() == {"x": [1, 2, 3]}
        assert list(t.to_pandas().index) == [0, 1, 2]

    def test_from_pandas_type_check(self):
        with pytest.raises(TypeError, match="DataFrame"):
            Table.from_pandas({"x": [1]})

    def test_to_pandas_is_a_copy(self, numbers):
        df = numbers.to_pandas()
        df["var1"] = 0.0
        assert numbers.to_dict()["var1"] == [10.0, 20.0, 30.0, 40.0]

    def test_from_dict(self):
        assert Table.from_dict({"x": [1]}) == Table({"x": [1]})


class TestArrow:
    def test_from_arrow(self):
        t = Table.from_arrow(pa.table({"x": [1, 2, 3], "y": ["a", "b", "c"]}))
        assert t.to_dict() == {"x": [1, 2, 3], "y": ["a", "b", "c"]}

    def test_to_arrow(self, numbers):
        table = numbers.to_arrow()
        assert table.num_rows == 4
        assert table.column_names == numbers.columns

    def test_from_arrow_type_check(self):
        with pytest.raises(TypeError, match="pyarrow"):
            Table.from_arrow(pd.DataFrame({"x": [1]}))


class TestCsv:
    def test_round_trip(self, numbers, tmp_path):
        path = tmp_path / "numbers.csv"
        numbers.write_csv(str(path))
        loaded = Table.read_csv(str(path))
        assert loaded.to_dict() == numbers.to_dict()
        assert not loaded.is_grouped

    def test_grouping_not_written(self, numbers, tmp_path):
        path = tmp_path / "grouped.csv"
        numbers.group_by("group").write_csv(str(path))
        assert Table.read_csv(str(path)).columns == numbers.columns

    def test_without_header(self, tmp_path):
        path = tmp_path / "raw.csv"
        path.write_text("1,a\n2,b\n")
        t = Table.read_csv(str(path), has_header=False)
        assert t.to_dict() == {"column_1": [1, 2], "column_2": ["a", "b"]}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Table.read_csv(str(tmp_path / "missing.csv"))

    def test_dotted_headers_usable_in_expressions(self, tmp_path):
        path = tmp_path / "iris.csv"
        path.write_text("Sepal.Length,Species\n5.1,setosa\n7.0,versicolor\n")
        t = Table.read_csv(str(path))
        assert t.filter("Sepal.Length > 6").to_dict()["Species"] == ["versicolor"]
