"""Tests for select, arrange, distinct, slice, rename, pull and pipe."""

import math

import pytest

from tidyq import Table, capture, sym
from tidyq.errors import NameNotFoundError


class TestSelect:
    def test_select_by_name(self, numbers):
        assert numbers.select("label", "var1").columns == ["label", "var1"]

    def test_select_sym_and_lambda(self, numbers):
        assert numbers.select(sym("var2")).columns == ["var2"]
        assert numbers.select(lambda r: [r.var1, r.label]).columns == ["var1", "label"]

    def test_dotted_name(self, iris):
        assert iris.select("Sepal.Width").columns == ["Sepal.Width"]

    def test_group_keys_are_kept(self, numbers):
        result = numbers.group_by("group").select("var1")
        assert result.columns == ["group", "var1"]
        assert result.group_keys == ("group",)

    def test_duplicates_collapse(self, numbers):
        assert numbers.select("var1", "var1").columns == ["var1"]

    def test_expression_rejected(self, numbers):
        with pytest.raises(TypeError, match="mutate"):
            numbers.select(capture("var1 + 1"))

    def test_unknown_column(self, numbers):
        with pytest.raises(NameNotFoundError) as exc_info:
            numbers.select("colour")
        assert "var1" in exc_info.value.available


class TestArrange:
    def test_ascending_and_descending(self, numbers):
        assert numbers.arrange("var2", desc=True).to_dict()["label"] == ["z", "y", "x", "w"]
        assert numbers.arrange("label").to_dict()["label"] == ["w", "x", "y", "z"]

    def test_expression_key_is_stable(self, numbers):
        # ratios are 5, 5, 6, 5
        result = numbers.arrange("var1 / var2")
        assert result.to_dict()["label"] == ["w", "x", "z", "y"]

    def test_multiple_keys_with_desc_list(self, numbers):
        result = numbers.arrange("group", "var1", desc=[False, True])
        assert result.to_dict()["label"] == ["y", "w", "z", "x"]

    def test_missing_values_last(self):
        t = Table({"x": [3.0, None, 1.0]})
        ascending = t.arrange("x").to_dict()["x"]
        descending = t.arrange("x", desc=True).to_dict()["x"]
        assert ascending[:2] == [1.0, 3.0] and math.isnan(ascending[2])
        assert descending[:2] == [3.0, 1.0] and math.isnan(descending[2])

    def test_desc_length_mismatch(self, numbers):
        with pytest.raises(ValueError, match="desc list length"):
            numbers.arrange("var1", "var2", desc=[True])

    def test_grouping_kept(self, numbers):
        assert numbers.group_by("group").arrange("var1").group_keys == ("group",)

    def test_sort_alias_warns(self, numbers):
        with pytest.warns(DeprecationWarning, match="arrange"):
            result = numbers.sort("var2", desc=True)
        assert result == numbers.arrange("var2", desc=True)


class TestDistinct:
    def test_whole_rows(self):
        t = Table({"g": ["a", "b", "a"], "x": [1, 2, 1]})
        assert t.distinct().to_dict() == {"g": ["a", "b"], "x": [1, 2]}

    def test_by_key_keeps_first_and_all_columns(self, numbers):
        result = numbers.distinct("group")
        assert result.columns == numbers.columns
        assert result.to_dict()["label"] == ["w", "x"]

    def test_by_expression(self, numbers):
        assert len(numbers.distinct("var1 / var2")) == 2


class TestSlice:
    def test_slice(self, numbers):
        assert numbers.slice(1, 2).to_dict()["label"] == ["x", "y"]
        assert numbers.slice(2).to_dict()["label"] == ["y", "z"]

    def test_head(self, iris):
        assert len(iris.head()) == 5
        assert len(iris.head(20)) == 20

    def test_past_the_end(self, numbers):
        assert len(numbers.slice(10, 3)) == 0

    @pytest.mark.parametrize("offset, length", [(-1, None), (0, -2)])
    def test_negative_arguments(self, numbers, offset, length):
        with pytest.raises(ValueError):
            numbers.slice(offset, length)


class TestRename:
    def test_rename(self, iris):
        result = iris.rename(sepal_length="Sepal.Length")
        assert result.columns[0] == "sepal_length"
        assert "Sepal.Length" not in result

    def test_group_keys_follow(self, numbers):
        result = numbers.group_by("group").rename(grp="group")
        assert result.group_keys == ("grp",)

    def test_unknown_column(self, numbers):
        with pytest.raises(NameNotFoundError):
            numbers.rename(new="old")


class TestPullAndPipe:
    def test_pull_column(self, numbers):
        assert numbers.pull("var1").tolist() == [10.0, 20.0, 30.0, 40.0]

    def test_pull_expression(self, numbers):
        values = numbers.pull("var1 * 2")
        assert values.name == "var1 * 2"
        assert values.tolist() == [20.0, 40.0, 60.0, 80.0]

    def test_pull_returns_copy(self, numbers):
        values = numbers.pull("var1")
        values[0] = -1.0
        assert numbers.pull("var1")[0] == 10.0

    def test_pipe_function(self, numbers):
        def top(table, column, k):
            return table.arrange(column, desc=True).head(k)

        assert numbers.pipe(top, "var2", 1).to_dict()["label"] == ["z"]


class TestDisplay:
    def test_repr_shows_groups(self, numbers):
        text = repr(numbers.group_by("group"))
        assert "# Table: 4 x 4" in text
        assert "# Groups: group [2]" in text

    def test_show_truncates(self, iris, capsys):
        iris.show(3)
        out = capsys.readouterr().out
        assert "# Table: 150 x 3" in out
        assert "147 more rows" in out
