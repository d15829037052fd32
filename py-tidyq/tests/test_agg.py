"""Tests for group_by(), summarize() and count()."""

import pytest

from tidyq import Table, capture
from tidyq.errors import NameNotFoundError


class TestGroupBy:
    def test_group_by_column(self, iris):
        grouped = iris.group_by("Species")
        assert grouped.group_keys == ("Species",)
        assert grouped.n_groups == 3
        assert grouped.group_sizes() == [50, 50, 50]
        assert len(grouped) == len(iris)

    def test_group_sizes_sum_to_rows(self, numbers):
        grouped = numbers.group_by("group", "label")
        assert sum(grouped.group_sizes()) == len(numbers)

    def test_first_seen_order(self):
        t = Table({"g": ["b", "a", "b", "c"], "x": [1, 2, 3, 4]})
        result = t.group_by("g").summarize(total="sum(x)")
        assert result.to_dict() == {"g": ["b", "a", "c"], "total": [4, 2, 4]}

    def test_missing_keys_form_a_group(self):
        t = Table({"g": ["a", None, "a", None], "x": [1, 2, 3, 4]})
        assert t.group_by("g").group_sizes() == [2, 2]

    def test_computed_key_by_keyword(self, numbers):
        grouped = numbers.group_by(big="var1 > 25")
        assert grouped.group_keys == ("big",)
        assert grouped.to_dict()["big"] == [False, False, True, True]

    def test_computed_key_positional(self, numbers):
        grouped = numbers.group_by(lambda r: r.var2 > 4)
        assert grouped.n_groups == 2
        assert grouped.columns[-1] == grouped.group_keys[0]

    def test_add_to_existing_grouping(self, numbers):
        grouped = numbers.group_by("group").group_by("label", add=True)
        assert grouped.group_keys == ("group", "label")

    def test_regroup_replaces(self, numbers):
        assert numbers.group_by("group").group_by("label").group_keys == ("label",)

    def test_ungroup(self, numbers):
        assert not numbers.group_by("group").ungroup().is_grouped

    def test_unknown_key(self, numbers):
        with pytest.raises(NameNotFoundError):
            numbers.group_by("colour")


class TestSummarize:
    def test_iris_summary(self, iris):
        result = iris.group_by("Species").summarize(
            n="n()", min="min(Sepal.Length)", max="max(Sepal.Length)"
        )
        assert len(result) == 3
        assert result.columns == ["Species", "n", "min", "max"]
        data = result.to_dict()
        assert data["Species"] == ["setosa", "versicolor", "virginica"]
        assert data["n"] == [50, 50, 50]
        assert data["min"] == pytest.approx([4.3, 4.9, 4.9])
        assert data["max"] == pytest.approx([5.8, 7.0, 7.8])

    def test_one_row_per_key(self, numbers):
        result = numbers.group_by("group").summarize(total="sum(var1)")
        assert len(result) == 2
        assert len(result) <= len(numbers)
        assert result.to_dict() == {"group": ["a", "b"], "total": [40.0, 60.0]}

    def test_ungrouped_gives_one_row(self, numbers):
        result = numbers.summarize(avg="mean(var1)", sd="sd(var1)")
        assert len(result) == 1
        assert result.to_dict()["avg"] == [25.0]

    def test_summarise_alias(self, numbers):
        assert numbers.summarise(total="sum(var1)") == numbers.summarize(total="sum(var1)")

    def test_positional_named_by_text(self, numbers):
        result = numbers.summarize("max(var2)")
        assert result.to_dict() == {"max(var2)": [8.0]}

    def test_later_results_visible(self, numbers):
        result = numbers.group_by("group").summarize(total="sum(var1)", share="total / n()")
        assert result.to_dict()["share"] == [20.0, 30.0]

    def test_missing_values_skipped(self):
        t = Table({"x": [1.0, None, 3.0]})
        result = t.summarize(s="sum(x)", m="mean(x)", k="n_distinct(x)")
        assert result.to_dict() == {"s": [4.0], "m": [2.0], "k": [2]}

    def test_drops_last_group_key(self, numbers):
        result = numbers.group_by("group", "label").summarize(total="sum(var1)")
        assert result.group_keys == ("group",)
        assert result.columns == ["group", "label", "total"]

    def test_single_key_result_is_ungrouped(self, numbers):
        assert not numbers.group_by("group").summarize(n="n()").is_grouped

    def test_non_scalar_result(self, numbers):
        with pytest.raises(ValueError, match="single value"):
            numbers.group_by("group").summarize(x="var1")

    def test_empty_grouped_table(self, numbers):
        empty = numbers.filter("var1 > 100").group_by("group")
        result = empty.summarize(total="sum(var1)")
        assert len(result) == 0
        assert result.columns == ["group", "total"]

    def test_forwarded_capture(self, iris):
        def summary(table, group, value):
            group = capture(group)
            value = capture(value)
            return table.group_by(group).summarize(top="max(value)")

        result = summary(iris, "Species", "Sepal.Length")
        assert result.to_dict()["top"] == pytest.approx([5.8, 7.0, 7.8])


class TestCount:
    def test_count_by_key(self, iris):
        result = iris.count("Species")
        assert result.to_dict() == {
            "Species": ["setosa", "versicolor", "virginica"],
            "n": [50, 50, 50],
        }
        assert not result.is_grouped

    def test_count_custom_name_and_sort(self):
        t = Table({"g": ["a", "b", "b"]})
        result = t.count("g", name="rows", sort=True)
        assert result.to_dict() == {"g": ["b", "a"], "rows": [2, 1]}

    def test_count_without_keys(self, numbers):
        assert numbers.count().to_dict() == {"n": [4]}

    def test_count_keeps_input_grouping(self, numbers):
        result = numbers.group_by("group").count("label")
        assert result.group_keys == ("group",)
        assert len(result) == 4
