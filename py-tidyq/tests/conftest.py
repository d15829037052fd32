"""Shared fixtures: an iris-shaped table and a small numeric table."""

import pytest

from tidyq import Table


def make_iris() -> Table:
    """150 rows, 50 per species, with dotted column names."""
    species, sepal_length, sepal_width = [], [], []
    ranges = {"setosa": (4.3, 16), "versicolor": (4.9, 22), "virginica": (4.9, 30)}
    for name, (low, span) in ranges.items():
        for i in range(50):
            species.append(name)
            sepal_length.append(round(low + (i % span) * 0.1, 1))
            sepal_width.append(round(2.0 + (i % 20) * 0.1, 1))
    return Table(
        {
            "Sepal.Length": sepal_length,
            "Sepal.Width": sepal_width,
            "Species": species,
        }
    )


@pytest.fixture
def iris():
    return make_iris()


@pytest.fixture
def numbers():
    return Table(
        {
            "var1": [10.0, 20.0, 30.0, 40.0],
            "var2": [2.0, 4.0, 5.0, 8.0],
            "group": ["a", "b", "a", "b"],
            "label": ["w", "x", "y", "z"],
        }
    )
