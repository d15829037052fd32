from pathlib import Path

from tidyq import Table, capture_arg, sym

# Task: write reusable functions that take column expressions as arguments.

DATA_PATH = Path(__file__).with_name("iris.csv")

iris = Table.read_csv(str(DATA_PATH))


def grouped_mean(table, group, value):
    # Capture the caller's expressions, then forward them to the verbs.
    group = capture_arg(group)
    value = capture_arg(value)
    return table.group_by(group).summarize(mean="mean(value)", n="n()")


def above_group_mean(table, group, value):
    value = capture_arg(value)
    return (
        table
        .group_by(capture_arg(group))
        .filter("value > mean(value)")
        .ungroup()
    )


grouped_mean(iris, "Species", "Sepal.Length / Sepal.Width").show()

# Column names computed at run time go through sym()
for column in ["Petal.Length", "Petal.Width"]:
    grouped_mean(iris, "Species", sym(column)).show()

above_group_mean(iris, "Species", "Petal.Length").select("Species", "Petal.Length").show()

# Outer variables are visible unless a column has the same name
Petal = 1.5
iris.filter("Petal.Width > Petal").show()
