from pathlib import Path

from tidyq import Table

# Task: per-species row count and sepal length range.

DATA_PATH = Path(__file__).with_name("iris.csv")

iris = Table.read_csv(str(DATA_PATH))

result = (
    iris
    .group_by("Species")
    .summarize(
        n="n()",
        min="min(Sepal.Length)",
        max="max(Sepal.Length)",
        spread="max - min",          # later aggregates see earlier ones
    )
)

result.show()
