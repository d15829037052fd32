import logging
from pathlib import Path

from tidyq import Pipeline, PipelineError, Table

# Task: build a reusable report pipeline and run it against a table.

logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")

DATA_PATH = Path(__file__).with_name("iris.csv")

min_width = 3.0

report = (
    Pipeline()
    .filter("Sepal.Width >= min_width")
    .mutate(ratio="Sepal.Length / Sepal.Width")
    .group_by("Species")
    .summarize(n="n()", mean_ratio="round(mean(ratio), 2)")
    .arrange("mean_ratio", desc=True)
)

iris = Table.read_csv(str(DATA_PATH))
iris.pipe(report).show()

# A failing step stops the run and reports which step broke
broken = report.then(Pipeline().select("no_such_column"))
try:
    broken.run(iris)
except PipelineError as e:
    print(f"step {e.step} ({e.verb}): {e.__cause__}")
