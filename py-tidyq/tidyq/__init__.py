"""
tidyq: deferred ("tidy") evaluation of column expressions over in-memory tables.

Expressions passed to table verbs are captured unevaluated together with the
scope they were written in, then resolved against the table's columns (which
take precedence over same-named variables) or against each group of a grouped
table.

Example:
    >>> from tidyq import Table, capture_arg
    >>> def summarize_by(t, group, value):
    ...     group, value = capture_arg(group), capture_arg(value)
    ...     return t.group_by(group).summarize(
    ...         n="n()", lo="min(value)", hi="max(value)"
    ...     )
    >>> summarize_by(iris, "Species", "Sepal.Length").show()
"""

import logging

from .core import Table
from .errors import NameNotFoundError, PipelineError, TidyqError, TypeMismatchError
from .evaluation import evaluate, evaluate_groups
from .expr import (
    Capture,
    capture,
    capture_arg,
    capture_args,
    captures,
    coalesce,
    if_else,
    n,
    sym,
    syms,
)
from .functions import FUNCTIONS
from .grouping import Grouping
from .pipeline import Pipeline, Step

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Table",
    "Grouping",
    "Pipeline",
    "Step",
    "Capture",
    "capture",
    "capture_arg",
    "capture_args",
    "captures",
    "sym",
    "syms",
    "evaluate",
    "evaluate_groups",
    "if_else",
    "coalesce",
    "n",
    "FUNCTIONS",
    "TidyqError",
    "NameNotFoundError",
    "TypeMismatchError",
    "PipelineError",
]
