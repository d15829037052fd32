"""Pipeline runner: an ordered list of table verbs applied left to right."""

import logging
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Sequence, Tuple, Union

from .errors import NameNotFoundError, PipelineError
from .expr.capture import _caller_env, _make_capture

logger = logging.getLogger(__name__)

# Verbs whose arguments are expressions, and the keyword options they take
# that must be passed through untouched.
_EXPRESSION_VERBS: Dict[str, FrozenSet[str]] = {
    "filter": frozenset(),
    "mutate": frozenset(),
    "summarize": frozenset(),
    "summarise": frozenset(),
    "group_by": frozenset({"add"}),
    "arrange": frozenset({"desc"}),
    "distinct": frozenset(),
    "count": frozenset({"name", "sort"}),
}

# select() and rename() take column names, which are never parsed
_PLAIN_VERBS = frozenset({"select", "ungroup", "slice", "head", "rename"})

# Verbs whose positional strings name a column when the table has one
_KEY_VERBS = frozenset({"group_by", "arrange", "distinct", "count"})


class _KeyArg:
    """
    A positional string given to a key-taking verb.

    The table verbs read a string that matches a column literally and parse
    anything else, so the decision waits until the step runs. Text that is
    not valid Python (a column name such as "my col") can only be a column.
    """

    def __init__(self, text: str, env: Mapping[str, Any]):
        self.text = text
        self.label = text
        try:
            self.capture = _make_capture(text, env)
        except SyntaxError:
            self.capture = None

    def bind(self, columns: Sequence[str]) -> Any:
        if self.text in columns:
            return self.text
        if self.capture is None:
            raise NameNotFoundError(self.text, list(columns), where="table")
        return self.capture


class Step:
    """
    One verb call in a pipeline.

    Expression arguments are captured when the step is created, so names
    resolve in the scope that built the pipeline, not the scope that runs it.

    Attributes:
        verb (str): Table method name, or "pipe" for a plain function
        args (tuple): Positional arguments
        kwargs (dict): Keyword arguments
    """

    def __init__(self, verb: str, args: Sequence[Any] = (), kwargs: Optional[Dict[str, Any]] = None, env: Optional[Mapping[str, Any]] = None):
        kwargs = dict(kwargs or {})
        if verb in _EXPRESSION_VERBS:
            options = _EXPRESSION_VERBS[verb]
            env = env if env is not None else {}
            args = tuple(
                _KeyArg(a, env) if verb in _KEY_VERBS and isinstance(a, str) else _make_capture(a, env)
                for a in args
            )
            kwargs = {
                k: v if k in options else _make_capture(v, env)
                for k, v in kwargs.items()
            }
        elif verb not in _PLAIN_VERBS and verb != "pipe":
            raise ValueError(f"Unknown pipeline verb: {verb}")
        self.verb = verb
        self.args = tuple(args)
        self.kwargs = kwargs

    def __call__(self, table: "Table") -> Any:
        if self.verb == "pipe":
            fn, *rest = self.args
            return table.pipe(fn, *rest, **self.kwargs)
        args = [a.bind(table.columns) if isinstance(a, _KeyArg) else a for a in self.args]
        return getattr(table, self.verb)(*args, **self.kwargs)

    def __repr__(self) -> str:
        parts = [getattr(a, "label", repr(a)) for a in self.args]
        parts += [f"{k}={getattr(v, 'label', repr(v))}" for k, v in self.kwargs.items()]
        return f"{self.verb}({', '.join(parts)})"


def _step_method(verb: str) -> Callable:
    def method(self, *args: Any, **kwargs: Any) -> "Pipeline":
        return self._append(Step(verb, args, kwargs, env=_caller_env(1)))

    method.__name__ = verb
    method.__doc__ = f"Return a new Pipeline with a ``{verb}`` step appended."
    return method


class Pipeline:
    """
    An ordered list of table operations.

    Pipelines are immutable: each builder method returns a new Pipeline.
    run() threads a table through the steps left to right; the first
    failing step stops the run.

    Example:
        >>> p = (
        ...     Pipeline()
        ...     .filter("Sepal.Length > 5")
        ...     .group_by("Species")
        ...     .summarize(n="n()", top="max(Sepal.Length)")
        ... )
        >>> p.run(iris).show()
    """

    def __init__(self, steps: Optional[Sequence[Step]] = None):
        self._steps: Tuple[Step, ...] = tuple(steps or ())

    @property
    def steps(self) -> Tuple[Step, ...]:
        return self._steps

    def __len__(self) -> int:
        return len(self._steps)

    def __repr__(self) -> str:
        return "Pipeline(" + " -> ".join(repr(s) for s in self._steps) + ")"

    def _append(self, step: Step) -> "Pipeline":
        return Pipeline(self._steps + (step,))

    def then(self, other: Union["Pipeline", Step]) -> "Pipeline":
        """Concatenate another pipeline or a single step."""
        if isinstance(other, Pipeline):
            return Pipeline(self._steps + other._steps)
        return self._append(other)

    __add__ = then

    filter = _step_method("filter")
    select = _step_method("select")
    mutate = _step_method("mutate")
    summarize = _step_method("summarize")
    summarise = _step_method("summarise")
    group_by = _step_method("group_by")
    ungroup = _step_method("ungroup")
    arrange = _step_method("arrange")
    distinct = _step_method("distinct")
    count = _step_method("count")
    slice = _step_method("slice")
    head = _step_method("head")
    rename = _step_method("rename")

    def pipe(self, fn: Callable, *args: Any, **kwargs: Any) -> "Pipeline":
        """Append a call to fn(table, *args, **kwargs)."""
        return self._append(Step("pipe", (fn,) + args, kwargs))

    def run(self, table: "Table") -> Any:
        """
        Apply every step in order.

        Args:
            table: The input table (left unchanged)

        Returns:
            The output of the last step

        Raises:
            PipelineError: If a step fails; the original error is its __cause__
        """
        result = table
        for index, step in enumerate(self._steps):
            logger.debug("pipeline step %d: %r", index, step)
            try:
                result = step(result)
            except Exception as e:
                logger.error("pipeline step %d (%s) failed: %s", index, step.verb, e)
                raise PipelineError(index, step.verb, e) from e
        return result

    __call__ = run
