"""Exception types raised by tidyq."""

from typing import List, Optional


class TidyqError(Exception):
    """Base class for tidyq errors."""


class NameNotFoundError(TidyqError, NameError):
    """
    A name referenced by an expression resolves in no available scope.

    Raised at evaluation time, never at capture time.

    Attributes:
        name (str): The name that failed to resolve
        available (list): Column names that were available
    """

    def __init__(self, name: str, available: Optional[List[str]] = None, where: str = "table or environment"):
        available = list(available or [])
        super().__init__(
            f"Name '{name}' not found in {where}. "
            f"Available columns: {available}"
        )
        self.name = name
        self.available = available


class TypeMismatchError(TidyqError, TypeError):
    """An operation was applied to incompatible column types."""


class PipelineError(TidyqError):
    """
    A pipeline step failed.

    The original error is chained as ``__cause__``.

    Attributes:
        step (int): Index of the failing step
        verb (str): Name of the failing verb
    """

    def __init__(self, step: int, verb: str, cause: BaseException):
        self.step = step
        self.verb = verb
        super().__init__(
            f"Pipeline step {step} ({verb}) failed: {type(cause).__name__}: {cause}"
        )
