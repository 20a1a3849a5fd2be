"""
Typed results for engine operations.

Engine operations never raise for business failures. They return a Result
holding either the produced value or a WorkflowError, so every caller
decides explicitly how to handle each ErrorKind.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

from .enums import ErrorCategory, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class WorkflowError:
    """A failure reported by the engine, with the ids involved."""
    kind: ErrorKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def category(self) -> ErrorCategory:
        return self.kind.category


class WorkflowEngineError(Exception):
    """Raised by Result.unwrap() when the result holds an error."""

    def __init__(self, error: WorkflowError):
        self.error = error
        super().__init__(error.message)

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a WorkflowError, never both."""
    value: Optional[T] = None
    error: Optional[WorkflowError] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str, **details) -> "Result[T]":
        return cls(error=WorkflowError(kind=kind, message=message, details=details))

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, raising WorkflowEngineError on failure."""
        if self.error is not None:
            raise WorkflowEngineError(self.error)
        return self.value
