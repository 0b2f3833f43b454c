from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from paycore.core.errors import PaymentError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a processor operation: either a value or a typed error.

    Callers branch on ``ok`` (or on ``error.code``) instead of catching
    exceptions, so an unsupported capability is handled the same way for
    every payment kind.
    """

    value: Optional[T] = None
    error: Optional[PaymentError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: PaymentError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, re-raising the error for callers that prefer exceptions."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.ok
