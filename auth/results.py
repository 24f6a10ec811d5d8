from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from auth.errors import AuthError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a session operation: either ``value`` or ``error``."""

    value: Optional[T] = None
    error: Optional[AuthError] = None

    @classmethod
    def success(cls, value: T = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AuthError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the carried error (for the HTTP layer)."""
        if self.error is not None:
            raise self.error
        return self.value
