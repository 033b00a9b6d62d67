"""Result type for soft page operations.

Date formatting, file uploads and response waits are optional steps in a
test flow: they report failure through an ``Outcome`` rather than raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or a documented fallback plus the error that caused it."""

    value: T
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, fallback: T, error: BaseException) -> Outcome[T]:
        return cls(value=fallback, error=error)
