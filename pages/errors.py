"""Exceptions raised by the page helper layer.

Hard verbs raise these so the calling test step fails visibly; soft verbs
capture them in an ``Outcome`` instead.
"""

from __future__ import annotations


class PageError(Exception):
    """Base class for page helper failures."""


class WaitTimeoutError(PageError, TimeoutError):
    """An element did not reach the requested state within its budget."""

    def __init__(self, selector: str, state: str, timeout_ms: int, elapsed_ms: int) -> None:
        self.selector = selector
        self.state = state
        self.timeout_ms = timeout_ms
        self.elapsed_ms = elapsed_ms
        super().__init__(
            f"Timed out after {elapsed_ms}ms (budget {timeout_ms}ms) "
            f"waiting for {selector!r} to be {state}"
        )


class ElementNotFoundError(WaitTimeoutError):
    """The selector matched no element at all when the budget ran out."""

    def __str__(self) -> str:
        return (
            f"No element matched {self.selector!r} within {self.timeout_ms}ms "
            f"(waiting for state {self.state})"
        )


class TextMismatchError(PageError, AssertionError):
    def __init__(self, selector: str, expected: str, actual: str | None, *, mode: str) -> None:
        self.selector = selector
        self.expected = expected
        self.actual = actual
        self.mode = mode
        super().__init__(
            f"{selector!r}: expected text to {mode} {expected!r}, got {actual!r}"
        )


class FormatError(PageError, ValueError):
    """A timestamp could not be parsed or rendered."""
