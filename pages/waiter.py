"""State polling against a live document.

``ElementWaiter`` queries the driver afresh on every poll and evaluates the
requested state on the first match. It never caches a match set and never
sleeps past its deadline, so a timeout leaves no polling behind.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Sequence

from playwright.sync_api import Error as PlaywrightError

from pages.driver import Driver
from pages.errors import ElementNotFoundError, TextMismatchError, WaitTimeoutError
from pages.locators import normalize_space
from pages.targets import Handle, Selector, Target, resolve_target

LOGGER = logging.getLogger("qa.pages")

DEFAULT_POLL_INTERVAL_MS = 100

# (matched, value) from one poll over the current candidates.
Check = Callable[[Sequence[Any]], tuple[bool, Any]]


class WaitState(str, Enum):
    ATTACHED = "attached"
    DETACHED = "detached"
    VISIBLE = "visible"
    HIDDEN = "hidden"
    ENABLED = "enabled"
    DISABLED = "disabled"


_NEEDS_ELEMENT = {WaitState.ATTACHED, WaitState.VISIBLE, WaitState.ENABLED, WaitState.DISABLED}


@dataclass(frozen=True)
class WaitSpec:
    state: WaitState
    timeout_ms: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "state", WaitState(self.state))
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got {self.timeout_ms}")


@dataclass
class WaitStats:
    """Running totals of wait outcomes, exported with the session metrics."""

    waits: int = 0
    satisfied: int = 0
    timeouts: int = 0
    not_found: int = 0
    soft_failures: int = 0


def normalize_text(text: str | None) -> str:
    return normalize_space(text or "")


class ElementWaiter:
    def __init__(
        self,
        driver: Driver,
        *,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
        stats: WaitStats | None = None,
    ) -> None:
        if poll_interval_ms <= 0:
            raise ValueError(f"poll_interval_ms must be > 0, got {poll_interval_ms}")
        self.driver = driver
        self.poll_interval_ms = poll_interval_ms
        self.clock = clock
        self.stats = stats

    def candidates(self, target: Selector | Handle) -> list[Any]:
        if isinstance(target, Handle):
            return [target.element] if self.driver.is_attached(target.element) else []
        return list(self.driver.query(target.expression))

    def state_check(self, state: WaitState) -> Check:
        """Evaluate ``state`` on the first match only; narrow with ``(expr)[n]`` to pick another."""

        driver = self.driver

        def check(found: Sequence[Any]) -> tuple[bool, Any]:
            first = found[0] if found else None
            if state is WaitState.DETACHED:
                return first is None, None
            if state is WaitState.HIDDEN:
                # Detached counts as hidden.
                return first is None or not driver.is_visible(first), first
            if first is None:
                return False, None
            if state is WaitState.ATTACHED:
                return True, first
            if state is WaitState.VISIBLE:
                return driver.is_visible(first), first
            if state is WaitState.ENABLED:
                return driver.is_enabled(first), first
            return not driver.is_enabled(first), first

        return check

    def poll(
        self,
        target: Target,
        check: Check,
        timeout_ms: int,
        *,
        description: str,
        needs_element: bool = True,
    ) -> Any:
        """Run ``check`` until it matches or ``timeout_ms`` elapses."""

        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got {timeout_ms}")
        resolved = resolve_target(target)
        if self.stats is not None:
            self.stats.waits += 1
        started = self.clock()
        deadline = started + timeout_ms / 1000
        found: list[Any] = []
        last_error: PlaywrightError | None = None
        while True:
            # A handle can detach between the query and the state check; retry.
            try:
                found = self.candidates(resolved)
                matched, value = check(found)
                last_error = None
            except PlaywrightError as exc:
                matched, value, last_error = False, None, exc
            if matched:
                if self.stats is not None:
                    self.stats.satisfied += 1
                return value
            remaining_ms = round((deadline - self.clock()) * 1000)
            if remaining_ms <= 0:
                break
            self.driver.wait_timeout(min(self.poll_interval_ms, remaining_ms))

        elapsed_ms = round((self.clock() - started) * 1000)
        selector = str(resolved)
        if needs_element and not found and last_error is None:
            error_cls: type[WaitTimeoutError] = ElementNotFoundError
        else:
            error_cls = WaitTimeoutError
        if self.stats is not None:
            self.stats.timeouts += 1
            if error_cls is ElementNotFoundError:
                self.stats.not_found += 1
        LOGGER.info(
            "wait_timeout",
            extra={
                "event": "wait_timeout",
                "selector": selector,
                "state": description,
                "timeout_ms": timeout_ms,
                "elapsed_ms": elapsed_ms,
                "not_found": error_cls is ElementNotFoundError,
                "last_error": str(last_error) if last_error else None,
            },
        )
        raise error_cls(selector, description, timeout_ms, elapsed_ms) from last_error

    def wait_for_state(self, target: Target, spec: WaitSpec) -> Any:
        """Return the first matching element once ``spec`` holds.

        Returns ``None`` for ``detached`` and for ``hidden`` when nothing is
        attached.
        """

        return self.poll(
            target,
            self.state_check(spec.state),
            spec.timeout_ms,
            description=spec.state.value,
            needs_element=spec.state in _NEEDS_ELEMENT,
        )

    def wait_until(
        self,
        target: Target,
        predicate: Callable[[Any], bool],
        timeout_ms: int,
        *,
        description: str,
    ) -> Any:
        """Poll until the first match satisfies ``predicate``; return it."""

        def check(found: Sequence[Any]) -> tuple[bool, Any]:
            if not found:
                return False, None
            return bool(predicate(found[0])), found[0]

        return self.poll(target, check, timeout_ms, description=description)

    def click(
        self,
        target: Target,
        timeout_ms: int,
        *,
        enabled_timeout_ms: int | None = None,
        force: bool = False,
        hover: bool = False,
    ) -> None:
        self.wait_for_state(target, WaitSpec(WaitState.VISIBLE, timeout_ms))
        handle = self.wait_for_state(
            target, WaitSpec(WaitState.ENABLED, enabled_timeout_ms or timeout_ms)
        )
        if hover:
            self.driver.hover(handle)
        self.driver.click(handle, force=force)

    def fill(self, target: Target, text: str, timeout_ms: int, *, force: bool = False) -> None:
        handle = self.wait_for_state(target, WaitSpec(WaitState.VISIBLE, timeout_ms))
        self.driver.clear(handle, force=force)
        self.driver.fill(handle, text, force=force)

    def get_text(self, target: Target, timeout_ms: int) -> str:
        handle = self.wait_for_state(target, WaitSpec(WaitState.ATTACHED, timeout_ms))
        return self.driver.text_of(handle)

    def assert_text(
        self,
        target: Target,
        expected: str,
        timeout_ms: int,
        *,
        mode: str = "exact",
    ) -> None:
        """Wait for the element text to equal, contain, or differ from ``expected``.

        Whitespace is collapsed on both sides before comparing.
        """

        wanted = normalize_text(expected)
        compare = {
            "exact": lambda actual: actual == wanted,
            "contains": lambda actual: wanted in actual,
            "not_exact": lambda actual: actual != wanted,
        }.get(mode)
        if compare is None:
            raise ValueError(f"Unsupported text assertion mode {mode!r}")
        self._assert_read(
            target,
            expected,
            timeout_ms,
            read=lambda handle: normalize_text(self.driver.text_of(handle)),
            compare=compare,
            verb={"exact": "equal", "contains": "contain", "not_exact": "differ from"}[mode],
        )

    def assert_value(self, target: Target, expected: str, timeout_ms: int) -> None:
        self._assert_read(
            target,
            expected,
            timeout_ms,
            read=self.driver.input_value,
            compare=lambda actual: actual == expected,
            verb="have value",
        )

    def _assert_read(
        self,
        target: Target,
        expected: str,
        timeout_ms: int,
        *,
        read: Callable[[Any], str],
        compare: Callable[[str], bool],
        verb: str,
    ) -> None:
        last: str | None = None

        def check(found: Sequence[Any]) -> tuple[bool, Any]:
            nonlocal last
            if not found:
                return False, None
            last = read(found[0])
            return compare(last), found[0]

        try:
            self.poll(target, check, timeout_ms, description=f"{verb} {expected!r}")
        except WaitTimeoutError as exc:
            raise TextMismatchError(exc.selector, expected, last, mode=verb) from exc
