"""In-memory Driver used by the unit tests.

Selectors are plain dictionary keys; ``(key)[N]`` and ``key >> nth=I``
narrow to one registered element. Every ``wait_timeout`` advances a fake clock and fires
any scheduled DOM changes that have come due, so waits are deterministic.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

_POSITIONAL = re.compile(r"^\((?P<inner>.*)\)\[(?P<position>\d+)\]$", re.S)
_NTH = re.compile(r"^(?P<inner>.*) >> nth=(?P<index>\d+)$", re.S)


@dataclass(eq=False)
class FakeElement:
    text: str = ""
    visible: bool = True
    enabled: bool = True
    attached: bool = True
    value: str = ""
    checked: bool = False
    attributes: dict[str, str] = field(default_factory=dict)
    files: list[str] = field(default_factory=list)
    clicks: int = 0
    hovers: int = 0


@dataclass
class FakeResponse:
    url: str
    status: int = 200
    payload: bytes = b"{}"

    def body(self) -> bytes:
        return self.payload


class FakeClock:
    """Monotonic clock counted in whole milliseconds."""

    def __init__(self) -> None:
        self.ms = 0

    def __call__(self) -> float:
        return self.ms / 1000

    def advance(self, ms: int) -> None:
        self.ms += ms


class FakeDriver:
    def __init__(self) -> None:
        self.clock = FakeClock()
        self.elements: dict[str, list[FakeElement]] = {}
        self.queries: list[str] = []
        self.sleeps: list[int] = []
        self.actions: list[tuple[str, Any]] = []
        self.responses: list[FakeResponse] = []
        self.events: dict[str, list[Any]] = {}
        self._scheduled: list[tuple[int, Callable[[], None]]] = []

    # -- scripting -----------------------------------------------------------

    def add(self, selector: str, **attrs: Any) -> FakeElement:
        element = FakeElement(**attrs)
        self.elements.setdefault(selector, []).append(element)
        return element

    def after(self, ms: int, change: Callable[[], None]) -> None:
        """Run ``change`` once the fake clock has advanced ``ms`` from now."""
        self._scheduled.append((self.clock.ms + ms, change))

    def _run_due(self) -> None:
        due = [item for item in self._scheduled if item[0] <= self.clock.ms]
        self._scheduled = [item for item in self._scheduled if item[0] > self.clock.ms]
        for _, change in due:
            change()

    @property
    def elapsed_ms(self) -> int:
        return self.clock.ms

    # -- Driver --------------------------------------------------------------

    def query(self, selector: str) -> list[FakeElement]:
        self.queries.append(selector)
        match = _POSITIONAL.match(selector)
        if match and match.group("inner") in self.elements:
            found = [e for e in self.elements[match.group("inner")] if e.attached]
            position = int(match.group("position"))
            return found[position - 1 : position] if position >= 1 else []
        match = _NTH.match(selector)
        if match:
            found = [e for e in self.elements.get(match.group("inner"), []) if e.attached]
            index = int(match.group("index"))
            return found[index : index + 1]
        return [e for e in self.elements.get(selector, []) if e.attached]

    def is_attached(self, handle: FakeElement) -> bool:
        return handle.attached

    def is_visible(self, handle: FakeElement) -> bool:
        return handle.attached and handle.visible

    def is_enabled(self, handle: FakeElement) -> bool:
        return handle.enabled

    def is_checked(self, handle: FakeElement) -> bool:
        return handle.checked

    def click(self, handle: FakeElement, *, force: bool = False) -> None:
        if not handle.attached:
            raise PlaywrightError("Element is not attached to the DOM")
        handle.clicks += 1
        self.actions.append(("click", handle))

    def hover(self, handle: FakeElement) -> None:
        handle.hovers += 1
        self.actions.append(("hover", handle))

    def fill(self, handle: FakeElement, text: str, *, force: bool = False) -> None:
        handle.value = text
        self.actions.append(("fill", text))

    def clear(self, handle: FakeElement, *, force: bool = False) -> None:
        handle.value = ""
        self.actions.append(("clear", handle))

    def text_of(self, handle: FakeElement) -> str:
        return handle.text

    def input_value(self, handle: FakeElement) -> str:
        return handle.value

    def attribute(self, handle: FakeElement, name: str) -> str | None:
        return handle.attributes.get(name)

    def set_files(self, handle: FakeElement, paths: Sequence[str]) -> None:
        if handle.attributes.get("type") != "file":
            raise PlaywrightError("Node is not an HTMLInputElement")
        handle.files = list(paths)

    def wait_timeout(self, ms: int) -> None:
        self.sleeps.append(ms)
        self.clock.advance(ms)
        self._run_due()

    def wait_for_response(self, predicate: Callable[[Any], bool], timeout_ms: int) -> FakeResponse:
        for response in self.responses:
            if predicate(response):
                return response
        self.clock.advance(timeout_ms)
        raise PlaywrightTimeoutError(f"Timeout {timeout_ms}ms exceeded while waiting for event \"response\"")

    def wait_for_event(self, event: str, timeout_ms: int) -> Any:
        pending = self.events.get(event)
        if pending:
            return pending.pop(0)
        self.clock.advance(timeout_ms)
        raise PlaywrightTimeoutError(f"Timeout {timeout_ms}ms exceeded while waiting for event \"{event}\"")
