"""Driver capability consumed by the waiter, plus its Playwright adapter.

The helper layer never talks to Playwright directly: everything it needs
from a live document goes through the small ``Driver`` protocol below, which
keeps the polling logic testable against an in-memory fake.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence, runtime_checkable

from playwright.sync_api import ElementHandle, Page, Response


@runtime_checkable
class Driver(Protocol):
    def query(self, selector: str) -> list[Any]: ...

    def is_attached(self, handle: Any) -> bool: ...

    def is_visible(self, handle: Any) -> bool: ...

    def is_enabled(self, handle: Any) -> bool: ...

    def is_checked(self, handle: Any) -> bool: ...

    def click(self, handle: Any, *, force: bool = False) -> None: ...

    def hover(self, handle: Any) -> None: ...

    def fill(self, handle: Any, text: str, *, force: bool = False) -> None: ...

    def clear(self, handle: Any, *, force: bool = False) -> None: ...

    def text_of(self, handle: Any) -> str: ...

    def input_value(self, handle: Any) -> str: ...

    def attribute(self, handle: Any, name: str) -> str | None: ...

    def set_files(self, handle: Any, paths: Sequence[str]) -> None: ...

    def wait_timeout(self, ms: int) -> None: ...

    def wait_for_response(self, predicate: Callable[[Any], bool], timeout_ms: int) -> Any: ...

    def wait_for_event(self, event: str, timeout_ms: int) -> Any: ...


class PlaywrightDriver:
    """``Driver`` over a sync-API Playwright page."""

    def __init__(self, page: Page) -> None:
        self.page = page

    def query(self, selector: str) -> list[ElementHandle]:
        return self.page.query_selector_all(selector)

    def is_attached(self, handle: ElementHandle) -> bool:
        return bool(handle.evaluate("el => el.isConnected"))

    def is_visible(self, handle: ElementHandle) -> bool:
        return handle.is_visible()

    def is_enabled(self, handle: ElementHandle) -> bool:
        return handle.is_enabled()

    def is_checked(self, handle: ElementHandle) -> bool:
        return handle.is_checked()

    def click(self, handle: ElementHandle, *, force: bool = False) -> None:
        handle.click(force=force)

    def hover(self, handle: ElementHandle) -> None:
        handle.hover()

    def fill(self, handle: ElementHandle, text: str, *, force: bool = False) -> None:
        handle.fill(text, force=force)

    def clear(self, handle: ElementHandle, *, force: bool = False) -> None:
        handle.fill("", force=force)

    def text_of(self, handle: ElementHandle) -> str:
        return handle.text_content() or ""

    def input_value(self, handle: ElementHandle) -> str:
        return handle.input_value()

    def attribute(self, handle: ElementHandle, name: str) -> str | None:
        return handle.get_attribute(name)

    def set_files(self, handle: ElementHandle, paths: Sequence[str]) -> None:
        handle.set_input_files(list(paths))

    def wait_timeout(self, ms: int) -> None:
        self.page.wait_for_timeout(ms)

    def wait_for_response(
        self, predicate: Callable[[Response], bool], timeout_ms: int
    ) -> Response:
        return self.page.wait_for_event("response", predicate=predicate, timeout=timeout_ms)

    def wait_for_event(self, event: str, timeout_ms: int) -> Any:
        return self.page.wait_for_event(event, timeout=timeout_ms)
