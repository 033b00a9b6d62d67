# Shared page-object verbs built on the locator, wait and date helpers.
from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Sequence

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from pages.dates import DateFormatter, DateProfile
from pages.driver import Driver, PlaywrightDriver
from pages.errors import PageError, WaitTimeoutError
from pages.locators import aria_label_locator, build_locator, heading_locator, text_locator
from pages.results import Outcome
from pages.targets import Target, resolve_target
from pages.timeouts import DEFAULT_TIMEOUTS, TimeoutTable
from pages.waiter import DEFAULT_POLL_INTERVAL_MS, ElementWaiter, WaitSpec, WaitState, WaitStats

LOGGER = logging.getLogger("qa.pages")

# Errors a soft verb reports through its Outcome instead of raising.
SOFT_ERRORS = (PageError, PlaywrightError, TimeoutError, ValueError, OSError)


class BasePage:
    """Base class for page objects with timeout-aware, text-driven helpers.

    Every verb resolves its target once, waits through ``ElementWaiter`` and
    takes ``timeout_ms`` to override the default from ``self.timeouts``.
    """

    CLICK_PRE_DELAY_MS = 1_000
    HOVER_SETTLE_MS = 1_000

    def __init__(
        self,
        page: Page | Driver,
        *,
        timeouts: TimeoutTable = DEFAULT_TIMEOUTS,
        formatter: DateFormatter | None = None,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        stats: WaitStats | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(page, Driver):
            self.driver = page
            self.page = getattr(page, "page", None)
        else:
            self.driver = PlaywrightDriver(page)
            self.page = page
        self.timeouts = timeouts
        self.formatter = formatter or DateFormatter()
        self.stats = stats
        self.waiter = ElementWaiter(
            self.driver, poll_interval_ms=poll_interval_ms, clock=clock, stats=stats
        )

    def _wait(
        self,
        target: Target,
        state: WaitState,
        verb: str,
        timeout_ms: int | None,
        position: int | None = None,
    ) -> Any:
        spec = WaitSpec(state, self.timeouts.resolve(verb, timeout_ms))
        return self.waiter.wait_for_state(resolve_target(target, position), spec)

    def _soft_failure(self, event: str, exc: BaseException, **fields: Any) -> None:
        if self.stats is not None:
            self.stats.soft_failures += 1
        LOGGER.warning(event, extra={"event": event, "error": str(exc), **fields})

    def sleep(self, ms: int = 10_000) -> None:
        self.driver.wait_timeout(ms)

    # -- waits ---------------------------------------------------------------

    def wait_for(self, target: Target, timeout_ms: int | None = None) -> Any:
        return self._wait(target, WaitState.VISIBLE, "wait", timeout_ms)

    def wait_for_attached(self, target: Target, timeout_ms: int | None = None) -> Any:
        return self._wait(target, WaitState.ATTACHED, "wait_attached", timeout_ms)

    def wait_for_detached(self, target: Target, timeout_ms: int | None = None) -> None:
        self._wait(target, WaitState.DETACHED, "wait_detached", timeout_ms)

    def wait_for_visible(self, target: Target, timeout_ms: int | None = None) -> Any:
        return self._wait(target, WaitState.VISIBLE, "wait_visible", timeout_ms)

    def wait_for_hidden(self, target: Target, timeout_ms: int | None = None) -> None:
        self._wait(target, WaitState.HIDDEN, "wait_hidden", timeout_ms)

    def wait_for_visible_position(
        self, target: Target, position: int = 1, timeout_ms: int | None = None
    ) -> Any:
        return self._wait(target, WaitState.VISIBLE, "visible_position", timeout_ms, position)

    def not_visible(self, target: Target, position: int = 1, timeout_ms: int | None = None) -> None:
        self._wait(target, WaitState.HIDDEN, "not_visible", timeout_ms, position)

    def _check_state(self, target: Target, state: WaitState, verb: str, timeout_ms: int | None) -> bool:
        try:
            self._wait(target, state, verb, timeout_ms)
        except WaitTimeoutError:
            return False
        except (PageError, PlaywrightError) as exc:
            self._soft_failure("state_check_failed", exc, selector=str(target), state=state.value)
            return False
        return True

    def is_displayed(self, target: Target, timeout_ms: int | None = None) -> bool:
        """Return whether the element shows up within the budget, without raising."""
        return self._check_state(target, WaitState.VISIBLE, "is_displayed", timeout_ms)

    def is_disappeared(self, target: Target, timeout_ms: int | None = None) -> bool:
        """Return whether the element is hidden or detached within the budget."""
        return self._check_state(target, WaitState.HIDDEN, "is_disappeared", timeout_ms)

    def is_text(self, text: str, contains: bool = False, timeout_ms: int | None = None) -> bool:
        return self._check_state(text_locator(text, contains), WaitState.VISIBLE, "is_text", timeout_ms)

    def wait_for_text(self, text: str, contains: bool = False, timeout_ms: int | None = None) -> Any:
        return self._wait(text_locator(text, contains), WaitState.VISIBLE, "wait_text", timeout_ms)

    # -- clicks and input ----------------------------------------------------

    def _click(
        self,
        target: Target,
        verb: str,
        timeout_ms: int | None,
        *,
        force: bool,
        pre_delay: bool = False,
        hover: bool = False,
    ) -> None:
        if pre_delay:
            self.driver.wait_timeout(self.CLICK_PRE_DELAY_MS)
        budget = self.timeouts.resolve(verb, timeout_ms)
        self.waiter.click(
            target,
            budget,
            enabled_timeout_ms=min(self.timeouts.click_enabled, budget),
            force=force,
            hover=hover,
        )

    def click_element(self, target: Target, force: bool = True, timeout_ms: int | None = None) -> None:
        """Pause briefly, then click once the element is visible and enabled."""
        self._click(target, "click", timeout_ms, force=force, pre_delay=True)

    def click_element_fast(
        self, target: Target, force: bool = True, timeout_ms: int | None = None
    ) -> None:
        self._click(target, "click_fast", timeout_ms, force=force)

    def click_element_hover(
        self, target: Target, force: bool = True, timeout_ms: int | None = None
    ) -> None:
        self._click(target, "click_hover", timeout_ms, force=force, pre_delay=True, hover=True)

    def click_element_position(
        self, target: Target, position: int = 1, force: bool = True, timeout_ms: int | None = None
    ) -> None:
        self.driver.wait_timeout(self.CLICK_PRE_DELAY_MS)
        handle = self._wait(target, WaitState.ENABLED, "click_enabled", timeout_ms, position)
        self.driver.click(handle, force=force)

    def click_text(self, text: str, contains: bool = False, timeout_ms: int | None = None) -> None:
        self._click(text_locator(text, contains), "click_text", timeout_ms, force=False)

    def click_custom(
        self, tag: str, text: str, position: int = 1, timeout_ms: int | None = None
    ) -> None:
        """Click the Nth ``tag`` element whose text contains ``text``."""
        locator = build_locator(text, tag=tag, position=position)
        self.waiter.click(
            locator,
            self.timeouts.resolve("click_custom", timeout_ms),
            enabled_timeout_ms=self.timeouts.state_check,
        )

    def click_custom_exact(self, tag: str, text: str, timeout_ms: int | None = None) -> None:
        locator = build_locator(text, tag=tag, mode="exact")
        self._click(locator, "click_custom_exact", timeout_ms, force=False)

    def click_the_span(self, text: str, timeout_ms: int | None = None) -> None:
        self._click(build_locator(text, tag="span", mode="exact"), "click_span", timeout_ms, force=False)

    def click_the_div(self, text: str, timeout_ms: int | None = None) -> None:
        self._click(build_locator(text, tag="div"), "click_div", timeout_ms, force=False)

    def hover_locator(self, target: Target, position: int = 1, timeout_ms: int | None = None) -> None:
        handle = self._wait(target, WaitState.VISIBLE, "wait_visible", timeout_ms, position)
        self.driver.hover(handle)
        self.driver.wait_timeout(self.HOVER_SETTLE_MS)

    def input_text(
        self, target: Target, value: str, force: bool = True, timeout_ms: int | None = None
    ) -> None:
        """Wait for the field, clear it, then fill in ``value``."""
        self.waiter.fill(target, value, self.timeouts.resolve("input_text", timeout_ms), force=force)

    # -- text and state assertions -------------------------------------------

    def verify(
        self, tag: str, text: str, position: int = 1, timeout_ms: int | None = None
    ) -> None:
        locator = build_locator(text, tag=tag, position=position)
        self._wait(locator, WaitState.VISIBLE, "verify", timeout_ms)

    def not_verify(
        self, tag: str, text: str, position: int = 1, timeout_ms: int | None = None
    ) -> None:
        locator = build_locator(text, tag=tag, position=position)
        self._wait(locator, WaitState.HIDDEN, "not_verify", timeout_ms)

    def verify_text_div(self, text: str, position: int | None = None, timeout_ms: int | None = None) -> None:
        locator = build_locator(text, tag="div", position=position)
        self._wait(locator, WaitState.VISIBLE, "verify_text_div", timeout_ms)

    def is_visible_text(
        self, tag: str, text: str, position: int | None = None, timeout_ms: int | None = None
    ) -> None:
        locator = build_locator(text, tag=tag, position=position)
        self._wait(locator, WaitState.VISIBLE, "verify_text", timeout_ms)

    def verify_text_span(self, text: str, position: int | None = None, timeout_ms: int | None = None) -> None:
        self.is_visible_text("span", text, position, timeout_ms)

    def verify_text_p(self, text: str, timeout_ms: int | None = None) -> None:
        self.is_visible_text("p", text, timeout_ms=timeout_ms)

    def verify_label(self, text: str, timeout_ms: int | None = None) -> None:
        self.is_visible_text("label", text, timeout_ms=timeout_ms)

    def verify_heading(self, level: int, text: str, timeout_ms: int | None = None) -> None:
        self._wait(heading_locator(level, text), WaitState.VISIBLE, "verify_text", timeout_ms)

    def verify_list(self, target: Target, position: int, timeout_ms: int | None = None) -> None:
        self._wait(target, WaitState.VISIBLE, "verify_list", timeout_ms, position)

    def not_verify_list(self, target: Target, position: int, timeout_ms: int | None = None) -> None:
        self._wait(target, WaitState.HIDDEN, "not_verify_list", timeout_ms, position)

    def locator_have_text(
        self, target: Target, text: str, position: int = 1, timeout_ms: int | None = None
    ) -> None:
        self.waiter.assert_text(
            resolve_target(target, position), text, self.timeouts.resolve("text_match", timeout_ms)
        )

    def locator_contain_text(
        self, target: Target, text: str, position: int = 1, timeout_ms: int | None = None
    ) -> None:
        self.waiter.assert_text(
            resolve_target(target, position),
            text,
            self.timeouts.resolve("text_match", timeout_ms),
            mode="contains",
        )

    def locator_not_have_text(self, target: Target, text: str, timeout_ms: int | None = None) -> None:
        self.waiter.assert_text(
            target, text, self.timeouts.resolve("text_mismatch", timeout_ms), mode="not_exact"
        )

    def verify_value(self, target: Target, value: str, timeout_ms: int | None = None) -> None:
        self.waiter.assert_value(target, value, self.timeouts.resolve("verify_value", timeout_ms))

    def is_disabled(self, target: Target, timeout_ms: int | None = None) -> None:
        self._wait(target, WaitState.VISIBLE, "wait_visible", timeout_ms)
        self._wait(target, WaitState.DISABLED, "state_check", timeout_ms)

    def is_enabled(self, target: Target, timeout_ms: int | None = None) -> None:
        self._wait(target, WaitState.VISIBLE, "wait_visible", timeout_ms)
        self._wait(target, WaitState.ENABLED, "state_check", timeout_ms)

    def is_read_only(self, target: Target, timeout_ms: int | None = None) -> None:
        self.waiter.wait_until(
            target,
            lambda handle: self.driver.attribute(handle, "readonly") is not None,
            self.timeouts.resolve("read_only", timeout_ms),
            description="readonly",
        )

    # -- reads ---------------------------------------------------------------

    def count(self, target: Target) -> int:
        resolved = resolve_target(target)
        return len(self.waiter.candidates(resolved))

    def get_text(self, target: Target, timeout_ms: int | None = None) -> str:
        return self.waiter.get_text(target, self.timeouts.resolve("read", timeout_ms))

    def get_texts(self, target: Target, timeout_ms: int | None = None) -> list[str]:
        """Text of every current match, once at least one is attached."""
        self._wait(target, WaitState.ATTACHED, "read", timeout_ms)
        resolved = resolve_target(target)
        return [self.driver.text_of(handle) for handle in self.waiter.candidates(resolved)]

    def get_text_from_text(
        self, text: str, contains: bool = False, timeout_ms: int | None = None
    ) -> str:
        return self.get_text(text_locator(text, contains), timeout_ms)

    def get_text_content(
        self, target: Target, position: int = 1, timeout_ms: int | None = None
    ) -> str:
        """Text of the Nth match; waits until exactly one element is selected."""
        handle = self.waiter.poll(
            resolve_target(target, position),
            lambda found: (len(found) == 1, found[0] if found else None),
            self.timeouts.resolve("read", timeout_ms),
            description="exactly one match",
        )
        return self.driver.text_of(handle)

    def get_attribute(self, target: Target, name: str, timeout_ms: int | None = None) -> str:
        handle = self._wait(target, WaitState.ATTACHED, "read", timeout_ms)
        return self.driver.attribute(handle, name) or ""

    def get_attribute_from_text(
        self, text: str, name: str, contains: bool = False, timeout_ms: int | None = None
    ) -> str:
        return self.get_attribute(text_locator(text, contains), name, timeout_ms)

    def get_value(
        self, target: Target, checkbox: bool = False, timeout_ms: int | None = None
    ) -> str | bool:
        handle = self._wait(target, WaitState.ATTACHED, "read", timeout_ms)
        if checkbox:
            return self.driver.is_checked(handle)
        return self.driver.input_value(handle)

    # -- soft steps ----------------------------------------------------------

    def upload_file(
        self, target: Target, paths: str | Sequence[str], timeout_ms: int | None = None
    ) -> Outcome[bool]:
        """Attach files to a file input; failure is reported, not raised."""
        files = [paths] if isinstance(paths, str) else list(paths)
        try:
            handle = self._wait(target, WaitState.ATTACHED, "upload", timeout_ms)
            self.driver.set_files(handle, files)
        except SOFT_ERRORS as exc:
            self._soft_failure("upload_failed", exc, selector=str(target), files=files)
            return Outcome.failure(False, exc)
        return Outcome.success(True)

    def wait_for_response(
        self, endpoint: str, status: int = 200, timeout_ms: int | None = None
    ) -> Outcome[Any]:
        """Wait for a response whose URL contains ``endpoint``; return its JSON body."""
        budget = self.timeouts.resolve("response", timeout_ms)
        try:
            response = self.driver.wait_for_response(
                lambda resp: endpoint in resp.url and resp.status == status, budget
            )
            body = json.loads(response.body())
        except SOFT_ERRORS as exc:
            self._soft_failure(
                "response_wait_failed", exc, endpoint=endpoint, status=status, timeout_ms=budget
            )
            return Outcome.failure(False, exc)
        return Outcome.success(body)

    def wait_for_event(self, event: str = "popup", timeout_ms: int | None = None) -> Outcome[Any]:
        """Wait for a page event such as ``popup``; ``Outcome.value`` is False on failure."""
        budget = self.timeouts.resolve("event", timeout_ms)
        try:
            payload = self.driver.wait_for_event(event, budget)
        except SOFT_ERRORS as exc:
            self._soft_failure("event_wait_failed", exc, page_event=event, timeout_ms=budget)
            return Outcome.failure(False, exc)
        return Outcome.success(payload)

    # -- dates ---------------------------------------------------------------

    def format_date(self, value: Any, profile: DateProfile | str, month_chars: int = 4) -> str:
        return self.formatter.format(value, profile, month_chars=month_chars)

    def select_birthdate_18(self, timeout_ms: int | None = None) -> str:
        """Click the date-picker day that makes the user exactly 18; return its label."""
        label = self.formatter.format(None, DateProfile.LONG)
        self.click_element(aria_label_locator(label), timeout_ms=timeout_ms)
        return label
