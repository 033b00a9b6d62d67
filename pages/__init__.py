"""Page-object helpers: XPath builders, state waits and display-date formatting."""

from pages.base_page import BasePage
from pages.dates import DateFormatter, DateProfile
from pages.driver import Driver, PlaywrightDriver
from pages.errors import (
    ElementNotFoundError,
    FormatError,
    PageError,
    TextMismatchError,
    WaitTimeoutError,
)
from pages.locators import build_locator
from pages.results import Outcome
from pages.targets import Handle, Selector
from pages.timeouts import DEFAULT_TIMEOUTS, TimeoutTable
from pages.waiter import ElementWaiter, WaitSpec, WaitState, WaitStats

__all__ = [
    "BasePage",
    "DEFAULT_TIMEOUTS",
    "DateFormatter",
    "DateProfile",
    "Driver",
    "ElementNotFoundError",
    "ElementWaiter",
    "FormatError",
    "Handle",
    "Outcome",
    "PageError",
    "PlaywrightDriver",
    "Selector",
    "TextMismatchError",
    "TimeoutTable",
    "WaitSpec",
    "WaitState",
    "WaitStats",
    "WaitTimeoutError",
    "build_locator",
]
