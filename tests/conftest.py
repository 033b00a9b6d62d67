from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from pages.base_page import BasePage
from pages.dates import DateFormatter
from pages.waiter import WaitStats
from tests.fakes import FakeDriver

HCM = ZoneInfo("Asia/Ho_Chi_Minh")


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def stats() -> WaitStats:
    return WaitStats()


@pytest.fixture
def formatter() -> DateFormatter:
    """Formatter pinned to 2025-01-01 09:30 in Ho Chi Minh City."""
    return DateFormatter(now=lambda: datetime(2025, 1, 1, 9, 30, tzinfo=HCM))


@pytest.fixture
def fake_page(fake_driver: FakeDriver, formatter: DateFormatter, stats: WaitStats) -> BasePage:
    return BasePage(fake_driver, formatter=formatter, stats=stats, clock=fake_driver.clock)
