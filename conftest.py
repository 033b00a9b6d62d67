"""Pytest entrypoint: settings, browser fixtures, page helpers, logging and metrics.

Main flow: resolve settings once, share one Playwright browser per session,
give each browser test its own context/page wrapped in a BasePage, then
publish structured logs and Prometheus metrics via hooks.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import time
from typing import Generator

import pytest
from playwright.sync_api import Browser, Page, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from config import BROWSER_CHOICES, LOG_LEVELS, MODE_CHOICES, Settings, get_settings
from metrics import SessionMetrics, write_metrics
from pages.base_page import BasePage
from pages.dates import DateFormatter
from pages.waiter import WaitStats
from qa_logging import setup_logging

try:
    from pytest_metadata.plugin import metadata_key
except ImportError:  # pragma: no cover - pytest-html/pytest-metadata not installed
    metadata_key = None

LOGGER = logging.getLogger("qa")
_session_start: float | None = None
_session_results = {"passed": 0, "failed": 0, "skipped": 0}
_counted_nodeids: set[str] = set()
_wait_stats = WaitStats()


def _sanitize_nodeid(nodeid: str) -> str:
    """Convert pytest nodeids into filesystem-safe artifact directory names."""
    return re.sub(r"[^\w.-]+", "__", nodeid).strip("._") or "test"


def _should_persist(mode: str, failed: bool) -> bool:
    if mode == "on-failure":
        return failed
    return mode == "on"


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register CLI options layered on top of env/default config."""
    group = parser.getgroup("qa-pages")
    group.addoption("--browser", dest="qa_browser", choices=sorted(BROWSER_CHOICES), default=None,
                    help="Browser engine for browser-marked tests")
    group.addoption("--headed", action="store_const", const=False, dest="headless", default=None,
                    help="Run headed (same as HEADLESS=false)")
    group.addoption("--headless", action="store_const", const=True, dest="headless",
                    help="Force headless mode")
    group.addoption("--slowmo-ms", type=int, dest="slowmo_ms", default=None,
                    help="Playwright launch slow motion delay in milliseconds")
    group.addoption("--viewport", dest="viewport", default=None,
                    help="Viewport size as WIDTHxHEIGHT (e.g. 1280x720)")
    group.addoption("--artifacts-dir", dest="artifacts_dir", default=None,
                    help="Directory for per-test screenshots and traces")
    group.addoption("--pw-trace", dest="pw_trace", choices=sorted(MODE_CHOICES), default=None,
                    help="Playwright tracing policy: on|off|on-failure")
    group.addoption("--screenshot", dest="screenshot", choices=sorted(MODE_CHOICES), default=None,
                    help="Screenshot capture policy: on|off|on-failure")
    group.addoption("--timeout-ms", type=int, dest="timeout_ms", default=None,
                    help="Browser context default timeout in milliseconds")
    group.addoption("--locale", dest="locale", default=None,
                    help="Browser context locale (default en-US)")
    group.addoption("--timezone-id", dest="timezone_id", default=None,
                    help="Browser context timezone (default Asia/Ho_Chi_Minh)")
    group.addoption("--display-timezone", dest="display_timezone", default=None,
                    help="Timezone used by date display helpers (default: --timezone-id)")
    group.addoption("--poll-interval-ms", type=int, dest="poll_interval_ms", default=None,
                    help="Element state polling interval in milliseconds")
    group.addoption("--page-timeouts", dest="page_timeouts", default=None,
                    help="Per-verb timeout overrides, e.g. click=45000,verify=5000")
    group.addoption("--qa-log-level", dest="qa_log_level", choices=sorted(LOG_LEVELS), default=None,
                    help="Level for the JSON log handler")


def pytest_configure(config: pytest.Config) -> None:
    """Register markers and enrich pytest-html metadata when the plugin is present."""
    config.addinivalue_line("markers", "unit: page helpers against an in-memory driver")
    config.addinivalue_line("markers", "browser: page helpers against a real Playwright browser")

    if metadata_key is None:
        return

    settings = get_settings(config)
    metadata = config.stash.setdefault(metadata_key, {})
    metadata["browser"] = settings.browser_name
    metadata["headless"] = str(settings.headless)
    metadata["display_timezone"] = settings.display_timezone
    metadata["poll_interval_ms"] = str(settings.poll_interval_ms)
    metadata["commit_sha"] = os.getenv("GITHUB_SHA", "")[:12] or "local"


@pytest.fixture(scope="session")
def settings(pytestconfig: pytest.Config) -> Settings:
    """Session-cached settings fixture used by browser and page fixtures."""
    return get_settings(pytestconfig)


@pytest.fixture(scope="session", autouse=True)
def _init_logging(settings: Settings) -> None:
    setup_logging(settings.log_level)


@pytest.fixture(scope="session")
def wait_stats() -> WaitStats:
    """Session-wide wait counters, exported with the metrics file."""
    return _wait_stats


def pytest_sessionstart(session: pytest.Session) -> None:
    global _session_start
    _session_start = time.perf_counter()


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    """Publish Prometheus textfile metrics if METRICS_PATH is configured."""
    metrics_path = os.getenv("METRICS_PATH")
    if _session_start is None or not metrics_path:
        return
    summary = SessionMetrics(
        total=session.testscollected or 0,
        passed=_session_results["passed"],
        failed=_session_results["failed"],
        skipped=_session_results["skipped"],
        duration_seconds=time.perf_counter() - _session_start,
        waits=_wait_stats,
    )
    write_metrics(metrics_path, summary)


@pytest.fixture(scope="session")
def playwright_instance() -> Generator[Playwright, None, None]:
    with sync_playwright() as playwright:
        yield playwright


@pytest.fixture(scope="session")
def browser(settings: Settings, playwright_instance: Playwright) -> Generator[Browser, None, None]:
    """Session-scoped browser; browser tests skip when the engine is not installed."""
    browser_type = getattr(playwright_instance, settings.browser_name)
    try:
        launched = browser_type.launch(headless=settings.headless, slow_mo=settings.slowmo_ms)
    except PlaywrightError as exc:
        pytest.skip(f"{settings.browser_name} is not available: {exc.message}")
    yield launched
    launched.close()


@pytest.fixture
def page(request: pytest.FixtureRequest, browser: Browser, settings: Settings) -> Generator[Page, None, None]:
    """Per-test context/page; keeps a screenshot and trace according to policy."""
    context = browser.new_context(
        viewport=settings.viewport,
        locale=settings.locale,
        timezone_id=settings.timezone_id,
    )
    context.set_default_timeout(settings.timeout_ms)
    if settings.trace != "off":
        context.tracing.start(screenshots=True, snapshots=True)
    page = context.new_page()

    yield page

    rep_call = getattr(request.node, "rep_call", None)
    failed = bool(rep_call and rep_call.failed)
    test_dir = settings.artifacts_dir / _sanitize_nodeid(request.node.nodeid)
    kept: dict[str, str] = {}
    try:
        if _should_persist(settings.screenshot, failed):
            test_dir.mkdir(parents=True, exist_ok=True)
            page.screenshot(path=str(test_dir / "screenshot.png"), full_page=True)
            kept["screenshot"] = str(test_dir / "screenshot.png")
        if settings.trace != "off":
            if _should_persist(settings.trace, failed):
                test_dir.mkdir(parents=True, exist_ok=True)
                context.tracing.stop(path=str(test_dir / "trace.zip"))
                kept["trace"] = str(test_dir / "trace.zip")
            else:
                context.tracing.stop()
    except PlaywrightError:
        LOGGER.exception("artifact_capture_failed", extra={"test_nodeid": request.node.nodeid})
    finally:
        context.close()
    request.node._qa_artifacts = kept  # type: ignore[attr-defined]
    if not kept and test_dir.exists() and not any(test_dir.iterdir()):
        shutil.rmtree(test_dir, ignore_errors=True)


@pytest.fixture
def base_page(page: Page, settings: Settings, wait_stats: WaitStats) -> BasePage:
    """BasePage over the per-test page, configured from settings."""
    return BasePage(
        page,
        timeouts=settings.timeouts,
        formatter=DateFormatter(settings.display_timezone),
        poll_interval_ms=settings.poll_interval_ms,
        stats=wait_stats,
    )


def pytest_runtest_setup(item: pytest.Item) -> None:
    item._qa_test_started_at = time.perf_counter()  # type: ignore[attr-defined]
    LOGGER.info(
        "test_start",
        extra={
            "event": "test_start",
            "test_nodeid": item.nodeid,
            "worker": os.getenv("PYTEST_XDIST_WORKER", "master"),
        },
    )


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo[None]):
    """Keep per-phase reports on the item and emit a structured end event."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)
    if report.when != "teardown":
        return

    pytest_html = item.config.pluginmanager.getplugin("html")
    artifacts: dict[str, str] = getattr(item, "_qa_artifacts", {})
    if pytest_html and artifacts:
        extras = list(getattr(report, "extras", []))
        if "screenshot" in artifacts:
            extras.append(pytest_html.extras.image(artifacts["screenshot"]))
        if "trace" in artifacts:
            extras.append(pytest_html.extras.url(artifacts["trace"], name="trace.zip"))
        report.extras = extras

    setup_report = getattr(item, "rep_setup", None)
    call_report = getattr(item, "rep_call", None)
    if setup_report is not None and setup_report.failed:
        outcome_name = "error"
    elif call_report is not None:
        outcome_name = call_report.outcome
    elif setup_report is not None and setup_report.skipped:
        outcome_name = "skipped"
    else:
        outcome_name = "error" if report.failed else report.outcome
    started_at = getattr(item, "_qa_test_started_at", None)
    LOGGER.info(
        "test_end",
        extra={
            "event": "test_end",
            "test_nodeid": item.nodeid,
            "outcome": outcome_name,
            "duration_ms": int((time.perf_counter() - started_at) * 1000) if started_at else None,
            "artifacts": artifacts,
        },
    )


def pytest_runtest_logreport(report: pytest.TestReport) -> None:
    """Count one aggregate outcome per test for the metrics export."""
    counts = report.when == "call" or (report.when == "setup" and report.skipped)
    if not counts or report.nodeid in _counted_nodeids:
        return
    _counted_nodeids.add(report.nodeid)
    if report.passed:
        _session_results["passed"] += 1
    elif report.failed:
        _session_results["failed"] += 1
    elif report.skipped:
        _session_results["skipped"] += 1


@pytest.hookimpl(optionalhook=True)
def pytest_html_report_title(report) -> None:
    report.title = "Page Helper Test Report"
