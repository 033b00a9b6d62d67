"""Runtime settings for the page helper layer and its pytest harness.

Values come from CLI options, then environment variables, then defaults, and
are frozen into one Settings object shared by fixtures, hooks and page
objects.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pages.dates import DEFAULT_TIMEZONE
from pages.timeouts import DEFAULT_TIMEOUTS, TimeoutTable, parse_timeout_overrides
from pages.waiter import DEFAULT_POLL_INTERVAL_MS

if TYPE_CHECKING:
    from pytest import Config

DEFAULT_BROWSER = "chromium"
DEFAULT_VIEWPORT = "1280x720"
DEFAULT_ARTIFACTS_DIR = "artifacts"
DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_TRACE_MODE = "off"
DEFAULT_SCREENSHOT_MODE = "on-failure"
DEFAULT_LOG_LEVEL = "INFO"
MODE_CHOICES = {"on", "off", "on-failure"}
BROWSER_CHOICES = {"chromium", "firefox", "webkit"}
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


@dataclass(frozen=True)
class Settings:
    """Resolved settings shared by fixtures, hooks and page objects."""

    browser_name: str = DEFAULT_BROWSER
    headless: bool = True
    slowmo_ms: int = 0
    viewport_width: int = 1280
    viewport_height: int = 720
    artifacts_dir: Path = Path(DEFAULT_ARTIFACTS_DIR)
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    trace: str = DEFAULT_TRACE_MODE
    screenshot: str = DEFAULT_SCREENSHOT_MODE
    locale: str = "en-US"
    timezone_id: str = DEFAULT_TIMEZONE
    display_timezone: str = DEFAULT_TIMEZONE
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    timeouts: TimeoutTable = field(default_factory=lambda: DEFAULT_TIMEOUTS)
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}


def _get_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_bool(value: str, *, name: str) -> bool:
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}")


def _parse_int(value: object, *, name: str, minimum: int = 0) -> int:
    if isinstance(value, int):
        parsed = value
    else:
        try:
            parsed = int(str(value))
        except ValueError as exc:
            raise ValueError(f"Invalid integer for {name}: {value!r}") from exc
    if parsed < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {parsed}")
    return parsed


def _parse_timezone(value: str, *, name: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone for {name}: {value!r}") from exc
    return value


def _parse_choice(value: str, *, name: str, choices: set[str]) -> str:
    if value not in choices:
        raise ValueError(f"Invalid {name} {value!r}; expected one of {sorted(choices)}")
    return value


def parse_viewport(value: str) -> tuple[int, int]:
    """Parse a WIDTHxHEIGHT viewport string into integer dimensions."""

    width_str, sep, height_str = value.lower().strip().partition("x")
    if not sep:
        raise ValueError(f"Viewport must be WIDTHxHEIGHT, got {value!r}")
    width = _parse_int(width_str, name="viewport width", minimum=1)
    height = _parse_int(height_str, name="viewport height", minimum=1)
    return width, height


def _pick(cli_value, env_value, default_value):
    if cli_value is not None:
        return cli_value
    if env_value is not None:
        return env_value
    return default_value


def build_settings(*, cli: dict[str, object] | None = None) -> Settings:
    """Merge CLI/env/defaults with precedence CLI > env > defaults."""

    cli = cli or {}

    browser_name = _parse_choice(
        str(_pick(cli.get("browser"), _get_env("BROWSER"), DEFAULT_BROWSER)).strip().lower(),
        name="browser",
        choices=BROWSER_CHOICES,
    )

    headless_cli = cli.get("headless")
    headless_env = _get_env("HEADLESS")
    if isinstance(headless_cli, bool):
        headless = headless_cli
    elif headless_env is not None:
        headless = _parse_bool(headless_env, name="HEADLESS")
    else:
        headless = True

    slowmo_ms = _parse_int(_pick(cli.get("slowmo_ms"), _get_env("SLOWMO_MS"), 0), name="SLOWMO_MS")
    viewport_width, viewport_height = parse_viewport(
        str(_pick(cli.get("viewport"), _get_env("VIEWPORT"), DEFAULT_VIEWPORT))
    )
    artifacts_dir = Path(
        str(_pick(cli.get("artifacts_dir"), _get_env("ARTIFACTS_DIR"), DEFAULT_ARTIFACTS_DIR))
    )
    timeout_ms = _parse_int(
        _pick(cli.get("timeout_ms"), _get_env("TIMEOUT_MS"), DEFAULT_TIMEOUT_MS),
        name="TIMEOUT_MS",
        minimum=1,
    )

    trace = _parse_choice(
        str(_pick(cli.get("trace"), _get_env("TRACE"), DEFAULT_TRACE_MODE)).lower(),
        name="trace mode",
        choices=MODE_CHOICES,
    )
    screenshot = _parse_choice(
        str(_pick(cli.get("screenshot"), _get_env("SCREENSHOT"), DEFAULT_SCREENSHOT_MODE)).lower(),
        name="screenshot mode",
        choices=MODE_CHOICES,
    )

    locale = str(_pick(cli.get("locale"), _get_env("LOCALE"), "en-US"))
    timezone_id = _parse_timezone(
        str(_pick(cli.get("timezone_id"), _get_env("TIMEZONE_ID"), DEFAULT_TIMEZONE)),
        name="TIMEZONE_ID",
    )
    # The display zone follows the browser zone unless set on its own.
    display_timezone = _parse_timezone(
        str(_pick(cli.get("display_timezone"), _get_env("DISPLAY_TIMEZONE"), timezone_id)),
        name="DISPLAY_TIMEZONE",
    )
    poll_interval_ms = _parse_int(
        _pick(cli.get("poll_interval_ms"), _get_env("POLL_INTERVAL_MS"), DEFAULT_POLL_INTERVAL_MS),
        name="POLL_INTERVAL_MS",
        minimum=1,
    )

    overrides_raw = _pick(cli.get("page_timeouts"), _get_env("PAGE_TIMEOUTS"), None)
    timeouts = DEFAULT_TIMEOUTS
    if overrides_raw:
        timeouts = DEFAULT_TIMEOUTS.with_overrides(parse_timeout_overrides(str(overrides_raw)))

    log_level = _parse_choice(
        str(_pick(cli.get("log_level"), _get_env("LOG_LEVEL"), DEFAULT_LOG_LEVEL)).upper(),
        name="log level",
        choices=LOG_LEVELS,
    )

    return Settings(
        browser_name=browser_name,
        headless=headless,
        slowmo_ms=slowmo_ms,
        viewport_width=viewport_width,
        viewport_height=viewport_height,
        artifacts_dir=artifacts_dir,
        timeout_ms=timeout_ms,
        trace=trace,
        screenshot=screenshot,
        locale=locale,
        timezone_id=timezone_id,
        display_timezone=display_timezone,
        poll_interval_ms=poll_interval_ms,
        timeouts=timeouts,
        log_level=log_level,
    )


_CLI_OPTIONS = {
    "browser": "qa_browser",
    "headless": "headless",
    "slowmo_ms": "slowmo_ms",
    "viewport": "viewport",
    "artifacts_dir": "artifacts_dir",
    "trace": "pw_trace",
    "screenshot": "screenshot",
    "timeout_ms": "timeout_ms",
    "locale": "locale",
    "timezone_id": "timezone_id",
    "display_timezone": "display_timezone",
    "poll_interval_ms": "poll_interval_ms",
    "page_timeouts": "page_timeouts",
    "log_level": "qa_log_level",
}


def get_settings(pytest_config: Config | None = None) -> Settings:
    """Return the cached Settings for a pytest session, or an env/default-only copy."""

    if pytest_config is None:
        return build_settings(cli=None)

    # Cached on the pytest config so hooks and fixtures agree on one view.
    cached = getattr(pytest_config, "_qa_settings_cache", None)
    if cached is not None:
        return cached

    cli_values = {
        key: pytest_config.getoption(dest, default=None) for key, dest in _CLI_OPTIONS.items()
    }
    settings = build_settings(cli=cli_values)
    pytest_config._qa_settings_cache = settings  # type: ignore[attr-defined]
    return settings
