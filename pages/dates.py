"""Display-format helpers for timestamps shown in the UI under test.

All profiles render in one fixed timezone (``Asia/Ho_Chi_Minh`` unless
configured otherwise) with English month and weekday names taken from the
tables below, so output does not depend on the machine locale.

Formatting never raises: a bad timestamp yields the profile's sentinel
string and the error travels in the returned ``Outcome``.
"""

from __future__ import annotations

import logging
import random
import string
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable
from zoneinfo import ZoneInfo

from pages.errors import FormatError
from pages.results import Outcome

LOGGER = logging.getLogger("qa.dates")

DEFAULT_TIMEZONE = "Asia/Ho_Chi_Minh"
EIGHTEEN_YEARS_DAYS = 6575
INVALID_TIMESTAMP = "Invalid Timestamp"
INVALID_FORMAT = "Invalid Format"

MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
MONTHS_SHORT = tuple(name[:3] for name in MONTHS)
# British short names; September is "Sept".
MONTHS_SHORT_GB = tuple("Sept" if name == "September" else name[:3] for name in MONTHS)
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class DateProfile(str, Enum):
    LONG = "long"
    DATE_TIME = "date_time"
    DATE_TIME_ZONE = "date_time_zone"
    DATE_ONLY = "date_only"
    AS_OF = "as_of"

    @property
    def sentinel(self) -> str:
        if self in (DateProfile.DATE_TIME_ZONE, DateProfile.AS_OF):
            return INVALID_TIMESTAMP
        return ""


def parse_timestamp(value: Any) -> datetime:
    """Return an aware datetime; naive input is read as UTC.

    Accepts datetimes, ISO-8601 strings (``Z`` suffix or offset optional)
    and epoch milliseconds.
    """

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise FormatError(f"Epoch milliseconds out of range: {value!r}") from exc
    elif isinstance(value, str):
        text = value.strip()
        if text[-1:] in ("z", "Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise FormatError(f"Unparseable timestamp: {value!r}") from exc
    else:
        raise FormatError(f"Unsupported timestamp type {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def hour12(moment: datetime) -> tuple[int, str]:
    return moment.hour % 12 or 12, "AM" if moment.hour < 12 else "PM"


# Abbreviations an en-US browser prints for timeZoneName "short"; other zones
# render as a GMT offset there (London summer is "GMT+1", not "BST").
SHORT_ZONE_NAMES = frozenset(
    {"UTC", "EST", "EDT", "CST", "CDT", "MST", "MDT", "PST", "PDT", "AKST", "AKDT", "HST"}
)


def zone_label(moment: datetime) -> str:
    """Short zone name as an en-US browser shows it: ``EDT``, ``UTC``, ``GMT+7``, ``GMT+5:30``."""

    name = moment.tzname() or ""
    if name in SHORT_ZONE_NAMES:
        return name
    offset = moment.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds() // 60)
    if minutes == 0:
        return "GMT"
    sign = "+" if minutes > 0 else "-"
    hours, rest = divmod(abs(minutes), 60)
    return f"GMT{sign}{hours}" + (f":{rest:02d}" if rest else "")


def capitalize_first(text: str | None) -> str:
    if not text:
        return ""
    return text[0].upper() + text[1:]


def convert_null(value: Any) -> Any:
    return "--" if value is None else value


def random_string(length: int = 8) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))


class DateFormatter:
    """Formats timestamps into the display profiles in one timezone.

    ``now`` is injectable so the profiles anchored on the current instant
    stay deterministic in tests.
    """

    def __init__(
        self,
        timezone_name: str = DEFAULT_TIMEZONE,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.timezone_name = timezone_name
        self.tz = ZoneInfo(timezone_name)
        self._now = now

    def now(self) -> datetime:
        current = self._now() if self._now is not None else datetime.now(self.tz)
        if current.tzinfo is None:
            return current.replace(tzinfo=self.tz)
        return current.astimezone(self.tz)

    def localize(self, value: Any) -> datetime:
        # Plain dates are calendar days in the display zone, not UTC midnights.
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime(value.year, value.month, value.day, tzinfo=self.tz)
        return parse_timestamp(value).astimezone(self.tz)

    def eighteen_years_ago(self) -> date:
        return self.now().date() - timedelta(days=EIGHTEEN_YEARS_DAYS)

    def try_format(
        self,
        value: Any,
        profile: DateProfile | str,
        *,
        month_chars: int = 4,
    ) -> Outcome[str]:
        profile = DateProfile(profile)
        try:
            if profile is DateProfile.LONG and value is None:
                moment = self.localize(self.eighteen_years_ago())
            else:
                moment = self.localize(value)
            return Outcome.success(self._render(moment, profile, month_chars))
        except (FormatError, OverflowError, ValueError) as exc:
            error = exc if isinstance(exc, FormatError) else FormatError(str(exc))
            LOGGER.warning(
                "date_format_failed",
                extra={
                    "event": "date_format_failed",
                    "profile": profile.value,
                    "value": repr(value),
                    "error": str(error),
                },
            )
            return Outcome.failure(profile.sentinel, error)

    def format(self, value: Any, profile: DateProfile | str, *, month_chars: int = 4) -> str:
        return self.try_format(value, profile, month_chars=month_chars).value

    def _render(self, moment: datetime, profile: DateProfile, month_chars: int) -> str:
        month = MONTHS_SHORT[moment.month - 1]
        date_only = f"{month} {moment.day}, {moment.year}"
        hour, meridiem = hour12(moment)
        if profile is DateProfile.DATE_ONLY:
            return date_only
        if profile is DateProfile.DATE_TIME:
            return f"{date_only}, {hour}:{moment.minute:02d} {meridiem}"
        if profile is DateProfile.DATE_TIME_ZONE:
            return (
                f"{date_only}, {hour}:{moment.minute:02d}:{moment.second:02d} "
                f"{meridiem} {zone_label(moment)}"
            )
        if profile is DateProfile.AS_OF:
            short = MONTHS_SHORT_GB[moment.month - 1][: max(month_chars, 0)]
            return (
                f"as of {moment.day:02d} {short}, {moment.year} "
                f"at {hour}:{moment.minute:02d} {meridiem}"
            )
        weekday = WEEKDAYS[moment.weekday()]
        return f"{weekday}, {MONTHS[moment.month - 1]} {moment.day}, {moment.year}"

    def datetime_part(self, part: str) -> str | int:
        """Return one component of the current time in the display zone."""

        current = self.now()
        key = part.strip().lower()
        if key == "day":
            return f"{current.day:02d}"
        if key == "month":
            return f"{current.month:02d}"
        if key == "year":
            return current.year
        if key == "hour":
            return f"{hour12(current)[0]:02d}"
        if key == "minute":
            return current.minute
        if key == "second":
            return current.second
        LOGGER.warning("invalid_datetime_part", extra={"event": "invalid_datetime_part", "part": part})
        return INVALID_FORMAT

    def name_by_date(self, random_length: int = 6) -> str:
        """Unique-ish record name such as ``aes187ak3x9q2`` (day, month, random)."""

        current = self.now()
        return f"aes{current.day}{current.month}a{random_string(random_length)}"
