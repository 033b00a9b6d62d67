"""Default timeout per page verb, in milliseconds.

Suites built on these helpers are tuned to the exact values below; change
them through ``TimeoutTable.with_overrides`` or per call, not here.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Mapping


@dataclass(frozen=True)
class TimeoutTable:
    wait: int = 10_000
    wait_attached: int = 10_000
    wait_detached: int = 10_000
    wait_visible: int = 30_000
    wait_hidden: int = 10_000
    visible_position: int = 25_000
    not_visible: int = 20_000
    is_displayed: int = 10_000
    is_disappeared: int = 50_000
    is_text: int = 10_000
    wait_text: int = 10_000
    click: int = 30_000
    click_fast: int = 30_000
    click_hover: int = 30_000
    click_enabled: int = 15_000
    click_text: int = 10_000
    click_custom: int = 30_000
    click_custom_exact: int = 25_000
    click_span: int = 30_000
    click_div: int = 20_000
    input_text: int = 30_000
    verify: int = 25_000
    not_verify: int = 20_000
    verify_text_div: int = 25_000
    verify_text: int = 20_000
    verify_list: int = 30_000
    not_verify_list: int = 20_000
    text_match: int = 30_000
    text_mismatch: int = 20_000
    verify_value: int = 20_000
    state_check: int = 25_000
    read_only: int = 20_000
    read: int = 10_000
    upload: int = 10_000
    response: int = 30_000
    event: int = 10_000

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"Timeout {item.name!r} must be a positive integer, got {value!r}")

    @classmethod
    def verbs(cls) -> list[str]:
        return [item.name for item in fields(cls)]

    def with_overrides(self, overrides: Mapping[str, int]) -> TimeoutTable:
        unknown = set(overrides) - set(self.verbs())
        if unknown:
            raise ValueError(f"Unknown timeout verbs: {sorted(unknown)}")
        return replace(self, **dict(overrides))

    def resolve(self, verb: str, override: int | None = None) -> int:
        """Return the per-call override when given, else the table default."""

        if override is not None:
            if override <= 0:
                raise ValueError(f"Timeout for {verb!r} must be > 0, got {override}")
            return int(override)
        return getattr(self, verb)


DEFAULT_TIMEOUTS = TimeoutTable()


def parse_timeout_overrides(value: str) -> dict[str, int]:
    """Parse ``"click=45000,fill=5000"`` into a verb -> ms mapping."""

    overrides: dict[str, int] = {}
    for chunk in value.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        verb, sep, raw_ms = chunk.partition("=")
        if not sep:
            raise ValueError(f"Timeout override must be VERB=MS, got {chunk!r}")
        try:
            overrides[verb.strip()] = int(raw_ms)
        except ValueError as exc:
            raise ValueError(f"Invalid timeout for {verb.strip()!r}: {raw_ms!r}") from exc
    return overrides
