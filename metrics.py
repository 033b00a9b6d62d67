"""Prometheus textfile export of test outcomes and page wait statistics.

A fresh registry is built per write so repeated runs in one process never
share metric state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from pages.waiter import WaitStats


@dataclass(frozen=True)
class SessionMetrics:
    """Aggregate session counters exported at pytest session finish."""

    total: int
    passed: int
    failed: int
    skipped: int
    duration_seconds: float
    waits: WaitStats = field(default_factory=WaitStats)


_GAUGES = (
    ("qa_tests_total", "Total tests collected", lambda s: s.total),
    ("qa_tests_passed", "Passed tests", lambda s: s.passed),
    ("qa_tests_failed", "Failed tests", lambda s: s.failed),
    ("qa_tests_skipped", "Skipped tests", lambda s: s.skipped),
    (
        "qa_test_session_duration_seconds",
        "Total pytest session duration in seconds",
        lambda s: s.duration_seconds,
    ),
    ("qa_page_waits_total", "Element state waits started", lambda s: s.waits.waits),
    ("qa_page_waits_satisfied_total", "Element state waits that succeeded", lambda s: s.waits.satisfied),
    ("qa_page_wait_timeouts_total", "Element state waits that timed out", lambda s: s.waits.timeouts),
    (
        "qa_page_elements_not_found_total",
        "Timed-out waits where no element matched at all",
        lambda s: s.waits.not_found,
    ),
    (
        "qa_page_soft_failures_total",
        "Upload/response steps that failed without failing the test",
        lambda s: s.waits.soft_failures,
    ),
)


def render_metrics(summary: SessionMetrics) -> bytes:
    registry = CollectorRegistry()
    for name, documentation, read in _GAUGES:
        Gauge(name, documentation, registry=registry).set(read(summary))
    return generate_latest(registry)


def write_metrics(path: str | Path, summary: SessionMetrics) -> None:
    """Write metrics atomically to the Prometheus textfile collector path."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    # Write-then-rename so a scrape never sees a partial file.
    tmp_path = target.with_suffix(f"{target.suffix}.tmp")
    tmp_path.write_bytes(render_metrics(summary))
    tmp_path.replace(target)
