"""
In-process telemetry for extraction, combining, tracking and injection.

Counters and timings never leave the process: events are written to the
package log and numbers are kept in memory for callers and tests to read.
Event fields must describe the operation (provider, counts, durations),
never message bodies or addresses.
"""

from __future__ import annotations

import contextlib
import time
from collections import Counter, defaultdict
from collections.abc import Iterator
from typing import Any

from inbox_triage.observability.logging import get_logger

logger = get_logger("inbox_triage.telemetry")

_counts: Counter[str] = Counter()
_timings_ms: defaultdict[str, list[float]] = defaultdict(list)


def log_event(event_name: str, **fields: Any) -> None:
    details = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
    logger.info("%s %s", event_name, details)


def counter(name: str, increment: int = 1) -> int:
    """Add ``increment`` to the named counter and return its new value."""
    _counts[name] += increment
    logger.debug("%s += %d (now %d)", name, increment, _counts[name])
    return _counts[name]


def get_counter(name: str) -> int:
    return _counts[name]


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """Record the wall time of the ``with`` body in milliseconds, even on failure."""
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        _timings_ms[metric_name].append(elapsed_ms)
        logger.debug("%s took %.1fms", metric_name, elapsed_ms)


def get_timings(metric_name: str) -> list[float]:
    return list(_timings_ms.get(metric_name, ()))


def reset() -> None:
    _counts.clear()
    _timings_ms.clear()
