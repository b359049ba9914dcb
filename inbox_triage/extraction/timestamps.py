"""
Timestamp Normalizer.

Webmail pages render dates as full datetimes in tooltips ("Mon, Jan 15, 2024,
3:45 PM"), as short labels ("10:42 AM (2 hours ago)") or as relative phrases
("Yesterday", "3 days ago"). This module turns any of those into a
timezone-aware datetime so messages can be ordered.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from inbox_triage import config
from inbox_triage.observability.logging import get_logger

logger = get_logger(__name__)

_PREFIX = re.compile(r"^(sent|received|date)\s*:\s*", re.IGNORECASE)
_TRAILING_PAREN = re.compile(r"\s*\([^)]*\)\s*$")
_SPACED_DASH = re.compile(r"\s+[-–—]\s+")

# (pattern, relativedelta keyword, multiplier)
_RELATIVE_PATTERNS: list[tuple[re.Pattern[str], str, int]] = [
    (re.compile(r"(\d+)\s*(?:minute|min)s?\s*ago", re.IGNORECASE), "minutes", 1),
    (re.compile(r"(\d+)\s*(?:hour|hr)s?\s*ago", re.IGNORECASE), "hours", 1),
    (re.compile(r"(\d+)\s*(?:day|d)s?\s*ago", re.IGNORECASE), "days", 1),
    (re.compile(r"(\d+)\s*(?:week|wk)s?\s*ago", re.IGNORECASE), "days", 7),
    (re.compile(r"(\d+)\s*(?:month|mo)s?\s*ago", re.IGNORECASE), "months", 1),
    (re.compile(r"(\d+)\s*(?:year|yr)s?\s*ago", re.IGNORECASE), "years", 1),
]


def _local_zone() -> tzinfo:
    try:
        return ZoneInfo(config.DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", config.DEFAULT_TIMEZONE)
        return UTC


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=_local_zone())
    return value


def normalize_timestamp(raw: str | None) -> str | None:
    """
    Clean a raw timestamp label for display and parsing.

    Strips "Sent:/Received:/Date:" prefixes and a trailing parenthetical,
    and turns spaced dashes into spaces.

    Examples:
        >>> normalize_timestamp("Sent: Jan 15, 2024 - 3:45 PM (2 hours ago)")
        'Jan 15, 2024 3:45 PM'
    """
    if not raw:
        return None
    normalized = " ".join(raw.split())
    normalized = _PREFIX.sub("", normalized)
    normalized = _TRAILING_PAREN.sub("", normalized)
    normalized = _SPACED_DASH.sub(" ", normalized)
    return normalized.strip() or None


def parse_relative_time(text: str, now: datetime | None = None) -> datetime | None:
    """Resolve "just now", "today", "yesterday" and "N <unit>s ago" against ``now``."""
    now = _aware(now or datetime.now(UTC))
    lowered = text.strip().lower()

    if "just now" in lowered or lowered == "now":
        return now
    if "yesterday" in lowered:
        return now - timedelta(days=1)
    if "today" in lowered:
        return now

    for pattern, unit, multiplier in _RELATIVE_PATTERNS:
        match = pattern.search(lowered)
        if match:
            amount = int(match.group(1)) * multiplier
            return now - relativedelta(**{unit: amount})
    return None


def parse_timestamp(text: str | None, now: datetime | None = None) -> datetime | None:
    """
    Convert timestamp text into a comparable, timezone-aware instant.

    Tries relative phrases, then ISO-8601, then free-form absolute dates.
    Missing date parts (e.g. a bare "10:42 AM") default to ``now``.

    Args:
        text: Raw or normalized timestamp text
        now: Reference time for relative phrases (defaults to current UTC time)

    Returns:
        Aware datetime, or None when the text is not a recognizable time
    """
    if not text or not text.strip():
        return None
    cleaned = normalize_timestamp(text) or text.strip()
    now = _aware(now or datetime.now(UTC))

    relative = parse_relative_time(cleaned, now)
    if relative is not None:
        return relative

    try:
        return _aware(datetime.fromisoformat(cleaned.replace("Z", "+00:00")))
    except ValueError:
        pass

    # dateutil fills missing fields from a naive default
    default = now.astimezone(_local_zone()).replace(tzinfo=None, second=0, microsecond=0)
    try:
        return _aware(date_parser.parse(cleaned, default=default))
    except (ValueError, OverflowError) as e:
        logger.debug("Unparseable timestamp %r: %s", cleaned, e)
        return None


def to_epoch_millis(value: datetime) -> int:
    """Numeric instant (milliseconds since the epoch) for an aware datetime."""
    return int(_aware(value).timestamp() * 1000)
