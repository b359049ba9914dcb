"""
Session State Matcher.

Decides whether a previously persisted extraction (summary, drafts) still
belongs to the conversation on screen. Providers rewrite non-identifying
query parameters on ordinary re-renders, so raw URL equality is too strict.

Two tiers:
1. Thread id extracted from both URLs (provider-specific patterns)
2. Origin + path + query with volatile parameters removed
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit

from pydantic import BaseModel, Field, ValidationError

from inbox_triage import config
from inbox_triage.contracts.drafts import ReplyDraft
from inbox_triage.errors import MalformedUrlError
from inbox_triage.extraction.types import RECORD_CONFIG, Thread
from inbox_triage.observability.logging import get_logger

logger = get_logger(__name__)

# Checked in order; the first pattern that matches supplies the thread id
THREAD_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Gmail hash routes: #inbox/FMfcg..., #label/Work/FMfcg..., #search/q/FMfcg...
    re.compile(
        r"#(?:inbox|all|sent|starred|imp|label/[^/]+|search/[^/]+|category/[^/]+)/(?:th)?([A-Za-z0-9_-]+)"
    ),
    # Explicit thread query parameter
    re.compile(r"[?&]th=([^&#]+)"),
    # Outlook: /mail/inbox/id/AAQk..., /mail/conversation/...
    re.compile(r"/(?:conversation|id)/([^/?#]+)"),
    # Thread id as a path segment: /th123 (digit first, so /thread or /things never match)
    re.compile(r"/th(\d[A-Za-z0-9_-]*)(?:[/?#]|$)"),
)


def extract_thread_id(url: str) -> str | None:
    for pattern in THREAD_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def _canonical(url: str) -> tuple[str, str, str, str]:
    """(scheme, host, path, sorted non-volatile query) for fallback comparison."""
    try:
        parts = urlsplit(url)
        host = parts.netloc.lower()
    except (ValueError, AttributeError) as e:
        raise MalformedUrlError(f"Cannot parse URL: {e}") from e
    if not parts.scheme or not host:
        raise MalformedUrlError(f"Not an absolute URL: {url!r}")

    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in config.VOLATILE_QUERY_PARAMS
    ]
    return parts.scheme.lower(), host, parts.path or "/", urlencode(sorted(query))


def urls_match(saved_url: str | None, current_url: str | None) -> bool:
    """
    True if both URLs point at the same conversation.

    Never raises: malformed or missing input is simply "no match".

    Examples:
        >>> urls_match("https://mail.example/u/0/th123?x=1", "https://mail.example/u/0/th123?x=2")
        True
    """
    if not saved_url or not current_url:
        return False
    if saved_url == current_url:
        return True

    try:
        saved_id = extract_thread_id(saved_url)
        current_id = extract_thread_id(current_url)
        if saved_id and current_id:
            return saved_id == current_id
        return _canonical(saved_url) == _canonical(current_url)
    except (MalformedUrlError, TypeError) as e:
        logger.debug("URL comparison failed: %s", e)
        return False


# ---------------------------------------------------------------------------
# Persisted session
# ---------------------------------------------------------------------------


class PersistedSession(BaseModel):
    """What gets written under the session storage key after a successful run."""

    model_config = RECORD_CONFIG

    thread_url: str
    thread: Thread
    summary: str | None = None
    drafts: tuple[ReplyDraft, ...] = ()
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


def build_session(
    thread: Thread,
    summary: str | None = None,
    drafts: list[ReplyDraft] | None = None,
) -> PersistedSession:
    return PersistedSession(
        thread_url=thread.source_url,
        thread=thread,
        summary=summary,
        drafts=tuple(drafts or ()),
    )


def restore_session(saved: dict[str, Any] | PersistedSession | None, current_url: str) -> PersistedSession | None:
    """
    Return the saved session if it belongs to the page at ``current_url``.

    A malformed payload or a URL mismatch both mean "discard" (None).
    """
    if saved is None:
        return None

    if isinstance(saved, PersistedSession):
        session = saved
    else:
        try:
            session = PersistedSession.model_validate(saved)
        except ValidationError as e:
            logger.warning("Discarding malformed saved session: %d errors", e.error_count())
            return None

    if not urls_match(session.thread_url, current_url):
        logger.info("Saved session belongs to another conversation; discarding")
        return None
    return session
