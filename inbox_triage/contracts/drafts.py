"""
Reply Draft Contract

Drafts come back from the generation service as loosely structured JSON.
Before they are stored in a session or written into a compose surface they
are sanitized and coerced into ReplyDraft records.

Limits: type <= 50 chars, subject <= 100, body 10-1500, at most 3 drafts.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from inbox_triage.observability.logging import get_logger

logger = get_logger(__name__)

MAX_DRAFTS = 3
TYPE_MAX_CHARS = 50
SUBJECT_MAX_CHARS = 100
BODY_MIN_CHARS = 10
BODY_MAX_CHARS = 1500
EMPTY_BODY = "No content generated."

_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_HTML_TAG = re.compile(r"<[^>]*>")
_JS_SCHEME = re.compile(r"javascript:", re.IGNORECASE)


class ReplyDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str = Field(min_length=1, max_length=TYPE_MAX_CHARS)
    subject: str = Field(min_length=1, max_length=SUBJECT_MAX_CHARS)
    body: str = Field(min_length=BODY_MIN_CHARS, max_length=BODY_MAX_CHARS)


def sanitize_string(value: Any, max_length: int) -> str | None:
    """
    Strip scripts, tags and javascript: schemes, then cap the length.

    Over-long values are cut to ``max_length - 3`` and suffixed with "...".

    Returns:
        Sanitized string, or None if the value is not a string or is empty
        after cleaning
    """
    if not isinstance(value, str):
        return None

    sanitized = _SCRIPT_BLOCK.sub("", value)
    sanitized = _HTML_TAG.sub("", sanitized)
    sanitized = _JS_SCHEME.sub("", sanitized).strip()
    if not sanitized:
        return None

    if len(sanitized) > max_length:
        return sanitized[: max_length - 3] + "..."
    return sanitized


def validate_and_format_drafts(raw: Any, original_subject: str | None) -> list[ReplyDraft]:
    """
    Coerce generation output into at most three valid drafts.

    Accepts either ``{"drafts": [...]}`` or a bare list. Missing or invalid
    fields get fallbacks ("Draft N", "Re: <subject>", "No content generated.")
    rather than failing the whole batch.

    Args:
        raw: Parsed JSON from the generation service
        original_subject: Subject of the thread being replied to

    Returns:
        List of ReplyDraft (empty if ``raw`` holds no list)
    """
    items = raw.get("drafts") if isinstance(raw, dict) else raw
    if not isinstance(items, list):
        logger.warning("Drafts payload is not a list (got %s)", type(items).__name__)
        return []

    fallback_subject = sanitize_string(f"Re: {original_subject or ''}".strip(), SUBJECT_MAX_CHARS)
    drafts: list[ReplyDraft] = []
    for index, item in enumerate(items[:MAX_DRAFTS]):
        if not isinstance(item, dict):
            logger.warning("Draft %d is not an object, using defaults", index + 1)
            item = {}

        body = sanitize_string(item.get("body"), BODY_MAX_CHARS)
        if body is None or len(body) < BODY_MIN_CHARS:
            body = EMPTY_BODY

        drafts.append(
            ReplyDraft(
                type=sanitize_string(item.get("type"), TYPE_MAX_CHARS) or f"Draft {index + 1}",
                subject=sanitize_string(item.get("subject"), SUBJECT_MAX_CHARS) or fallback_subject,
                body=body,
            )
        )
    return drafts
