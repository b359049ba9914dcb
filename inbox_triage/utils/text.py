"""
Text cleaning helpers shared by the parsers and the combiner.
"""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")
# C0 controls (except whitespace already collapsed), DEL, zero-width marks, BOM
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f\u200b-\u200d\u2060\ufeff]")


def clean_text(text: str | None) -> str:
    """
    Collapse whitespace and strip control characters.

    Examples:
        >>> clean_text("  Hello\\n\\n\\tworld\\x00 ")
        'Hello world'
    """
    if not text:
        return ""
    text = _CONTROL_CHARS.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def fingerprint(text: str | None) -> str:
    """Case- and whitespace-insensitive key used for duplicate detection."""
    return clean_text(text).lower()


def word_count(text: str) -> int:
    return len(text.split()) if text else 0
