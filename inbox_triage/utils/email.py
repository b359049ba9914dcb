"""
Email address helpers for sender extraction.
"""

from __future__ import annotations

import re

_EMAIL_PATTERN = re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")


def extract_email_from_text(text: str | None) -> str:
    """
    Find the first email address in free text.

    Args:
        text: Text potentially containing an address (e.g., "Bob <bob@example.com>")

    Returns:
        The address as written, or "" if none is present

    Examples:
        >>> extract_email_from_text("John Doe <john@company.com>")
        'john@company.com'

        >>> extract_email_from_text("no address here")
        ''
    """
    if not text:
        return ""
    match = _EMAIL_PATTERN.search(text)
    return match.group(1) if match else ""
