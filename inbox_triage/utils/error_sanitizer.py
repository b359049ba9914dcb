"""
Error message sanitization utility.

Turns engine exceptions and raw failure text into short, actionable messages
for the presentation layer. Stack traces, file paths and token-like strings
never reach the user.
"""

from __future__ import annotations

import re

from inbox_triage.errors import InboxTriageError
from inbox_triage.observability.logging import get_logger

logger = get_logger(__name__)

GENERIC_MESSAGE = "An unexpected error occurred. Please try again."

# Patterns that might leak internal details
SENSITIVE_PATTERNS = [
    # File paths
    r"/[^\s]+\.py",
    r"[A-Za-z]:\\[^\s]+",
    # Stack trace indicators
    r"Traceback \(most recent call last\)",
    r"File \".*\"",
    r"\n\s*at\s+",
    # Tokens / secrets
    r"Bearer [A-Za-z0-9._-]+",
    r"[A-Za-z0-9_-]{32,}",
    # Internal module names
    r"inbox_triage\.[a-z_.]+",
]

# Known failure text -> user-facing message, checked in order
MESSAGE_MAPPINGS: list[tuple[tuple[str, ...], str]] = [
    (
        (r"invalid.*json", r"json.*parse", r"unexpected token"),
        "AI response was malformed. Please try regenerating.",
    ),
    (
        (r"receiving end does not exist", r"could not establish connection", r"tab.*closed"),
        "Could not communicate with the page. Try refreshing the Gmail/Outlook tab.",
    ),
    (
        (r"network.*error", r"connection.*failed", r"timed? ?out"),
        "Connection error occurred. Please check your internet connection and try again.",
    ),
    (
        (r"permission.*denied", r"not.*authorized"),
        "Permission denied. Please check the extension's site access.",
    ),
]

_ERROR_TYPE_PREFIX = re.compile(
    r"^(TypeError|ValueError|KeyError|RuntimeError|Error|Exception):\s*", re.IGNORECASE
)


def sanitize_error_message(message: str | None) -> str:
    """
    Sanitize a raw error message for display.

    Args:
        message: The original error message

    Returns:
        A mapped message for known failures, the cleaned first line for
        harmless text, or a generic message
    """
    if not message or not isinstance(message, str):
        return GENERIC_MESSAGE

    for pattern in SENSITIVE_PATTERNS:
        if re.search(pattern, message, re.IGNORECASE):
            logger.warning("Sanitized sensitive error pattern: %s", pattern)
            return GENERIC_MESSAGE

    for patterns, friendly in MESSAGE_MAPPINGS:
        if any(re.search(p, message, re.IGNORECASE) for p in patterns):
            return friendly

    first_line = _ERROR_TYPE_PREFIX.sub("", message.strip().splitlines()[0]).strip()
    if len(first_line) < 10 or re.fullmatch(r"[A-Z_]+", first_line, re.IGNORECASE):
        return GENERIC_MESSAGE
    return first_line[0].upper() + first_line[1:]


def user_message_for(error: BaseException) -> str:
    """
    User-facing text for an exception.

    Engine errors carry their own actionable message; anything else goes
    through sanitize_error_message.
    """
    logger.error("Operation failed: %s - %s", type(error).__name__, error)
    if isinstance(error, InboxTriageError):
        return error.user_message
    return sanitize_error_message(str(error))
