"""Centralized configuration for the Inbox Triage engine.

Typed module constants with environment overrides. Defaults are safe so the
engine runs without any env configuration; the CLI loads a .env file first.
"""

from __future__ import annotations

import os
from pathlib import Path

# --- App ---
APP_VERSION: str = "1.0.0"

# --- Provider profiles ---
PROFILES_PATH: Path = Path(
    os.getenv(
        "INBOX_TRIAGE_PROFILES_PATH",
        str(Path(__file__).parent / "extraction" / "profiles.yaml"),
    )
)

# --- Readiness ---
READY_TIMEOUT_SECONDS: float = float(os.getenv("INBOX_TRIAGE_READY_TIMEOUT", "5.0"))
READY_POLL_INTERVAL_SECONDS: float = float(os.getenv("INBOX_TRIAGE_READY_POLL_INTERVAL", "0.1"))

# --- Message parsing ---
MIN_MESSAGE_TEXT_CHARS: int = 10
FALLBACK_MIN_CONTENT_CHARS: int = 20

# --- Structure analysis ---
INDENT_STEP_PX: int = 30
NESTED_PADDING_THRESHOLD_PX: int = 20

# --- Content combiner ---
COMBINED_CHAR_BUDGET: int = int(os.getenv("INBOX_TRIAGE_CHAR_BUDGET", "50000"))
TRUNCATION_TAIL_WINDOW: int = 1000

# --- Live tracking ---
MUTATION_DEBOUNCE_SECONDS: float = float(os.getenv("INBOX_TRIAGE_DEBOUNCE", "0.5"))
NAVIGATION_SETTLE_SECONDS: float = 0.5
WATCHED_ATTRIBUTES: tuple[str, ...] = (
    "data-thread-id",
    "data-message-id",
    "data-convid",
    "style",
    "class",
)

# --- Draft injection ---
COMPOSE_POLL_INTERVAL_SECONDS: float = 0.1

# --- Session state ---
VOLATILE_QUERY_PARAMS: tuple[str, ...] = ("tab", "view", "refreshed")
SESSION_STORAGE_KEY: str = "inboxTriageState"

# --- Timestamps ---
DEFAULT_TIMEZONE: str = os.getenv("INBOX_TRIAGE_TIMEZONE", "UTC")
