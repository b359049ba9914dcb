"""
Content Combiner - serialize a Thread into one bounded text payload.

Format:
    Subject: <subject>

    From: <sender name> (<timestamp label>)
    <content>

    ---

Nested messages are indented two spaces per depth level, separator included.
Messages whose fingerprint was already emitted are skipped (quoted history
repeats earlier messages verbatim).
"""

from __future__ import annotations

from inbox_triage import config
from inbox_triage.extraction.types import Message, Thread
from inbox_triage.observability.logging import get_logger
from inbox_triage.observability.telemetry import counter
from inbox_triage.utils.text import fingerprint

logger = get_logger(__name__)

SEPARATOR = "---"
INDENT = "  "


def format_block(message: Message) -> str:
    """One message block, indented by thread depth, separator included."""
    indent = INDENT * message.thread_depth if message.is_nested else ""
    header = f"From: {message.sender.name}"
    if message.timestamp_label:
        header += f" ({message.timestamp_label})"
    return f"{indent}{header}\n{message.content}\n\n{indent}{SEPARATOR}\n\n"


def truncate(text: str, budget: int, tail_window: int) -> str:
    """
    Cut ``text`` to at most ``budget`` characters.

    Cuts at the last space when that space falls within ``tail_window``
    characters of the budget, otherwise hard-cuts at the budget. The window
    never reaches past half the budget, so a small budget is not cut back
    into the header.
    """
    if len(text) <= budget:
        return text
    window = min(tail_window, budget // 2)
    cut = text[:budget]
    last_space = cut.rfind(" ")
    if last_space > budget - window:
        return cut[:last_space]
    return cut


def combine(
    thread: Thread,
    budget: int | None = None,
    tail_window: int | None = None,
) -> str:
    """
    Build the payload sent to the generation service.

    Args:
        thread: Extracted thread (messages already chronologically ordered)
        budget: Maximum output length in characters
        tail_window: Word-boundary search window at the cut point

    Returns:
        Combined text, never longer than ``budget``
    """
    budget = config.COMBINED_CHAR_BUDGET if budget is None else budget
    tail_window = config.TRUNCATION_TAIL_WINDOW if tail_window is None else tail_window

    parts: list[str] = []
    length = 0
    if thread.subject:
        header = f"Subject: {thread.subject}\n\n"
        parts.append(header)
        length += len(header)

    seen: set[str] = set()
    emitted = 0
    skipped = 0
    for message in thread.messages:
        key = fingerprint(message.content)
        if not key or key in seen:
            skipped += 1
            continue

        block = format_block(message)
        # The first block is always kept (and truncated below) so a single huge
        # message still produces content
        if emitted and length + len(block) > budget:
            logger.info("Character budget reached after %d messages", emitted)
            counter("combine.budget_stop")
            break

        seen.add(key)
        parts.append(block)
        length += len(block)
        emitted += 1

    if skipped:
        counter("combine.duplicates_skipped", skipped)
        logger.debug("Skipped %d duplicate messages", skipped)

    combined = "".join(parts).rstrip()
    if combined.endswith(SEPARATOR):
        combined = combined[: -len(SEPARATOR)].rstrip()

    if len(combined) > budget:
        counter("combine.truncated")
        combined = truncate(combined, budget, tail_window)

    return combined
