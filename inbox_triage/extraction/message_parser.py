"""
Message Parser - turn one message node into a Message.

Steps, in order:
1. Reject draft/compose regions
2. Reject hidden nodes and collapsed stubs (too little rendered text)
3. Locate the body via primary then fallback selector
4. Clean whitespace/control characters
5. Sender, preferring structured attributes over free text
6. Timestamp, trying attribute -> data attribute -> text -> parent -> alternates

A node that yields no content returns None. That is a normal outcome
(collapsed message, quoted stub) and never raises.
"""

from __future__ import annotations

from datetime import datetime

from bs4 import Tag

from inbox_triage import config
from inbox_triage.extraction.profiles import ProviderProfile
from inbox_triage.extraction.timestamps import normalize_timestamp, parse_timestamp
from inbox_triage.extraction.types import Message, Sender
from inbox_triage.observability.logging import get_logger
from inbox_triage.utils.email import extract_email_from_text
from inbox_triage.utils.html import is_hidden, matches, select_first, text_of
from inbox_triage.utils.text import word_count

logger = get_logger(__name__)

# Regions that are never conversation content, whatever the provider
EXCLUDED_REGIONS = (
    '[data-is-draft="true"]',
    ".compose",
    ".reply-box",
    '[data-testid*="compose"]',
)

# Markers on a node that mean "collapsed, only a stub is rendered"
COLLAPSED_INDICATORS = (
    ".collapsed",
    ".truncated",
    '[data-is-collapsed="true"]',
)

TIMESTAMP_DATA_ATTRIBUTES = ("data-timestamp", "data-time", "datetime")


class MessageParser:
    """Parse message nodes for one provider profile."""

    def __init__(self, profile: ProviderProfile, *, min_text_chars: int | None = None):
        self.profile = profile
        self.min_text_chars = (
            config.MIN_MESSAGE_TEXT_CHARS if min_text_chars is None else min_text_chars
        )

    def parse(self, node: Tag, index: int, now: datetime | None = None) -> Message | None:
        """
        Extract one Message from a message node.

        Args:
            node: The message element
            index: Its position among message nodes in document order
            now: Reference time for relative timestamps

        Returns:
            Message, or None if the node is excluded or has no content
        """
        if self.is_draft_or_compose(node):
            logger.debug("Skipping draft/compose node at index %d", index)
            return None

        if self.is_hidden_or_collapsed(node):
            logger.debug("Skipping hidden/collapsed node at index %d", index)
            return None

        body = select_first(node, self.profile.message_body, self.profile.message_body_alt)
        content = text_of(body)
        if not content:
            return None

        label = self.extract_timestamp_label(node)
        return Message(
            index=index,
            content=content,
            sender=self.extract_sender(node),
            timestamp=parse_timestamp(label, now) if label else None,
            timestamp_label=label,
            word_count=word_count(content),
        )

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def is_draft_or_compose(self, node: Tag) -> bool:
        for selector in self.profile.exclusion_selectors + EXCLUDED_REGIONS:
            if matches(node, selector):
                return True
        # A node wrapping an unsent draft is a draft
        return node.select_one('[data-is-draft="true"]') is not None

    def is_hidden_or_collapsed(self, node: Tag) -> bool:
        if is_hidden(node):
            return True
        if any(matches(node, selector) for selector in COLLAPSED_INDICATORS):
            return True
        return len(text_of(node)) < self.min_text_chars

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def extract_sender(self, node: Tag) -> Sender:
        profile = self.profile

        name = ""
        name_el = select_first(node, profile.sender_name, profile.sender)
        if name_el is not None:
            name = (name_el.get("name") or "").strip() or text_of(name_el)

        email = ""
        email_el = select_first(node, profile.sender_email, profile.sender)
        if email_el is not None:
            email = (email_el.get("email") or "").strip() or extract_email_from_text(
                email_el.get_text(" ")
            )

        # Free-text "Name <address>" headers
        if not email and name:
            email = extract_email_from_text(name)
            if email:
                name = name.replace(f"<{email}>", "").strip()

        return Sender(name=name or "Unknown", email=email)

    def extract_timestamp_label(self, node: Tag) -> str | None:
        """Normalized timestamp text for a message, or None if none is rendered."""
        profile = self.profile
        el = node.select_one(profile.timestamp) if profile.timestamp else None

        if el is not None:
            title = (el.get("title") or "").strip()
            if title:
                return normalize_timestamp(title)

            for attr in TIMESTAMP_DATA_ATTRIBUTES:
                value = (el.get(attr) or "").strip()
                if value:
                    return normalize_timestamp(value)

            text = text_of(el)
            if text:
                return normalize_timestamp(text)

            parent = el.parent
            if isinstance(parent, Tag):
                value = (parent.get("title") or parent.get("data-timestamp") or "").strip()
                if value:
                    return normalize_timestamp(value)

        for selector in profile.timestamp_alt:
            alt = node.select_one(selector)
            if alt is None:
                continue
            value = (alt.get("title") or alt.get("aria-label") or "").strip() or text_of(alt)
            if value:
                return normalize_timestamp(value)

        return None
