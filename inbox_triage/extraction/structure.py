"""
Thread Structure Analyzer.

Infers nesting from layout (inline left offsets quantized into depth
buckets) and from provider containment cues (nested conversation-id
containers), flags quoted history, links each nested message to its nearest
shallower predecessor, then puts messages in chronological order.

Depth from pixel offsets is best-effort: zoom and theme change the numbers.
Only "shallower vs deeper" is meaningful to downstream code.
"""

from __future__ import annotations

from dataclasses import dataclass

from bs4 import Tag

from inbox_triage import config
from inbox_triage.extraction.profiles import ProviderProfile
from inbox_triage.extraction.types import Message
from inbox_triage.utils.html import ancestors_matching, style_px

DEFAULT_QUOTE_WRAPPERS = (".gmail_quote", ".quote", "blockquote")


@dataclass(frozen=True)
class ThreadInfo:
    depth: int = 0
    is_nested: bool = False
    has_quoted_content: bool = False


class ThreadStructureAnalyzer:
    def __init__(
        self,
        profile: ProviderProfile,
        *,
        indent_step_px: int | None = None,
        padding_threshold_px: int | None = None,
    ):
        self.profile = profile
        self.indent_step_px = indent_step_px or config.INDENT_STEP_PX
        self.padding_threshold_px = (
            config.NESTED_PADDING_THRESHOLD_PX
            if padding_threshold_px is None
            else padding_threshold_px
        )

    def analyze(self, parsed: list[tuple[Tag, Message]]) -> list[Message]:
        """
        Assign depth/parent/quote fields and order the messages.

        Args:
            parsed: (node, message) pairs in document order

        Returns:
            New Message records, chronologically ordered
        """
        annotated: list[Message] = []
        for node, message in parsed:
            info = self.detect_thread_info(node)
            parent_index = None
            if info.is_nested:
                parent_index = self._find_parent(annotated, info.depth)
            annotated.append(
                message.model_copy(
                    update={
                        "thread_depth": info.depth,
                        "is_nested": info.is_nested,
                        "parent_index": parent_index,
                        "has_quoted_content": info.has_quoted_content,
                    }
                )
            )
        return order_chronologically(annotated)

    def detect_thread_info(self, node: Tag) -> ThreadInfo:
        margin = style_px(node, "margin-left")
        padding = style_px(node, "padding-left")

        depth = 0
        is_nested = False
        if margin > 0 or padding > self.padding_threshold_px:
            is_nested = True
            depth = max(1, (margin + padding) // self.indent_step_px)

        # Each conversation container beyond the outermost one is a nesting level
        if self.profile.conversation_ancestor:
            containers = ancestors_matching(node, self.profile.conversation_ancestor)
            containment_depth = len(containers) - 1
            if containment_depth > 0:
                is_nested = True
                depth = max(depth, containment_depth)

        return ThreadInfo(
            depth=depth,
            is_nested=is_nested,
            has_quoted_content=self.has_quoted_content(node),
        )

    def has_quoted_content(self, node: Tag) -> bool:
        wrappers = self.profile.quote_wrappers or DEFAULT_QUOTE_WRAPPERS
        return any(node.select_one(selector) is not None for selector in wrappers)

    @staticmethod
    def _find_parent(previous: list[Message], depth: int) -> int | None:
        for candidate in reversed(previous):
            if candidate.thread_depth < depth:
                return candidate.index
        return None


def order_chronologically(messages: list[Message]) -> list[Message]:
    """
    Two-tier ordering.

    With two or more timestamped messages, those messages are sorted by time
    inside the slots they already occupy; messages without a timestamp keep
    their positions. Otherwise document order is kept. Some providers only
    stamp the newest message, so a plain sort would scramble the rest.
    """
    ordered = sorted(messages, key=lambda m: m.index)
    slots = [i for i, m in enumerate(ordered) if m.timestamp is not None]
    if len(slots) < 2:
        return ordered

    by_time = sorted((ordered[i] for i in slots), key=lambda m: (m.timestamp, m.index))
    for slot, message in zip(slots, by_time):
        ordered[slot] = message
    return ordered
