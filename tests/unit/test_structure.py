"""Tests for nesting depth, parent linkage, quote detection and ordering."""

from datetime import UTC, datetime

from bs4 import BeautifulSoup
from fixtures.pages import gmail_message, gmail_page, outlook_message, outlook_page

from inbox_triage.extraction.message_parser import MessageParser
from inbox_triage.extraction.structure import ThreadStructureAnalyzer, order_chronologically
from inbox_triage.extraction.types import Message


def parsed_pairs(markup, profile, selector):
    parser = MessageParser(profile)
    pairs = []
    for index, node in enumerate(BeautifulSoup(markup, "html.parser").select(selector)):
        message = parser.parse(node, index)
        if message is not None:
            pairs.append((node, message))
    return pairs


def msg(index, ts=None):
    timestamp = datetime(2024, 1, ts, tzinfo=UTC) if ts else None
    return Message(index=index, content=f"message {index}", timestamp=timestamp)


def test_indented_message_is_nested_under_previous(gmail_profile):
    markup = gmail_page(
        [
            gmail_message("m1", "Top level message content"),
            gmail_message("m2", "Indented reply content", style="margin-left: 30px"),
        ]
    )

    messages = ThreadStructureAnalyzer(gmail_profile).analyze(
        parsed_pairs(markup, gmail_profile, "[data-message-id]")
    )

    assert [m.is_nested for m in messages] == [False, True]
    assert messages[1].thread_depth == 1
    assert messages[1].parent_index == 0


def test_depth_is_quantized_from_margin_and_padding(gmail_profile):
    analyzer = ThreadStructureAnalyzer(gmail_profile)
    soup = BeautifulSoup(
        '<div id="a" style="margin-left: 60px"></div>'
        '<div id="b" style="padding-left: 25px"></div>'
        '<div id="c" style="padding-left: 10px"></div>'
        '<div id="d" style="margin-left: 30px; padding-left: 40px"></div>',
        "html.parser",
    )

    assert analyzer.detect_thread_info(soup.select_one("#a")).depth == 2
    assert analyzer.detect_thread_info(soup.select_one("#b")).depth == 1
    assert analyzer.detect_thread_info(soup.select_one("#c")).is_nested is False
    assert analyzer.detect_thread_info(soup.select_one("#d")).depth == 2


def test_parent_is_nearest_shallower_predecessor(gmail_profile):
    markup = gmail_page(
        [
            gmail_message("m1", "Root message content"),
            gmail_message("m2", "First level reply", style="margin-left: 30px"),
            gmail_message("m3", "Second level reply", style="margin-left: 60px"),
            gmail_message("m4", "Back to first level", style="margin-left: 30px"),
        ]
    )

    messages = ThreadStructureAnalyzer(gmail_profile).analyze(
        parsed_pairs(markup, gmail_profile, "[data-message-id]")
    )

    assert [m.parent_index for m in messages] == [None, 0, 1, 0]
    assert [m.thread_depth for m in messages] == [0, 1, 2, 1]


def test_outlook_nested_conversation_container(outlook_profile):
    markup = outlook_page(
        [outlook_message("Outer message in the conversation")],
        nested=[outlook_message("Message inside a nested container")],
    )

    messages = ThreadStructureAnalyzer(outlook_profile).analyze(
        parsed_pairs(markup, outlook_profile, outlook_profile.messages)
    )

    assert [m.is_nested for m in messages] == [False, True]
    assert messages[1].thread_depth == 1
    assert messages[1].parent_index == 0


def test_quoted_content_flag(gmail_profile):
    markup = gmail_page(
        [
            gmail_message("m1", "Original message content"),
            gmail_message("m2", "Reply with history", quoted="On Monday Alice wrote: ..."),
        ]
    )

    messages = ThreadStructureAnalyzer(gmail_profile).analyze(
        parsed_pairs(markup, gmail_profile, "[data-message-id]")
    )

    assert [m.has_quoted_content for m in messages] == [False, True]


def test_blockquote_counts_as_quote(gmail_profile):
    soup = BeautifulSoup("<div><p>Reply</p><blockquote>old</blockquote></div>", "html.parser")

    assert ThreadStructureAnalyzer(gmail_profile).has_quoted_content(soup.div)


def test_analyze_sorts_by_timestamp(gmail_profile):
    markup = gmail_page(
        [
            gmail_message("m1", "Newest message first", timestamp="2024-01-03 10:00"),
            gmail_message("m2", "Oldest message", timestamp="2024-01-01 10:00"),
            gmail_message("m3", "Middle message", timestamp="2024-01-02 10:00"),
        ]
    )

    messages = ThreadStructureAnalyzer(gmail_profile).analyze(
        parsed_pairs(markup, gmail_profile, "[data-message-id]")
    )

    assert [m.index for m in messages] == [1, 2, 0]


def test_fewer_than_two_timestamps_keeps_document_order():
    messages = [msg(2), msg(0, ts=5), msg(1)]

    assert [m.index for m in order_chronologically(messages)] == [0, 1, 2]


def test_mixed_timestamps_sort_within_timestamped_slots():
    messages = [msg(0, ts=9), msg(1), msg(2, ts=3), msg(3), msg(4, ts=6)]

    ordered = order_chronologically(messages)

    assert [m.index for m in ordered] == [2, 1, 4, 3, 0]
    stamped = [m.timestamp for m in ordered if m.timestamp]
    assert stamped == sorted(stamped)
    untimed = [m.index for m in ordered if m.timestamp is None]
    assert untimed == [1, 3]


def test_equal_timestamps_keep_document_order():
    messages = [msg(0, ts=4), msg(1, ts=4), msg(2, ts=1)]

    assert [m.index for m in order_chronologically(messages)] == [2, 0, 1]
