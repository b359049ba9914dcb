"""Tests for writing a generated reply into the compose surface."""

import pytest
from fixtures.pages import (
    GMAIL_COMPOSE,
    GMAIL_REPLY_CONTROLS,
    GMAIL_URL,
    OUTLOOK_URL,
    gmail_message,
    gmail_page,
    outlook_message,
    outlook_page,
)

from inbox_triage.errors import AffordanceNotFoundError, ComposeSurfaceNotFoundError
from inbox_triage.live.drafts import DraftInjector
from inbox_triage.live.page import HtmlPage
from inbox_triage.observability.telemetry import get_counter
from inbox_triage.utils.html import format_for_editor


def gmail_page_with_reply():
    page = HtmlPage(
        gmail_page([gmail_message("m1", "Can you send the deck?")], extra=GMAIL_REPLY_CONTROLS),
        GMAIL_URL,
    )
    page.on_click('[aria-label="Reply"]', lambda p, _el: p.append_html("body", GMAIL_COMPOSE))
    return page


def test_injects_escaped_text_and_fires_events(gmail_profile, sleep):
    page = gmail_page_with_reply()

    DraftInjector(page, gmail_profile, sleep=sleep).inject("Hi Bob,\nDeck is <attached> & ready")

    body = page.document().select_one(".Am.Al.editable")
    assert page.focused is body
    assert body.get_text() == "Hi Bob,Deck is <attached> & ready"
    assert len(body.find_all("br")) == 1
    assert [e.event_type for e in page.events] == ["input", "change"]
    assert all(e.target is body for e in page.events)
    assert sleep.calls == [gmail_profile.reply_settle_seconds]
    assert get_counter("draft.injected") == 1


def test_reply_all_and_forward_are_never_clicked(gmail_profile, sleep):
    page = gmail_page_with_reply()
    clicked = []
    page.on_click("[aria-label]", lambda _p, el: clicked.append(el["aria-label"]))

    DraftInjector(page, gmail_profile, sleep=sleep).inject("Thanks!")

    assert clicked == ["Reply"]


def test_missing_reply_control(gmail_profile, sleep):
    page = HtmlPage(gmail_page([gmail_message("m1", "No buttons on this page")]), GMAIL_URL)

    with pytest.raises(AffordanceNotFoundError, match="Gmail"):
        DraftInjector(page, gmail_profile, sleep=sleep).inject("Hello")
    assert sleep.calls == []


def test_compose_surface_never_appears(gmail_profile, sleep):
    page = HtmlPage(
        gmail_page([gmail_message("m1", "Reply does nothing")], extra=GMAIL_REPLY_CONTROLS),
        GMAIL_URL,
    )

    with pytest.raises(ComposeSurfaceNotFoundError):
        DraftInjector(page, gmail_profile, sleep=sleep, poll_interval=0.1).inject("Hello")

    assert sleep.calls[0] == gmail_profile.reply_settle_seconds
    assert sleep.calls[1:] == [0.1] * gmail_profile.compose_retries


def test_compose_surface_appearing_late(gmail_profile, sleep):
    page = HtmlPage(
        gmail_page([gmail_message("m1", "Slow compose window")], extra=GMAIL_REPLY_CONTROLS),
        GMAIL_URL,
    )
    sleep.on_call = lambda n: n == 4 and page.append_html("body", GMAIL_COMPOSE)

    DraftInjector(page, gmail_profile, sleep=sleep).inject("Late but fine")

    assert page.document().select_one(".Am.Al.editable").get_text() == "Late but fine"


def test_outlook_requires_visible_reply_and_scoped_editor(outlook_profile, sleep):
    controls = (
        '<button aria-label="Reply" style="display:none">Reply</button>'
        '<button aria-label="Reply" title="Reply">Reply</button>'
        '<div role="textbox" contenteditable="true" id="search"></div>'
    )
    page = HtmlPage(outlook_page([outlook_message("Numbers for Q3")], extra=controls), OUTLOOK_URL)
    clicked = []

    def open_compose(p, el):
        clicked.append(el)
        p.append_html(
            "body",
            '<div data-testid="compose-pane"><div role="textbox" contenteditable="true" id="editor"></div></div>',
        )

    page.on_click('button[aria-label="Reply"]', open_compose)

    DraftInjector(page, outlook_profile, sleep=sleep).inject("Looks good")

    assert clicked[0].get("style") is None
    assert page.focused["id"] == "editor"
    assert page.document().select_one("#search").get_text() == ""
    assert sleep.calls[0] == outlook_profile.reply_settle_seconds


def test_format_for_editor_line_endings():
    assert format_for_editor("a\r\nb\nc\rd") == "a<br>b<br>c<br>d"
    assert format_for_editor("1 < 2 & 3 > 2") == "1 &lt; 2 &amp; 3 &gt; 2"
    assert format_for_editor("") == ""
