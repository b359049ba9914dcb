"""Tests for reply-draft sanitization and coercion."""

import pytest
from pydantic import ValidationError

from inbox_triage.contracts.drafts import (
    EMPTY_BODY,
    ReplyDraft,
    sanitize_string,
    validate_and_format_drafts,
)


def test_sanitize_strips_scripts_tags_and_js_scheme():
    raw = '<p>Hello <b>there</b></p><script>alert("x")</script> javascript:void(0)'

    assert sanitize_string(raw, 100) == "Hello there void(0)"


def test_sanitize_truncates_with_ellipsis():
    result = sanitize_string("x" * 120, 100)

    assert len(result) == 100
    assert result.endswith("...")


@pytest.mark.parametrize("value", [None, 42, "", "   ", "<br><br>"])
def test_sanitize_rejects_empty_or_non_strings(value):
    assert sanitize_string(value, 50) is None


def test_validate_and_format_applies_fallbacks():
    raw = {
        "drafts": [
            {"type": "Accept", "subject": "Re: Budget", "body": "Sounds good, let's proceed."},
            {"type": "", "subject": None, "body": "short"},
            "not a draft",
            {"type": "Extra", "subject": "Ignored", "body": "A fourth draft is dropped."},
        ]
    }

    drafts = validate_and_format_drafts(raw, "Budget review")

    assert len(drafts) == 3
    assert drafts[0] == ReplyDraft(
        type="Accept", subject="Re: Budget", body="Sounds good, let's proceed."
    )
    assert drafts[1].type == "Draft 2"
    assert drafts[1].subject == "Re: Budget review"
    assert drafts[1].body == EMPTY_BODY
    assert drafts[2].type == "Draft 3"
    assert drafts[2].body == EMPTY_BODY


def test_accepts_bare_list():
    drafts = validate_and_format_drafts(
        [{"type": "Decline", "subject": "Re: Lunch", "body": "I can't make it this week."}], "Lunch"
    )

    assert [d.type for d in drafts] == ["Decline"]


@pytest.mark.parametrize("raw", [None, "text", {"drafts": "nope"}, 7])
def test_non_list_payload_yields_no_drafts(raw):
    assert validate_and_format_drafts(raw, "Subject") == []


def test_long_fields_are_capped():
    drafts = validate_and_format_drafts(
        [{"type": "t" * 80, "subject": "s" * 150, "body": "b" * 2000}], "Subject"
    )

    assert len(drafts[0].type) == 50
    assert len(drafts[0].subject) == 100
    assert len(drafts[0].body) == 1500


def test_reply_draft_enforces_limits():
    with pytest.raises(ValidationError):
        ReplyDraft(type="A", subject="B", body="too short")
