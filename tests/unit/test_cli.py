"""Tests for the inbox-triage command line."""

import json

from fixtures.pages import GMAIL_URL, gmail_message, gmail_page

from inbox_triage.cli import main


def write_page(tmp_path, markup):
    path = tmp_path / "thread.html"
    path.write_text(markup, encoding="utf-8")
    return path


def test_extract_prints_thread_json(tmp_path, capsys):
    path = write_page(tmp_path, gmail_page([gmail_message("m1", "Saved page message body")]))

    assert main(["extract", str(path), "--url", GMAIL_URL]) == 0

    thread = json.loads(capsys.readouterr().out)
    assert thread["provider"] == "gmail"
    assert thread["messages"][0]["content"] == "Saved page message body"


def test_extract_combined(tmp_path, capsys):
    path = write_page(tmp_path, gmail_page([gmail_message("m1", "Saved page message body")]))

    assert main(["extract", str(path), "--url", GMAIL_URL, "--combined"]) == 0

    assert capsys.readouterr().out == (
        "Subject: Quarterly planning\n\nFrom: Alice Smith\nSaved page message body\n"
    )


def test_extract_missing_file(tmp_path, capsys):
    assert main(["extract", str(tmp_path / "missing.html"), "--url", GMAIL_URL]) == 1
    assert "Input file not found" in capsys.readouterr().err


def test_extract_unsupported_url(tmp_path, capsys):
    path = write_page(tmp_path, "<p>hello</p>")

    assert main(["extract", str(path), "--url", "https://example.com/"]) == 1
    assert "Gmail or Outlook" in capsys.readouterr().err


def test_match(capsys):
    assert main(["match", GMAIL_URL, GMAIL_URL]) == 0
    assert capsys.readouterr().out.strip() == "true"

    assert main(["match", GMAIL_URL, "https://mail.google.com/mail/u/0/#inbox/FMfcgzQXKLbVvnqw"]) == 1
    assert capsys.readouterr().out.strip() == "false"
