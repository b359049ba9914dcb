"""
Command-line entry point.

Usage:
    inbox-triage extract saved_thread.html --url "https://mail.google.com/mail/u/0/#inbox/FMfcg..."
    inbox-triage extract saved_thread.html --url ... --combined
    inbox-triage match "<saved url>" "<current url>"

A .env file (if present) is loaded before any configuration is read.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inbox-triage",
        description="Extract and normalize email threads from saved webmail pages",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    extract = sub.add_parser("extract", help="Extract a thread from a saved HTML page")
    extract.add_argument("html_file", type=Path, help="Saved page HTML")
    extract.add_argument("--url", required=True, help="URL the page was served from")
    extract.add_argument(
        "--combined",
        action="store_true",
        help="Print the combined text payload instead of thread JSON",
    )

    match = sub.add_parser("match", help="Check whether two URLs are the same conversation")
    match.add_argument("saved_url")
    match.add_argument("current_url")
    return parser


def _extract(args: argparse.Namespace) -> int:
    from inbox_triage.errors import InboxTriageError
    from inbox_triage.live.page import HtmlPage
    from inbox_triage.service import TriageService

    if not args.html_file.exists():
        print(f"Error: Input file not found: {args.html_file}", file=sys.stderr)
        return 1

    page = HtmlPage(args.html_file.read_text(encoding="utf-8"), url=args.url)
    service = TriageService(page)
    try:
        thread = service.extract()
    except InboxTriageError as e:
        print(f"Error: {e.user_message}", file=sys.stderr)
        return 1

    if args.combined:
        print(service.combine(thread))
    else:
        print(thread.model_dump_json(indent=2, by_alias=True))
    return 0


def _match(args: argparse.Namespace) -> int:
    from inbox_triage.live.session import urls_match

    same = urls_match(args.saved_url, args.current_url)
    print("true" if same else "false")
    return 0 if same else 1


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    if args.command == "extract":
        return _extract(args)
    return _match(args)


if __name__ == "__main__":
    sys.exit(main())
