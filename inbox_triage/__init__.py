"""Inbox Triage - thread extraction and reply write-back for webmail pages"""

from __future__ import annotations

__version__ = "1.0.0"


# Lazy imports so lightweight helpers (session matching, timestamps) don't pull in bs4
def __getattr__(name: str):
    if name in ("Thread", "Message", "Attachment", "Sender", "AttachmentType"):
        from inbox_triage.extraction import types

        return getattr(types, name)

    if name == "ThreadExtractor":
        from inbox_triage.extraction.extractor import ThreadExtractor

        return ThreadExtractor

    if name == "combine":
        from inbox_triage.extraction.combiner import combine

        return combine

    if name == "TriageService":
        from inbox_triage.service import TriageService

        return TriageService

    if name == "urls_match":
        from inbox_triage.live.session import urls_match

        return urls_match

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "Attachment",
    "AttachmentType",
    "Message",
    "Sender",
    "Thread",
    "ThreadExtractor",
    "TriageService",
    "combine",
    "urls_match",
]
