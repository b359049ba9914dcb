"""
Module: types
Purpose: Domain records produced by one extraction pass.
Dependencies: pydantic only

Every record is frozen. A new extraction pass builds new records; nothing
downstream mutates a Thread in place (use model_copy(update=...) instead).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Dumped with by_alias=True at the message boundary (threadDepth, downloadUrl, ...);
# Python callers keep using field names
RECORD_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class Sender(BaseModel):
    model_config = RECORD_CONFIG

    name: str = "Unknown"
    email: str = ""


class Message(BaseModel):
    """One rendered message of a conversation."""

    model_config = RECORD_CONFIG

    index: int  # Position of the node in document order
    content: str
    sender: Sender = Field(default_factory=Sender)
    timestamp: datetime | None = None
    timestamp_label: str | None = None  # Normalized text as shown on the page
    word_count: int = 0

    # Filled in by the structure analyzer
    thread_depth: int = 0
    parent_index: int | None = None
    is_nested: bool = False
    has_quoted_content: bool = False


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------


class AttachmentType(str, Enum):
    """File-type classes. Extends str so JSON dumps produce raw strings."""

    PDF = "pdf"
    DOCX = "docx"
    XLSX = "xlsx"
    IMAGE = "image"
    UNKNOWN = "unknown"


PROCESSABLE_TYPES = frozenset(
    {AttachmentType.PDF, AttachmentType.DOCX, AttachmentType.XLSX, AttachmentType.IMAGE}
)


class Attachment(BaseModel):
    model_config = RECORD_CONFIG

    index: int
    name: str
    size: str | None = None
    type: AttachmentType = AttachmentType.UNKNOWN
    download_url: str = ""
    image_url: str | None = None
    processable: bool = False
    summary: str | None = None  # Filled later by the generation collaborator


# ---------------------------------------------------------------------------
# Thread (root aggregate)
# ---------------------------------------------------------------------------


class Thread(BaseModel):
    model_config = RECORD_CONFIG

    provider: str
    variant: str | None = None
    subject: str | None = None
    messages: tuple[Message, ...] = ()
    attachments: tuple[Attachment, ...] = ()
    extracted_at: datetime
    source_url: str

    @property
    def is_empty(self) -> bool:
        return not self.subject and not self.messages
