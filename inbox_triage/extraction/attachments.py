"""
Attachment Classifier.

Reads name/size/link metadata from attachment cards and classifies them by
extension. File contents are never fetched or parsed here.
"""

from __future__ import annotations

from bs4 import Tag

from inbox_triage.extraction.profiles import ProviderProfile
from inbox_triage.extraction.types import PROCESSABLE_TYPES, Attachment, AttachmentType
from inbox_triage.observability.logging import get_logger
from inbox_triage.utils.html import absolute_url, background_image_url, text_of

logger = get_logger(__name__)

EXTENSION_TYPES: dict[str, AttachmentType] = {
    "pdf": AttachmentType.PDF,
    "doc": AttachmentType.DOCX,
    "docx": AttachmentType.DOCX,
    "xls": AttachmentType.XLSX,
    "xlsx": AttachmentType.XLSX,
    "png": AttachmentType.IMAGE,
    "jpg": AttachmentType.IMAGE,
    "jpeg": AttachmentType.IMAGE,
    "gif": AttachmentType.IMAGE,
    "bmp": AttachmentType.IMAGE,
    "webp": AttachmentType.IMAGE,
}


def classify_filename(filename: str | None) -> AttachmentType:
    """
    Classify a file by extension (case-insensitive).

    Examples:
        >>> classify_filename("report.XLSX")
        <AttachmentType.XLSX: 'xlsx'>
        >>> classify_filename("notes.txt")
        <AttachmentType.UNKNOWN: 'unknown'>
    """
    if not filename or "." not in filename:
        return AttachmentType.UNKNOWN
    extension = filename.strip().lower().rsplit(".", 1)[-1]
    return EXTENSION_TYPES.get(extension, AttachmentType.UNKNOWN)


def is_processable(attachment_type: AttachmentType) -> bool:
    return attachment_type in PROCESSABLE_TYPES


class AttachmentClassifier:
    def __init__(self, profile: ProviderProfile, base_url: str | None = None):
        self.profile = profile
        self.base_url = base_url

    def classify(self, node: Tag, index: int) -> Attachment | None:
        """
        Build an Attachment from one attachment card.

        Returns None when the card has neither a name nor a link.
        """
        name = self._name(node)
        download_url = self._download_url(node)
        if not name and not download_url:
            logger.debug("Discarding attachment candidate %d: no name or link", index)
            return None

        size = None
        if self.profile.attachment_sizes:
            size = text_of(node.select_one(self.profile.attachment_sizes)) or None

        attachment_type = classify_filename(name)
        image_url = None
        if attachment_type is AttachmentType.IMAGE:
            image_url = self.resolve_image_url(node, download_url)

        return Attachment(
            index=index,
            name=name or f"Attachment {index + 1}",
            size=size,
            type=attachment_type,
            download_url=download_url,
            image_url=image_url,
            processable=is_processable(attachment_type),
        )

    def resolve_image_url(self, node: Tag, download_url: str) -> str | None:
        """
        Renderable image reference, most reliable first.

        Embedded preview <img> beats an inline background-image, and both beat
        the raw download link, which may need auth the previewer lacks.
        """
        img = node.find("img")
        if isinstance(img, Tag) and img.get("src"):
            return absolute_url(img["src"], self.base_url)

        background = background_image_url(node)
        if background:
            return absolute_url(background, self.base_url)

        return download_url or None

    def _name(self, node: Tag) -> str:
        if self.profile.attachment_names:
            name = text_of(node.select_one(self.profile.attachment_names))
            if name:
                return name
        link = self._link(node)
        if link is not None and link.get("download"):
            return str(link["download"]).strip()
        return ""

    def _download_url(self, node: Tag) -> str:
        link = self._link(node)
        if link is None:
            return ""
        return absolute_url(link.get("href"), self.base_url)

    def _link(self, node: Tag) -> Tag | None:
        if node.name == "a" and node.get("href"):
            return node
        return node.select_one(self.profile.attachment_links) if self.profile.attachment_links else None


def outermost_candidates(nodes: list[Tag]) -> list[Tag]:
    """Drop candidates nested inside another candidate (broad selectors match card parts too)."""
    candidate_ids = {id(node) for node in nodes}
    return [
        node
        for node in nodes
        if not any(id(parent) in candidate_ids for parent in node.parents)
    ]
