"""
Thread Extractor - orchestrates one extraction pass over the live page.

Pipeline:
1. Wait (bounded polling) until any structural anchor is present
2. Subject: primary then fallback selector
3. Messages: MessageParser per node -> ThreadStructureAnalyzer
4. Attachments: AttachmentClassifier per outermost card
5. Reject a pass that found neither subject nor messages

The readiness check is deliberately weak: providers render the subject and
the message list asynchronously and not always together.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from datetime import UTC, datetime

from bs4 import BeautifulSoup
from tenacity import Retrying, retry_if_result, stop_after_attempt, stop_after_delay, wait_fixed

from inbox_triage import config
from inbox_triage.errors import (
    EmptyThreadError,
    ExtractionInProgressError,
    NotReadyError,
    UnsupportedProviderError,
)
from inbox_triage.extraction.attachments import AttachmentClassifier, outermost_candidates
from inbox_triage.extraction.message_parser import MessageParser
from inbox_triage.extraction.profiles import (
    ProfileRegistry,
    ProfileResolution,
    ProviderProfile,
    default_registry,
)
from inbox_triage.extraction.structure import ThreadStructureAnalyzer
from inbox_triage.extraction.types import Attachment, Message, Sender, Thread
from inbox_triage.live.page import Page
from inbox_triage.observability.logging import get_logger
from inbox_triage.observability.telemetry import counter, log_event, time_block
from inbox_triage.utils.html import select_first, text_of
from inbox_triage.utils.text import word_count

logger = get_logger(__name__)

# Provider-agnostic body locations tried when no message node yields content
FALLBACK_CONTENT_SELECTORS = (
    ".ii.gt div",
    ".elementToProof",
    '[role="main"] [data-testid*="message"]',
    ".message-body",
    ".email-content",
)


class ThreadExtractor:
    """
    Extracts a Thread from a Page using the active provider profile.

    The profile travels as an explicit ProfileResolution; the live tracker
    swaps it via ``use_resolution`` when navigation changes provider.
    """

    def __init__(
        self,
        page: Page,
        resolution: ProfileResolution | None = None,
        *,
        registry: ProfileRegistry | None = None,
        ready_timeout: float | None = None,
        poll_interval: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] | None = None,
    ):
        self.page = page
        self.registry = registry or default_registry()
        self.ready_timeout = config.READY_TIMEOUT_SECONDS if ready_timeout is None else ready_timeout
        self.poll_interval = (
            config.READY_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
        )
        self._sleep = sleep
        self._now = now or (lambda: datetime.now(UTC))
        self._in_flight = False

        resolution = resolution or self.registry.resolve(page.url)
        if resolution is None:
            raise UnsupportedProviderError(page.url)
        self.resolution = resolution

    @property
    def profile(self) -> ProviderProfile:
        return self.resolution.profile

    def use_resolution(self, resolution: ProfileResolution) -> None:
        if resolution.profile is not self.resolution.profile:
            logger.info(
                "Switching profile %s -> %s", self.resolution.profile.key, resolution.profile.key
            )
        self.resolution = resolution

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    def is_ready(self) -> bool:
        """True if any of thread container, message list or subject is present."""
        doc = self.page.document()
        profile = self.profile
        anchors = (profile.thread_container, profile.thread_view, profile.messages, profile.subject)
        return any(selector and doc.select_one(selector) is not None for selector in anchors)

    def wait_for_ready(self) -> None:
        """
        Poll is_ready() at a fixed interval until it holds or the timeout passes.

        Raises:
            NotReadyError: If no anchor appeared in time
        """
        # tenacity's delay clock is real time; the attempt cap bounds injected sleeps too
        attempts = 1
        if self.poll_interval > 0:
            attempts = math.ceil(self.ready_timeout / self.poll_interval) + 1
        retrying = Retrying(
            stop=stop_after_attempt(attempts) | stop_after_delay(self.ready_timeout),
            wait=wait_fixed(self.poll_interval),
            retry=retry_if_result(lambda ready: not ready),
            retry_error_callback=lambda _state: False,
            sleep=self._sleep,
        )
        if not retrying(self.is_ready):
            counter("extract.not_ready")
            raise NotReadyError(self.ready_timeout)

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def extract(self) -> Thread:
        """
        Run one extraction pass.

        Raises:
            ExtractionInProgressError: If called while another pass is running
            NotReadyError: If the page never became ready
            EmptyThreadError: If neither subject nor messages were found
        """
        if self._in_flight:
            counter("extract.rejected_concurrent")
            raise ExtractionInProgressError()

        self._in_flight = True
        try:
            with time_block("extract.latency"):
                self.wait_for_ready()
                doc = self.page.document()
                now = self._now()
                thread = Thread(
                    provider=self.resolution.provider,
                    variant=self.resolution.variant,
                    subject=self.extract_subject(doc),
                    messages=tuple(self.extract_messages(doc, now)),
                    attachments=tuple(self.extract_attachments(doc)),
                    extracted_at=now,
                    source_url=self.page.url,
                )
        finally:
            self._in_flight = False

        if thread.is_empty:
            counter("extract.empty")
            raise EmptyThreadError()

        counter("extract.ok")
        log_event(
            "extract.ok",
            provider=self.profile.key,
            messages=len(thread.messages),
            attachments=len(thread.attachments),
        )
        return thread

    def extract_subject(self, doc: BeautifulSoup) -> str | None:
        element = select_first(doc, self.profile.subject, self.profile.subject_alt)
        return text_of(element) or None

    def extract_messages(self, doc: BeautifulSoup, now: datetime | None = None) -> list[Message]:
        parser = MessageParser(self.profile)
        parsed = []
        for index, node in enumerate(doc.select(self.profile.messages)):
            message = parser.parse(node, index, now)
            if message is not None and message.content:
                parsed.append((node, message))

        messages = ThreadStructureAnalyzer(self.profile).analyze(parsed)
        if messages:
            return messages

        fallback = self._fallback_message(doc)
        return [fallback] if fallback else []

    def extract_attachments(self, doc: BeautifulSoup) -> list[Attachment]:
        classifier = AttachmentClassifier(self.profile, base_url=self.page.url)
        candidates = outermost_candidates(doc.select(self.profile.attachments))
        attachments = []
        for index, node in enumerate(candidates):
            attachment = classifier.classify(node, index)
            if attachment is not None:
                attachments.append(attachment)
        logger.debug("Found %d attachments", len(attachments))
        return attachments

    def _fallback_message(self, doc: BeautifulSoup) -> Message | None:
        for selector in FALLBACK_CONTENT_SELECTORS:
            content = text_of(doc.select_one(selector))
            if len(content) > config.FALLBACK_MIN_CONTENT_CHARS:
                logger.info("Using fallback content selector %s", selector)
                return Message(
                    index=0,
                    content=content,
                    sender=Sender(),
                    word_count=word_count(content),
                )
        return None
