"""
Triage Service - the engine's entry point for the presentation layer.

Wires the extractor, combiner, draft injector, live tracker and session
matcher to one Page, and answers action messages ({"action": ...}) with
plain dicts. Failures come back as {"success": False, "error": <text>} with
user-actionable text; they are never raised across this boundary.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

from inbox_triage import config
from inbox_triage.contracts.drafts import validate_and_format_drafts
from inbox_triage.errors import PageCommunicationError, UnsupportedProviderError
from inbox_triage.extraction.combiner import combine
from inbox_triage.extraction.extractor import ThreadExtractor
from inbox_triage.extraction.profiles import ProfileRegistry, default_registry
from inbox_triage.extraction.types import Thread
from inbox_triage.live.drafts import DraftInjector
from inbox_triage.live.page import Page
from inbox_triage.live.session import PersistedSession, build_session, restore_session
from inbox_triage.live.tracker import LiveMutationTracker
from inbox_triage.observability.logging import get_logger
from inbox_triage.utils.error_sanitizer import user_message_for

logger = get_logger(__name__)


class TriageService:
    def __init__(
        self,
        page: Page,
        *,
        registry: ProfileRegistry | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] | None = None,
        on_update: Callable[[Thread], None] | None = None,
    ):
        self.page = page
        self.registry = registry or default_registry()
        self._sleep = sleep
        self._clock = clock
        self._now = now
        self._on_update = on_update
        self._extractor: ThreadExtractor | None = None
        self._tracker: LiveMutationTracker | None = None
        self.latest_thread: Thread | None = None

    # ------------------------------------------------------------------
    # Engine operations
    # ------------------------------------------------------------------

    @property
    def extractor(self) -> ThreadExtractor:
        """Extractor bound to the profile for the page's current URL."""
        resolution = self.registry.resolve(self.page.url)
        if resolution is None:
            raise UnsupportedProviderError(self.page.url)

        if self._extractor is None:
            self._extractor = ThreadExtractor(
                self.page,
                resolution,
                registry=self.registry,
                sleep=self._sleep,
                now=self._now,
            )
        elif self._extractor.profile.key != resolution.profile.key:
            self._extractor.use_resolution(resolution)
        return self._extractor

    def is_ready(self) -> bool:
        """Synchronous readiness query; False on unsupported pages."""
        try:
            return self.extractor.is_ready()
        except UnsupportedProviderError:
            return False

    def extract(self) -> Thread:
        self.latest_thread = self.extractor.extract()
        return self.latest_thread

    def combine(self, thread: Thread | None = None, budget: int | None = None) -> str:
        thread = thread or self.latest_thread or self.extract()
        return combine(thread, budget=budget)

    def inject(self, compose_text: str) -> None:
        DraftInjector(self.page, self.extractor.profile, sleep=self._sleep).inject(compose_text)

    # ------------------------------------------------------------------
    # Live tracking
    # ------------------------------------------------------------------

    def start_tracking(self) -> LiveMutationTracker:
        if self._tracker is None:
            self._tracker = LiveMutationTracker(
                self.page,
                self.extractor,
                self._handle_update,
                registry=self.registry,
                clock=self._clock,
            )
        self._tracker.start()
        return self._tracker

    def stop_tracking(self) -> None:
        if self._tracker is not None:
            self._tracker.stop()

    def _handle_update(self, thread: Thread) -> None:
        self.latest_thread = thread
        if self._on_update is not None:
            self._on_update(thread)

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def session_payload(self, summary: str | None = None, raw_drafts: Any = None) -> dict[str, Any]:
        """Storage entry for the latest thread plus generated output."""
        thread = self.latest_thread or self.extract()
        drafts = validate_and_format_drafts(raw_drafts, thread.subject) if raw_drafts else []
        session = build_session(thread, summary=summary, drafts=drafts)
        return {config.SESSION_STORAGE_KEY: session.model_dump(mode="json", by_alias=True)}

    def restore(self, stored: dict[str, Any] | None) -> PersistedSession | None:
        """Saved session for the current page, or None if it must be discarded."""
        saved = (stored or {}).get(config.SESSION_STORAGE_KEY)
        session = restore_session(saved, self.page.url)
        if session is not None:
            self.latest_thread = session.thread
        return session

    # ------------------------------------------------------------------
    # Message dispatch
    # ------------------------------------------------------------------

    def handle_message(self, message: dict[str, Any]) -> dict[str, Any]:
        """
        Answer one action message from the presentation layer.

        Actions: ping, checkPageReady, extractThread, getThreadText, createDraft.
        """
        action = (message or {}).get("action")
        if action == "ping":
            return {"success": True, "ready": True}

        handlers: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
            "checkPageReady": lambda _m: {"success": True, "ready": self.is_ready()},
            "extractThread": lambda _m: {
                "success": True,
                "thread": self.extract().model_dump(mode="json", by_alias=True),
            },
            "getThreadText": lambda _m: {"success": True, "text": combine(self.extract())},
            "createDraft": self._create_draft,
        }
        handler = handlers.get(action)
        if handler is None:
            logger.warning("Unknown action received: %s", action)
            return {"success": False, "error": f"Unknown action: {action}"}

        try:
            return handler(message)
        except OSError as e:
            return {"success": False, "error": user_message_for(PageCommunicationError(str(e)))}
        except Exception as e:  # Boundary: every failure becomes an error response
            return {"success": False, "error": user_message_for(e)}

    def _create_draft(self, message: dict[str, Any]) -> dict[str, Any]:
        self.inject(message.get("draftBody") or "")
        return {"success": True}
