"""
Draft Injector - write a generated reply into the provider's compose surface.

This is the only component that mutates host content. Steps:
1. Find a reply control among the profile's candidates (not "reply all" or "forward")
2. Click it and wait for the host to render its editor
3. Poll for an editable body surface (bounded attempts)
4. Focus, replace its content with escaped text, fire input/change events

Editors in these apps keep their own state, so the synthetic events are
what make the host register the edit.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from bs4 import Tag
from tenacity import Retrying, retry_if_result, stop_after_attempt, wait_fixed

from inbox_triage import config
from inbox_triage.errors import AffordanceNotFoundError, ComposeSurfaceNotFoundError
from inbox_triage.extraction.profiles import ProviderProfile
from inbox_triage.live.page import Page
from inbox_triage.observability.logging import get_logger
from inbox_triage.observability.telemetry import counter, log_event
from inbox_triage.utils.html import ancestors_matching, format_for_editor, is_hidden, matches

logger = get_logger(__name__)

EDITOR_EVENTS = ("input", "change")


class DraftInjector:
    def __init__(
        self,
        page: Page,
        profile: ProviderProfile,
        *,
        sleep: Callable[[float], None] = time.sleep,
        poll_interval: float | None = None,
    ):
        self.page = page
        self.profile = profile
        self._sleep = sleep
        self.poll_interval = (
            config.COMPOSE_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
        )

    @property
    def provider_name(self) -> str:
        return self.profile.provider.capitalize()

    def inject(self, compose_text: str) -> None:
        """
        Open a reply and fill it with ``compose_text``.

        Raises:
            AffordanceNotFoundError: No reply control matched
            ComposeSurfaceNotFoundError: Reply clicked but no editor appeared
        """
        button = self.find_reply_control()
        if button is None:
            counter("draft.no_affordance")
            raise AffordanceNotFoundError(self.provider_name)

        self.page.click(button)
        self._sleep(self.profile.reply_settle_seconds)

        body = self.wait_for_compose_body()
        if body is None:
            counter("draft.no_compose_surface")
            raise ComposeSurfaceNotFoundError(self.provider_name)

        self.page.focus(body)
        self.page.set_inner_html(body, format_for_editor(compose_text))
        for event_type in EDITOR_EVENTS:
            self.page.dispatch_event(body, event_type)

        counter("draft.injected")
        log_event("draft.injected", provider=self.profile.key, chars=len(compose_text or ""))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_reply_control(self) -> Tag | None:
        doc = self.page.document()
        for selector in self.profile.reply_controls:
            for candidate in doc.select(selector):
                if not self._is_plain_reply(candidate):
                    continue
                if self.profile.reply_requires_visible and is_hidden(candidate):
                    continue
                return candidate
        return None

    def find_compose_body(self) -> Tag | None:
        doc = self.page.document()
        for selector in self.profile.compose_bodies:
            for candidate in doc.select(selector):
                if is_hidden(candidate):
                    continue
                if self.profile.compose_scope and not self._in_compose_scope(candidate):
                    continue
                return candidate
        return None

    def wait_for_compose_body(self) -> Tag | None:
        retrying = Retrying(
            stop=stop_after_attempt(self.profile.compose_retries + 1),
            wait=wait_fixed(self.poll_interval),
            retry=retry_if_result(lambda found: found is None),
            retry_error_callback=lambda _state: None,
            sleep=self._sleep,
        )
        return retrying(self.find_compose_body)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _is_plain_reply(element: Tag) -> bool:
        text = element.get_text(" ").lower()
        aria_label = (element.get("aria-label") or "").lower()
        title = (element.get("title") or "").lower()
        if "reply all" in aria_label or "forward" in aria_label:
            return False
        return "reply" in text or "reply" in aria_label or "reply" in title

    def _in_compose_scope(self, element: Tag) -> bool:
        scope = self.profile.compose_scope
        return matches(element, scope) or bool(ancestors_matching(element, scope))
