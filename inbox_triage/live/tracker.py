"""
Live Mutation Tracker.

Keeps a Thread current while the user stays on a single-page webmail app.

States:
    idle      - not tracking (not started, stopped, or unsupported page)
    observing - a thread container is present; qualifying changes schedule
                a re-extraction
    stale     - the container disappeared (navigated away); waits for it to
                come back

Time is explicit: ``poll()`` fires any due timers, so a host loop (or a test)
decides when time passes. Qualifying mutations inside a debounce window push
the deadline back, so a burst of changes yields one re-extraction.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import Enum

from bs4 import Tag

from inbox_triage import config
from inbox_triage.errors import InboxTriageError
from inbox_triage.extraction.extractor import ThreadExtractor
from inbox_triage.extraction.profiles import ProfileRegistry, ProfileResolution, ProviderProfile
from inbox_triage.extraction.types import Thread
from inbox_triage.live.page import MutationRecord, NavigationKind, Page
from inbox_triage.observability.logging import get_logger
from inbox_triage.observability.telemetry import counter, log_event
from inbox_triage.utils.html import ancestors_matching, matches

logger = get_logger(__name__)


class TrackerState(str, Enum):
    IDLE = "idle"
    OBSERVING = "observing"
    STALE = "stale"


class LiveMutationTracker:
    """
    Debounced re-extraction driven by page mutations and SPA navigation.

    Args:
        page: Page to observe
        extractor: Extractor whose profile is swapped on provider change
        on_update: Called with each freshly extracted Thread
        on_profile_change: Optional callback when navigation swaps the profile
        registry: Profiles used to re-resolve navigated URLs
        debounce: Quiet period before a re-extraction fires (seconds)
        settle: Delay after navigation before re-checking the page (seconds)
        clock: Monotonic time source
    """

    def __init__(
        self,
        page: Page,
        extractor: ThreadExtractor,
        on_update: Callable[[Thread], None],
        *,
        on_profile_change: Callable[[ProfileResolution], None] | None = None,
        registry: ProfileRegistry | None = None,
        debounce: float | None = None,
        settle: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.page = page
        self.extractor = extractor
        self.on_update = on_update
        self.on_profile_change = on_profile_change
        self.registry = registry or extractor.registry
        self.debounce = config.MUTATION_DEBOUNCE_SECONDS if debounce is None else debounce
        self.settle = config.NAVIGATION_SETTLE_SECONDS if settle is None else settle
        self._clock = clock

        self.state = TrackerState.IDLE
        self._unsubscribe: Callable[[], None] | None = None
        self._debounce_deadline: float | None = None
        self._recheck_deadline: float | None = None
        self._last_url = page.url
        self._supported = True

    @property
    def profile(self) -> ProviderProfile:
        return self.extractor.profile

    @property
    def pending(self) -> bool:
        return self._debounce_deadline is not None or self._recheck_deadline is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self.page.subscribe(self)
        self._last_url = self.page.url
        self._supported = True
        self._refresh_state()
        logger.info("Tracking started (%s, state=%s)", self.profile.key, self.state.value)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._debounce_deadline = None
        self._recheck_deadline = None
        self.state = TrackerState.IDLE
        logger.info("Tracking stopped")

    # ------------------------------------------------------------------
    # Page notifications
    # ------------------------------------------------------------------

    def on_mutations(self, records: list[MutationRecord]) -> None:
        if self._unsubscribe is None or not self._supported:
            return

        self._refresh_state()
        if self.state is not TrackerState.OBSERVING:
            return

        if any(self._qualifies(record) for record in records):
            # Reset, never queue: one re-extraction per quiet period
            self._debounce_deadline = self._clock() + self.debounce
            counter("tracker.mutation_batches")

    def on_navigation(self, url: str, kind: NavigationKind) -> None:
        if self._unsubscribe is None or url == self._last_url:
            return
        self._last_url = url
        logger.info("Navigation (%s) to new URL", kind)

        resolution = self.registry.resolve(url)
        if resolution is None:
            logger.info("Navigated to an unsupported page; going idle")
            self._supported = False
            self._debounce_deadline = None
            self._recheck_deadline = None
            self.state = TrackerState.IDLE
            return

        self._supported = True
        if resolution.profile.key != self.profile.key:
            previous = self.profile.key
            self.extractor.use_resolution(resolution)
            log_event("tracker.profile_changed", previous=previous, current=resolution.profile.key)
            if self.on_profile_change is not None:
                self.on_profile_change(resolution)

        self._debounce_deadline = None
        self._recheck_deadline = self._clock() + self.settle

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def poll(self, now: float | None = None) -> bool:
        """
        Fire any due timer.

        Returns:
            True if a re-extraction ran
        """
        now = self._clock() if now is None else now
        due = False

        if self._recheck_deadline is not None and now >= self._recheck_deadline:
            self._recheck_deadline = None
            self._refresh_state()
            due = self.state is TrackerState.OBSERVING

        if self._debounce_deadline is not None and now >= self._debounce_deadline:
            self._debounce_deadline = None
            due = True

        if not due:
            return False
        return self._reextract()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reextract(self) -> bool:
        if not self.extractor.is_ready():
            logger.debug("Skipping re-extraction: page not ready")
            return False
        try:
            thread = self.extractor.extract()
        except InboxTriageError as e:
            counter("tracker.reextract_failed")
            logger.warning("Re-extraction failed: %s", e)
            return False
        counter("tracker.reextract")
        self.on_update(thread)
        return True

    def _container_present(self) -> bool:
        doc = self.page.document()
        profile = self.profile
        return any(
            selector and doc.select_one(selector) is not None
            for selector in (profile.thread_container, profile.thread_view)
        )

    def _refresh_state(self) -> None:
        present = self._container_present()
        previous = self.state
        if present:
            self.state = TrackerState.OBSERVING
        elif previous is TrackerState.OBSERVING:
            self.state = TrackerState.STALE
            self._debounce_deadline = None

        if self.state is not previous:
            logger.debug("Tracker state %s -> %s", previous.value, self.state.value)

    def _qualifies(self, record: MutationRecord) -> bool:
        if record.type == "attributes":
            return record.attribute_name in config.WATCHED_ATTRIBUTES

        messages = self.profile.messages
        for node in record.added_nodes + record.removed_nodes:
            if not isinstance(node, Tag):
                continue
            if matches(node, messages) or node.select_one(messages) is not None:
                return True

        target = record.target
        if not isinstance(target, Tag) or target.name == "[document]":
            return False

        # Detached nodes no longer match context selectors; judge them by their old parent
        container = self.profile.thread_container
        if record.removed_nodes and (
            matches(target, container) or ancestors_matching(target, container)
        ):
            return True

        # A change inside an existing message also counts
        return matches(target, messages) or bool(ancestors_matching(target, messages))
