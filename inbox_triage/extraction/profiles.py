"""
Provider Profile Resolver.

Maps a page URL to the structural query profile for its webmail provider and
variant. Profiles are data (profiles.yaml), so supporting another deployment
means adding an entry there rather than another branch here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlsplit

import yaml
from pydantic import BaseModel, ConfigDict, Field

from inbox_triage import config
from inbox_triage.observability.logging import get_logger

logger = get_logger(__name__)


class ProviderProfile(BaseModel):
    """Immutable set of CSS selectors and timings for one provider variant."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    provider: str
    variant: str
    hosts: tuple[str, ...]
    paths: tuple[str, ...] = ()

    # Page anchors
    thread_container: str
    thread_view: str | None = None
    messages: str
    subject: str
    subject_alt: str | None = None

    # Per-message (relative to the message node)
    message_body: str
    message_body_alt: str | None = None
    sender: str | None = None
    sender_name: str | None = None
    sender_email: str | None = None
    timestamp: str | None = None
    timestamp_alt: tuple[str, ...] = ()
    quote_wrappers: tuple[str, ...] = ()
    conversation_ancestor: str | None = None

    # Regions never treated as messages
    compose_area: str | None = None
    draft_area: str | None = None
    reply_area: str | None = None

    # Attachments (name/link/size relative to the attachment node)
    attachments: str
    attachment_links: str = "a"
    attachment_names: str | None = None
    attachment_sizes: str | None = None

    # Reply write-back
    reply_controls: tuple[str, ...] = ()
    reply_requires_visible: bool = False
    compose_bodies: tuple[str, ...] = ()
    compose_scope: str | None = None
    reply_settle_seconds: float = Field(default=0.5, ge=0)
    compose_retries: int = Field(default=20, ge=1)

    @property
    def key(self) -> str:
        return f"{self.provider}/{self.variant}"

    @property
    def exclusion_selectors(self) -> tuple[str, ...]:
        return tuple(s for s in (self.draft_area, self.compose_area, self.reply_area) if s)

    def matches_url(self, host: str, path: str) -> bool:
        if not any(re.search(pattern, host) for pattern in self.hosts):
            return False
        if self.paths:
            return any(re.search(pattern, path) for pattern in self.paths)
        return True


@dataclass(frozen=True)
class ProfileResolution:
    """Result of resolving a page URL: which provider, which variant, which profile."""

    provider: str
    variant: str
    profile: ProviderProfile


class ProfileRegistry:
    """Ordered collection of provider profiles loaded from YAML."""

    def __init__(self, profiles: list[ProviderProfile]):
        self.profiles = tuple(profiles)
        logger.debug(
            "ProfileRegistry initialized with %d profiles: %s",
            len(self.profiles),
            ", ".join(p.key for p in self.profiles),
        )

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> ProfileRegistry:
        """
        Load profiles from a YAML file.

        Args:
            path: Profiles file. Defaults to config.PROFILES_PATH.

        Raises:
            FileNotFoundError: If the profiles file does not exist
            pydantic.ValidationError: If a profile entry is malformed
        """
        path = path or config.PROFILES_PATH
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        entries = raw.get("profiles", [])
        return cls([ProviderProfile.model_validate(entry) for entry in entries])

    def resolve(self, url: str | None) -> ProfileResolution | None:
        """
        Pick the profile for a page URL.

        Args:
            url: Full page URL (origin is derived from it)

        Returns:
            ProfileResolution, or None when no supported provider matches.
            Never raises for odd input.
        """
        if not url:
            return None
        try:
            parts = urlsplit(url)
        except ValueError:
            return None
        host = (parts.hostname or "").lower()
        if not host:
            return None

        for profile in self.profiles:
            if profile.matches_url(host, parts.path or "/"):
                return ProfileResolution(profile.provider, profile.variant, profile)

        logger.debug("No provider profile for host %s", host)
        return None

    def get(self, provider: str, variant: str | None = None) -> ProviderProfile | None:
        for profile in self.profiles:
            if profile.provider == provider and (variant is None or profile.variant == variant):
                return profile
        return None


@lru_cache(maxsize=1)
def default_registry() -> ProfileRegistry:
    return ProfileRegistry.from_yaml()


def resolve_profile(url: str | None) -> ProfileResolution | None:
    """Resolve a URL against the bundled profiles."""
    return default_registry().resolve(url)
