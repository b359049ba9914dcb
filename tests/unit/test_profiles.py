"""Tests for provider profile resolution."""

import pytest
from fixtures.pages import GMAIL_URL, GMAIL_WORKSPACE_URL, OUTLOOK_LIVE_URL, OUTLOOK_URL

from inbox_triage.extraction.profiles import ProfileRegistry, ProviderProfile, resolve_profile


@pytest.mark.parametrize(
    ("url", "provider", "variant"),
    [
        (GMAIL_URL, "gmail", "personal"),
        (GMAIL_WORKSPACE_URL, "gmail", "workspace"),
        (OUTLOOK_URL, "outlook", "office365"),
        ("https://outlook.office365.com/mail/inbox", "outlook", "office365"),
        (OUTLOOK_LIVE_URL, "outlook", "com"),
        ("https://MAIL.GOOGLE.COM/mail/u/1/", "gmail", "personal"),
    ],
)
def test_resolves_supported_urls(registry, url, provider, variant):
    resolution = registry.resolve(url)

    assert resolution is not None
    assert resolution.provider == provider
    assert resolution.variant == variant
    assert resolution.profile.key == f"{provider}/{variant}"


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/mail/u/0/",
        "https://mail.google.com.evil.example/",
        "not a url",
        "",
        None,
    ],
)
def test_unsupported_or_odd_urls_resolve_to_none(registry, url):
    assert registry.resolve(url) is None


def test_variants_have_distinct_timestamp_alternates(registry):
    office = registry.get("outlook", "office365")
    personal = registry.get("outlook", "com")

    assert office.timestamp_alt != personal.timestamp_alt
    assert office.messages == personal.messages


def test_exclusion_selectors_skip_unset_regions(gmail_profile, outlook_profile):
    assert '[data-is-draft="true"]' in gmail_profile.exclusion_selectors
    assert None not in gmail_profile.exclusion_selectors
    assert '[data-testid="reply-compose-box"]' in outlook_profile.exclusion_selectors


def test_profiles_are_immutable(gmail_profile):
    with pytest.raises(Exception):
        gmail_profile.messages = ".other"


def test_from_yaml_loads_custom_profiles(tmp_path):
    path = tmp_path / "profiles.yaml"
    path.write_text(
        """
profiles:
  - provider: fastmail
    variant: web
    hosts: ['^app\\.fastmail\\.com$']
    thread_container: '.thread'
    messages: '.message'
    subject: 'h1.subject'
    message_body: '.body'
    attachments: '.attachment'
""",
        encoding="utf-8",
    )

    registry = ProfileRegistry.from_yaml(path)
    resolution = registry.resolve("https://app.fastmail.com/mail/Inbox/T123")

    assert resolution.provider == "fastmail"
    assert resolution.profile.reply_controls == ()
    assert registry.resolve(GMAIL_URL) is None


def test_first_matching_profile_wins():
    common = {
        "provider": "gmail",
        "hosts": ["^mail\\.google\\.com$"],
        "thread_container": "[data-thread-id]",
        "messages": "[data-message-id]",
        "subject": "h2",
        "message_body": ".body",
        "attachments": ".aZo",
    }
    registry = ProfileRegistry(
        [
            ProviderProfile(variant="first", **common),
            ProviderProfile(variant="second", **common),
        ]
    )

    assert registry.resolve(GMAIL_URL).variant == "first"


def test_module_level_resolver_uses_bundled_profiles():
    assert resolve_profile(OUTLOOK_URL).provider == "outlook"
