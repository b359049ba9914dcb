"""
Error taxonomy for the extraction engine.

Only whole-operation failures are raised. A single message or attachment
that yields nothing is an ordinary absence and is dropped by the parsers.
"""

from __future__ import annotations


class InboxTriageError(Exception):
    """Base class for engine failures surfaced to callers."""

    retryable: bool = False
    user_message: str = "An unexpected error occurred. Please try again."


class UnsupportedProviderError(InboxTriageError):
    """The page origin matches no known webmail provider."""

    user_message = "Navigate to Gmail or Outlook to use this extension."

    def __init__(self, url: str):
        super().__init__(f"Unsupported email provider for {url!r}")
        self.url = url


class NotReadyError(InboxTriageError):
    """No structural anchor appeared before the readiness timeout."""

    retryable = True
    user_message = (
        "Page is not ready yet. Please wait for the email thread to fully load, then try again."
    )

    def __init__(self, timeout_seconds: float):
        super().__init__(f"Page did not become ready within {timeout_seconds:.1f}s")
        self.timeout_seconds = timeout_seconds


class EmptyThreadError(InboxTriageError):
    """The page was ready but held neither a subject nor any message."""

    user_message = "No email content found. Make sure you are viewing an email thread."

    def __init__(self) -> None:
        super().__init__("No email content found")


class ExtractionInProgressError(InboxTriageError):
    """A second extract() arrived while one is still outstanding."""

    retryable = True
    user_message = "An extraction is already running. Please wait for it to finish."

    def __init__(self) -> None:
        super().__init__("Extraction already in progress")


class AffordanceNotFoundError(InboxTriageError):
    """No reply control matched any candidate selector."""

    retryable = True
    user_message = "Could not find the Reply button. Refresh the email tab and try again."

    def __init__(self, provider: str):
        super().__init__(f"Could not find Reply button in {provider}")
        self.provider = provider


class ComposeSurfaceNotFoundError(InboxTriageError):
    """Reply was triggered but no editable body surface appeared."""

    retryable = True
    user_message = "The reply editor did not open. Refresh the email tab and try again."

    def __init__(self, provider: str):
        super().__init__(f"Could not find compose body editor in {provider}")
        self.provider = provider


class PageCommunicationError(InboxTriageError):
    """The page adapter itself failed (tab closed, bridge dropped)."""

    retryable = True
    user_message = "Could not communicate with the page. Try refreshing the Gmail/Outlook tab."


class MalformedUrlError(ValueError):
    """A URL could not be parsed. Never escapes the session matcher."""

    pass
