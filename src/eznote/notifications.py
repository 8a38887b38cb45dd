"""User-facing notifications for terminal outcomes.

The host supplies a `Notifier` (desktop toast, status bar, chat message...).
Every terminal outcome of an insertion produces exactly one call to
`Notifier.notify`; `describe_failure` turns an error into the text shown.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from eznote.core.exceptions import (
    CaptureError,
    NoDocumentSelected,
    PartialInsertion,
    SessionExpired,
    SignInRequired,
)

logger = logging.getLogger(__name__)

_IMAGE_LINK_FAILURE = "Unable to download all specified images"
_IMAGE_LINK_HINT = (
    "Google Docs could not use the image link. "
    "Try again in a moment or use a smaller selection."
)
_CONNECT_HINT = 'Open EZ-NoteTaker and click "Connect Google Docs" to sign in.'


@runtime_checkable
class Notifier(Protocol):
    def notify(self, title: str, message: str) -> None: ...


class LoggingNotifier:
    """Default notifier: writes notifications to the package logger."""

    def notify(self, title: str, message: str) -> None:
        logger.info("%s: %s", title, message)


class RecordingNotifier:
    """Keeps every notification in order; handy for hosts that poll and for tests."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def notify(self, title: str, message: str) -> None:
        self.messages.append((title, message))

    @property
    def last(self) -> tuple[str, str] | None:
        return self.messages[-1] if self.messages else None


def describe_success(*, image: bool) -> tuple[str, str]:
    if image:
        return "Snip and Plug", "Screenshot was added to your Google Doc."
    return "Plugged in", "Highlight was added to your connected Google Doc."


def describe_failure(error: BaseException, *, image: bool = False) -> tuple[str, str]:
    """Map an error to a ``(title, message)`` pair for the user.

    Args:
        error: The error that ended the attempt.
        image: Whether the attempt was a screenshot insertion.

    Returns:
        A short title and a one-sentence message.
    """
    match error:
        case NoDocumentSelected():
            return (
                "No document selected",
                "Open EZ-NoteTaker and select a Google Doc to connect.",
            )
        case SignInRequired():
            return "Sign in required", _CONNECT_HINT
        case SessionExpired():
            return (
                "Session expired",
                'Open EZ-NoteTaker and click "Connect Google Docs" to sign in again.',
            )
        case CaptureError():
            return "Snip failed", str(error) or "Could not process selection. Try again."
        case PartialInsertion(cause=cause):
            return (
                "Partially added",
                "The content was added but some formatting could not be applied: "
                f"{_friendly(cause)}",
            )
    title = "Snip and Plug failed" if image else "Could not plug in"
    return title, _friendly(error)


def _friendly(error: BaseException) -> str:
    message = str(error)
    if _IMAGE_LINK_FAILURE in message:
        return _IMAGE_LINK_HINT
    return message or "Something went wrong. Try again."
