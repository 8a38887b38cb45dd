"""Error taxonomy for the capture-to-insertion pipeline.

Every error raised by the package derives from `EznoteError`. Remote calls
raise `AuthExpiredError` or `RemoteServiceError`; the orchestrator classifies
whatever reaches its boundary into one of the terminal kinds below.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from eznote.core.types import InsertionState


class EznoteError(Exception):
    """Base exception for eznote errors"""  # noqa: D415


class ConfigurationError(EznoteError):
    """Raised when configuration cannot be resolved or validated"""  # noqa: D415


class CaptureError(EznoteError):
    """Raised when a raster cannot be decoded or cropped.

    The region selection is not preserved; the caller retries the whole capture.
    """


class NoDocumentSelected(EznoteError):  # noqa: N818
    """Raised when an insertion starts without a target document"""  # noqa: D415


class SignInRequired(EznoteError):  # noqa: N818
    """Raised when no valid credential is available"""  # noqa: D415


class AuthExpiredError(EznoteError):
    """Internal signal: a remote call was rejected for authentication."""

    def __init__(self, message: str = "Authentication rejected", *, status: int = 401):
        """Record the HTTP status that signalled the expiry."""
        super().__init__(message)
        self.status = status


class SessionExpired(EznoteError):  # noqa: N818
    """Raised after the credential was invalidated; the user must reconnect."""


class RemoteServiceError(EznoteError):
    """A remote call failed with a non-authentication error.

    Attributes:
        status: HTTP status code, when the failure came from a response.
        service_message: Message reported by the service, when available.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        service_message: str | None = None,
    ) -> None:
        """Initialize with the display message and optional response details."""
        super().__init__(message)
        self.status = status
        self.service_message = service_message


class PartialInsertion(EznoteError):  # noqa: N818
    """A follow-up call failed after the body text was already inserted.

    The text is present in the document without some of its list or link
    styling. Nothing is rolled back.
    """

    def __init__(
        self,
        message: str,
        *,
        reached: InsertionState,
        cause: Exception,
    ) -> None:
        """Record the last state reached and the failure that stopped the attempt."""
        super().__init__(message)
        self.reached = reached
        self.cause = cause


class InvariantViolationError(EznoteError):
    """Raised when a stage produces a value that breaks a pipeline invariant."""

    def __init__(self, message: str, *, stage_name: str | None = None) -> None:
        """Initialize with the offending stage name for diagnostics."""
        super().__init__(message)
        self.stage_name = stage_name
