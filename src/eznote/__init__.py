"""Capture web content and insert it into Google Docs."""

import importlib.metadata
import logging

from eznote.capture import OverlayState, SnipSession, crop_region
from eznote.config import FrozenConfig, resolve_config
from eznote.core.exceptions import (
    AuthExpiredError,
    CaptureError,
    ConfigurationError,
    EznoteError,
    InvariantViolationError,
    NoDocumentSelected,
    PartialInsertion,
    RemoteServiceError,
    SessionExpired,
    SignInRequired,
)
from eznote.core.types import (
    CapturedAsset,
    CaptureRegion,
    Credential,
    DocumentAnchor,
    Failure,
    InsertionCommand,
    InsertionOutcome,
    InsertionState,
    InsertionTransaction,
    OutlineEntry,
    Result,
    SelectionPayload,
    Success,
    TextRange,
)
from eznote.formatting import format_caption, format_selection
from eznote.frontdoor import EznoteServices, create_services, plug_highlight
from eznote.hub import MessageHub
from eznote.notifications import LoggingNotifier, Notifier, RecordingNotifier
from eznote.pipeline import (
    AssetStager,
    CredentialedExecutor,
    DocumentStructureIndexer,
    InsertionOrchestrator,
    build_outline,
)
from eznote.services import (
    InMemorySettingsStore,
    JSONSettingsStore,
    build_http_client,
)
from eznote.telemetry import TelemetryContext, TelemetryReporter

# Version handling
try:
    __version__ = importlib.metadata.version("eznote")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
# This prevents 'No handler found' errors if the consuming app has no logging configured.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Entry points
    "create_services",
    "plug_highlight",
    "EznoteServices",
    "MessageHub",
    # Pipeline
    "AssetStager",
    "CredentialedExecutor",
    "DocumentStructureIndexer",
    "InsertionOrchestrator",
    "SnipSession",
    "OverlayState",
    "build_outline",
    "crop_region",
    "format_caption",
    "format_selection",
    # Configuration
    "FrozenConfig",
    "resolve_config",
    # Services
    "InMemorySettingsStore",
    "JSONSettingsStore",
    "build_http_client",
    # Notifications
    "LoggingNotifier",
    "Notifier",
    "RecordingNotifier",
    # Telemetry (extension points)
    "TelemetryContext",
    "TelemetryReporter",
    # Types
    "CaptureRegion",
    "CapturedAsset",
    "Credential",
    "DocumentAnchor",
    "Failure",
    "InsertionCommand",
    "InsertionOutcome",
    "InsertionState",
    "InsertionTransaction",
    "OutlineEntry",
    "Result",
    "SelectionPayload",
    "Success",
    "TextRange",
    # Exceptions
    "AuthExpiredError",
    "CaptureError",
    "ConfigurationError",
    "EznoteError",
    "InvariantViolationError",
    "NoDocumentSelected",
    "PartialInsertion",
    "RemoteServiceError",
    "SessionExpired",
    "SignInRequired",
]
