"""External collaborators: capability protocols and their Google adapters."""

from .base import CredentialProvider, DocumentService, ObjectStorage, SettingsStore
from .google_docs import GoogleDocsService
from .google_drive import GoogleDriveStorage
from .http import GoogleApiClient, build_http_client, raise_for_api_status
from .identity import StoredCredentialProvider
from .settings import InMemorySettingsStore, JSONSettingsStore, SettingsKeys

__all__ = [  # noqa: RUF022
    # Capabilities
    "CredentialProvider",
    "DocumentService",
    "ObjectStorage",
    "SettingsStore",
    # Adapters
    "GoogleApiClient",
    "GoogleDocsService",
    "GoogleDriveStorage",
    "StoredCredentialProvider",
    "build_http_client",
    "raise_for_api_status",
    # Settings
    "InMemorySettingsStore",
    "JSONSettingsStore",
    "SettingsKeys",
]
