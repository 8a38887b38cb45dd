"""Capability protocols for the external collaborators.

The pipeline depends only on these protocols. Concrete Google adapters live
beside this module; tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from eznote.core.types import (
        Credential,
        InlineImage,
        ListKind,
        StructuralElement,
        TextRange,
        UploadedObject,
    )


class CredentialProvider(Protocol):
    """Non-interactive access to the user's current credential."""

    async def get_valid_credential(self) -> Credential | None:
        """Return the stored credential, or None when signed out."""
        ...

    async def invalidate(self, credential: Credential) -> None:
        """Forget a credential the remote service rejected."""
        ...


class DocumentService(Protocol):
    """Edits and reads one remote rich-text document per call."""

    async def insert_at(
        self,
        document_id: str,
        index: int | None,
        text: str,
        image: InlineImage | None = None,
    ) -> None:
        """Insert ``image`` (if any) followed by ``text``; ``index=None`` appends."""
        ...

    async def apply_list_style(
        self, document_id: str, spans: Sequence[tuple[TextRange, ListKind]]
    ) -> None:
        """Turn each span's paragraphs into a list, in one call."""
        ...

    async def apply_link_style(
        self, document_id: str, text_range: TextRange, url: str
    ) -> None: ...

    async def get_structure(self, document_id: str) -> list[StructuralElement]: ...

    async def get_end_index(self, document_id: str) -> int: ...


class ObjectStorage(Protocol):
    """Binary storage the document service can fetch images from."""

    async def create_container(self, name: str) -> str: ...

    async def upload(
        self, data: bytes, metadata: dict[str, Any], container_id: str | None = None
    ) -> UploadedObject: ...

    async def set_public_readable(self, object_id: str) -> None: ...

    async def get_direct_url(self, object_id: str) -> str | None: ...


class SettingsStore(Protocol):
    """Persistent key-value settings of the host."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def remove(self, *keys: str) -> None: ...
