"""In-memory stand-ins for the remote collaborators.

Each fake records its calls as ``(method, args)`` tuples and can be told to
raise on a given method, either every time or only on the next call.
"""

from __future__ import annotations

from typing import Any

from eznote.core.types import (
    Credential,
    DocumentPreview,
    DocumentSummary,
    InlineImage,
    ListKind,
    StructuralElement,
    TextRange,
    UploadedObject,
    document_length,
)


class _Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._failures: dict[str, tuple[Exception, bool]] = {}

    def fail_on(self, method: str, error: Exception, *, once: bool = False) -> None:
        self._failures[method] = (error, once)

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        failure = self._failures.get(method)
        if failure is not None:
            error, once = failure
            if once:
                del self._failures[method]
            raise error

    def calls_to(self, method: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == method]

    @property
    def method_names(self) -> list[str]:
        return [name for name, _ in self.calls]


class FakeCredentialProvider:
    def __init__(self, credential: Credential | None) -> None:
        self.current = credential
        self.invalidated: list[Credential] = []

    async def get_valid_credential(self) -> Credential | None:
        return self.current

    async def invalidate(self, credential: Credential) -> None:
        self.invalidated.append(credential)
        self.current = None


class FakeDocumentService(_Recorder):
    """Document whose end index grows with every insertion."""

    def __init__(
        self,
        *,
        end_index: int = 50,
        elements: list[StructuralElement] | None = None,
    ) -> None:
        super().__init__()
        self.end_index = end_index
        self.elements = list(elements or [])
        self.credentials: list[Credential] = []

    def bind(self, credential: Credential) -> FakeDocumentService:
        """Factory hook matching ``Callable[[Credential], DocumentService]``."""
        self.credentials.append(credential)
        return self

    async def insert_at(
        self,
        document_id: str,
        index: int | None,
        text: str,
        image: InlineImage | None = None,
    ) -> None:
        self._record("insert_at", document_id, index, text, image)
        self.end_index += document_length(text) + (1 if image is not None else 0)

    async def apply_list_style(
        self, document_id: str, spans: list[tuple[TextRange, ListKind]]
    ) -> None:
        self._record("apply_list_style", document_id, list(spans))

    async def apply_link_style(
        self, document_id: str, text_range: TextRange, url: str
    ) -> None:
        self._record("apply_link_style", document_id, text_range, url)

    async def get_structure(self, document_id: str) -> list[StructuralElement]:
        self._record("get_structure", document_id)
        return list(self.elements)

    async def get_end_index(self, document_id: str) -> int:
        self._record("get_end_index", document_id)
        return self.end_index

    async def fetch_preview(self, document_id: str) -> DocumentPreview:
        self._record("fetch_preview", document_id)
        return DocumentPreview(title="Research notes", blocks=())


class FakeObjectStorage(_Recorder):
    def __init__(
        self,
        *,
        upload_url: str | None = "https://drive.example/direct",
        direct_url: str | None = None,
    ) -> None:
        super().__init__()
        self.upload_url = upload_url
        self.direct_url = direct_url
        self.uploads: list[tuple[bytes, dict[str, Any], str | None]] = []
        self._next_id = 0

    def bind(self, credential: Credential) -> FakeObjectStorage:  # noqa: ARG002
        return self

    async def create_container(self, name: str) -> str:
        self._record("create_container", name)
        return f"folder-{name.lower().replace(' ', '-')}"

    async def upload(
        self, data: bytes, metadata: dict[str, Any], container_id: str | None = None
    ) -> UploadedObject:
        self._record("upload", metadata, container_id)
        self._next_id += 1
        self.uploads.append((data, metadata, container_id))
        return UploadedObject(object_id=f"file-{self._next_id}", url=self.upload_url)

    async def set_public_readable(self, object_id: str) -> None:
        self._record("set_public_readable", object_id)

    async def get_direct_url(self, object_id: str) -> str | None:
        self._record("get_direct_url", object_id)
        return self.direct_url

    async def list_documents(self, page_size: int = 100) -> list[DocumentSummary]:
        self._record("list_documents", page_size)
        return [DocumentSummary("doc-1", "Research notes"), DocumentSummary("doc-2", "Draft")]

    async def create_document(self, name: str = "Untitled") -> DocumentSummary:
        self._record("create_document", name)
        return DocumentSummary("doc-new", name)
