"""Request routing between the host UI and the pipeline.

Every request the UI can send is a dataclass below; `MessageHub.handle`
matches on the request type and returns that request's response type. No
exception escapes `handle`: failures come back as ``success=False`` with a
human-readable ``error``.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, ClassVar, TypeAlias, assert_never

from eznote.core.exceptions import EznoteError, NoDocumentSelected
from eznote.core.types import (
    CaptureRegion,
    DocumentPreview,
    DocumentSummary,
    InsertionCommand,
    InsertionOutcome,
    OutlineEntry,
    SelectionPayload,
)
from eznote.formatting.formatter import timestamp_now
from eznote.services.settings import SettingsKeys

if TYPE_CHECKING:
    from collections.abc import Callable

    from eznote.capture.session import OverlayState, SnipSession
    from eznote.core.types import Credential
    from eznote.pipeline.credentials import CredentialedExecutor
    from eznote.pipeline.orchestrator import InsertionOrchestrator
    from eznote.pipeline.structure import DocumentStructureIndexer
    from eznote.services.base import SettingsStore
    from eznote.services.google_docs import GoogleDocsService
    from eznote.services.google_drive import GoogleDriveStorage
    from eznote.services.identity import StoredCredentialProvider

logger = logging.getLogger(__name__)


# --- Responses ---


@dataclasses.dataclass(frozen=True, slots=True)
class Response:
    success: bool = True
    error: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class AuthStatusResponse(Response):
    connected: bool = False
    document_id: str | None = None
    document_name: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class DocumentListResponse(Response):
    docs: tuple[DocumentSummary, ...] = ()


@dataclasses.dataclass(frozen=True, slots=True)
class DocumentResponse(Response):
    doc: DocumentSummary | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class SectionsResponse(Response):
    sections: tuple[OutlineEntry, ...] = ()


@dataclasses.dataclass(frozen=True, slots=True)
class PreviewResponse(Response):
    preview: DocumentPreview | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class InsertionResponse(Response):
    outcome: InsertionOutcome | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class SnipResponse(Response):
    overlay: OverlayState | None = None
    outcome: InsertionOutcome | None = None


# --- Requests ---


@dataclasses.dataclass(frozen=True, slots=True)
class AuthStatusRequest:
    response_type: ClassVar[type[Response]] = AuthStatusResponse


@dataclasses.dataclass(frozen=True, slots=True)
class DisconnectRequest:
    response_type: ClassVar[type[Response]] = Response


@dataclasses.dataclass(frozen=True, slots=True)
class ListDocumentsRequest:
    response_type: ClassVar[type[Response]] = DocumentListResponse


@dataclasses.dataclass(frozen=True, slots=True)
class SelectDocumentRequest:
    document_id: str
    document_name: str = ""

    response_type: ClassVar[type[Response]] = Response


@dataclasses.dataclass(frozen=True, slots=True)
class CreateDocumentRequest:
    name: str = "Untitled"

    response_type: ClassVar[type[Response]] = DocumentResponse


@dataclasses.dataclass(frozen=True, slots=True)
class ListSectionsRequest:
    """Outline of ``document_id``, or of the selected document when omitted."""

    document_id: str | None = None

    response_type: ClassVar[type[Response]] = SectionsResponse


@dataclasses.dataclass(frozen=True, slots=True)
class PreviewDocumentRequest:
    document_id: str | None = None

    response_type: ClassVar[type[Response]] = PreviewResponse


@dataclasses.dataclass(frozen=True, slots=True)
class PlugHighlightRequest:
    """Insert a text highlight; ``insertion_index`` comes from a section outline."""

    text: str
    page_url: str = ""
    page_title: str = ""
    timestamp: str = ""
    insertion_index: int | None = None

    response_type: ClassVar[type[Response]] = InsertionResponse


@dataclasses.dataclass(frozen=True, slots=True)
class StartSnipRequest:
    target: str | None = None

    response_type: ClassVar[type[Response]] = SnipResponse


@dataclasses.dataclass(frozen=True, slots=True)
class CancelSnipRequest:
    overlay: OverlayState

    response_type: ClassVar[type[Response]] = SnipResponse


@dataclasses.dataclass(frozen=True, slots=True)
class CompleteSnipRequest:
    overlay: OverlayState
    region: CaptureRegion
    page_url: str = ""
    page_title: str = ""
    insertion_index: int | None = None

    response_type: ClassVar[type[Response]] = SnipResponse


Request: TypeAlias = (
    AuthStatusRequest
    | DisconnectRequest
    | ListDocumentsRequest
    | SelectDocumentRequest
    | CreateDocumentRequest
    | ListSectionsRequest
    | PreviewDocumentRequest
    | PlugHighlightRequest
    | StartSnipRequest
    | CancelSnipRequest
    | CompleteSnipRequest
)


class MessageHub:
    """Routes UI requests to the pipeline and the Google services."""

    def __init__(
        self,
        *,
        settings: SettingsStore,
        credentials: StoredCredentialProvider,
        executor: CredentialedExecutor,
        orchestrator: InsertionOrchestrator,
        indexer: DocumentStructureIndexer,
        docs_factory: Callable[[Credential], GoogleDocsService],
        drive_factory: Callable[[Credential], GoogleDriveStorage],
        snips: SnipSession | None = None,
    ) -> None:
        self._settings = settings
        self._credentials = credentials
        self._executor = executor
        self._orchestrator = orchestrator
        self._indexer = indexer
        self._docs_factory = docs_factory
        self._drive_factory = drive_factory
        self._snips = snips

    async def handle(self, request: Request) -> Response:
        try:
            return await self._dispatch(request)
        except EznoteError as e:
            logger.warning("%s failed: %s", type(request).__name__, e)
            return request.response_type(success=False, error=str(e))

    async def _dispatch(self, request: Request) -> Response:
        match request:
            case AuthStatusRequest():
                return await self._auth_status()
            case DisconnectRequest():
                await self._credentials.sign_out()
                return Response()
            case ListDocumentsRequest():
                docs = await self._executor.run(
                    lambda c: self._drive_factory(c).list_documents()
                )
                return DocumentListResponse(docs=tuple(docs))
            case SelectDocumentRequest(document_id=doc_id, document_name=name):
                if not doc_id:
                    return Response(success=False, error="Missing documentId")
                await self._select(doc_id, name)
                return Response()
            case CreateDocumentRequest(name=name):
                doc = await self._executor.run(
                    lambda c: self._drive_factory(c).create_document(name.strip() or "Untitled")
                )
                await self._select(doc.id, doc.name)
                return DocumentResponse(doc=doc)
            case ListSectionsRequest(document_id=doc_id):
                target = doc_id or await self._selected_document()
                sections = await self._executor.run(
                    lambda c: self._indexer.fetch_outline(target, c)
                )
                return SectionsResponse(sections=sections)
            case PreviewDocumentRequest(document_id=doc_id):
                target = doc_id or await self._selected_document()
                preview = await self._executor.run(
                    lambda c: self._docs_factory(c).fetch_preview(target)
                )
                return PreviewResponse(preview=preview)
            case PlugHighlightRequest():
                return await self._plug_highlight(request)
            case StartSnipRequest(target=target):
                overlay = await self._require_snips().start(target)
                return SnipResponse(success=overlay.active, overlay=overlay)
            case CancelSnipRequest(overlay=overlay):
                return SnipResponse(overlay=await self._require_snips().cancel(overlay))
            case CompleteSnipRequest():
                overlay, outcome = await self._require_snips().complete(
                    request.overlay,
                    request.region,
                    page_url=request.page_url,
                    page_title=request.page_title,
                    insertion_index=request.insertion_index,
                )
                return SnipResponse(
                    success=outcome is None or outcome.ok,
                    error=_outcome_error(outcome),
                    overlay=overlay,
                    outcome=outcome,
                )
            case _:
                assert_never(request)

    async def _auth_status(self) -> AuthStatusResponse:
        credential = await self._credentials.get_valid_credential()
        doc_id = await self._settings.get(SettingsKeys.SELECTED_DOC_ID)
        doc_name = await self._settings.get(SettingsKeys.SELECTED_DOC_NAME)
        return AuthStatusResponse(
            connected=credential is not None,
            document_id=doc_id or None,
            document_name=doc_name or None,
        )

    async def _plug_highlight(self, request: PlugHighlightRequest) -> InsertionResponse:
        # The orchestrator reports a missing document itself
        doc_id = await self._settings.get(SettingsKeys.SELECTED_DOC_ID)
        payload = SelectionPayload(
            text=request.text,
            page_url=request.page_url,
            page_title=request.page_title,
            timestamp=request.timestamp or timestamp_now(),
        )
        outcome = await self._orchestrator.execute(
            InsertionCommand(
                payload=payload,
                document_id=doc_id,
                insertion_index=request.insertion_index,
            )
        )
        return InsertionResponse(
            success=outcome.ok, error=_outcome_error(outcome), outcome=outcome
        )

    async def _select(self, document_id: str, document_name: str) -> None:
        await self._settings.set(SettingsKeys.SELECTED_DOC_ID, document_id)
        await self._settings.set(SettingsKeys.SELECTED_DOC_NAME, document_name)

    async def _selected_document(self) -> str:
        doc_id = await self._settings.get(SettingsKeys.SELECTED_DOC_ID)
        if not doc_id:
            raise NoDocumentSelected("No document selected")
        return str(doc_id)

    def _require_snips(self) -> SnipSession:
        if self._snips is None:
            raise EznoteError("Snipping is not available in this host")
        return self._snips


def _outcome_error(outcome: InsertionOutcome | None) -> str | None:
    if outcome is None or outcome.error is None:
        return None
    return str(outcome.error)
