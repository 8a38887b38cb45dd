"""Google Drive adapter for the `ObjectStorage` capability.

Also lists and creates Google Docs, which the host uses to let the user pick
an insertion target.
"""

from __future__ import annotations

import json
import secrets
from typing import Any

from eznote.core.exceptions import RemoteServiceError
from eznote.core.types import DocumentSummary, UploadedObject
from eznote.services.http import GoogleApiClient

FOLDER_MIME = "application/vnd.google-apps.folder"
DOC_MIME = "application/vnd.google-apps.document"
_UPLOAD_FIELDS = "id,webContentLink,webViewLink"


def canonical_view_url(object_id: str) -> str:
    """Direct-view URL pattern used when the service reports no link."""
    return f"https://drive.google.com/uc?export=view&id={object_id}"


def _multipart_related(
    metadata: dict[str, Any], data: bytes, mime_type: str
) -> tuple[bytes, str]:
    boundary = "-------" + secrets.token_hex(6)
    head = (
        f"\r\n--{boundary}\r\n"
        "Content-Type: application/json; charset=UTF-8\r\n\r\n"
        f"{json.dumps(metadata)}"
        f"\r\n--{boundary}\r\n"
        f"Content-Type: {mime_type}\r\n\r\n"
    )
    tail = f"\r\n--{boundary}--\r\n"
    body = head.encode("utf-8") + data + tail.encode("utf-8")
    return body, f"multipart/related; boundary={boundary}"


class GoogleDriveStorage(GoogleApiClient):
    """`ObjectStorage` backed by the Google Drive v3 REST API."""

    service_name = "Drive API"

    async def create_container(self, name: str) -> str:
        response = await self._request(
            "POST",
            self._config.drive_api_base,
            json={"name": name, "mimeType": FOLDER_MIME},
            scope="drive.create_folder",
        )
        folder_id = self._json(response).get("id")
        if not folder_id:
            raise RemoteServiceError("No folder ID returned from Drive")
        return str(folder_id)

    async def upload(
        self, data: bytes, metadata: dict[str, Any], container_id: str | None = None
    ) -> UploadedObject:
        """Upload bytes with their metadata in one multipart request."""
        meta = dict(metadata)
        mime_type = str(meta.setdefault("mimeType", "image/png"))
        if container_id:
            meta["parents"] = [container_id]
        body, content_type = _multipart_related(meta, data, mime_type)
        response = await self._request(
            "POST",
            self._config.drive_upload_url,
            params={"uploadType": "multipart", "fields": _UPLOAD_FIELDS},
            content=body,
            headers={"Content-Type": content_type},
            scope="drive.upload",
        )
        payload = self._json(response)
        object_id = payload.get("id")
        if not object_id:
            raise RemoteServiceError("No file ID returned from Drive")
        return UploadedObject(object_id=str(object_id), url=payload.get("webContentLink"))

    async def set_public_readable(self, object_id: str) -> None:
        await self._request(
            "POST",
            f"{self._config.drive_api_base}/{object_id}/permissions",
            json={"type": "anyone", "role": "reader"},
            scope="drive.permission",
        )

    async def get_direct_url(self, object_id: str) -> str | None:
        response = await self._request(
            "GET",
            f"{self._config.drive_api_base}/{object_id}",
            params={"fields": "webContentLink"},
            scope="drive.metadata",
        )
        link = self._json(response).get("webContentLink")
        return str(link) if link else None

    # --- Document selection ---

    async def list_documents(self, page_size: int = 100) -> list[DocumentSummary]:
        """Return the user's Google Docs, most recently modified first."""
        response = await self._request(
            "GET",
            self._config.drive_api_base,
            params={
                "q": f"mimeType='{DOC_MIME}'",
                "fields": "files(id,name,modifiedTime)",
                "orderBy": "modifiedTime desc",
                "pageSize": page_size,
            },
            scope="drive.list_documents",
        )
        return [
            DocumentSummary(
                id=str(f["id"]),
                name=f.get("name") or "Untitled",
                modified_time=f.get("modifiedTime"),
            )
            for f in self._json(response).get("files") or []
            if f.get("id")
        ]

    async def create_document(self, name: str = "Untitled") -> DocumentSummary:
        title = name.strip() or "Untitled"
        response = await self._request(
            "POST",
            self._config.drive_api_base,
            json={"name": title, "mimeType": DOC_MIME},
            scope="drive.create_document",
        )
        payload = self._json(response)
        doc_id = payload.get("id")
        if not doc_id:
            raise RemoteServiceError("No document ID returned from Drive")
        return DocumentSummary(id=str(doc_id), name=payload.get("name") or title)
