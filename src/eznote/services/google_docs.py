"""Google Docs adapter for the `DocumentService` capability.

Edits go through ``documents/{id}:batchUpdate``; reads use a ``fields`` mask
so only the parts the pipeline needs are transferred.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from eznote.core.types import (
    DocumentPreview,
    InlineImage,
    ListKind,
    PreviewBlock,
    PreviewRun,
    StructuralElement,
    TextRange,
)
from eznote.services.http import GoogleApiClient

BULLET_PRESETS: dict[ListKind, str] = {
    ListKind.BULLET: "BULLET_DISC_CIRCLE_SQUARE",
    ListKind.NUMBERED: "NUMBERED_DECIMAL_ALPHA_ROMAN",
}

_STRUCTURE_FIELDS = (
    "body.content(startIndex,endIndex,"
    "paragraph(paragraphStyle(namedStyleType),elements(textRun(content))))"
)
_END_INDEX_FIELDS = "body.content(endIndex)"
_PREVIEW_FIELDS = ",".join(
    (
        "title",
        "body.content(paragraph(elements(textRun(content,"
        "textStyle(bold,italic,underline,strikethrough)),"
        "inlineObjectElement(inlineObjectId)),paragraphStyle(namedStyleType),bullet))",
        "inlineObjects",
    )
)

_NAMED_STYLE_MAP = {
    "HEADING_1": "heading1",
    "HEADING_2": "heading2",
    "HEADING_3": "heading3",
    "HEADING_4": "heading4",
    "HEADING_5": "heading5",
    "HEADING_6": "heading6",
    "NORMAL_TEXT": "normal",
    "TITLE": "title",
    "SUBTITLE": "subtitle",
}


def _location(index: int | None) -> dict[str, Any]:
    if index is None:
        return {"endOfSegmentLocation": {"segmentId": ""}}
    return {"location": {"index": index}}


def _range(text_range: TextRange) -> dict[str, int]:
    return {"startIndex": text_range.start, "endIndex": text_range.end}


class GoogleDocsService(GoogleApiClient):
    """`DocumentService` backed by the Google Docs REST API."""

    service_name = "Docs API"

    def _doc_url(self, document_id: str) -> str:
        return f"{self._config.docs_api_base}/{document_id}"

    async def _batch_update(
        self, document_id: str, requests: list[dict[str, Any]], *, scope: str
    ) -> None:
        await self._request(
            "POST",
            f"{self._doc_url(document_id)}:batchUpdate",
            json={"requests": requests},
            scope=scope,
        )

    async def _get_document(
        self, document_id: str, fields: str, *, scope: str
    ) -> dict[str, Any]:
        response = await self._request(
            "GET", self._doc_url(document_id), params={"fields": fields}, scope=scope
        )
        return self._json(response)

    # --- Edits ---

    async def insert_at(
        self,
        document_id: str,
        index: int | None,
        text: str,
        image: InlineImage | None = None,
    ) -> None:
        """Insert an optional inline image followed by ``text``."""
        requests: list[dict[str, Any]] = []
        text_index = index
        if image is not None:
            requests.append(
                {
                    "insertInlineImage": {
                        "uri": image.uri,
                        "objectSize": {
                            "width": {"magnitude": image.width_pt, "unit": "PT"},
                            "height": {"magnitude": image.height_pt, "unit": "PT"},
                        },
                        **_location(index),
                    }
                }
            )
            # An inline image occupies one index
            if index is not None:
                text_index = index + 1
        requests.append({"insertText": {"text": text, **_location(text_index)}})
        await self._batch_update(document_id, requests, scope="docs.insert")

    async def apply_list_style(
        self, document_id: str, spans: Sequence[tuple[TextRange, ListKind]]
    ) -> None:
        requests = [
            {
                "createParagraphBullets": {
                    "range": _range(text_range),
                    "bulletPreset": BULLET_PRESETS[kind],
                }
            }
            for text_range, kind in spans
        ]
        if requests:
            await self._batch_update(document_id, requests, scope="docs.list_style")

    async def apply_link_style(
        self, document_id: str, text_range: TextRange, url: str
    ) -> None:
        request = {
            "updateTextStyle": {
                "range": _range(text_range),
                "textStyle": {"link": {"url": url}},
                "fields": "link",
            }
        }
        await self._batch_update(document_id, [request], scope="docs.link_style")

    # --- Reads ---

    async def get_structure(self, document_id: str) -> list[StructuralElement]:
        data = await self._get_document(
            document_id, _STRUCTURE_FIELDS, scope="docs.structure"
        )
        elements: list[StructuralElement] = []
        for el in (data.get("body") or {}).get("content") or []:
            start = el.get("startIndex", 0)
            end = el.get("endIndex", start)
            paragraph = el.get("paragraph")
            if not paragraph:
                elements.append(StructuralElement(start_index=start, end_index=end))
                continue
            style = (paragraph.get("paragraphStyle") or {}).get("namedStyleType")
            text = "".join(
                (e.get("textRun") or {}).get("content", "")
                for e in paragraph.get("elements") or []
            )
            elements.append(
                StructuralElement(
                    start_index=start, end_index=end, named_style=style, text=text
                )
            )
        return elements

    async def get_end_index(self, document_id: str) -> int:
        """Return the index just past the last character of the body."""
        data = await self._get_document(
            document_id, _END_INDEX_FIELDS, scope="docs.end_index"
        )
        content = (data.get("body") or {}).get("content") or []
        return max((c.get("endIndex") or 0 for c in content), default=0)

    async def fetch_preview(self, document_id: str) -> DocumentPreview:
        """Fetch the title and formatted paragraphs for a read-only preview.

        Paragraphs with nothing but whitespace are skipped unless they are
        list items.
        """
        data = await self._get_document(
            document_id, _PREVIEW_FIELDS, scope="docs.preview"
        )
        inline_objects = data.get("inlineObjects") or {}
        blocks: list[PreviewBlock] = []
        for el in (data.get("body") or {}).get("content") or []:
            paragraph = el.get("paragraph")
            if not paragraph:
                continue
            named = (paragraph.get("paragraphStyle") or {}).get("namedStyleType")
            list_item = bool(paragraph.get("bullet"))
            children: list[PreviewRun] = []
            for elem in paragraph.get("elements") or []:
                run = elem.get("textRun")
                if run is not None and "content" in run:
                    ts = run.get("textStyle") or {}
                    children.append(
                        PreviewRun(
                            kind="text",
                            value=run["content"],
                            bold=ts.get("bold") is True,
                            italic=ts.get("italic") is True,
                            underline=ts.get("underline") is True,
                            strikethrough=ts.get("strikethrough") is True,
                        )
                    )
                object_id = (elem.get("inlineObjectElement") or {}).get(
                    "inlineObjectId"
                )
                if object_id and (url := _inline_image_url(inline_objects, object_id)):
                    children.append(PreviewRun(kind="image", value=url))
            has_content = any(
                c.kind == "image" or c.value.strip() != "" for c in children
            )
            if has_content or list_item:
                blocks.append(
                    PreviewBlock(
                        style=_NAMED_STYLE_MAP.get(named or "", "normal"),
                        list_item=list_item,
                        children=tuple(children),
                    )
                )
        return DocumentPreview(
            title=data.get("title") or "Untitled", blocks=tuple(blocks)
        )


def _inline_image_url(inline_objects: dict[str, Any], object_id: str) -> str | None:
    props = (
        ((inline_objects.get(object_id) or {}).get("inlineObjectProperties") or {})
        .get("embeddedObject", {})
        .get("imageProperties", {})
    )
    uri = props.get("sourceUri") or props.get("contentUri")
    return uri if isinstance(uri, str) and uri else None
