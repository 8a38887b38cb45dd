"""Named insertion points derived from a document's headings.

The outline offers the start of the document, the end of every heading's
section, and the end of the document. Section ends point one character
before the end of the section's last body paragraph: inserting there keeps
the new text in that paragraph's style instead of the next heading's.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from eznote.core.types import OutlineEntry, SectionOutline

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from eznote.config import FrozenConfig
    from eznote.core.types import Credential, StructuralElement
    from eznote.services.base import DocumentService

logger = logging.getLogger(__name__)

HEADING_STYLES = frozenset(
    {
        "HEADING_1",
        "HEADING_2",
        "HEADING_3",
        "HEADING_4",
        "HEADING_5",
        "HEADING_6",
        "TITLE",
        "SUBTITLE",
    }
)
UNNAMED_SECTION = "(unnamed)"
BEGINNING_LABEL = "At the beginning"
END_LABEL = "At the end"
SECTION_LABEL_PREFIX = "End of section: "


def heading_label(text: str, max_length: int = 60) -> str:
    label = text.replace("\n", " ").strip()[:max_length]
    return label or UNNAMED_SECTION


def build_outline(
    elements: Iterable[StructuralElement], *, label_max: int = 60
) -> SectionOutline:
    """Derive insertion points from body elements in document order.

    Args:
        elements: Top-level body elements with their style and text.
        label_max: Maximum length of a heading label.

    Returns:
        ``At the beginning`` (index 1), one entry per heading, then ``At the
        end`` at the largest end index seen. Indices are non-decreasing.
    """
    max_end = 1
    # End of the most recent non-heading element
    last_body_end = 1
    labels: list[str] = []
    section_ends: list[int | None] = []

    for element in elements:
        end = element.end_index or element.start_index or 0
        max_end = max(max_end, end)
        if element.named_style in HEADING_STYLES:
            if section_ends:
                section_ends[-1] = max(1, last_body_end - 1)
            labels.append(heading_label(element.text, label_max))
            section_ends.append(None)
        else:
            last_body_end = end

    if section_ends:
        section_ends[-1] = max(1, last_body_end - 1)

    outline = [OutlineEntry(BEGINNING_LABEL, 1)]
    outline.extend(
        OutlineEntry(f"{SECTION_LABEL_PREFIX}{label}", max_end if idx is None else idx)
        for label, idx in zip(labels, section_ends, strict=True)
    )
    outline.append(OutlineEntry(END_LABEL, max_end))
    return tuple(outline)


class DocumentStructureIndexer:
    """Fetches a document's structure and turns it into a `SectionOutline`.

    Outlines are never cached: each call reflects the document as it is now.
    """

    def __init__(
        self,
        docs_factory: Callable[[Credential], DocumentService],
        config: FrozenConfig,
    ) -> None:
        self._docs_factory = docs_factory
        self._label_max = config.heading_label_max

    async def fetch_outline(
        self, document_id: str, credential: Credential
    ) -> SectionOutline:
        docs = self._docs_factory(credential)
        elements = await docs.get_structure(document_id)
        outline = build_outline(elements, label_max=self._label_max)
        logger.debug(
            "Outline for %s: %d insertion points", document_id, len(outline)
        )
        return outline
