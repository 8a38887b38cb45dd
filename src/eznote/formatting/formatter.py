"""Turn captured text into an insertion transaction.

The transaction text has the shape::

    \\n<line>\\n<line>...\\nSource: <title> <timestamp>

List prefixes are stripped from the lines and remembered as ranges so the
document service can re-apply real list formatting after insertion. All
ranges are relative to the first character of the transaction and counted
in document indices (UTF-16 code units), not Python characters.
"""

from __future__ import annotations

import datetime
import re

from eznote.core.types import (
    InsertionTransaction,
    SelectionPayload,
    TextRange,
    document_length,
)

CITATION_LABEL = "\nSource: "
UNTITLED = "Untitled"

BULLET_GLYPHS = "•·▪◦-*"
_BULLET_PATTERN = re.compile(rf"^\s*[{re.escape(BULLET_GLYPHS)}]\s+")
_NUMBERED_PATTERN = re.compile(r"^\s*[0-9]+[.)]\s+")

# Remote documents mishandle zero-length paragraphs
_EMPTY_LINE = " "


def _classify(line: str) -> tuple[str, str | None]:
    """Return ``(content, kind)`` where kind is 'bullet', 'numbered' or None."""
    if match := _BULLET_PATTERN.match(line):
        return line[match.end() :] or _EMPTY_LINE, "bullet"
    if match := _NUMBERED_PATTERN.match(line):
        return line[match.end() :] or _EMPTY_LINE, "numbered"
    return line or _EMPTY_LINE, None


def format_selection(payload: SelectionPayload) -> InsertionTransaction:
    """Build the transaction for a text highlight.

    Lines starting with a bullet glyph or ``N.``/``N)`` become list ranges
    with the prefix removed; bullet detection wins when both could apply.
    Empty lines become a single space.
    """
    title = payload.page_title or UNTITLED
    text = payload.text.replace("\r\n", "\n").replace("\r", "\n")
    if not text.strip():
        text = _EMPTY_LINE

    parts: list[str] = []
    bullet_ranges: list[TextRange] = []
    numbered_ranges: list[TextRange] = []
    offset = 1  # after the leading newline

    for line in text.split("\n"):
        content, kind = _classify(line)
        # Ranges cover the paragraph's trailing newline as well
        line_range = TextRange(offset, offset + document_length(content) + 1)
        if kind == "bullet":
            bullet_ranges.append(line_range)
        elif kind == "numbered":
            numbered_ranges.append(line_range)
        parts.append(content)
        offset += document_length(content) + 1

    quote = "\n".join(parts)
    body = f"\n{quote}{CITATION_LABEL}{title} {payload.timestamp}"
    quote_length = document_length(quote)
    citation_start = 1 + quote_length + len(CITATION_LABEL)

    return InsertionTransaction(
        body_text=body,
        bullet_ranges=tuple(bullet_ranges),
        numbered_ranges=tuple(numbered_ranges),
        citation_range=TextRange(
            citation_start, citation_start + document_length(title)
        ),
        quote_length=quote_length,
    )


def format_caption(page_title: str, timestamp: str) -> InsertionTransaction:
    """Build the caption transaction that follows an inserted screenshot."""
    title = page_title or UNTITLED
    body = f"{CITATION_LABEL}{title} {timestamp}"
    start = len(CITATION_LABEL)
    return InsertionTransaction(
        body_text=body,
        citation_range=TextRange(start, start + document_length(title)),
    )


def timestamp_now() -> str:
    """UTC timestamp in the ``2024-01-01T00:00:00.000Z`` form used in citations."""
    now = datetime.datetime.now(datetime.UTC)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
