"""Core data types that flow through the insertion pipeline.

This module defines the immutable data structures that represent one
insertion attempt as it moves through capture, formatting, staging and
submission. Each stage transforms the attempt into a new state, so a
failed attempt never leaves half-updated objects behind.

All offsets are character offsets. Ranges on an `InsertionTransaction` are
relative to the transaction's own start; indices on `DocumentAnchor` and
`OutlineEntry` are document-absolute.
"""

from __future__ import annotations

import dataclasses
import enum
import typing

# --- Minimal guard helpers (clarity > boilerplate) ---


def _is_tuple_of(value: object, typ: type | tuple[type, ...]) -> bool:
    return isinstance(value, tuple) and all(isinstance(v, typ) for v in value)


def document_length(text: str) -> int:
    """Length of ``text`` in document indices (UTF-16 code units).

    Characters outside the Basic Multilingual Plane, such as most emoji,
    occupy two indices.
    """
    return len(text.encode("utf-16-le")) // 2


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            enhanced_message = f"{field_name}: {message}"
            raise exc(enhanced_message)
        raise exc(message)


# --- Result Monad for Robust Error Handling ---
# Stages return Success | Failure instead of raising, so the orchestrator
# can see exactly which stage stopped an attempt.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success(typing.Generic[TSuccess]):
    """A successful result in the pipeline."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure(typing.Generic[TFailure]):
    """A failure in the pipeline, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]


# --- Credentials ---


@dataclasses.dataclass(frozen=True, slots=True)
class Credential:
    """Opaque bearer token.

    Expiry is unknown locally; a credential is only found to be invalid when a
    remote call rejects it.
    """

    token: str

    def __post_init__(self) -> None:
        """Reject empty tokens."""
        _require(
            condition=isinstance(self.token, str) and self.token.strip() != "",
            message="must be a non-empty str",
            field_name="token",
            exc=TypeError,
        )

    def __repr__(self) -> str:
        """Repr with redacted token for safe logging."""
        return "Credential(token=[REDACTED])"

    __str__ = __repr__


# --- Capture ---


@dataclasses.dataclass(frozen=True, slots=True)
class CaptureRegion:
    """A user-drawn rectangle in viewport CSS pixels plus the device pixel ratio."""

    x: float
    y: float
    width: float
    height: float
    dpr: float = 1.0

    def __post_init__(self) -> None:
        """Validate non-negative dimensions and a positive scale."""
        _require(
            condition=self.width >= 0 and self.height >= 0,
            message="must be >= 0",
            field_name="width/height",
        )
        _require(condition=self.dpr > 0, message="must be > 0", field_name="dpr")

    def is_actionable(self, min_px: float = 5) -> bool:
        """Return False for regions too small to be a deliberate selection."""
        return self.width >= min_px and self.height >= min_px


@dataclasses.dataclass(frozen=True, slots=True)
class CapturedAsset:
    """Cropped raster bytes with their pixel dimensions."""

    data: bytes
    width: int
    height: int
    mime_type: str = "image/png"

    def __post_init__(self) -> None:
        """Validate that the asset carries bytes and has a visible size."""
        _require(
            condition=isinstance(self.data, bytes) and len(self.data) > 0,
            message="must be non-empty bytes",
            field_name="data",
            exc=TypeError,
        )
        _require(
            condition=self.width >= 1 and self.height >= 1,
            message="must be >= 1",
            field_name="width/height",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class SelectionPayload:
    """Text highlight and page provenance captured at trigger time."""

    text: str
    page_url: str
    page_title: str
    timestamp: str


# --- Formatting ---


class ListKind(enum.Enum):
    """Paragraph list styles the document service can apply."""

    BULLET = "bullet"
    NUMBERED = "numbered"


@dataclasses.dataclass(frozen=True, slots=True)
class TextRange:
    """Half-open character range ``[start, end)``."""

    start: int
    end: int

    def __post_init__(self) -> None:
        """Validate ordering."""
        _require(
            condition=0 <= self.start <= self.end,
            message=f"must satisfy 0 <= start <= end, got [{self.start}, {self.end})",
            field_name="range",
        )

    def __len__(self) -> int:
        return self.end - self.start

    def shifted(self, offset: int) -> TextRange:
        """Return the same range moved by ``offset`` characters."""
        return TextRange(self.start + offset, self.end + offset)

    def overlaps(self, other: TextRange) -> bool:
        return self.start < other.end and other.start < self.end


@dataclasses.dataclass(frozen=True, slots=True)
class InsertionTransaction:
    """Formatted text plus the ranges that need styling after insertion.

    ``quote_length`` is the length of the quoted text between the leading
    newline and the citation suffix; it is zero for image captions.
    """

    body_text: str
    bullet_ranges: tuple[TextRange, ...] = ()
    numbered_ranges: tuple[TextRange, ...] = ()
    citation_range: TextRange | None = None
    quote_length: int = 0

    def __post_init__(self) -> None:
        """Validate that list ranges are sorted, disjoint and inside the body."""
        _require(
            condition=isinstance(self.body_text, str) and self.body_text != "",
            message="must be a non-empty str",
            field_name="body_text",
            exc=TypeError,
        )
        _require(
            condition=_is_tuple_of(self.bullet_ranges, TextRange)
            and _is_tuple_of(self.numbered_ranges, TextRange),
            message="must be tuple[TextRange, ...]",
            field_name="bullet_ranges/numbered_ranges",
            exc=TypeError,
        )
        ranges = sorted(
            (*self.bullet_ranges, *self.numbered_ranges), key=lambda r: r.start
        )
        for prev, cur in zip(ranges, ranges[1:], strict=False):
            _require(
                condition=not prev.overlaps(cur),
                message=f"overlapping ranges {prev} and {cur}",
                field_name="list ranges",
            )
        _require(
            condition=all(r.end <= self.length for r in ranges),
            message="must lie within body_text",
            field_name="list ranges",
        )
        if self.citation_range is not None:
            _require(
                condition=self.citation_range.end <= self.length,
                message="must lie within body_text",
                field_name="citation_range",
            )

    @property
    def length(self) -> int:
        """Body length in document indices."""
        return document_length(self.body_text)

    @property
    def has_list_ranges(self) -> bool:
        return bool(self.bullet_ranges or self.numbered_ranges)


@dataclasses.dataclass(frozen=True, slots=True)
class InlineImage:
    """An image the document service fetches by URL, sized in points."""

    uri: str
    width_pt: int
    height_pt: int


# --- Document structure ---


@dataclasses.dataclass(frozen=True, slots=True)
class DocumentAnchor:
    """Target document plus an optional document-absolute insertion index.

    ``insertion_index=None`` means append at the end of the document.
    """

    document_id: str
    insertion_index: int | None = None

    def __post_init__(self) -> None:
        """Validate the document id and index."""
        _require(
            condition=isinstance(self.document_id, str)
            and self.document_id.strip() != "",
            message="must be a non-empty str",
            field_name="document_id",
        )
        _require(
            condition=self.insertion_index is None or self.insertion_index >= 1,
            message="must be >= 1 when provided",
            field_name="insertion_index",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class StructuralElement:
    """One top-level body element as reported by the document service."""

    start_index: int
    end_index: int
    named_style: str | None = None
    text: str = ""


@dataclasses.dataclass(frozen=True, slots=True)
class OutlineEntry:
    """A named insertion point."""

    label: str
    index: int


SectionOutline: typing.TypeAlias = tuple[OutlineEntry, ...]


@dataclasses.dataclass(frozen=True, slots=True)
class DocumentSummary:
    """A document the user may select as insertion target."""

    id: str
    name: str
    modified_time: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class PreviewRun:
    """A text run or inline image inside a preview paragraph."""

    kind: typing.Literal["text", "image"]
    value: str
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False


@dataclasses.dataclass(frozen=True, slots=True)
class PreviewBlock:
    """A paragraph of a document preview."""

    style: str
    list_item: bool
    children: tuple[PreviewRun, ...]


@dataclasses.dataclass(frozen=True, slots=True)
class DocumentPreview:
    title: str
    blocks: tuple[PreviewBlock, ...]


# --- Storage ---


@dataclasses.dataclass(frozen=True, slots=True)
class UploadedObject:
    """Identifier and optional direct link returned by an upload."""

    object_id: str
    url: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class StagedAsset:
    """An uploaded asset that the document service can fetch by URL."""

    asset_id: str
    fetchable_url: str


# --- Insertion attempt ---


class InsertionState(enum.IntEnum):
    """Progress of one insertion attempt.

    Integer ordering matters: anything at or past ``SUBMITTED`` means text
    is already in the document.
    """

    IDLE = 0
    ASSET_PENDING = 1
    INDEX_RESOLVED = 2
    SUBMITTED = 3
    STYLED = 4
    DONE = 5
    FAILED = 6


@dataclasses.dataclass(frozen=True, slots=True)
class InsertionCommand:
    """The caller's request: what to insert and where.

    ``asset`` is present for screenshot insertions and absent for highlights.
    """

    payload: SelectionPayload
    document_id: str | None
    insertion_index: int | None = None
    asset: CapturedAsset | None = None

    @property
    def is_image(self) -> bool:
        return self.asset is not None


@dataclasses.dataclass(frozen=True, slots=True)
class InsertionAttempt:
    """State of one in-flight attempt as it passes through the stages."""

    command: InsertionCommand
    anchor: DocumentAnchor
    transaction: InsertionTransaction
    credential: Credential
    state: InsertionState = InsertionState.IDLE
    image: InlineImage | None = None
    staged: StagedAsset | None = None
    start_index: int | None = None

    def advance(self, state: InsertionState, **changes: typing.Any) -> InsertionAttempt:
        """Return a copy moved to ``state`` with ``changes`` applied."""
        return dataclasses.replace(self, state=state, **changes)


@dataclasses.dataclass(frozen=True, slots=True)
class InsertionOutcome:
    """Terminal result of an attempt, returned to the UI layer.

    ``reached`` is the last non-terminal state the attempt completed, so a
    failed outcome tells the caller whether text may already be present.
    """

    state: InsertionState
    reached: InsertionState
    document_id: str | None = None
    start_index: int | None = None
    error: Exception | None = None
    durations: typing.Mapping[str, float] = dataclasses.field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.state is InsertionState.DONE
