"""Insertion stages.

Each stage takes an `InsertionAttempt`, performs at most a couple of remote
calls, and returns the attempt advanced to its state. Remote errors are
returned as `Failure` so the orchestrator can see which stage stopped the
attempt and how far it got.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from eznote.capture.region import asset_size_in_points
from eznote.core.exceptions import EznoteError, InvariantViolationError
from eznote.core.types import (
    Failure,
    InlineImage,
    InsertionAttempt,
    InsertionState,
    ListKind,
    Result,
    Success,
    TextRange,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from eznote.config import FrozenConfig
    from eznote.core.types import Credential
    from eznote.pipeline.staging import AssetStager
    from eznote.services.base import DocumentService

logger = logging.getLogger(__name__)

DEFAULT_LINK_URL = "#"


def merge_adjacent(ranges: Sequence[TextRange]) -> list[TextRange]:
    """Merge ranges that touch into single spans.

    Consecutive list lines become one span so the document service treats
    them as one list rather than one list per line.
    """
    spans: list[TextRange] = []
    for r in sorted(ranges, key=lambda r: r.start):
        if spans and spans[-1].end == r.start:
            spans[-1] = TextRange(spans[-1].start, r.end)
        else:
            spans.append(r)
    return spans


class AssetStage:
    """Upload a screenshot so the document service can fetch it."""

    def __init__(self, stager: AssetStager, config: FrozenConfig) -> None:
        self._stager = stager
        self._filename_prefix = config.snip_filename_prefix

    async def handle(
        self, command: InsertionAttempt
    ) -> Result[InsertionAttempt, EznoteError]:
        asset = command.command.asset
        if asset is None:
            return Success(command)
        filename = f"{self._filename_prefix}-{int(time.time() * 1000)}.png"
        try:
            staged = await self._stager.stage(
                command.credential, asset.data, filename, mime_type=asset.mime_type
            )
        except EznoteError as e:
            return Failure(e)
        width_pt, height_pt = asset_size_in_points(asset)
        image = InlineImage(uri=staged.fetchable_url, width_pt=width_pt, height_pt=height_pt)
        return Success(
            command.advance(InsertionState.ASSET_PENDING, staged=staged, image=image)
        )


class IndexResolutionStage:
    """Fix the start offset for explicit placement; defer it for appends.

    An inline image occupies one index, so text inserted after an image at an
    explicit index starts one character later.
    """

    async def handle(
        self, command: InsertionAttempt
    ) -> Result[InsertionAttempt, EznoteError]:
        if command.command.is_image and command.image is None:
            return Failure(
                InvariantViolationError(
                    "Image attempt reached index resolution without a staged asset",
                    stage_name=type(self).__name__,
                )
            )
        index = command.anchor.insertion_index
        start = None
        if index is not None:
            start = index + 1 if command.image is not None else index
        return Success(command.advance(InsertionState.INDEX_RESOLVED, start_index=start))


class SubmitStage:
    """Insert the body (and image) with one remote call."""

    def __init__(self, docs_factory: Callable[[Credential], DocumentService]) -> None:
        self._docs_factory = docs_factory

    async def handle(
        self, command: InsertionAttempt
    ) -> Result[InsertionAttempt, EznoteError]:
        docs = self._docs_factory(command.credential)
        anchor = command.anchor
        try:
            await docs.insert_at(
                anchor.document_id,
                anchor.insertion_index,
                command.transaction.body_text,
                command.image,
            )
        except EznoteError as e:
            return Failure(e)
        return Success(command.advance(InsertionState.SUBMITTED))


class StartRecoveryStage:
    """Recover where an append landed.

    Appending does not report its offset, so the start is the document's new
    end index minus the body length. Another writer editing the document in
    between would shift this.
    """

    def __init__(self, docs_factory: Callable[[Credential], DocumentService]) -> None:
        self._docs_factory = docs_factory

    async def handle(
        self, command: InsertionAttempt
    ) -> Result[InsertionAttempt, EznoteError]:
        if command.start_index is not None:
            return Success(command)
        docs = self._docs_factory(command.credential)
        try:
            end = await docs.get_end_index(command.anchor.document_id)
        except EznoteError as e:
            return Failure(e)
        start = end - command.transaction.length
        if start < 0:
            return Failure(
                InvariantViolationError(
                    f"Document end index {end} is shorter than the inserted text",
                    stage_name=type(self).__name__,
                )
            )
        return Success(command.advance(InsertionState.SUBMITTED, start_index=start))


class ListStyleStage:
    """Re-apply bullet and numbered formatting to the stripped list lines."""

    def __init__(self, docs_factory: Callable[[Credential], DocumentService]) -> None:
        self._docs_factory = docs_factory

    async def handle(
        self, command: InsertionAttempt
    ) -> Result[InsertionAttempt, EznoteError]:
        transaction = command.transaction
        if not transaction.has_list_ranges:
            return Success(command)
        start = _require_start(command, type(self).__name__)
        if isinstance(start, Failure):
            return start
        spans = [
            (span.shifted(start), ListKind.BULLET)
            for span in merge_adjacent(transaction.bullet_ranges)
        ] + [
            (span.shifted(start), ListKind.NUMBERED)
            for span in merge_adjacent(transaction.numbered_ranges)
        ]
        docs = self._docs_factory(command.credential)
        try:
            await docs.apply_list_style(command.anchor.document_id, spans)
        except EznoteError as e:
            return Failure(e)
        return Success(command)


class LinkStyleStage:
    """Hyperlink the citation title to the source page."""

    def __init__(self, docs_factory: Callable[[Credential], DocumentService]) -> None:
        self._docs_factory = docs_factory

    async def handle(
        self, command: InsertionAttempt
    ) -> Result[InsertionAttempt, EznoteError]:
        citation = command.transaction.citation_range
        if citation is not None and len(citation) > 0:
            start = _require_start(command, type(self).__name__)
            if isinstance(start, Failure):
                return start
            url = command.command.payload.page_url or DEFAULT_LINK_URL
            docs = self._docs_factory(command.credential)
            try:
                await docs.apply_link_style(
                    command.anchor.document_id, citation.shifted(start), url
                )
            except EznoteError as e:
                return Failure(e)
        return Success(command.advance(InsertionState.STYLED))


def _require_start(
    attempt: InsertionAttempt, stage_name: str
) -> int | Failure[EznoteError]:
    if attempt.start_index is None:
        return Failure(
            InvariantViolationError(
                "Styling requested before the start offset was resolved",
                stage_name=stage_name,
            )
        )
    return attempt.start_index
