"""The snip flow: overlay, region selection, viewport capture, insertion.

The host owns the overlay and the tab capture; this module only sequences
them. Overlay activity is passed in and returned as `OverlayState` so the
host can persist it wherever its UI keeps state.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import TYPE_CHECKING, Protocol

from eznote.capture.region import crop_region
from eznote.core.exceptions import CaptureError, NoDocumentSelected
from eznote.core.types import (
    InsertionCommand,
    InsertionOutcome,
    InsertionState,
    SelectionPayload,
)
from eznote.formatting.formatter import UNTITLED, timestamp_now
from eznote.notifications import LoggingNotifier, describe_failure
from eznote.services.settings import SettingsKeys

if TYPE_CHECKING:
    from eznote.config import FrozenConfig
    from eznote.core.types import CaptureRegion
    from eznote.notifications import Notifier
    from eznote.pipeline.orchestrator import InsertionOrchestrator
    from eznote.services.base import SettingsStore

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class OverlayState:
    """Whether the selection overlay is showing, and on which page."""

    active: bool = False
    target: str | None = None


INACTIVE = OverlayState()


class Overlay(Protocol):
    async def show(self, target: str | None) -> None:
        """Show the selection overlay; raise `CaptureError` if the page refuses it."""
        ...

    async def remove(self, target: str | None) -> None: ...


class ViewportCapturer(Protocol):
    async def capture(self, target: str | None) -> bytes | str:
        """Return the visible viewport as PNG bytes or a base64 data URL."""
        ...


class SnipSession:
    """Runs one snip at a time against the host's overlay and capturer."""

    def __init__(
        self,
        *,
        overlay: Overlay,
        capturer: ViewportCapturer,
        orchestrator: InsertionOrchestrator,
        settings: SettingsStore,
        config: FrozenConfig,
        notifier: Notifier | None = None,
    ) -> None:
        self._overlay = overlay
        self._capturer = capturer
        self._orchestrator = orchestrator
        self._settings = settings
        self._min_region_px = config.min_region_px
        self._repaint_delay = config.repaint_delay_seconds
        self._notifier: Notifier = notifier or LoggingNotifier()

    async def start(self, target: str | None = None) -> OverlayState:
        try:
            await self._overlay.show(target)
        except CaptureError as e:
            logger.warning("Could not show the snip overlay: %s", e)
            self._notifier.notify(
                "Snip failed",
                "Could not start snipping on this page. Try a different tab or reload.",
            )
            return INACTIVE
        return OverlayState(active=True, target=target)

    async def cancel(self, state: OverlayState) -> OverlayState:
        """Remove the overlay. No network call is made."""
        if state.active:
            await self._overlay.remove(state.target)
        return INACTIVE

    async def complete(
        self,
        state: OverlayState,
        region: CaptureRegion,
        *,
        page_url: str = "",
        page_title: str = "",
        insertion_index: int | None = None,
    ) -> tuple[OverlayState, InsertionOutcome | None]:
        """Capture ``region`` and insert it into the selected document.

        Regions below the size threshold are dropped without notification and
        return ``None`` as outcome. Otherwise exactly one notification is
        produced, whether the snip succeeds or fails.
        """
        if not region.is_actionable(self._min_region_px):
            logger.debug("Ignoring %sx%s region", region.width, region.height)
            return await self.cancel(state), None

        document_id = await self._settings.get(SettingsKeys.SELECTED_DOC_ID)
        if not document_id:
            await self.cancel(state)
            return INACTIVE, self._fail(NoDocumentSelected("No document selected"))

        await self.cancel(state)
        # Let the page repaint without the overlay before capturing it
        await asyncio.sleep(self._repaint_delay)

        try:
            raster = await self._capturer.capture(state.target)
            asset = crop_region(raster, region)
        except CaptureError as e:
            return INACTIVE, self._fail(e, document_id=document_id)

        payload = SelectionPayload(
            text="",
            page_url=page_url,
            page_title=page_title or UNTITLED,
            timestamp=timestamp_now(),
        )
        command = InsertionCommand(
            payload=payload,
            document_id=document_id,
            insertion_index=insertion_index,
            asset=asset,
        )
        return INACTIVE, await self._orchestrator.execute(command)

    def _fail(
        self, error: CaptureError | NoDocumentSelected, document_id: str | None = None
    ) -> InsertionOutcome:
        logger.warning("Snip failed: %s", error)
        self._notifier.notify(*describe_failure(error, image=True))
        return InsertionOutcome(
            state=InsertionState.FAILED,
            reached=InsertionState.IDLE,
            document_id=document_id,
            error=error,
        )
