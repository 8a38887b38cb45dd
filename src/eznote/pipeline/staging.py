"""Upload binary assets somewhere the document service can fetch them.

The document service inserts images by URL, so staging is: find the snips
container, upload, open the object to anyone with the link, and resolve a
direct-fetch URL. Each step is its own remote call; an authentication
rejection at any of them surfaces as `AuthExpiredError` for the caller's
credential policy.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from eznote.core.types import StagedAsset
from eznote.services.google_drive import canonical_view_url
from eznote.services.settings import SettingsKeys
from eznote.telemetry import TelemetryContext

if TYPE_CHECKING:
    from collections.abc import Callable

    from eznote.config import FrozenConfig
    from eznote.core.types import Credential
    from eznote.services.base import ObjectStorage, SettingsStore
    from eznote.telemetry import TelemetryContextProtocol

logger = logging.getLogger(__name__)


class AssetStager:
    """Stages assets into the user's object storage.

    The snips container id is persisted in the settings store after it is
    created, so later insertions skip the creation call.
    """

    def __init__(
        self,
        storage_factory: Callable[[Credential], ObjectStorage],
        settings: SettingsStore,
        config: FrozenConfig,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        self._storage_factory = storage_factory
        self._settings = settings
        self._container_name = config.snips_folder_name
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()

    async def ensure_container(self, storage: ObjectStorage) -> str:
        """Return the memoized container id, creating the container if needed."""
        cached = await self._settings.get(SettingsKeys.SNIPS_FOLDER_ID)
        if isinstance(cached, str) and cached:
            return cached
        container_id = await storage.create_container(self._container_name)
        await self._settings.set(SettingsKeys.SNIPS_FOLDER_ID, container_id)
        logger.info("Created %s container %s", self._container_name, container_id)
        return container_id

    async def stage(
        self,
        credential: Credential,
        data: bytes,
        filename: str,
        container_id: str | None = None,
        *,
        mime_type: str = "image/png",
        use_container: bool = True,
    ) -> StagedAsset:
        """Upload ``data`` and return an id plus a URL anyone can fetch.

        Args:
            credential: Credential for the storage calls.
            data: Asset bytes.
            filename: Name stored with the object.
            container_id: Explicit container; skips the memoized lookup.
            mime_type: Content type of ``data``.
            use_container: When False and no ``container_id`` is given, the
                object lands at the storage root.

        Returns:
            The staged asset.
        """
        storage = self._storage_factory(credential)
        with self._telemetry("staging.stage"):
            if container_id is None and use_container:
                container_id = await self.ensure_container(storage)
            uploaded = await storage.upload(
                data, {"name": filename, "mimeType": mime_type}, container_id
            )
            await storage.set_public_readable(uploaded.object_id)
            url = uploaded.url or await storage.get_direct_url(uploaded.object_id)
        if not url:
            url = canonical_view_url(uploaded.object_id)
        logger.debug("Staged %s as %s", filename, uploaded.object_id)
        return StagedAsset(asset_id=uploaded.object_id, fetchable_url=url)
