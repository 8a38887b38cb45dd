"""Credential provider over the host's settings store.

The interactive sign-in flow belongs to the host; it hands the resulting
token to `StoredCredentialProvider.store_credential`. The pipeline only ever
reads the stored token and forgets it when a remote service rejects it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from eznote.core.types import Credential
from eznote.services.settings import SettingsKeys

if TYPE_CHECKING:
    from eznote.services.base import SettingsStore

logger = logging.getLogger(__name__)


class StoredCredentialProvider:
    def __init__(self, store: SettingsStore) -> None:
        self._store = store

    async def get_valid_credential(self) -> Credential | None:
        token = await self._store.get(SettingsKeys.ACCESS_TOKEN)
        if not isinstance(token, str) or not token.strip():
            return None
        return Credential(token)

    async def store_credential(self, token: str) -> Credential:
        credential = Credential(token)
        await self._store.set(SettingsKeys.ACCESS_TOKEN, credential.token)
        return credential

    async def invalidate(self, credential: Credential) -> None:
        """Forget ``credential`` unless a newer one has replaced it meanwhile."""
        current = await self._store.get(SettingsKeys.ACCESS_TOKEN)
        if current is not None and current != credential.token:
            logger.debug("Stored credential changed since use; keeping it")
            return
        await self._store.remove(SettingsKeys.ACCESS_TOKEN)
        logger.info("Stored credential invalidated")

    async def sign_out(self) -> None:
        """Drop the credential and the selected document."""
        await self._store.remove(
            SettingsKeys.ACCESS_TOKEN,
            SettingsKeys.SELECTED_DOC_ID,
            SettingsKeys.SELECTED_DOC_NAME,
        )
