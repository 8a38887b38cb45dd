from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import os

logger = logging.getLogger(__name__)


class SettingsKeys:
    """Keys the pipeline reads and writes in the host's settings store."""

    ACCESS_TOKEN = "accessToken"
    SELECTED_DOC_ID = "selectedDocId"
    SELECTED_DOC_NAME = "selectedDocName"
    SNIPS_FOLDER_ID = "eznoteSnipsFolderId"


class InMemorySettingsStore:
    """Process-local settings, useful for tests and short-lived hosts."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    async def get(self, key: str) -> Any | None:
        return self._data.get(key)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    async def remove(self, *keys: str) -> None:
        for key in keys:
            self._data.pop(key, None)

    def snapshot(self) -> dict[str, Any]:
        return dict(self._data)


class JSONSettingsStore:
    """Settings persisted in a single JSON object on disk.

    Uses copy-on-write: write to a temp file and rename for atomicity. Writes
    are serialized with a lock so concurrent ``set`` calls do not lose keys.
    An unreadable file is treated as empty and replaced on the next write.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        return self._read_all().get(key)

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    async def remove(self, *keys: str) -> None:
        async with self._lock:
            data = self._read_all()
            if not any(k in data for k in keys):
                return
            for key in keys:
                data.pop(key, None)
            self._write_all(data)

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            result = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Settings file %s is not valid JSON; ignoring it", self._path)
            return {}
        return result if isinstance(result, dict) else {}

    def _write_all(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        Path.replace(tmp, self._path)
