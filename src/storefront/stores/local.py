"""LocalRecordStore: one JSON file per collection under a data directory."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from storefront.errors import StorageFailure

logger = logging.getLogger(__name__)


class LocalRecordStore:
    """Filesystem-backed RecordStore.

    - ``read(key)`` parses ``<data_dir>/<key>.json`` as one JSON array.
      A missing file is created holding ``[]``; corrupt content is logged
      and read as empty.
    - ``write(key, documents)`` serializes the full array to a temporary
      sibling and renames it over the target, so readers never observe a
      half-written file.

    Blocking file I/O runs in a worker thread so every call is a
    suspension point for the event loop.
    """

    def __init__(self, data_dir: str | os.PathLike[str]) -> None:
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    async def read(self, key: str) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._read_sync, key)

    async def write(self, key: str, documents: list[dict[str, Any]]) -> None:
        await asyncio.to_thread(self._write_sync, key, documents)

    # -- blocking helpers ----------------------------------------------------

    def _read_sync(self, key: str) -> list[dict[str, Any]]:
        path = self.path_for(key)
        if not path.exists():
            try:
                self._write_sync(key, [])
            except StorageFailure:
                logger.warning("Could not initialize %s; reading as empty.", path)
            return []

        try:
            raw = path.read_text(encoding="utf-8")
            data = json.loads(raw or "[]")
        except (OSError, ValueError):
            # ValueError covers bad JSON and bad UTF-8
            logger.warning("Failed to read JSON from %s; reading as empty.", path)
            return []

        if not isinstance(data, list):
            logger.warning("%s does not hold a JSON array; reading as empty.", path)
            return []
        return data

    def _write_sync(self, key: str, documents: list[dict[str, Any]]) -> None:
        path = self.path_for(key)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._data_dir, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(documents, fh, indent=2)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to write JSON to %s: %s", path, exc)
            raise StorageFailure(f"Failed to write {key}: {exc}") from exc
