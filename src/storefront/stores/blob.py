"""BlobRecordStore: RecordStore backed by a remote object-blob service.

Self-contained: uses raw httpx against the blob REST API. One object per
collection, addressed by a fixed pathname (``storefront-<key>.json``).

Endpoints:
- Read object: GET {base_url}/{pathname} -> JSON array body, 404 when absent
- Write object: PUT {base_url}/{pathname} -> body is the full serialized array;
  ``x-allow-overwrite: 1`` and ``x-add-random-suffix: 0`` keep the pathname fixed
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from storefront.constants import BLOB_PATH_PREFIX, DEFAULT_BLOB_BASE_URL
from storefront.errors import StorageFailure

logger = logging.getLogger(__name__)

_API_VERSION = "7"


def blob_pathname(key: str) -> str:
    return f"{BLOB_PATH_PREFIX}{key}.json"


class BlobRecordStore:
    """Remote blob persistence.

    Reads degrade: "not found", a transport error, a timeout or an
    unparseable body all read as an empty collection, so a still
    initializing store behaves like an empty one. Writes do not degrade:
    any failure raises ``StorageFailure`` so the caller never assumes an
    unpersisted mutation survived.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BLOB_BASE_URL,
        access: str = "private",
        timeout: float = 10.0,
    ) -> None:
        self._access = "public" if access.lower() == "public" else "private"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "x-api-version": _API_VERSION,
            },
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def read(self, key: str) -> list[dict[str, Any]]:
        pathname = blob_pathname(key)
        try:
            resp = await self._client.get(f"/{pathname}")
        except httpx.HTTPError as exc:
            logger.warning("Blob read failed (%s): %s", pathname, exc)
            return []

        if resp.status_code == 404:
            return []
        if resp.status_code != 200:
            logger.warning(
                "Blob read failed (%s): HTTP %d", pathname, resp.status_code
            )
            return []
        if not resp.content:
            return []

        try:
            data = resp.json()
        except ValueError:
            logger.warning(
                "Blob %s is not valid UTF-8 JSON; reading as empty.", pathname
            )
            return []
        if not isinstance(data, list):
            logger.warning("Blob %s is not a JSON array; reading as empty.", pathname)
            return []
        return data

    async def write(self, key: str, documents: list[dict[str, Any]]) -> None:
        pathname = blob_pathname(key)
        body = json.dumps(documents, indent=2)
        try:
            resp = await self._client.put(
                f"/{pathname}",
                content=body.encode("utf-8"),
                headers={
                    "x-content-type": "application/json",
                    "x-access": self._access,
                    "x-allow-overwrite": "1",
                    "x-add-random-suffix": "0",
                },
            )
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.error("Blob write timed out (%s).", pathname)
            raise StorageFailure(f"Blob write timed out for {key}") from exc
        except httpx.HTTPError as exc:
            logger.error("Blob write failed (%s): %s", pathname, exc)
            raise StorageFailure(f"Blob write failed for {key}: {exc}") from exc
