"""Pull-based synchronization of the full dataset between environments.

The origin (hosted instance) exports both collections behind a shared
secret; a local instance pulls that document and totally replaces its own
collections with it. Import is one-directional: never into the hosted
environment.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from storefront.constants import Collection
from storefront.errors import (
    SyncError,
    SyncNotConfigured,
    SyncRefused,
    Unauthorized,
)

if TYPE_CHECKING:
    from storefront.config import StorefrontConfig
    from storefront.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

EXPORT_PATH = "/api/dashboard-sync"


@dataclass(frozen=True)
class SyncResult:
    orders: int
    admins: int

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "orders": self.orders, "admins": self.admins}


def secret_matches(provided: str | None, configured: str | None) -> bool:
    """Exact match; an unset configured secret matches nothing."""
    if not configured or not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), configured.encode("utf-8"))


async def export_snapshot(
    gateway: PersistenceGateway,
    provided_secret: str | None,
    configured_secret: str | None,
) -> dict[str, list[dict[str, Any]]]:
    """Serve ``{orders, admins}`` to a caller holding the shared secret."""
    if not secret_matches(provided_secret, configured_secret):
        logger.warning("Rejected dashboard sync request with a bad secret.")
        raise Unauthorized()
    orders = await gateway.read_orders()
    admins = await gateway.read_admins()
    return {"orders": orders, "admins": admins}


def _as_list(value: Any) -> list[dict[str, Any]]:
    return list(value) if isinstance(value, list) else []


class SyncClient:
    """Async client for an origin's export endpoint."""

    def __init__(self, origin_url: str, secret: str, timeout: float = 30.0) -> None:
        self._secret = secret
        self._client = httpx.AsyncClient(
            base_url=origin_url.rstrip("/"),
            timeout=timeout,
        )

    async def fetch_snapshot(self) -> dict[str, list[dict[str, Any]]]:
        """GET the export document. Raises SyncError on any failure."""
        try:
            response = await self._client.get(
                EXPORT_PATH, params={"secret": self._secret}
            )
        except httpx.TimeoutException as exc:
            raise SyncError("Origin timed out.", status_code=504) from exc
        except httpx.HTTPError as exc:
            raise SyncError(f"Origin unreachable: {exc}") from exc

        if response.status_code >= 400:
            raise SyncError(
                response.text or "Sync failed", status_code=response.status_code
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise SyncError("Origin returned invalid JSON.") from exc
        if not isinstance(data, dict):
            raise SyncError("Origin returned an unexpected document.")
        return {
            "orders": _as_list(data.get("orders")),
            "admins": _as_list(data.get("admins")),
        }

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> SyncClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


async def import_from_origin(
    gateway: PersistenceGateway,
    config: StorefrontConfig,
    client: SyncClient | None = None,
) -> SyncResult:
    """Replace local orders and admins with the origin's.

    Total replace, not a merge: local-only records are discarded. Both
    collections are replaced as one unit under their writer locks, so a
    checkout racing the import is strictly ordered before or after it, and
    a failed write leaves the local data as it was.
    """
    if config.hosted:
        raise SyncRefused(
            "Sync from production is only available when running locally."
        )
    if not config.origin_url or not config.sync_secret:
        raise SyncNotConfigured(
            "Set the origin URL and sync secret to sync from production."
        )

    owned = client is None
    if client is None:
        client = SyncClient(config.origin_url, config.sync_secret)
    try:
        snapshot = await client.fetch_snapshot()
    finally:
        if owned:
            await client.close()

    await gateway.replace_all({
        Collection.ORDERS.value: snapshot["orders"],
        Collection.ADMINS.value: snapshot["admins"],
    })
    result = SyncResult(
        orders=len(snapshot["orders"]), admins=len(snapshot["admins"])
    )
    logger.info(
        "Synced %d order(s) and %d admin(s) from origin.",
        result.orders, result.admins,
    )
    return result
