#!/usr/bin/env python3
"""Pull orders and admins from the hosted site into the local data store.

Run this on your machine, then start the app locally and open the
dashboard to see production data.

  - On the hosted deployment set DASHBOARD_SYNC_SECRET to a long random string
  - Locally set PRODUCTION_URL and the same DASHBOARD_SYNC_SECRET
  - Optionally set DATA_DIR (default: ./data)

Local orders and admins are replaced, not merged.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys

from storefront.config import StorefrontConfig
from storefront.errors import StorefrontError
from storefront.gateway import PersistenceGateway
from storefront.stores import select_store
from storefront.sync import import_from_origin


def _config_from_env() -> StorefrontConfig:
    return StorefrontConfig(
        data_dir=os.environ.get("DATA_DIR", "data"),
        blob_token=os.environ.get("BLOB_READ_WRITE_TOKEN") or None,
        origin_url=os.environ.get("PRODUCTION_URL") or None,
        sync_secret=os.environ.get("DASHBOARD_SYNC_SECRET") or None,
    )


async def _run(config: StorefrontConfig) -> int:
    gateway = PersistenceGateway(select_store(config))
    try:
        result = await import_from_origin(gateway, config)
    except StorefrontError as e:
        print(f"Sync failed ({e.status_code}): {e}", file=sys.stderr)
        return 1
    finally:
        await gateway.close()

    print(f"Synced: {result.orders} orders, {result.admins} admins.")
    return 0


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    config = _config_from_env()
    if not config.origin_url or not config.sync_secret:
        print("Missing env. Set:", file=sys.stderr)
        print("  PRODUCTION_URL=https://your-app.example.com", file=sys.stderr)
        print("  DASHBOARD_SYNC_SECRET=your-secret", file=sys.stderr)
        sys.exit(1)
    sys.exit(asyncio.run(_run(config)))


if __name__ == "__main__":
    main()
