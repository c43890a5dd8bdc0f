"""RecordStore implementations and process-wide backend selection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from storefront.stores.blob import BlobRecordStore
from storefront.stores.local import LocalRecordStore

if TYPE_CHECKING:
    from storefront.config import StorefrontConfig
    from storefront.record_store import RecordStore

logger = logging.getLogger(__name__)


def select_store(config: StorefrontConfig) -> RecordStore:
    """Pick the backend once, from configuration, for the process lifetime."""
    if config.use_blob:
        logger.info("Using remote blob store (access=%s).", config.blob_access)
        return BlobRecordStore(
            token=config.blob_token or "",
            base_url=config.blob_base_url,
            access=config.blob_access,
            timeout=config.blob_timeout_secs,
        )
    logger.info("Using local data directory %s.", config.data_dir)
    return LocalRecordStore(config.data_dir)


__all__ = ["BlobRecordStore", "LocalRecordStore", "select_store"]
