"""Deployment settings for one storefront process.

A local deployment keeps collections as JSON files under ``data_dir``; a
hosted one sets ``blob_token`` and stores them in the blob service
instead. ``hosted`` also disables the admin sync import, which pulls
orders and admins from ``origin_url`` using the shared ``sync_secret``.
The process entry point builds one instance and hands it to
``create_app`` or the sync command.
"""

from dataclasses import dataclass
from pathlib import Path

from storefront.constants import (
    DEFAULT_BCRYPT_ROUNDS,
    DEFAULT_BLOB_BASE_URL,
    SESSION_MAX_AGE_SECS,
)


@dataclass(frozen=True)
class StorefrontConfig:
    data_dir: str = "data"
    blob_token: str | None = None
    blob_base_url: str = DEFAULT_BLOB_BASE_URL
    blob_access: str = "private"
    blob_timeout_secs: float = 10.0
    hosted: bool = False
    admin_enabled: bool = True
    session_secret: str = "storefront-dev-secret-change-in-production"
    session_max_age_secs: int = SESSION_MAX_AGE_SECS
    sync_secret: str | None = None
    origin_url: str | None = None
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    catalog_file: str | None = None

    @property
    def use_blob(self) -> bool:
        """True when the remote blob credential is configured."""
        return bool(self.blob_token)

    @property
    def catalog_path(self) -> Path:
        if self.catalog_file:
            return Path(self.catalog_file)
        return Path(self.data_dir) / "products.json"
