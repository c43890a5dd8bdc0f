"""Read-only product catalog loaded from the external ``products.json``."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from storefront.models import Product

logger = logging.getLogger(__name__)


class ProductCatalog:
    """Products keyed by id. Re-read from disk on every ``load()``."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    async def load(self) -> dict[str, Product]:
        return await asyncio.to_thread(self._load_sync)

    async def products(self) -> list[Product]:
        return list((await self.load()).values())

    def _load_sync(self) -> dict[str, Product]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "[]")
        except (OSError, ValueError):
            logger.warning("Failed to read catalog from %s.", self._path)
            return {}
        if not isinstance(data, list):
            logger.warning("Catalog %s is not a JSON array.", self._path)
            return {}
        products = (Product.from_dict(p) for p in data if isinstance(p, dict))
        return {p.id: p for p in products if p.id}
