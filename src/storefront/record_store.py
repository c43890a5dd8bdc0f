"""Abstract persistence interface for whole-collection documents.

Defines the RecordStore Protocol that PersistenceGateway depends on.
Concrete implementations live in ``storefront.stores``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RecordStore(Protocol):
    """Async key-addressed storage of whole JSON arrays.

    ``read`` never fails: an absent or unreadable collection is an empty
    list. ``write`` overwrites the full collection and raises
    ``StorageFailure`` when the backend does not accept it.
    """

    async def read(self, key: str) -> list[dict[str, Any]]: ...

    async def write(self, key: str, documents: list[dict[str, Any]]) -> None: ...
