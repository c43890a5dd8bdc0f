"""PersistenceGateway: serialized read-modify-write over whole collections.

Both collections are stored as whole-document snapshots, so every mutation
reads the full collection, changes it in memory and writes it back. The
gateway runs each such cycle inside a per-collection writer lock so two
concurrent mutations can never both start from the same snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from storefront.constants import Collection
from storefront.errors import StorageFailure

if TYPE_CHECKING:
    from storefront.record_store import RecordStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

Documents = list[dict[str, Any]]


class CollectionGuard:
    """Writer-preferring reader/writer lock for one collection.

    - Writers are admitted one at a time, in arrival order.
    - Readers share access with each other.
    - A reader arriving while any writer is queued or active waits until
      that writer is done, so it never observes the pre-write snapshot.
    """

    def __init__(self) -> None:
        self._write_lock = asyncio.Lock()
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writers = 0  # queued + active

    @property
    def pending_writers(self) -> int:
        return self._writers

    @property
    def active_readers(self) -> int:
        return self._readers

    @asynccontextmanager
    async def reading(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: self._writers == 0)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                self._cond.notify_all()

    @asynccontextmanager
    async def writing(self) -> AsyncIterator[None]:
        async with self._cond:
            self._writers += 1
        try:
            async with self._write_lock:
                async with self._cond:
                    await self._cond.wait_for(lambda: self._readers == 0)
                yield
        finally:
            async with self._cond:
                self._writers -= 1
                self._cond.notify_all()


class PersistenceGateway:
    """Sole owner of the Order Ledger and Admin Directory collections.

    The backend is injected once at construction and never re-selected.
    ``mutate()`` is the only way to change a collection incrementally;
    ``replace()`` overwrites it wholesale. Both hold the collection's
    writer lock for the full cycle. Writes to different collections do
    not block each other.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._guards: dict[str, CollectionGuard] = {}

    @property
    def store(self) -> RecordStore:
        return self._store

    def _guard(self, key: str) -> CollectionGuard:
        """Get or create the guard for a collection key."""
        if key not in self._guards:
            self._guards[key] = CollectionGuard()
        return self._guards[key]

    # -- generic operations ---------------------------------------------------

    async def read(self, key: str) -> Documents:
        """Return the current snapshot of a collection."""
        async with self._guard(key).reading():
            return list(await self._store.read(key))

    async def mutate(
        self, key: str, change: Callable[[Documents], tuple[Documents, T]]
    ) -> T:
        """Run one read-modify-write cycle under the collection's writer lock.

        ``change`` receives the current documents and returns the new
        collection plus a result handed back to the caller. If it raises,
        nothing is written. A ``StorageFailure`` from the backend write
        propagates unchanged.
        """
        async with self._guard(key).writing():
            current = list(await self._store.read(key))
            updated, result = change(current)
            await self._store.write(key, updated)
            return result

    async def replace(self, key: str, documents: Documents) -> None:
        """Total replace: overwrite a collection with ``documents``."""
        async with self._guard(key).writing():
            await self._store.write(key, list(documents))

    async def replace_all(self, collections: dict[str, Documents]) -> None:
        """Total replace of several collections as one unit.

        Writer locks are taken in sorted key order. If any write fails, the
        collections already written are restored to their previous snapshot
        and the original ``StorageFailure`` propagates.
        """
        keys = sorted(collections)
        async with AsyncExitStack() as stack:
            for key in keys:
                await stack.enter_async_context(self._guard(key).writing())
            previous = {key: list(await self._store.read(key)) for key in keys}
            written: list[str] = []
            try:
                for key in keys:
                    await self._store.write(key, list(collections[key]))
                    written.append(key)
            except StorageFailure:
                for key in reversed(written):
                    try:
                        await self._store.write(key, previous[key])
                    except StorageFailure:
                        logger.exception(
                            "Could not restore %s after a failed replace.", key
                        )
                raise

    # -- typed accessors ------------------------------------------------------

    async def read_orders(self) -> Documents:
        return await self.read(Collection.ORDERS.value)

    async def read_admins(self) -> Documents:
        return await self.read(Collection.ADMINS.value)

    async def mutate_orders(
        self, change: Callable[[Documents], tuple[Documents, T]]
    ) -> T:
        return await self.mutate(Collection.ORDERS.value, change)

    async def mutate_admins(
        self, change: Callable[[Documents], tuple[Documents, T]]
    ) -> T:
        return await self.mutate(Collection.ADMINS.value, change)

    async def replace_orders(self, documents: Documents) -> None:
        await self.replace(Collection.ORDERS.value, documents)

    async def replace_admins(self, documents: Documents) -> None:
        await self.replace(Collection.ADMINS.value, documents)

    # -- lifecycle --------------------------------------------------------------

    async def close(self) -> None:
        """Release backend resources (the blob store's HTTP client)."""
        close = getattr(self._store, "close", None)
        if close is not None:
            await close()

    def health(self) -> dict[str, object]:
        """Return backend and lock state for monitoring."""
        return {
            "backend": type(self._store).__name__,
            "pending_writers": {
                key: guard.pending_writers for key, guard in self._guards.items()
            },
        }
