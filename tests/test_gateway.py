"""Tests for PersistenceGateway: read-modify-write, writer lock, replace."""

import asyncio

import pytest

from storefront.errors import StorageFailure
from storefront.gateway import CollectionGuard, PersistenceGateway
from tests.fakes import FailNthWriteStore, GatedStore, MemoryStore


def _append(value):
    def change(documents):
        documents.append({"v": value})
        return documents, len(documents)

    return change


# ---------------------------------------------------------------------------
# Basic operations
# ---------------------------------------------------------------------------


class TestGatewayBasics:
    @pytest.mark.asyncio
    async def test_read_absent_collection_is_empty(self) -> None:
        gateway = PersistenceGateway(MemoryStore())
        assert await gateway.read_orders() == []
        assert await gateway.read_admins() == []

    @pytest.mark.asyncio
    async def test_mutate_writes_and_returns_result(self) -> None:
        store = MemoryStore()
        gateway = PersistenceGateway(store)
        result = await gateway.mutate("orders", _append(1))
        assert result == 1
        assert store.data["orders"] == [{"v": 1}]

    @pytest.mark.asyncio
    async def test_typed_accessors_use_fixed_keys(self) -> None:
        store = MemoryStore()
        gateway = PersistenceGateway(store)
        await gateway.mutate_orders(_append("o"))
        await gateway.mutate_admins(_append("a"))
        assert store.data == {"orders": [{"v": "o"}], "admin-users": [{"v": "a"}]}

    @pytest.mark.asyncio
    async def test_failed_change_writes_nothing(self) -> None:
        store = MemoryStore({"orders": [{"v": 0}]})
        gateway = PersistenceGateway(store)

        def boom(documents):
            raise ValueError("rejected")

        with pytest.raises(ValueError):
            await gateway.mutate_orders(boom)
        assert store.writes == []
        assert store.data["orders"] == [{"v": 0}]

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self) -> None:
        gateway = PersistenceGateway(MemoryStore(fail_writes=True))
        with pytest.raises(StorageFailure):
            await gateway.mutate_orders(_append(1))

    @pytest.mark.asyncio
    async def test_replace_discards_existing(self) -> None:
        store = MemoryStore({"orders": [{"v": "local"}]})
        gateway = PersistenceGateway(store)
        await gateway.replace_orders([{"v": "remote"}])
        assert store.data["orders"] == [{"v": "remote"}]

    @pytest.mark.asyncio
    async def test_replace_all_writes_every_collection(self) -> None:
        store = MemoryStore({"orders": [{"v": "local"}]})
        gateway = PersistenceGateway(store)
        await gateway.replace_all({"orders": [{"v": 1}], "admin-users": [{"v": 2}]})
        assert store.data == {"orders": [{"v": 1}], "admin-users": [{"v": 2}]}
        assert store.writes == ["admin-users", "orders"]

    @pytest.mark.asyncio
    async def test_replace_all_restores_on_partial_failure(self) -> None:
        before = {"orders": [{"v": "o"}], "admin-users": [{"v": "a"}]}
        store = FailNthWriteStore(before, n=2)
        gateway = PersistenceGateway(store)
        with pytest.raises(StorageFailure):
            await gateway.replace_all({"orders": [], "admin-users": [{"v": "new"}]})
        assert store.data == before

    @pytest.mark.asyncio
    async def test_health_reports_backend(self) -> None:
        gateway = PersistenceGateway(MemoryStore())
        await gateway.read_orders()
        health = gateway.health()
        assert health["backend"] == "MemoryStore"
        assert health["pending_writers"] == {"orders": 0}

    @pytest.mark.asyncio
    async def test_close_without_backend_close_is_noop(self) -> None:
        gateway = PersistenceGateway(MemoryStore())
        await gateway.close()


# ---------------------------------------------------------------------------
# Single-writer discipline
# ---------------------------------------------------------------------------


class TestGatewayConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_mutations_lose_nothing(self) -> None:
        store = MemoryStore()
        gateway = PersistenceGateway(store)
        await asyncio.gather(*(gateway.mutate_orders(_append(i)) for i in range(25)))
        assert sorted(d["v"] for d in store.data["orders"]) == list(range(25))

    @pytest.mark.asyncio
    async def test_writers_run_in_arrival_order(self) -> None:
        store = MemoryStore()
        gateway = PersistenceGateway(store)
        results = await asyncio.gather(
            *(gateway.mutate_orders(_append(i)) for i in range(5))
        )
        assert results == [1, 2, 3, 4, 5]
        assert [d["v"] for d in store.data["orders"]] == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_collections_do_not_block_each_other(self) -> None:
        store = GatedStore()
        gateway = PersistenceGateway(store)
        blocked = asyncio.create_task(gateway.mutate_orders(_append("o")))
        await store.write_started.wait()

        # orders writer is stuck in write(); admins read must still complete
        admins = await asyncio.wait_for(gateway.read_admins(), timeout=1)
        assert admins == []

        store.release.set()
        await blocked

    @pytest.mark.asyncio
    async def test_read_after_queued_write_sees_it(self) -> None:
        store = GatedStore({"orders": [{"v": "old"}]})
        gateway = PersistenceGateway(store)
        writer = asyncio.create_task(gateway.replace_orders([{"v": "new"}]))
        await store.write_started.wait()

        reader = asyncio.create_task(gateway.read_orders())
        await asyncio.sleep(0.01)
        assert not reader.done()

        store.release.set()
        await writer
        assert await reader == [{"v": "new"}]

    @pytest.mark.asyncio
    async def test_import_racing_checkout_is_ordered(self) -> None:
        store = MemoryStore({"orders": [{"v": "local"}]})
        gateway = PersistenceGateway(store)
        await asyncio.gather(
            gateway.replace_orders([{"v": "remote"}]),
            gateway.mutate_orders(_append("checkout")),
        )
        assert store.data["orders"] == [{"v": "remote"}, {"v": "checkout"}]


class TestCollectionGuard:
    @pytest.mark.asyncio
    async def test_readers_share_access(self) -> None:
        guard = CollectionGuard()
        async with guard.reading():
            async with guard.reading():
                assert guard.active_readers == 2
        assert guard.active_readers == 0

    @pytest.mark.asyncio
    async def test_writer_waits_for_active_reader(self) -> None:
        guard = CollectionGuard()
        order: list[str] = []

        async def write() -> None:
            async with guard.writing():
                order.append("write")

        async with guard.reading():
            task = asyncio.create_task(write())
            await asyncio.sleep(0.01)
            assert guard.pending_writers == 1
            order.append("read-done")
        await task
        assert order == ["read-done", "write"]
        assert guard.pending_writers == 0

    @pytest.mark.asyncio
    async def test_cancelled_writer_releases_slot(self) -> None:
        guard = CollectionGuard()
        async with guard.reading():
            task = asyncio.create_task(guard.writing().__aenter__())
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
        assert guard.pending_writers == 0
        async with guard.reading():
            pass
