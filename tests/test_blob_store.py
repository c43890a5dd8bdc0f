"""Tests for BlobRecordStore: remote blob persistence via httpx."""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from storefront.config import StorefrontConfig
from storefront.errors import StorageFailure
from storefront.record_store import RecordStore
from storefront.stores import select_store
from storefront.stores.blob import BlobRecordStore, blob_pathname
from storefront.stores.local import LocalRecordStore


BASE_URL = "https://blob.example.com"
TOKEN = "blob-token"


def _store() -> BlobRecordStore:
    return BlobRecordStore(token=TOKEN, base_url=BASE_URL)


def _response(
    status_code: int = 200, json_data=None, content: bytes | None = None
) -> httpx.Response:
    request = httpx.Request("GET", f"{BASE_URL}/test")
    if content is not None:
        return httpx.Response(status_code=status_code, content=content, request=request)
    return httpx.Response(status_code=status_code, json=json_data, request=request)


class TestBlobInit:
    def test_auth_header(self) -> None:
        store = _store()
        assert store._client.headers["authorization"] == f"Bearer {TOKEN}"

    def test_base_url_trailing_slash_stripped(self) -> None:
        store = BlobRecordStore(token=TOKEN, base_url=BASE_URL + "/")
        assert str(store._client.base_url).rstrip("/") == BASE_URL

    def test_pathname(self) -> None:
        assert blob_pathname("orders") == "storefront-orders.json"
        assert blob_pathname("admin-users") == "storefront-admin-users.json"

    def test_satisfies_record_store_protocol(self) -> None:
        assert isinstance(_store(), RecordStore)


class TestBlobRead:
    @pytest.mark.asyncio
    async def test_returns_array(self) -> None:
        store = _store()
        store._client.get = AsyncMock(return_value=_response(200, [{"id": "ORD-1"}]))
        assert await store.read("orders") == [{"id": "ORD-1"}]
        store._client.get.assert_called_once_with("/storefront-orders.json")

    @pytest.mark.asyncio
    async def test_not_found_is_empty(self) -> None:
        store = _store()
        store._client.get = AsyncMock(return_value=_response(404, {"error": "nope"}))
        assert await store.read("orders") == []

    @pytest.mark.asyncio
    async def test_server_error_is_empty(self) -> None:
        store = _store()
        store._client.get = AsyncMock(return_value=_response(500, {}))
        assert await store.read("orders") == []

    @pytest.mark.asyncio
    async def test_transport_error_is_empty(self) -> None:
        store = _store()
        store._client.get = AsyncMock(side_effect=httpx.ConnectError("down"))
        assert await store.read("orders") == []

    @pytest.mark.asyncio
    async def test_timeout_is_empty(self) -> None:
        store = _store()
        store._client.get = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        assert await store.read("admin-users") == []

    @pytest.mark.asyncio
    async def test_invalid_json_is_empty(self) -> None:
        store = _store()
        store._client.get = AsyncMock(return_value=_response(200, content=b"<html>"))
        assert await store.read("orders") == []

    @pytest.mark.asyncio
    async def test_undecodable_body_is_empty(self) -> None:
        store = _store()
        store._client.get = AsyncMock(
            return_value=_response(200, content=b'["\xff\x80"]')
        )
        assert await store.read("orders") == []

    @pytest.mark.asyncio
    async def test_empty_body_is_empty(self) -> None:
        store = _store()
        store._client.get = AsyncMock(return_value=_response(200, content=b""))
        assert await store.read("orders") == []

    @pytest.mark.asyncio
    async def test_non_array_is_empty(self) -> None:
        store = _store()
        store._client.get = AsyncMock(return_value=_response(200, {"orders": []}))
        assert await store.read("orders") == []


class TestBlobWrite:
    @pytest.mark.asyncio
    async def test_puts_full_array_with_overwrite(self) -> None:
        store = _store()
        store._client.put = AsyncMock(return_value=_response(200, {"url": "x"}))
        await store.write("orders", [{"id": "ORD-1"}])

        args, kwargs = store._client.put.call_args
        assert args == ("/storefront-orders.json",)
        assert json.loads(kwargs["content"]) == [{"id": "ORD-1"}]
        assert kwargs["headers"]["x-allow-overwrite"] == "1"
        assert kwargs["headers"]["x-add-random-suffix"] == "0"
        assert kwargs["headers"]["x-access"] == "private"

    @pytest.mark.asyncio
    async def test_public_access_header(self) -> None:
        store = BlobRecordStore(token=TOKEN, base_url=BASE_URL, access="PUBLIC")
        store._client.put = AsyncMock(return_value=_response(200, {}))
        await store.write("orders", [])
        assert store._client.put.call_args.kwargs["headers"]["x-access"] == "public"

    @pytest.mark.asyncio
    async def test_rejected_write_raises(self) -> None:
        store = _store()
        store._client.put = AsyncMock(return_value=_response(403, {"error": "forbidden"}))
        with pytest.raises(StorageFailure):
            await store.write("orders", [])

    @pytest.mark.asyncio
    async def test_transport_error_raises(self) -> None:
        store = _store()
        store._client.put = AsyncMock(side_effect=httpx.ConnectError("down"))
        with pytest.raises(StorageFailure):
            await store.write("orders", [])

    @pytest.mark.asyncio
    async def test_timeout_raises(self) -> None:
        store = _store()
        store._client.put = AsyncMock(side_effect=httpx.WriteTimeout("slow"))
        with pytest.raises(StorageFailure, match="timed out"):
            await store.write("orders", [])


class TestSelectStore:
    def test_blob_when_token_configured(self) -> None:
        store = select_store(StorefrontConfig(blob_token="t"))
        assert isinstance(store, BlobRecordStore)

    def test_local_without_token(self, tmp_path) -> None:
        store = select_store(StorefrontConfig(data_dir=str(tmp_path)))
        assert isinstance(store, LocalRecordStore)
        assert store.data_dir == tmp_path

    def test_empty_token_means_local(self) -> None:
        assert isinstance(select_store(StorefrontConfig(blob_token="")), LocalRecordStore)
