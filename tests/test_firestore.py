"""Tests for the Firestore REST adapter."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from dailydiary.adapters.firestore import (
    FirestoreClient,
    FirestoreEntryStore,
    FirestoreProfileStore,
    auto_id,
    decode_fields,
    decode_value,
    encode_fields,
    encode_value,
)
from dailydiary.core.entries import Entry
from dailydiary.errors import (
    NOT_FOUND,
    PERMISSION_DENIED,
    UNAVAILABLE,
    UNKNOWN,
    AuthenticationError,
    StoreError,
    StoreUnavailable,
    StoreWriteFailed,
)
from dailydiary.viewmodel import EntryViewModel

DOCS_URL = "https://firestore.googleapis.com/v1/projects/demo/databases/(default)/documents"


def response(status_code=200, body=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = b"{}" if body is not None else b""
    resp.json.return_value = body
    resp.text = str(body)
    return resp


@pytest.fixture
def http():
    session = MagicMock()
    session.request.return_value = response(200, {})
    return session


@pytest.fixture
def client(http):
    return FirestoreClient("demo", token_provider=lambda: "tok", timeout=5, session=http)


class TestCodec:
    @pytest.mark.parametrize(
        "value,encoded",
        [
            ("hi", {"stringValue": "hi"}),
            (True, {"booleanValue": True}),
            (3, {"integerValue": "3"}),
            (1.5, {"doubleValue": 1.5}),
            (None, {"nullValue": None}),
        ],
    )
    def test_scalars(self, value, encoded):
        assert encode_value(value) == encoded
        assert decode_value(encoded) == value

    def test_nested(self):
        data = {"tags": ["a", "b"], "meta": {"count": 2}}
        assert decode_fields(encode_fields(data)) == data

    def test_naive_datetime_is_utc(self):
        encoded = encode_value(datetime(2024, 3, 1, 9, 0))
        assert encoded == {"timestampValue": "2024-03-01T09:00:00+00:00"}

    def test_decode_nanosecond_timestamp(self):
        value = decode_value({"timestampValue": "2024-03-01T09:00:00.123456789Z"})
        assert value == datetime(2024, 3, 1, 9, 0, 0, 123456, tzinfo=timezone.utc)

    def test_auto_id(self):
        ids = {auto_id() for _ in range(50)}
        assert len(ids) == 50
        assert all(len(i) == 20 and i.isalnum() for i in ids)


class TestClient:
    def test_sends_bearer_token(self, client, http):
        client.commit([])
        _, kwargs = http.request.call_args
        assert kwargs["headers"] == {"Authorization": "Bearer tok"}
        assert kwargs["timeout"] == 5

    def test_query_skips_empty_results(self, client, http):
        http.request.return_value = response(
            200,
            [
                {
                    "document": {
                        "name": "projects/demo/databases/(default)/documents/diaryEntries/abc",
                        "fields": {"title": {"stringValue": "T"}, "isFavorite": {"booleanValue": True}},
                    }
                },
                {"readTime": "2024-03-01T09:00:00Z"},
            ],
        )

        docs = client.query_equal("diaryEntries", "userId", "u1")

        assert docs == [("abc", {"title": "T", "isFavorite": True})]
        args, kwargs = http.request.call_args
        assert args == ("POST", f"{DOCS_URL}:runQuery")
        where = kwargs["json"]["structuredQuery"]["where"]["fieldFilter"]
        assert where == {"field": {"fieldPath": "userId"}, "op": "EQUAL", "value": {"stringValue": "u1"}}

    @pytest.mark.parametrize(
        "status_code,body,code",
        [
            (403, {"error": {"status": "PERMISSION_DENIED", "message": "Missing permissions"}}, PERMISSION_DENIED),
            (401, {"error": {"status": "UNAUTHENTICATED"}}, PERMISSION_DENIED),
            (404, {"error": {"status": "NOT_FOUND"}}, NOT_FOUND),
            (503, {"error": {"status": "UNAVAILABLE"}}, UNAVAILABLE),
            (400, {"error": {"status": "INVALID_ARGUMENT"}}, UNKNOWN),
            (500, {}, UNKNOWN),
        ],
    )
    def test_error_mapping(self, client, http, status_code, body, code):
        http.request.return_value = response(status_code, body)
        with pytest.raises(StoreError) as exc_info:
            client.commit([])
        assert exc_info.value.code == code

    def test_connection_error_is_unavailable(self, client, http):
        http.request.side_effect = requests.ConnectionError("offline")
        with pytest.raises(StoreError) as exc_info:
            client.commit([])
        assert exc_info.value.code == UNAVAILABLE
        assert exc_info.value.is_unavailable

    @pytest.mark.parametrize(
        "error",
        [
            requests.exceptions.ChunkedEncodingError("connection broken"),
            requests.exceptions.ContentDecodingError("bad gzip"),
            requests.TooManyRedirects("loop"),
        ],
    )
    def test_other_transport_errors_are_unknown(self, client, http, error):
        http.request.side_effect = error
        with pytest.raises(StoreError) as exc_info:
            client.commit([])
        assert exc_info.value.code == UNKNOWN

    def test_malformed_success_body(self, client, http):
        resp = response(200, {})
        resp.json.side_effect = ValueError("Expecting value")
        http.request.return_value = resp
        with pytest.raises(StoreError) as exc_info:
            client.commit([])
        assert exc_info.value.code == UNKNOWN

    def test_token_failure_is_permission_denied(self, http):
        def expired():
            raise AuthenticationError("Network error")

        client = FirestoreClient("demo", token_provider=expired, session=http)
        with pytest.raises(StoreError) as exc_info:
            client.commit([])
        assert exc_info.value.code == PERMISSION_DENIED
        http.request.assert_not_called()

    def test_get_missing_document(self, client, http):
        http.request.return_value = response(404, {"error": {"status": "NOT_FOUND"}})
        assert client.get_document("userProfiles", "u1") is None


class TestFirestoreEntryStore:
    @pytest.mark.asyncio
    async def test_create_commit(self, client, http):
        store = FirestoreEntryStore(client)

        entry_id = await store.create({"title": "T", "isFavorite": False})

        args, kwargs = http.request.call_args
        assert args == ("POST", f"{DOCS_URL}:commit")
        [write] = kwargs["json"]["writes"]
        assert write["update"]["name"].endswith(f"/documents/diaryEntries/{entry_id}")
        assert write["update"]["fields"] == {"title": {"stringValue": "T"}, "isFavorite": {"booleanValue": False}}
        assert write["currentDocument"] == {"exists": False}
        assert [t["fieldPath"] for t in write["updateTransforms"]] == ["createdAt", "updatedAt"]
        assert all(t["setToServerValue"] == "REQUEST_TIME" for t in write["updateTransforms"])

    @pytest.mark.asyncio
    async def test_update_uses_mask(self, client, http):
        await FirestoreEntryStore(client).update_by_id("abc", {"isFavorite": True})

        [write] = http.request.call_args.kwargs["json"]["writes"]
        assert write["updateMask"] == {"fieldPaths": ["isFavorite"]}
        assert write["currentDocument"] == {"exists": True}
        assert [t["fieldPath"] for t in write["updateTransforms"]] == ["updatedAt"]

    @pytest.mark.asyncio
    async def test_delete(self, client, http):
        await FirestoreEntryStore(client).delete_by_id("abc")
        args, _ = http.request.call_args
        assert args == ("DELETE", f"{DOCS_URL}/diaryEntries/abc")

    @pytest.mark.asyncio
    async def test_errors_propagate(self, client, http):
        http.request.return_value = response(403, {"error": {"status": "PERMISSION_DENIED"}})
        with pytest.raises(StoreError):
            await FirestoreEntryStore(client).query_by_owner("u1")

    @pytest.mark.asyncio
    async def test_broken_transfer_loads_empty(self, client, http):
        http.request.side_effect = requests.exceptions.ChunkedEncodingError("connection broken")
        view_model = EntryViewModel(FirestoreEntryStore(client), "u1")

        assert await view_model.load() == ()

    @pytest.mark.asyncio
    async def test_token_failure_blocks_load(self, http):
        def expired():
            raise AuthenticationError("Network error")

        view_model = EntryViewModel(FirestoreEntryStore(FirestoreClient("demo", expired, session=http)), "u1")
        with pytest.raises(StoreUnavailable):
            await view_model.load()

    @pytest.mark.asyncio
    async def test_token_failure_blocks_writes(self, http):
        def expired():
            raise AuthenticationError("Network error")

        view_model = EntryViewModel(FirestoreEntryStore(FirestoreClient("demo", expired, session=http)), "u1")
        view_model.entries = (Entry(id="abc", owner_id="u1", title="T", content="C", mood="😊", date="2024-03-05"),)

        with pytest.raises(StoreWriteFailed, match="Failed to update favorite"):
            await view_model.toggle_favorite("abc")

        view_model.request_delete("abc")
        with pytest.raises(StoreWriteFailed, match="Failed to delete entry"):
            await view_model.confirm_delete()
        assert [e.id for e in view_model.entries] == ["abc"]


class TestFirestoreProfileStore:
    @pytest.mark.asyncio
    async def test_upsert_merge(self, client, http):
        await FirestoreProfileStore(client).upsert("u1", {"name": "Ada"})

        [write] = http.request.call_args.kwargs["json"]["writes"]
        assert write["update"]["name"].endswith("/documents/userProfiles/u1")
        assert write["updateMask"] == {"fieldPaths": ["name", "updatedAt"]}

    @pytest.mark.asyncio
    async def test_upsert_replace_has_no_mask(self, client, http):
        await FirestoreProfileStore(client).upsert("u1", {"name": "Ada"}, merge=False)
        [write] = http.request.call_args.kwargs["json"]["writes"]
        assert "updateMask" not in write

    @pytest.mark.asyncio
    async def test_get(self, client, http):
        http.request.return_value = response(200, {"fields": {"place": {"stringValue": "Paris"}}})
        assert await FirestoreProfileStore(client).get("u1") == {"place": "Paris"}
