"""Firestore REST adapter - HTTP client for entry and profile documents."""

import asyncio
import functools
import logging
import re
import secrets
import string
from datetime import datetime, timezone
from typing import Callable

import requests

from dailydiary.errors import (
    NOT_FOUND,
    PERMISSION_DENIED,
    UNAVAILABLE,
    UNKNOWN,
    AuthenticationError,
    StoreError,
)

logger = logging.getLogger(__name__)

API_BASE = "https://firestore.googleapis.com/v1"
ENTRIES_COLLECTION = "diaryEntries"
PROFILES_COLLECTION = "userProfiles"

_AUTO_ID_ALPHABET = string.ascii_letters + string.digits
_AUTO_ID_LENGTH = 20

_STATUS_CODES = {
    "PERMISSION_DENIED": PERMISSION_DENIED,
    "UNAUTHENTICATED": PERMISSION_DENIED,
    "NOT_FOUND": NOT_FOUND,
    "UNAVAILABLE": UNAVAILABLE,
    "DEADLINE_EXCEEDED": UNAVAILABLE,
}
_HTTP_CODES = {
    401: PERMISSION_DENIED,
    403: PERMISSION_DENIED,
    404: NOT_FOUND,
    503: UNAVAILABLE,
    504: UNAVAILABLE,
}

_FRACTION = re.compile(r"\.(\d{6})\d+")


def auto_id() -> str:
    """20-character document id, generated client-side like the Firebase SDKs do."""
    return "".join(secrets.choice(_AUTO_ID_ALPHABET) for _ in range(_AUTO_ID_LENGTH))


# ============== Value Codec ==============


def encode_value(value) -> dict:
    """Encode a Python value as a Firestore typed value."""
    if value is None:
        return {"nullValue": None}
    # bool first: bool is a subclass of int
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {"timestampValue": value.isoformat()}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    return {"stringValue": str(value)}


def decode_value(value: dict):
    """Decode a Firestore typed value into a Python value."""
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return value["booleanValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        raw = _FRACTION.sub(r".\1", value["timestampValue"]).replace("Z", "+00:00")
        return datetime.fromisoformat(raw)
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    return None


def encode_fields(data: dict) -> dict:
    return {key: encode_value(val) for key, val in data.items()}


def decode_fields(fields: dict) -> dict:
    return {key: decode_value(val) for key, val in fields.items()}


def _error_from_response(resp: requests.Response) -> StoreError:
    """Map a Firestore error response onto a normalized StoreError."""
    status = ""
    message = resp.text
    try:
        error = resp.json().get("error", {})
        status = error.get("status", "")
        message = error.get("message", message)
    except (ValueError, AttributeError):
        pass
    code = _STATUS_CODES.get(status) or _HTTP_CODES.get(resp.status_code, UNKNOWN)
    return StoreError(code, f"Firestore {resp.status_code} {status}: {message}".strip())


# ============== Client ==============


class FirestoreClient:
    """
    Minimal Firestore REST client.

    Blocking calls use a requests.Session; the store adapters run them in
    the event loop's default executor.
    """

    def __init__(
        self,
        project_id: str,
        token_provider: Callable[[], str] | None = None,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ):
        self.project_id = project_id
        self.token_provider = token_provider
        self.timeout = timeout
        self._session = session or requests.Session()
        self._database = f"projects/{project_id}/databases/(default)"

    @property
    def documents_url(self) -> str:
        return f"{API_BASE}/{self._database}/documents"

    def document_name(self, collection: str, doc_id: str) -> str:
        return f"{self._database}/documents/{collection}/{doc_id}"

    def _headers(self) -> dict:
        if not self.token_provider:
            return {}
        try:
            token = self.token_provider()
        except AuthenticationError as e:
            logger.warning(f"No usable ID token: {e}")
            raise StoreError(PERMISSION_DENIED, f"Not signed in: {e}") from e
        return {"Authorization": f"Bearer {token}"}

    def _request(self, method: str, url: str, body: dict | None = None) -> dict | list:
        """Make authenticated API request."""
        headers = self._headers()
        try:
            resp = self._session.request(
                method,
                url,
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning(f"Firestore unreachable: {e}")
            raise StoreError(UNAVAILABLE, f"Firestore unreachable: {e}") from e
        except requests.RequestException as e:
            logger.error(f"Firestore request failed: {e}")
            raise StoreError(UNKNOWN, f"Firestore request failed: {e}") from e

        if resp.status_code >= 400:
            error = _error_from_response(resp)
            logger.error(str(error))
            raise error

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            logger.error(f"Firestore returned a malformed body: {e}")
            raise StoreError(UNKNOWN, f"Malformed Firestore response: {e}") from e

    def commit(self, writes: list[dict]) -> dict:
        """Apply writes atomically."""
        return self._request("POST", f"{self.documents_url}:commit", {"writes": writes})

    def get_document(self, collection: str, doc_id: str) -> dict | None:
        """Fetch one document's fields, or None if it does not exist."""
        try:
            doc = self._request("GET", f"{self.documents_url}/{collection}/{doc_id}")
        except StoreError as e:
            if e.code == NOT_FOUND:
                return None
            raise
        return decode_fields(doc.get("fields", {}))

    def query_equal(self, collection: str, field_path: str, value) -> list[tuple[str, dict]]:
        """Run a single-field equality query. Returns (id, fields) pairs."""
        body = {
            "structuredQuery": {
                "from": [{"collectionId": collection}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": field_path},
                        "op": "EQUAL",
                        "value": encode_value(value),
                    }
                },
            }
        }
        results = self._request("POST", f"{self.documents_url}:runQuery", body)

        docs = []
        for item in results:
            # Empty result sets come back as a single item with only readTime
            doc = item.get("document")
            if not doc:
                continue
            doc_id = doc["name"].rsplit("/", 1)[-1]
            docs.append((doc_id, decode_fields(doc.get("fields", {}))))
        return docs

    def delete_document(self, collection: str, doc_id: str) -> None:
        self._request("DELETE", f"{self.documents_url}/{collection}/{doc_id}")


def _server_time(*field_paths: str) -> list[dict]:
    return [{"fieldPath": path, "setToServerValue": "REQUEST_TIME"} for path in field_paths]


async def _in_executor(fn: Callable, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(fn, *args))


class FirestoreEntryStore:
    """
    Firestore entry storage.

    Implements EntryStore protocol against the diaryEntries collection.
    """

    def __init__(self, client: FirestoreClient, collection: str = ENTRIES_COLLECTION):
        self.client = client
        self.collection = collection

    def _create(self, fields: dict) -> str:
        entry_id = auto_id()
        self.client.commit(
            [
                {
                    "update": {
                        "name": self.client.document_name(self.collection, entry_id),
                        "fields": encode_fields(fields),
                    },
                    "currentDocument": {"exists": False},
                    "updateTransforms": _server_time("createdAt", "updatedAt"),
                }
            ]
        )
        return entry_id

    def _update(self, entry_id: str, fields: dict) -> None:
        self.client.commit(
            [
                {
                    "update": {
                        "name": self.client.document_name(self.collection, entry_id),
                        "fields": encode_fields(fields),
                    },
                    "updateMask": {"fieldPaths": list(fields)},
                    "currentDocument": {"exists": True},
                    "updateTransforms": _server_time("updatedAt"),
                }
            ]
        )

    async def create(self, fields: dict) -> str:
        entry_id = await _in_executor(self._create, fields)
        logger.info(f"Created entry {entry_id}")
        return entry_id

    async def query_by_owner(self, owner_id: str) -> list[tuple[str, dict]]:
        return await _in_executor(self.client.query_equal, self.collection, "userId", owner_id)

    async def update_by_id(self, entry_id: str, fields: dict) -> None:
        await _in_executor(self._update, entry_id, fields)

    async def delete_by_id(self, entry_id: str) -> None:
        await _in_executor(self.client.delete_document, self.collection, entry_id)
        logger.info(f"Deleted entry {entry_id}")


class FirestoreProfileStore:
    """
    Firestore profile storage.

    Implements ProfileStore protocol. Documents are keyed by owner id.
    """

    def __init__(self, client: FirestoreClient, collection: str = PROFILES_COLLECTION):
        self.client = client
        self.collection = collection

    def _upsert(self, owner_id: str, fields: dict, merge: bool) -> None:
        fields = {**fields, "updatedAt": datetime.now(timezone.utc).isoformat()}
        write = {
            "update": {
                "name": self.client.document_name(self.collection, owner_id),
                "fields": encode_fields(fields),
            }
        }
        if merge:
            write["updateMask"] = {"fieldPaths": list(fields)}
        self.client.commit([write])

    async def get(self, owner_id: str) -> dict | None:
        return await _in_executor(self.client.get_document, self.collection, owner_id)

    async def upsert(self, owner_id: str, fields: dict, merge: bool = True) -> None:
        await _in_executor(self._upsert, owner_id, fields, merge)
