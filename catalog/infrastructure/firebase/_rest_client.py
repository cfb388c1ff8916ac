"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1.
All HTTP calls use httpx.AsyncClient so they do not block the event loop.
Transport failures, timeouts, 5xx and 429 responses raise
StoreUnavailableException; nothing is retried here.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx
from google.auth.exceptions import GoogleAuthError

from catalog.infrastructure.exceptions import (
    DocumentExistsError,
    StoreException,
    StoreUnavailableException,
)
from catalog.infrastructure.firebase._rest_encoding import (
    decode_document,
    decode_value,
    encode_fields,
)

logger = logging.getLogger(__name__)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"

# google.rpc.Code values reported per write by batchWrite
RPC_OK = 0
RPC_NOT_FOUND = 5
RPC_ALREADY_EXISTS = 6

# Firestore rejects batchWrite requests with more writes than this.
MAX_BATCH_WRITES = 500


def get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(payload, list) and payload:
        payload = payload[0]
    if isinstance(payload, dict):
        return str(payload.get("error", {}).get("message", ""))
    return ""


class FirestoreRESTClient:
    """Lightweight Firestore client using the REST API.

    credentials=None sends unauthenticated requests (Firestore emulator).
    An injected http_client is used as-is and never closed by this client.
    """

    def __init__(
        self,
        project_id: str,
        credentials=None,
        *,
        database: str = "(default)",
        emulator_host: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._timeout = timeout
        self._base = f"http://{emulator_host}/v1" if emulator_host else _BASE
        self._database_path = f"projects/{project_id}/databases/{database}"
        self._prefix = f"{self._database_path}/documents"
        self._http = http_client
        self._owns_http = http_client is None

    @property
    def project_id(self) -> str:
        return self._project_id

    async def open(self) -> None:
        """Create the HTTP connection pool if none was injected."""
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout)
            self._owns_http = True

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    async def get_token(self) -> str | None:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        if self._credentials is None:
            return None
        return await asyncio.to_thread(_get_access_token, self._credentials)

    def document_name(self, collection: str, document_id: str) -> str:
        return f"{self._prefix}/{collection}/{document_id}"

    async def _request(
        self, operation: str, method: str, url: str, body: Any = None
    ) -> httpx.Response:
        if self._http is None:
            raise StoreUnavailableException(operation, "store is closed")
        try:
            token = await self.get_token()
        except GoogleAuthError as e:
            raise StoreUnavailableException(operation, f"token refresh failed: {e}") from e
        logger.debug("Firestore %s: %s %s", operation, method, url)
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            resp = await self._http.request(method, url, headers=headers, json=body)
        except httpx.TimeoutException as e:
            raise StoreUnavailableException(operation, "timed out") from e
        except httpx.TransportError as e:
            raise StoreUnavailableException(operation, str(e) or type(e).__name__) from e
        if resp.status_code == 429 or resp.status_code >= 500:
            raise StoreUnavailableException(
                operation, f"HTTP {resp.status_code}: {_error_message(resp)}"
            )
        return resp

    @staticmethod
    def _payload(operation: str, resp: httpx.Response) -> Any:
        if resp.status_code not in (200, 204):
            raise StoreException(
                f"Firestore {operation} failed with HTTP {resp.status_code}: {_error_message(resp)}",
                "STORE_ERROR",
                {"operation": operation, "status_code": resp.status_code},
            )
        raw = resp.content
        return json.loads(raw.decode()) if raw else {}

    async def get_document(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """Fetch one document; None if not found."""
        url = f"{self._base}/{self.document_name(collection, document_id)}"
        resp = await self._request("get", "GET", url)
        if resp.status_code == 404:
            return None
        return decode_document(self._payload("get", resp))

    async def run_query(self, structured: dict[str, Any]) -> list[dict[str, Any]]:
        """Execute a structuredQuery and return decoded documents in result order."""
        url = f"{self._base}/{self._prefix}:runQuery"
        resp = await self._request("find", "POST", url, {"structuredQuery": structured})
        items = self._payload("find", resp)
        items = items if isinstance(items, list) else ([items] if items else [])
        return [decode_document(item["document"]) for item in items if "document" in item]

    async def run_count(self, structured: dict[str, Any]) -> int:
        """Count documents matching a structuredQuery server-side."""
        url = f"{self._base}/{self._prefix}:runAggregationQuery"
        body = {
            "structuredAggregationQuery": {
                "structuredQuery": structured,
                "aggregations": [{"alias": "count", "count": {}}],
            }
        }
        resp = await self._request("count", "POST", url, body)
        items = self._payload("count", resp)
        items = items if isinstance(items, list) else [items]
        for item in items:
            fields = item.get("result", {}).get("aggregateFields", {})
            if "count" in fields:
                return int(decode_value(fields["count"]))
        return 0

    def create_write(self, collection: str, document_id: str, data: dict[str, Any]) -> dict:
        """Write that creates a document and fails if the id already exists."""
        fields, transforms = encode_fields(data)
        write: dict[str, Any] = {
            "update": {"name": self.document_name(collection, document_id), "fields": fields},
            "currentDocument": {"exists": False},
        }
        if transforms:
            write["updateTransforms"] = transforms
        return write

    def delete_write(self, collection: str, document_id: str) -> dict:
        """Write that deletes a document and fails if it does not exist."""
        return {
            "delete": self.document_name(collection, document_id),
            "currentDocument": {"exists": True},
        }

    async def commit(self, operation: str, writes: list[dict]) -> httpx.Response:
        url = f"{self._base}/{self._prefix}:commit"
        return await self._request(operation, "POST", url, {"writes": writes})

    async def create_document(
        self, collection: str, document_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Create a document atomically; return it with server timestamps resolved."""
        write = self.create_write(collection, document_id, data)
        resp = await self.commit("insert", [write])
        if resp.status_code == 409:
            raise DocumentExistsError(collection, document_id)
        result = self._payload("insert", resp)
        stored = {k: v for k, v in data.items() if k != "id"}
        stored.update(self._transform_values(write, result))
        stored["id"] = document_id
        return stored

    async def update_document(
        self, collection: str, document_id: str, changes: dict[str, Any]
    ) -> bool:
        """Merge changes into an existing document; False if it does not exist."""
        fields, transforms = encode_fields(changes)
        write: dict[str, Any] = {
            "update": {"name": self.document_name(collection, document_id), "fields": fields},
            "updateMask": {"fieldPaths": sorted(fields)},
            "currentDocument": {"exists": True},
        }
        if transforms:
            write["updateTransforms"] = transforms
        resp = await self.commit("update", [write])
        if resp.status_code == 404:
            return False
        self._payload("update", resp)
        return True

    async def delete_document(self, collection: str, document_id: str) -> bool:
        """Delete one document; False if it did not exist."""
        resp = await self.commit("delete", [self.delete_write(collection, document_id)])
        if resp.status_code == 404:
            return False
        self._payload("delete", resp)
        return True

    async def batch_write(self, operation: str, writes: list[dict]) -> list[int]:
        """Apply independent writes in one call; return the rpc status code per write."""
        url = f"{self._base}/{self._prefix}:batchWrite"
        resp = await self._request(operation, "POST", url, {"writes": writes})
        result = self._payload(operation, resp)
        statuses = result.get("status") or []
        return [int(s.get("code", RPC_OK)) for s in statuses] or [RPC_OK] * len(writes)

    @staticmethod
    def _transform_values(write: dict, result: dict) -> dict[str, Any]:
        transforms = write.get("updateTransforms") or []
        write_results = result.get("writeResults") or [{}]
        values = write_results[0].get("transformResults") or []
        return {t["fieldPath"]: decode_value(v) for t, v in zip(transforms, values)}
