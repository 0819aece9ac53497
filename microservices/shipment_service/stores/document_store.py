"""
Document Shipment Store

Adapter for a per-document REST store:

    GET    /shipments                  -> list of documents
    GET    /shipments/{key}            -> document (404: missing)
    POST   /shipments                  -> create (409: duplicate tracking number)
    PATCH  /shipments/{key}            -> merge fields (If-Match, 412: stale)
    DELETE /shipments/{key}            -> remove (404: missing)
    POST   /shipments/{key}/events     -> {"event": ..., "updates": ...}

The remote side resolves keys by tracking number, then id.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from core.service_client_base import BaseServiceClient

from ..protocols import (
    ConflictError,
    DuplicateTrackingNumberError,
    ShipmentNotFoundError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)


class DocumentClient(BaseServiceClient):
    service_name = "document_store"


class DocumentShipmentStore:
    """Shipment store backed by a REST document API"""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        self._client = DocumentClient(
            base_url,
            timeout=timeout,
            max_retries=max_retries,
            retry_backoff=retry_backoff,
            headers=headers,
            transport=transport,
        )

    @staticmethod
    def _path(key: str) -> str:
        return f"/shipments/{quote(key, safe='')}"

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise StoreUnavailableError(f"Document store {method} {path} failed: {e}") from e

    @staticmethod
    def _body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise StoreUnavailableError("Document store returned a non-JSON body") from e

    def _check(self, response: httpx.Response, key: str, expected_revision: Optional[int] = None) -> None:
        if response.status_code == 404:
            raise ShipmentNotFoundError(key)
        if response.status_code == 412:
            actual = None
            try:
                actual = response.json().get("revision")
            except (ValueError, AttributeError):
                pass
            raise ConflictError(key, expected_revision, actual)
        if not response.is_success:
            raise StoreUnavailableError(
                f"Document store answered HTTP {response.status_code} for {key}"
            )

    @staticmethod
    def _revision_header(expected_revision: Optional[int]) -> Optional[Dict[str, str]]:
        if expected_revision is None:
            return None
        return {"If-Match": str(expected_revision)}

    # ====================
    # Store operations
    # ====================

    async def fetch_all(self) -> List[Dict[str, Any]]:
        response = await self._send("GET", "/shipments")
        if not response.is_success:
            raise StoreUnavailableError(f"Document store list failed with HTTP {response.status_code}")
        body = self._body(response)
        if isinstance(body, dict):
            body = body.get("shipments") or []
        return list(body)

    async def fetch_one(self, key: str) -> Optional[Dict[str, Any]]:
        response = await self._send("GET", self._path(key))
        if response.status_code == 404:
            return None
        self._check(response, key)
        return self._body(response)

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._send("POST", "/shipments", json=document)
        if response.status_code == 409:
            raise DuplicateTrackingNumberError(document.get("trackingNumber"))
        self._check(response, document.get("trackingNumber", ""))
        return self._body(response)

    async def replace(
        self,
        key: str,
        fields: Dict[str, Any],
        expected_revision: Optional[int] = None
    ) -> Dict[str, Any]:
        response = await self._send(
            "PATCH", self._path(key), json=fields,
            headers=self._revision_header(expected_revision),
        )
        self._check(response, key, expected_revision)
        return self._body(response)

    async def delete(self, key: str) -> None:
        response = await self._send("DELETE", self._path(key))
        self._check(response, key)

    async def append_event(
        self,
        key: str,
        event: Dict[str, Any],
        updates: Optional[Dict[str, Any]] = None,
        expected_revision: Optional[int] = None
    ) -> Dict[str, Any]:
        response = await self._send(
            "POST", f"{self._path(key)}/events",
            json={"event": event, "updates": updates or {}},
            headers=self._revision_header(expected_revision),
        )
        self._check(response, key, expected_revision)
        return self._body(response)

    async def health_check(self) -> bool:
        return await self._client.health_check("/health")

    async def close(self) -> None:
        await self._client.close()


__all__ = ["DocumentShipmentStore", "DocumentClient"]
