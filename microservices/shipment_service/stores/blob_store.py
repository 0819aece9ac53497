"""
Blob Shipment Store

Adapter for a JSON blob host that keeps the whole collection in one
document ``{"shipments": [...]}``:

    GET {base_url}/b/{bin_id}   -> collection (404: not initialized, empty)
    PUT {base_url}/b/{bin_id}   -> overwrite collection

Every mutation is a read-modify-write of the full collection, serialized
by an asyncio.Lock within this process.
"""

import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional

import httpx

from core.service_client_base import BaseServiceClient

from ..protocols import DuplicateTrackingNumberError, StoreUnavailableError
from .base import check_revision, find_index, require_index, stamp_new, merged, with_event

logger = logging.getLogger(__name__)


class BlobClient(BaseServiceClient):
    service_name = "blob_store"


class BlobShipmentStore:
    """Shipment store backed by a single remote JSON blob"""

    def __init__(
        self,
        base_url: str,
        bin_id: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not bin_id:
            raise ValueError("BlobShipmentStore requires a bin_id")
        headers = {"X-Bin-Meta": "false"}
        if api_key:
            headers["X-Master-Key"] = api_key
        self._client = BlobClient(
            base_url,
            timeout=timeout,
            max_retries=max_retries,
            retry_backoff=retry_backoff,
            headers=headers,
            transport=transport,
        )
        self._path = f"/b/{bin_id}"
        self._lock = asyncio.Lock()

    # ====================
    # Wire access
    # ====================

    async def _read(self) -> List[Dict[str, Any]]:
        try:
            response = await self._client.get(self._path)
        except httpx.HTTPError as e:
            raise StoreUnavailableError(f"Blob store read failed: {e}") from e

        if response.status_code == 404:
            logger.info(f"Blob {self._path} not initialized, treating as empty")
            return []
        if not response.is_success:
            raise StoreUnavailableError(f"Blob store read failed with HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise StoreUnavailableError("Blob store returned a non-JSON body") from e
        if isinstance(body, dict) and isinstance(body.get("record"), dict):
            body = body["record"]
        if not isinstance(body, dict):
            raise StoreUnavailableError("Blob store returned an unexpected document")
        return list(body.get("shipments") or [])

    async def _write(self, documents: List[Dict[str, Any]]) -> None:
        try:
            response = await self._client.put(self._path, json={"shipments": documents})
        except httpx.HTTPError as e:
            raise StoreUnavailableError(f"Blob store write failed: {e}") from e
        if not response.is_success:
            raise StoreUnavailableError(f"Blob store write failed with HTTP {response.status_code}")

    # ====================
    # Store operations
    # ====================

    async def fetch_all(self) -> List[Dict[str, Any]]:
        return await self._read()

    async def fetch_one(self, key: str) -> Optional[Dict[str, Any]]:
        documents = await self._read()
        index = find_index(documents, key)
        return documents[index] if index != -1 else None

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        async with self._lock:
            documents = await self._read()
            tracking_number = document.get("trackingNumber")
            if any(d.get("trackingNumber") == tracking_number for d in documents):
                raise DuplicateTrackingNumberError(tracking_number)
            stored = stamp_new(document)
            await self._write([stored] + documents)
            return copy.deepcopy(stored)

    async def replace(
        self,
        key: str,
        fields: Dict[str, Any],
        expected_revision: Optional[int] = None
    ) -> Dict[str, Any]:
        async with self._lock:
            documents = await self._read()
            index = require_index(documents, key)
            check_revision(documents[index], key, expected_revision)
            documents[index] = merged(documents[index], fields)
            await self._write(documents)
            return copy.deepcopy(documents[index])

    async def delete(self, key: str) -> None:
        async with self._lock:
            documents = await self._read()
            index = require_index(documents, key)
            del documents[index]
            await self._write(documents)

    async def append_event(
        self,
        key: str,
        event: Dict[str, Any],
        updates: Optional[Dict[str, Any]] = None,
        expected_revision: Optional[int] = None
    ) -> Dict[str, Any]:
        async with self._lock:
            documents = await self._read()
            index = require_index(documents, key)
            check_revision(documents[index], key, expected_revision)
            documents[index] = with_event(documents[index], event, updates)
            await self._write(documents)
            return copy.deepcopy(documents[index])

    async def health_check(self) -> bool:
        try:
            await self._read()
            return True
        except StoreUnavailableError as e:
            logger.warning(f"Blob store health check failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.close()


__all__ = ["BlobShipmentStore", "BlobClient"]
