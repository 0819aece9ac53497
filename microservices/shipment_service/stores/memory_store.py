"""
In-Memory Shipment Store

List store kept in process memory. Used by tests and by the
``memory`` backend for local runs. Documents are copied on the way in and
out so callers never share state with the store.
"""

import asyncio
import copy
import logging
from typing import Any, Dict, Iterable, List, Optional

from ..protocols import DuplicateTrackingNumberError
from .base import check_revision, find_index, require_index, stamp_new, merged, with_event

logger = logging.getLogger(__name__)


class InMemoryShipmentStore:
    """Shipment store backed by a list of documents, newest first"""

    def __init__(self, documents: Optional[Iterable[Dict[str, Any]]] = None):
        self._documents: List[Dict[str, Any]] = [copy.deepcopy(d) for d in (documents or [])]
        self._lock = asyncio.Lock()

    async def fetch_all(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._documents)

    async def fetch_one(self, key: str) -> Optional[Dict[str, Any]]:
        index = find_index(self._documents, key)
        return copy.deepcopy(self._documents[index]) if index != -1 else None

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        async with self._lock:
            tracking_number = document.get("trackingNumber")
            if any(d.get("trackingNumber") == tracking_number for d in self._documents):
                raise DuplicateTrackingNumberError(tracking_number)
            stored = stamp_new(document)
            self._documents.insert(0, stored)
            return copy.deepcopy(stored)

    async def replace(
        self,
        key: str,
        fields: Dict[str, Any],
        expected_revision: Optional[int] = None
    ) -> Dict[str, Any]:
        async with self._lock:
            index = require_index(self._documents, key)
            check_revision(self._documents[index], key, expected_revision)
            self._documents[index] = merged(self._documents[index], fields)
            return copy.deepcopy(self._documents[index])

    async def delete(self, key: str) -> None:
        async with self._lock:
            index = require_index(self._documents, key)
            del self._documents[index]

    async def append_event(
        self,
        key: str,
        event: Dict[str, Any],
        updates: Optional[Dict[str, Any]] = None,
        expected_revision: Optional[int] = None
    ) -> Dict[str, Any]:
        async with self._lock:
            index = require_index(self._documents, key)
            check_revision(self._documents[index], key, expected_revision)
            self._documents[index] = with_event(self._documents[index], event, updates)
            return copy.deepcopy(self._documents[index])

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        pass


__all__ = ["InMemoryShipmentStore"]
