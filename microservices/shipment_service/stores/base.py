"""
Shared document helpers for list-backed shipment stores

The in-memory and blob adapters both hold the collection as a list of
camelCase documents and apply the same merge, append and revision rules.
"""

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..protocols import ConflictError, ShipmentNotFoundError


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def find_index(documents: List[Dict[str, Any]], key: str) -> int:
    """Position of the document matching ``key``: tracking number first, then id"""
    for index, document in enumerate(documents):
        if document.get("trackingNumber") == key:
            return index
    for index, document in enumerate(documents):
        if document.get("id") == key:
            return index
    return -1


def require_index(documents: List[Dict[str, Any]], key: str) -> int:
    index = find_index(documents, key)
    if index == -1:
        raise ShipmentNotFoundError(key)
    return index


def check_revision(document: Dict[str, Any], key: str, expected_revision: Optional[int]) -> None:
    if expected_revision is None:
        return
    actual = document.get("revision", 1)
    if actual != expected_revision:
        raise ConflictError(key, expected_revision, actual)


def stamp_new(document: Dict[str, Any]) -> Dict[str, Any]:
    stored = copy.deepcopy(document)
    now = now_iso()
    stored.setdefault("id", uuid.uuid4().hex)
    stored.setdefault("createdAt", now)
    stored["updatedAt"] = now
    stored["revision"] = 1
    stored.setdefault("trackingHistory", [])
    return stored


def merged(document: Dict[str, Any], fields: Dict[str, Any]) -> Dict[str, Any]:
    """Shallow merge; a provided trackingHistory replaces the array wholesale"""
    updated = {**copy.deepcopy(document), **copy.deepcopy(fields)}
    updated["id"] = document["id"]
    updated["revision"] = document.get("revision", 1) + 1
    updated["updatedAt"] = now_iso()
    return updated


def with_event(
    document: Dict[str, Any],
    event: Dict[str, Any],
    updates: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    entry = copy.deepcopy(event)
    entry.setdefault("id", uuid.uuid4().hex)
    entry.setdefault("timestamp", now_iso())
    history = [entry] + copy.deepcopy(document.get("trackingHistory") or [])
    fields = dict(updates or {})
    fields["trackingHistory"] = history
    return merged(document, fields)
