"""Shipment store adapters"""

from .memory_store import InMemoryShipmentStore
from .blob_store import BlobShipmentStore
from .document_store import DocumentShipmentStore

__all__ = ["InMemoryShipmentStore", "BlobShipmentStore", "DocumentShipmentStore"]
