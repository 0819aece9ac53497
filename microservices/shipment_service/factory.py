"""
Shipment Service Factory

Builds the store adapter selected by configuration and injects it, with the
event bus, into the repository. This is the ONLY place that chooses a
concrete store.

Usage:
    factory = ShipmentServiceFactory(config)
    await factory.initialize()
    repository = factory.repository
"""

import logging
from typing import Optional

from core.config import ServiceConfig, StoreConfig, get_settings

from .events import InProcessEventBus
from .protocols import ShipmentStoreProtocol
from .shipment_repository import ShipmentRepository
from .stores import BlobShipmentStore, DocumentShipmentStore, InMemoryShipmentStore

logger = logging.getLogger(__name__)


def create_store(config: StoreConfig) -> ShipmentStoreProtocol:
    """Instantiate the store adapter named by ``config.backend``"""
    if config.backend == "blob":
        return BlobShipmentStore(
            base_url=config.base_url,
            bin_id=config.bin_id,
            api_key=config.api_key or None,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff,
        )
    if config.backend == "document":
        return DocumentShipmentStore(
            base_url=config.base_url,
            api_key=config.api_key or None,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff,
        )
    return InMemoryShipmentStore()


class ShipmentServiceFactory:
    """Factory for creating shipment service components"""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        store: Optional[ShipmentStoreProtocol] = None,
    ):
        self.config = config or get_settings()
        self._store: Optional[ShipmentStoreProtocol] = store
        self._event_bus: Optional[InProcessEventBus] = None
        self._repository: Optional[ShipmentRepository] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        store_config = self.config.store
        logger.info(f"Initializing Shipment Service components (store backend: {store_config.backend})...")

        if self._store is None:
            self._store = create_store(store_config)
        self._event_bus = InProcessEventBus()
        self._repository = ShipmentRepository(
            store=self._store,
            event_bus=self._event_bus,
            optimistic_concurrency=store_config.optimistic_concurrency,
        )

        if store_config.seed_demo_data:
            seeded = await self._repository.seed_demo_data()
            logger.info(f"Demo data seeding inserted {seeded} shipments")

        logger.info("Shipment Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Shipment Service components...")

        if self._event_bus is not None:
            await self._event_bus.close()

        if self._store is not None:
            await self._store.close()

        logger.info("Shipment Service components closed")

    @property
    def repository(self) -> ShipmentRepository:
        """Get shipment repository"""
        if self._repository is None:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._repository

    @property
    def store(self) -> ShipmentStoreProtocol:
        """Get store adapter"""
        if self._store is None:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._store

    @property
    def event_bus(self) -> InProcessEventBus:
        """Get event bus"""
        if self._event_bus is None:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._event_bus


__all__ = ["ShipmentServiceFactory", "create_store"]
