#!/usr/bin/env python3
"""Service configuration for the shipment service

Combines the logging and store sub-configs with the service's own
network identity.
"""
import os
from dataclasses import dataclass, field

from .logging_config import LoggingConfig
from .store_config import StoreConfig


def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class ServiceConfig:
    """Shipment service settings"""
    service_name: str = "shipment_service"
    service_host: str = "0.0.0.0"
    service_port: int = 8260
    environment: str = "development"

    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> 'ServiceConfig':
        """Load service configuration from environment variables"""
        return cls(
            service_name=os.getenv("SERVICE_NAME", "shipment_service"),
            service_host=os.getenv("SERVICE_HOST", "0.0.0.0"),
            service_port=_int(os.getenv("SERVICE_PORT", "8260"), 8260),
            environment=os.getenv("ENV") or os.getenv("ENVIRONMENT", "development"),
            store=StoreConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )
