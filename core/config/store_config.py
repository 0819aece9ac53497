#!/usr/bin/env python3
"""Shipment store configuration

Selects and parameterizes the backend behind the shipment repository:
- memory:   in-process list (tests, local demos)
- blob:     key/value blob service holding the whole collection
- document: REST document service with per-shipment endpoints
"""
import os
from dataclasses import dataclass

STORE_BACKENDS = ("memory", "blob", "document")


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class StoreConfig:
    """Shipment store backend configuration"""
    backend: str = "memory"
    base_url: str = "http://localhost:8300"
    api_key: str = ""
    bin_id: str = ""

    # Client hardening
    timeout: float = 10.0
    max_retries: int = 3
    retry_backoff: float = 0.5

    # Repository behavior
    optimistic_concurrency: bool = False
    seed_demo_data: bool = False

    def __post_init__(self):
        if self.backend not in STORE_BACKENDS:
            raise ValueError(
                f"Unknown shipment store backend '{self.backend}', "
                f"expected one of {', '.join(STORE_BACKENDS)}"
            )
        if self.max_retries < 1:
            self.max_retries = 1

    @classmethod
    def from_env(cls) -> 'StoreConfig':
        """Load store config from environment variables"""
        return cls(
            backend=os.getenv("SHIPMENT_STORE_BACKEND", "memory").lower(),
            base_url=os.getenv("SHIPMENT_STORE_URL", "http://localhost:8300"),
            api_key=os.getenv("SHIPMENT_STORE_API_KEY", ""),
            bin_id=os.getenv("SHIPMENT_STORE_BIN_ID", ""),
            timeout=_float(os.getenv("SHIPMENT_STORE_TIMEOUT", "10"), 10.0),
            max_retries=_int(os.getenv("SHIPMENT_STORE_MAX_RETRIES", "3"), 3),
            retry_backoff=_float(os.getenv("SHIPMENT_STORE_RETRY_BACKOFF", "0.5"), 0.5),
            optimistic_concurrency=_bool(os.getenv("SHIPMENT_OPTIMISTIC_CONCURRENCY", "false")),
            seed_demo_data=_bool(os.getenv("SHIPMENT_SEED_DEMO_DATA", "false")),
        )
