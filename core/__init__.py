"""
Core Module for the Shipment Service

Shared infrastructure used by the service package:
    - config/: environment-driven settings (service, store, logging)
    - service_client_base.py: httpx client base with bounded retry for
      the remote store adapters
"""

from .service_client_base import BaseServiceClient, is_replay_safe, is_transient_error, is_unsent_error

__version__ = "1.0.0"

__all__ = [
    "BaseServiceClient",
    "is_transient_error",
    "is_unsent_error",
    "is_replay_safe",
]
