#!/usr/bin/env python3
"""Configuration for the shipment service

Configuration hierarchy:
- store_config: Shipment store backend selection and client hardening
- logging_config: Logging configuration
- service_config: Service identity, combines the above

Values come from the process environment. A per-environment dotenv file
(``deployment/environments/<env>.env``, or ``SHIPMENT_ENV_FILE``) fills in
anything not already set.
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig, configure_logging
from .store_config import StoreConfig, STORE_BACKENDS
from .service_config import ServiceConfig

ENV_ALIASES = {"development": "dev", "testing": "test"}

env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
env_file = os.getenv("SHIPMENT_ENV_FILE") or f"deployment/environments/{ENV_ALIASES.get(env, env)}.env"
load_dotenv(env_file, override=False)

# Global settings instance
settings = ServiceConfig.from_env()


def get_settings() -> ServiceConfig:
    """Get global settings instance"""
    return settings


def reload_settings() -> ServiceConfig:
    """Reload settings from environment"""
    global settings
    settings = ServiceConfig.from_env()
    return settings


__all__ = [
    'ServiceConfig',
    'get_settings',
    'reload_settings',
    'settings',
    'LoggingConfig',
    'configure_logging',
    'StoreConfig',
    'STORE_BACKENDS',
]
