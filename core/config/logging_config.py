#!/usr/bin/env python3
"""Logging configuration"""
import logging
import os
from dataclasses import dataclass


@dataclass
class LoggingConfig:
    """Logging configuration"""
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: str = ""
    enable_console: bool = True

    # Service identity for logging
    service_name: str = "shipment_service"
    environment: str = "development"

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        """Load logging config from environment variables"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            log_level=os.getenv("LOG_LEVEL", "DEBUG" if env == "development" else "INFO"),
            log_format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            log_file=os.getenv("LOG_FILE", ""),
            enable_console=True,
            service_name=os.getenv("SERVICE_NAME", "shipment_service"),
            environment=env,
        )

    @property
    def level(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)


def configure_logging(config: LoggingConfig) -> None:
    """Apply logging config to the root logger.

    Safe to call more than once; handlers installed by a previous call are
    replaced rather than stacked.
    """
    root = logging.getLogger()
    root.setLevel(config.level)

    for handler in list(root.handlers):
        if getattr(handler, "_shipment_service", False):
            root.removeHandler(handler)

    formatter = logging.Formatter(config.log_format)
    handlers = []
    if config.enable_console:
        handlers.append(logging.StreamHandler())
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._shipment_service = True
        root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(config.level, logging.WARNING))
