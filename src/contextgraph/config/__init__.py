"""Application configuration helpers."""

from __future__ import annotations

from .airtable import AirtableConfig, get_airtable_config
from .engine import EngineConfig, get_engine_config, parse_health_weights
from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryablePayloadError, RetryPolicy
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    StoreBackend,
    StoreConfig,
    get_database_config,
    get_storage_config,
    get_store_config,
)

__all__ = [
    "AirtableConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "EngineConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "RetryablePayloadError",
    "StorageConfig",
    "StoreBackend",
    "StoreConfig",
    "configure_logging",
    "get_airtable_config",
    "get_database_config",
    "get_engine_config",
    "get_storage_config",
    "get_store_config",
    "parse_health_weights",
    "require_env_vars",
]
