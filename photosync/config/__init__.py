# PhotoSync Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from photosync.config.defaults import DEFAULT_CONFIG, generate_default_config, get_default_config
from photosync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from photosync.config.schema import (
    BlobBackend,
    BlobStoreConfig,
    LedgerConfig,
    OutputConfig,
    PhotoSettings,
    PhotoSyncConfig,
    RetryConfig,
)

__all__ = [
    # Schema
    "PhotoSyncConfig",
    "LedgerConfig",
    "BlobStoreConfig",
    "BlobBackend",
    "PhotoSettings",
    "RetryConfig",
    "OutputConfig",
    # Loader
    "load_config",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
    "get_default_config",
]
