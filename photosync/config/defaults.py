# PhotoSync Default Configuration
# Full default configuration as Python dict and YAML generator

import copy
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "ledger": {
        "url": "sqlite:///~/.local/share/photosync/ledger.db",
        "echo": False,
    },
    "blob_store": {
        "backend": "local",
        "container": "photos",
        "root": "~/.local/share/photosync/blobs",
        "endpoint_url": None,
        "region": None,
    },
    "photos": {
        "import_folder": "~/Pictures/photosync/inbox",
        "export_folder": "~/Pictures/photosync/export",
        "imported_archive_folder": "~/Pictures/photosync/archive",
        "enable_auto_archive": True,
        "enable_duplicate_check": True,
        "use_incremental_export": True,
        "export_file_name_format": "{Code}.jpg",
        "track_file_hash": True,
        "max_parallel_operations": 4,
    },
    "retry": {
        "max_attempts": 3,
        "base_delay": 0.5,
        "max_delay": 10.0,
        "factor": 2.0,
    },
    "output": {
        "verbose": False,
        "colored": True,
        "log_level": "INFO",
        "log_file": "~/.config/photosync/photosync.log",
    },
}


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# PhotoSync Configuration
#
# Synchronizes photos between a local folder, the ledger database and a blob store.
#
# ledger.url:               any SQLAlchemy URL (sqlite, postgresql, mssql+pyodbc, ...)
# blob_store.backend:       local (directory acting as container) or s3
# photos.export_file_name_format tokens:
#   {Code}                  record code
#   {ExportDate:yyyyMMdd}   export date, .NET-style pattern (yyyy MM dd HH mm ss)

"""
    return header + yaml.dump(get_default_config(), default_flow_style=False, sort_keys=False, allow_unicode=True)


def get_default_config() -> dict[str, Any]:
    """Get a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)
