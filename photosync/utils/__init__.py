# PhotoSync Utilities Module
# Helper functions for path handling and content hashing

from photosync.utils.hashing import content_hash
from photosync.utils.paths import (
    atomic_write,
    ensure_dir,
    expand_path,
    sanitize_file_name,
    unique_target_path,
)

__all__ = [
    # Paths
    "expand_path",
    "ensure_dir",
    "atomic_write",
    "sanitize_file_name",
    "unique_target_path",
    # Hashing
    "content_hash",
]
