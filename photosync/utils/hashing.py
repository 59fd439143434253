# PhotoSync Hashing Utilities
# Content hashing for duplicate detection

import hashlib


def content_hash(content: bytes, *, algorithm: str = "sha256") -> str:
    """
    Calculate hash of a binary payload.

    Args:
        content: Bytes to hash.
        algorithm: Hash algorithm (default sha256).

    Returns:
        Hex digest of hash, or an empty string for empty content.
    """
    if not content:
        return ""

    hasher = hashlib.new(algorithm)
    hasher.update(content)
    return hasher.hexdigest()

