# PhotoSync Path Utilities
# Safe file operations with atomic writes and collision-free names

import os
import re
import tempfile
from datetime import datetime
from pathlib import Path

# Characters rejected by Windows, the strictest target we export to
_INVALID_FILE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def expand_path(path: str | Path) -> Path:
    """Resolve ~ and $VARS in a configured folder or file path."""
    return Path(os.path.expandvars(os.path.expanduser(str(path))))


def ensure_dir(path: Path) -> Path:
    """Create a directory and its parents if missing; returns ``path``."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write(path: Path, content: bytes) -> None:
    """
    Write bytes so readers never see a partial file.

    The content goes to a hidden sibling first and replaces ``path`` in one
    rename; an existing file is overwritten.

    Args:
        path: Destination file.
        content: Bytes to write.
    """
    ensure_dir(path.parent)

    # same directory, so the rename stays on one filesystem
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        os.replace(temp_path, path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def sanitize_file_name(name: str) -> str:
    """
    Make a string safe to use as a file name.

    Invalid characters become underscores; leading and trailing spaces and dots
    are stripped. Empty results become ``unnamed``.
    """
    if not name or not name.strip():
        return "unnamed"

    sanitized = _INVALID_FILE_CHARS.sub("_", name).strip(" .")
    return sanitized or "unnamed"


def unique_target_path(directory: Path, file_name: str, *, now: datetime | None = None) -> Path:
    """
    Pick a target path in ``directory`` that does not exist yet.

    The plain name is used when free; otherwise ``<stem>_<yyyyMMdd_HHmmss><ext>``,
    and a counter is appended if that is taken as well.

    Args:
        directory: Target directory.
        file_name: Desired file name.
        now: Timestamp for the collision suffix (defaults to local time).

    Returns:
        A path inside ``directory`` that is currently free.
    """
    target = directory / file_name
    if not target.exists():
        return target

    stem = Path(file_name).stem
    suffix = Path(file_name).suffix
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")

    target = directory / f"{stem}_{stamp}{suffix}"
    counter = 1
    while target.exists():
        target = directory / f"{stem}_{stamp}_{counter}{suffix}"
        counter += 1
    return target
