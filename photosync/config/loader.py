# PhotoSync Configuration Loader
# Read, write and check the YAML configuration file

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from photosync.config.defaults import generate_default_config, get_default_config
from photosync.config.schema import PhotoSyncConfig
from photosync.errors import ValidationError

CONFIG_ENV_VAR = "PHOTOSYNC_CONFIG"


def get_config_dir() -> Path:
    """Directory holding the PhotoSync config file."""
    return Path.home() / ".config" / "photosync"


def get_config_path() -> Path:
    """
    Location of the config file.

    ``$PHOTOSYNC_CONFIG`` wins over ``~/.config/photosync/config.yaml``.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return get_config_dir() / "config.yaml"


def _read_yaml(path: Path) -> Optional[dict[str, Any]]:
    """Parse a YAML file; None for an empty document."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def _format_errors(error: PydanticValidationError) -> list[str]:
    return [f"{' -> '.join(str(part) for part in e['loc'])}: {e['msg']}" for e in error.errors()]


def _merge_with_defaults(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay file sections onto the defaults, one level deep."""
    merged = get_default_config()
    for section, values in data.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def load_config(config_path: Optional[Path] = None) -> PhotoSyncConfig:
    """
    Load and validate the config file.

    Keys missing from the file fall back to the defaults.

    Args:
        config_path: File to read; defaults to :func:`get_config_path`.

    Returns:
        PhotoSyncConfig: The validated configuration.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValidationError: If the YAML is malformed or a value is invalid.
    """
    path = config_path or get_config_path()
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}\nRun 'photosync config init' to create one.")

    try:
        data = _read_yaml(path) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML syntax in {path}: {e}") from e

    try:
        return PhotoSyncConfig.model_validate(_merge_with_defaults(data))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid configuration in {path}:\n" + "\n".join(_format_errors(e))) from e


def save_config(config: PhotoSyncConfig, config_path: Optional[Path] = None) -> Path:
    """
    Write a configuration object as YAML.

    Args:
        config: Configuration to write.
        config_path: Target file; defaults to :func:`get_config_path`.

    Returns:
        Path: The file written.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    # Enums are written as their values
    payload = config.model_dump(mode="json", exclude_none=True)
    path.write_text(
        yaml.dump(payload, default_flow_style=False, sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )
    return path


def ensure_config_exists(config_path: Optional[Path] = None) -> tuple[Path, bool]:
    """
    Write the commented default template unless a config file exists.

    Returns:
        The config path and whether it was just created.
    """
    path = config_path or get_config_path()
    if path.exists():
        return path, False

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(generate_default_config(), encoding="utf-8")
    return path, True


def validate_config_file(config_path: Optional[Path] = None) -> tuple[bool, list[str]]:
    """
    Check a config file and report every problem found.

    Besides schema errors, unset import and export folders are reported
    since no transfer can run without them.

    Args:
        config_path: File to check; defaults to :func:`get_config_path`.

    Returns:
        ``(True, [])`` when valid, else ``(False, messages)``.
    """
    path = config_path or get_config_path()
    if not path.exists():
        return False, [f"Configuration file not found: {path}"]

    try:
        data = _read_yaml(path)
    except yaml.YAMLError as e:
        return False, [f"Invalid YAML syntax: {e}"]
    if data is None:
        return False, ["Configuration file is empty"]

    try:
        config = PhotoSyncConfig.model_validate(_merge_with_defaults(data))
    except PydanticValidationError as e:
        return False, _format_errors(e)

    problems = [
        f"photos -> {name}: not configured"
        for name in ("import_folder", "export_folder")
        if not getattr(config.photos, name)
    ]
    return not problems, problems
