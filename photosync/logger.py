"""Logging setup for PhotoSync.

Components never configure logging themselves; they receive a ``logging.Logger``
(or fall back to :func:`get_logger`). The CLI calls :func:`setup_logging` once.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "photosync"


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the ``photosync`` namespace.

    Args:
        name: Module name, usually ``__name__``.
    """
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    *,
    log_file: Optional[str] = None,
    console: Optional[Console] = None,
    verbose: bool = False,
) -> logging.Logger:
    """Configure the ``photosync`` logger.

    Args:
        level: Level name for the console handler.
        log_file: Optional file receiving every record at DEBUG level.
        console: Rich console to render to (defaults to stderr).
        verbose: Force DEBUG on the console.

    Returns:
        The configured root ``photosync`` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    console_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        level=console_level,
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(rich_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    return logger
