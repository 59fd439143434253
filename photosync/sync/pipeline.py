# PhotoSync Pipeline Base
# Shared collaborators and connectivity pre-checks for transfer pipelines

import logging
from collections.abc import Callable

from photosync.errors import ConnectivityError, StoreError
from photosync.logger import get_logger
from photosync.store.repository import RecordRepository
from photosync.store.retry import RetryPolicy
from photosync.sync.record import Clock, utc_now


class Pipeline:
    """
    Base for the transfer pipelines.

    Holds the record repository, the retry policy used around every store
    call, the clock and the logger.
    """

    name = "pipeline"

    def __init__(
        self,
        repository: RecordRepository,
        *,
        retry: RetryPolicy | None = None,
        clock: Clock = utc_now,
        logger: logging.Logger | None = None,
    ):
        self.repository = repository
        self.retry = retry or RetryPolicy.none()
        self.clock = clock
        self.logger = logger or get_logger(f"sync.{self.name}")

    def _call(self, func: Callable, *args, **kwargs):
        """Call a store operation under the retry policy."""
        return self.retry.call(func, *args, **kwargs)

    def _ensure_reachable(self, label: str, check: Callable[[], bool]) -> None:
        """
        Run a connectivity check.

        Raises:
            ConnectivityError: If the check fails or keeps raising transient errors.
        """
        try:
            reachable = self._call(check)
        except StoreError as e:
            raise ConnectivityError(f"{label} is not reachable: {e}") from e
        if not reachable:
            raise ConnectivityError(f"{label} is not reachable")

    def ensure_repository(self) -> None:
        """Pre-check the record store."""
        self._ensure_reachable("Record store", self.repository.test_connection)
