# PhotoSync Retry Policy
# Exponential backoff around ledger and blob store calls

import logging
import time
from collections.abc import Callable
from typing import Optional, TypeVar

from photosync.config.schema import RetryConfig
from photosync.errors import TransientStoreError
from photosync.logger import get_logger

T = TypeVar("T")


class RetryPolicy:
    """
    Retry a call while it raises :class:`TransientStoreError`.

    Any other exception propagates on the first attempt. The delay before
    retry ``n`` (starting at 0) is ``base_delay * factor ** n`` capped at
    ``max_delay``.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 10.0,
        factor: float = 2.0,
        *,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.factor = factor
        self._sleep = sleep
        self.logger = logger or get_logger(__name__)

    @classmethod
    def from_config(cls, config: RetryConfig, **kwargs) -> "RetryPolicy":
        """Build a policy from the ``retry`` config section."""
        return cls(
            max_attempts=config.max_attempts,
            base_delay=config.base_delay,
            max_delay=config.max_delay,
            factor=config.factor,
            **kwargs,
        )

    @classmethod
    def none(cls) -> "RetryPolicy":
        """A policy that never retries."""
        return cls(max_attempts=1)

    def delay_for(self, retry: int) -> float:
        """Delay in seconds before the given retry (0-based)."""
        return min(self.base_delay * (self.factor**retry), self.max_delay)

    def call(self, func: Callable[..., T], *args, **kwargs) -> T:
        """
        Call ``func`` with retries.

        Args:
            func: Callable to invoke.
            *args: Positional arguments for ``func``.
            **kwargs: Keyword arguments for ``func``.

        Returns:
            Whatever ``func`` returns.

        Raises:
            TransientStoreError: If every attempt failed transiently.
        """
        attempt = 0
        while True:
            try:
                return func(*args, **kwargs)
            except TransientStoreError as e:
                attempt += 1
                if attempt >= self.max_attempts:
                    self.logger.error("Giving up after %d attempts: %s", attempt, e)
                    raise
                delay = self.delay_for(attempt - 1)
                self.logger.warning(
                    "Transient error (attempt %d/%d), retrying in %.2fs: %s",
                    attempt,
                    self.max_attempts,
                    delay,
                    e,
                )
                self._sleep(delay)
