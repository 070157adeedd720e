"""Bounded retry policy for payouts-provider calls."""

import logging
from dataclasses import dataclass
from typing import Callable, Tuple, Type, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .config import Settings
from .connectors.base import HyperwalletApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt count and fixed delay between attempts."""
    attempts: int = 3
    delay_seconds: float = 5.0
    retry_on: Tuple[Type[BaseException], ...] = (HyperwalletApiError,)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(attempts=settings.retry_attempts, delay_seconds=settings.retry_delay_seconds)

    def call(self, fn: Callable[..., T], *args, **kwargs) -> T:
        """Run ``fn`` until it succeeds or attempts run out.

        Raises:
            The last exception of a ``retry_on`` type once attempts are exhausted.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.delay_seconds),
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(fn, *args, **kwargs)
