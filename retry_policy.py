"""
Fixed-delay retry policy for card lookups.

Kept separate from the HTTP code so the retry rules can be tested with
plain coroutines.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from config import RETRY_ATTEMPTS, RETRY_DELAY
from errors import TransientLookupError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry an async operation a fixed number of times.

    Attributes:
        retries: Extra attempts after the first one
        delay: Seconds to wait between attempts
        retry_on: Exception types worth another attempt; anything else is
            raised straight away
    """

    retries: int = RETRY_ATTEMPTS
    delay: float = RETRY_DELAY
    retry_on: Tuple[Type[BaseException], ...] = (TransientLookupError,)

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def is_retryable(self, error: BaseException) -> bool:
        return isinstance(error, self.retry_on)

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "operation") -> T:
        """
        Await ``operation()`` until it succeeds or the attempts run out.

        The last retryable error is re-raised once the budget is spent.
        """
        attempt = 1
        while True:
            try:
                return await operation()
            except self.retry_on as e:
                if attempt >= self.max_attempts:
                    logger.debug("%s failed after %d attempts: %s", description, attempt, e)
                    raise
                logger.debug("%s failed (attempt %d/%d): %s", description, attempt, self.max_attempts, e)
                attempt += 1
                await asyncio.sleep(self.delay)
