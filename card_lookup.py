"""
Card lookup orchestration.

Resolves every unique card in a deck to a CardRecord exactly once. The
quantity only weights the mana count later on; five copies of a card do
not cost five requests.

Per card:
1. fuzzy lookup, retried on transient errors
2. if that gives up, one fallback strategy (also retried)
3. if that fails too, the card is recorded as failed and the batch goes on

At most ``concurrency`` cards are in flight, and every request waits for
the dispatch throttle so Scryfall sees at least ``dispatch_delay`` seconds
between calls.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from config import DISPATCH_DELAY, LOOKUP_CONCURRENCY
from errors import LookupFailure
from models import CardRecord, Deck, DeckEntry, LookupOutcome, ResolvedCard
from retry_policy import RetryPolicy
from scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)

LookupFn = Callable[[str], Awaitable[CardRecord]]


class DispatchThrottle:
    """
    Spaces out request dispatches by a minimum delay.

    Callers queue up on ``wait()``; each one is released at least ``delay``
    seconds after the previous one.
    """

    def __init__(self, delay: float = DISPATCH_DELAY):
        self.delay = delay
        self._lock = asyncio.Lock()
        self._last_dispatch: Optional[float] = None

    async def wait(self) -> None:
        async with self._lock:
            loop = asyncio.get_running_loop()
            if self._last_dispatch is not None:
                remaining = self._last_dispatch + self.delay - loop.time()
                if remaining > 0:
                    await asyncio.sleep(remaining)
            self._last_dispatch = loop.time()


class CardLookupOrchestrator:
    """
    Bounded, throttled, fault-tolerant resolution of a deck's cards.

    Args:
        lookup: Primary lookup, e.g. ``ScryfallClient.get_card_by_name``
        fallback: Second strategy for names the primary lookup gave up on
        retry_policy: How often and how fast to retry transient errors
        concurrency: Max cards being resolved at the same time
        dispatch_delay: Min seconds between two outgoing requests
    """

    def __init__(
        self,
        lookup: LookupFn,
        fallback: Optional[LookupFn] = None,
        retry_policy: Optional[RetryPolicy] = None,
        concurrency: int = LOOKUP_CONCURRENCY,
        dispatch_delay: float = DISPATCH_DELAY,
    ):
        self.lookup = lookup
        self.fallback = fallback
        self.retry_policy = retry_policy or RetryPolicy()
        self.concurrency = max(1, concurrency)
        self.throttle = DispatchThrottle(dispatch_delay)

    @classmethod
    def from_scryfall(cls, scryfall: ScryfallClient, **kwargs) -> "CardLookupOrchestrator":
        return cls(scryfall.get_card_by_name, scryfall.search_double_faced, **kwargs)

    async def _throttled(self, strategy: LookupFn, name: str) -> CardRecord:
        await self.throttle.wait()
        return await strategy(name)

    async def resolve_card(self, name: str) -> CardRecord:
        """
        Resolve one name: primary lookup with retries, then the fallback.

        Raises:
            LookupFailure: both strategies gave up on this name
        """
        try:
            return await self.retry_policy.run(
                lambda: self._throttled(self.lookup, name), f"lookup {name!r}"
            )
        except LookupFailure as e:
            if self.fallback is None:
                raise
            logger.info("Primary lookup failed for %r (%s), trying fallback", name, e)

        return await self.retry_policy.run(
            lambda: self._throttled(self.fallback, name), f"fallback lookup {name!r}"
        )

    async def resolve(self, deck: Deck, deadline: Optional[float] = None) -> LookupOutcome:
        """
        Resolve every unique card in ``deck``.

        Args:
            deck: Parsed and validated deck
            deadline: Absolute event-loop time (``loop.time()``) after which
                unfinished lookups are cancelled and counted as failures

        Returns:
            LookupOutcome with resolved cards in deck order and the names
            that could not be resolved
        """
        loop = asyncio.get_running_loop()
        semaphore = asyncio.Semaphore(self.concurrency)

        async def resolve_entry(entry: DeckEntry) -> CardRecord:
            async with semaphore:
                return await self.resolve_card(entry.name)

        tasks: Dict["asyncio.Task[CardRecord]", DeckEntry] = {
            asyncio.ensure_future(resolve_entry(entry)): entry for entry in deck
        }
        outcome = LookupOutcome()
        if not tasks:
            return outcome

        timeout = None if deadline is None else max(0.0, deadline - loop.time())
        try:
            _, pending = await asyncio.wait(tasks, timeout=timeout)
        finally:
            # Also reached when the caller itself is cancelled
            for task in tasks:
                if not task.done():
                    task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning("Deadline reached with %d lookups unfinished", len(pending))

        for task, entry in tasks.items():
            if task in pending:
                outcome.failed.append(entry.name)
                continue

            error = task.exception()
            if error is None:
                outcome.resolved.append(ResolvedCard(record=task.result(), quantity=entry.quantity))
            elif isinstance(error, LookupFailure):
                logger.warning("Failed to fetch card %r: %s", entry.name, error)
                outcome.failed.append(entry.name)
            else:
                logger.error("Unexpected error looking up %r", entry.name, exc_info=error)
                outcome.failed.append(entry.name)

        logger.info(
            "Resolved %d of %d unique cards (%d failed)",
            len(outcome.resolved), len(tasks), outcome.failure_count,
        )
        return outcome
