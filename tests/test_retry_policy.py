import asyncio

import pytest

from errors import CardNotFound, TransientLookupError
from retry_policy import RetryPolicy


class Flaky:
    def __init__(self, failures, error=TransientLookupError):
        self.failures = failures
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error("nope")
        return "card"


def test_defaults_are_three_retries_with_short_delay():
    policy = RetryPolicy()
    assert policy.retries == 3
    assert policy.max_attempts == 4
    assert policy.delay == pytest.approx(0.1)


def test_succeeds_after_transient_failures():
    operation = Flaky(failures=2)
    assert asyncio.run(RetryPolicy(delay=0).run(operation)) == "card"
    assert operation.calls == 3


def test_gives_up_after_the_retry_budget():
    operation = Flaky(failures=10)
    with pytest.raises(TransientLookupError):
        asyncio.run(RetryPolicy(retries=3, delay=0).run(operation))
    assert operation.calls == 4


def test_definitive_errors_are_not_retried():
    operation = Flaky(failures=1, error=CardNotFound)
    with pytest.raises(CardNotFound):
        asyncio.run(RetryPolicy(delay=0).run(operation))
    assert operation.calls == 1
    assert not RetryPolicy().is_retryable(CardNotFound())


def test_waits_between_attempts():
    async def timed():
        loop = asyncio.get_running_loop()
        start = loop.time()
        await RetryPolicy(retries=2, delay=0.05).run(Flaky(failures=2))
        return loop.time() - start

    assert asyncio.run(timed()) >= 0.08
