"""Fakes shared across the test modules."""

import asyncio
from collections import Counter

import httpx

from errors import CardNotFound, TransientLookupError
from models import CardRecord


class FakeCardService:
    """In-memory stand-in for Scryfall's lookups."""

    def __init__(self, costs=None, broken=(), fallback_costs=None, delay=0.0):
        self.costs = dict(costs or {})
        self.broken = set(broken)
        self.fallback_costs = dict(fallback_costs or {})
        self.delay = delay
        self.calls = Counter()
        self.fallback_calls = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    async def lookup(self, name):
        self.calls[name] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if name in self.broken:
                raise TransientLookupError(f"{name} keeps timing out")
            if name not in self.costs:
                raise CardNotFound(f"no card {name}")
            return CardRecord(name=name, mana_cost=self.costs[name])
        finally:
            self.in_flight -= 1

    async def fallback(self, name):
        self.fallback_calls[name] += 1
        if name in self.fallback_costs:
            return CardRecord(name=name, mana_cost=self.fallback_costs[name])
        raise CardNotFound(f"no double-faced card {name}")


class FakeReply:
    def __init__(self):
        self.events = []

    async def acknowledge(self):
        self.events.append(("ack", None))

    async def complete(self, content):
        self.events.append(("complete", content))


class FakeRenderer:
    def __init__(self, url="https://quickchart.io/chart?c=fake"):
        self.url = url
        self.specs = []

    async def render(self, spec):
        self.specs.append(spec)
        return self.url


def mock_client(handler, base_url="https://api.scryfall.com"):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=base_url)
