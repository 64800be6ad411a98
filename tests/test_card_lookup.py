import asyncio

from card_lookup import CardLookupOrchestrator, DispatchThrottle
from deck_parser import parse_deck_lines
from helpers import FakeCardService
from retry_policy import RetryPolicy


def _orchestrator(service, **kwargs):
    kwargs.setdefault("retry_policy", RetryPolicy(delay=0))
    kwargs.setdefault("dispatch_delay", 0)
    return CardLookupOrchestrator(service.lookup, service.fallback, **kwargs)


def test_each_unique_card_is_looked_up_once():
    service = FakeCardService({"Lightning Bolt": "{R}", "Island": None})
    deck = parse_deck_lines("4 Lightning Bolt\n20 Island\nlightning bolt")

    outcome = asyncio.run(_orchestrator(service).resolve(deck))

    assert service.calls == {"Lightning Bolt": 1, "Island": 1}
    assert [(c.record.name, c.quantity) for c in outcome.resolved] == [("Lightning Bolt", 5), ("Island", 20)]
    assert outcome.failure_count == 0


def test_failed_cards_do_not_abort_the_batch():
    names = [f"Card {i}" for i in range(10)]
    service = FakeCardService({name: "{G}" for name in names}, broken={"Card 3", "Card 7"})
    deck = parse_deck_lines("\n".join(f"6 {name}" for name in names))

    outcome = asyncio.run(_orchestrator(service).resolve(deck))

    assert len(outcome.resolved) == 8
    assert outcome.failed == ["Card 3", "Card 7"]
    # first attempt + 3 retries, then the fallback once
    assert service.calls["Card 3"] == 4
    assert service.fallback_calls["Card 3"] == 1
    assert service.fallback_calls["Card 0"] == 0


def test_fallback_rescues_names_the_primary_lookup_misses():
    service = FakeCardService({}, fallback_costs={"Delver of Secrets": "{U}"})
    deck = parse_deck_lines("Delver of Secrets")

    outcome = asyncio.run(_orchestrator(service).resolve(deck))

    assert outcome.resolved[0].record.mana_cost == "{U}"
    # not found is definitive, so no retries before the fallback
    assert service.calls["Delver of Secrets"] == 1


def test_concurrency_is_bounded():
    names = [f"Card {i}" for i in range(12)]
    service = FakeCardService({name: "{W}" for name in names}, delay=0.01)
    deck = parse_deck_lines("\n".join(names))

    outcome = asyncio.run(_orchestrator(service, concurrency=3).resolve(deck))

    assert len(outcome.resolved) == 12
    assert service.max_in_flight <= 3


def test_throttle_spaces_out_dispatches():
    async def dispatch_times():
        throttle = DispatchThrottle(delay=0.05)
        loop = asyncio.get_running_loop()
        times = []

        async def dispatch():
            await throttle.wait()
            times.append(loop.time())

        await asyncio.gather(*(dispatch() for _ in range(3)))
        return times

    times = asyncio.run(dispatch_times())
    gaps = [later - earlier for earlier, later in zip(times, times[1:])]
    assert all(gap >= 0.04 for gap in gaps)


def test_deadline_returns_partial_results():
    class SlowForOneCard(FakeCardService):
        async def lookup(self, name):
            if name == "Slowpoke":
                await asyncio.sleep(10)
            return await super().lookup(name)

    service = SlowForOneCard({"Island": None, "Opt": "{U}"})
    deck = parse_deck_lines("Island\nSlowpoke\nOpt")

    async def resolve_with_deadline():
        deadline = asyncio.get_running_loop().time() + 0.2
        return await _orchestrator(service).resolve(deck, deadline=deadline)

    outcome = asyncio.run(resolve_with_deadline())

    assert [c.record.name for c in outcome.resolved] == ["Island", "Opt"]
    assert outcome.failed == ["Slowpoke"]


def test_unexpected_errors_are_isolated_per_card():
    class Buggy(FakeCardService):
        async def lookup(self, name):
            if name == "Weird Card":
                raise KeyError("mana_cost")
            return await super().lookup(name)

    service = Buggy({"Opt": "{U}"})
    deck = parse_deck_lines("Weird Card\nOpt")

    outcome = asyncio.run(_orchestrator(service).resolve(deck))

    assert outcome.failed == ["Weird Card"]
    assert len(outcome.resolved) == 1


def test_empty_deck_resolves_to_nothing():
    outcome = asyncio.run(_orchestrator(FakeCardService()).resolve(parse_deck_lines("")))
    assert outcome.resolved == [] and outcome.failed == []
