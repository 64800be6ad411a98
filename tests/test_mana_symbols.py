from collections import Counter

from mana_symbols import add_mana_symbols, aggregate_mana_symbols, extract_mana_symbols
from models import CardRecord, ResolvedCard


def test_symbols_are_weighted_by_quantity():
    counts = add_mana_symbols("{2}{W}{W}", 3, Counter())
    assert counts == {"W": 6, "2": 3}


def test_hybrid_and_phyrexian_symbols_are_kept_as_tokens():
    assert extract_mana_symbols("{1}{W/U}{G/P}{X}") == ["1", "W/U", "G/P", "X"]


def test_missing_or_malformed_costs_contribute_nothing():
    assert extract_mana_symbols(None) == []
    assert extract_mana_symbols("") == []
    assert extract_mana_symbols("2WW") == []
    assert extract_mana_symbols("{}{ }") == []


def test_aggregate_merges_all_cards():
    cards = [
        ResolvedCard(record=CardRecord(name="Lightning Bolt", mana_cost="{R}"), quantity=4),
        ResolvedCard(record=CardRecord(name="Boros Charm", mana_cost="{R}{W}"), quantity=2),
        ResolvedCard(record=CardRecord(name="Mountain"), quantity=20),
    ]
    assert aggregate_mana_symbols(cards) == {"R": 6, "W": 2}
