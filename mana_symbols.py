"""
Mana symbol counting.

A mana cost like ``{2}{W}{W}`` is a run of brace-delimited symbols. Each
symbol found adds the card's quantity to its running count, since every
card is only looked up once per deck.
"""

import re
from collections import Counter
from typing import Dict, Iterable, List, Optional

from models import ResolvedCard

MANA_SYMBOL_PATTERN = re.compile(r"\{([^{}]*)\}")


def extract_mana_symbols(mana_cost: Optional[str]) -> List[str]:
    """
    List the symbols in a mana cost, in order.

    >>> extract_mana_symbols("{2}{W}{W}")
    ['2', 'W', 'W']

    Missing or malformed costs give an empty list.
    """
    if not mana_cost:
        return []
    return [symbol.strip() for symbol in MANA_SYMBOL_PATTERN.findall(mana_cost) if symbol.strip()]


def add_mana_symbols(mana_cost: Optional[str], quantity: int, counts: Counter) -> Counter:
    """Add ``quantity`` to ``counts`` for every symbol in ``mana_cost``."""
    for symbol in extract_mana_symbols(mana_cost):
        counts[symbol] += quantity
    return counts


def aggregate_mana_symbols(cards: Iterable[ResolvedCard]) -> Dict[str, int]:
    """Merge the weighted symbol counts of all resolved cards into one mapping."""
    counts: Counter = Counter()
    for card in cards:
        add_mana_symbols(card.record.mana_cost, card.quantity, counts)
    return dict(counts)
