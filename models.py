"""
Data model for one deck analysis run.

Records coming from outside (attachments, Scryfall cards) and the chart
description are pydantic models. The deck itself is a small mutable
dataclass that the parser fills line by line.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


def normalize_card_name(name: str) -> str:
    """Case-folded, whitespace-collapsed key used to merge repeated cards."""
    return " ".join(name.split()).casefold()


class AttachmentInfo(BaseModel):
    """What the chat platform tells us about an uploaded file."""
    model_config = ConfigDict(str_strip_whitespace=True)

    filename: str
    size: int = Field(ge=0, description="Content length in bytes")
    url: str


class DeckEntry(BaseModel):
    name: str = Field(min_length=1)
    quantity: int = Field(ge=1)

    @property
    def key(self) -> str:
        return normalize_card_name(self.name)


@dataclass
class Deck:
    """
    Ordered mapping of normalized card name -> DeckEntry.

    The first spelling seen for a card is the one sent to the lookup
    service; later mentions in any casing only add to its quantity.
    """

    entries: Dict[str, DeckEntry] = field(default_factory=dict)

    def add(self, name: str, quantity: int = 1) -> None:
        key = normalize_card_name(name)
        if key in self.entries:
            self.entries[key].quantity += quantity
        else:
            self.entries[key] = DeckEntry(name=" ".join(name.split()), quantity=quantity)

    def __getitem__(self, name: str) -> DeckEntry:
        return self.entries[normalize_card_name(name)]

    def __contains__(self, name: str) -> bool:
        return normalize_card_name(name) in self.entries

    def __iter__(self) -> Iterator[DeckEntry]:
        return iter(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def total_cards(self) -> int:
        return sum(entry.quantity for entry in self.entries.values())

    @property
    def unique_cards(self) -> int:
        return len(self.entries)

    def quantities(self) -> Dict[str, int]:
        """Display name -> quantity, in file order."""
        return {entry.name: entry.quantity for entry in self.entries.values()}


class CardRecord(BaseModel):
    """
    The slice of a Scryfall card object the bot cares about.

    ``mana_cost`` is the raw symbolic cost (e.g. ``{2}{W}{W}``) and is
    missing for lands and for some double-faced cards.
    """
    model_config = ConfigDict(extra="ignore")

    name: str
    mana_cost: Optional[str] = None
    type_line: Optional[str] = None
    image_uris: Dict[str, str] = Field(default_factory=dict)
    scryfall_uri: Optional[str] = None

    @property
    def image_url(self) -> Optional[str]:
        return self.image_uris.get("normal")


class ResolvedCard(BaseModel):
    record: CardRecord
    quantity: int = Field(ge=1)


class LookupOutcome(BaseModel):
    """Everything the lookup stage managed to resolve, plus what it could not."""

    resolved: List[ResolvedCard] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failed)


class ChartSlice(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    label: str
    value: int
    color: str
    percentage: float


class ChartSpec(BaseModel):
    """A finished chart description. Built once, never changed."""
    model_config = ConfigDict(frozen=True)

    chart_type: str = "outlabeledPie"
    slices: Tuple[ChartSlice, ...] = ()

    @property
    def labels(self) -> List[str]:
        return [s.label for s in self.slices]

    @property
    def values(self) -> List[int]:
        return [s.value for s in self.slices]

    @property
    def colors(self) -> List[str]:
        return [s.color for s in self.slices]

    @property
    def percentages(self) -> List[float]:
        return [s.percentage for s in self.slices]

    @property
    def total(self) -> int:
        return sum(self.values)
