"""
Deck file validation and parsing.

Deck files are plain text, one card per line:

    4 Lightning Bolt
    Sol Ring            (quantity assumed 1 if missing)

Blank lines are ignored and repeated cards (in any casing) are merged by
summing their quantities. Nothing in here touches the network.
"""

import logging
import re
from typing import Optional, Union

from config import (
    ALLOWED_DECK_SIZES,
    MAX_FILE_BYTES,
    MAX_UNIQUE_CARDS,
    SUPPORTED_FILE_EXTENSIONS,
)
from errors import (
    EmptyCardName,
    InvalidFormat,
    InvalidQuantity,
    MissingFile,
    TooLarge,
    TooManyUniqueCards,
    WrongDeckSize,
)
from models import AttachmentInfo, Deck

logger = logging.getLogger(__name__)

# "<digits><whitespace><rest>"; anything else is a bare card name
QUANTITY_LINE = re.compile(r"^(\d+)\s+(.+)$")


# =============================================================================
# FILE CHECKS
# =============================================================================

def validate_attachment(attachment: Optional[AttachmentInfo]) -> AttachmentInfo:
    """
    Check the upload's metadata before downloading anything.

    Raises:
        MissingFile: no attachment was given
        InvalidFormat: the extension is not .txt or .csv
        TooLarge: the reported size is over the limit
    """
    if attachment is None:
        raise MissingFile("no attachment")

    filename = attachment.filename.lower()
    if not filename.endswith(SUPPORTED_FILE_EXTENSIONS):
        raise InvalidFormat(f"unsupported file {attachment.filename!r}")

    if attachment.size > MAX_FILE_BYTES:
        raise TooLarge(f"{attachment.filename!r} is {attachment.size} bytes")

    return attachment


def validate_downloaded_content(content: Union[bytes, str]) -> str:
    """
    Re-check the size of what was actually downloaded and decode it.

    The reported attachment size comes from the client, so the real body
    is checked again.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    if len(content) > MAX_FILE_BYTES:
        raise TooLarge(f"downloaded {len(content)} bytes")

    try:
        # utf-8-sig drops the BOM some editors put in front of .csv files
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise InvalidFormat(f"file is not UTF-8 text: {e}") from e


# =============================================================================
# PARSING
# =============================================================================

def parse_deck_lines(text: str) -> Deck:
    """
    Turn deck file text into a Deck without checking deck-level limits.

    Args:
        text: Decoded file content

    Returns:
        Deck keyed by normalized card name, in file order
    """
    deck = Deck()

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        match = QUANTITY_LINE.match(line)
        if match:
            quantity = int(match.group(1))
            name = match.group(2).strip()
        else:
            quantity = 1
            name = line

        if quantity < 1:
            raise InvalidQuantity(f"quantity {quantity} for {name!r}")
        if not name:
            raise EmptyCardName(f"empty card name in line {raw_line!r}")

        deck.add(name, quantity)

    return deck


def validate_deck(deck: Deck) -> Deck:
    """
    Enforce the deck-level rules: at most 101 unique cards and a total of
    exactly 60 or 100 cards.
    """
    if deck.unique_cards > MAX_UNIQUE_CARDS:
        raise TooManyUniqueCards(deck.unique_cards)

    total = deck.total_cards
    if total not in ALLOWED_DECK_SIZES:
        raise WrongDeckSize(total)

    return deck


def parse_deck_list(text: str) -> Deck:
    """Parse and validate a deck file. The result is safe to send to lookups."""
    deck = validate_deck(parse_deck_lines(text))
    logger.info("Parsed deck: %d cards, %d unique", deck.total_cards, deck.unique_cards)
    return deck
