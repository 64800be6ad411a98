"""
Error types for the deck analysis pipeline.

Each error carries a short ``user_message`` that is safe to show in chat.
Exception detail (URLs, status codes, tracebacks) goes to the log only.
"""

from typing import Optional

from config import ALLOWED_DECK_SIZES, MAX_FILE_BYTES, MAX_UNIQUE_CARDS

GENERIC_ERROR = "An error occurred while processing your request."


class ManaBaseError(Exception):
    """Base class for everything the pipeline raises on purpose."""

    user_message = GENERIC_ERROR

    def __init__(self, detail: str = "", user_message: Optional[str] = None):
        super().__init__(detail or self.user_message)
        if user_message is not None:
            self.user_message = user_message


# =============================================================================
# VALIDATION (before any network call, never retried)
# =============================================================================

class DeckValidationError(ManaBaseError):
    user_message = "That deck file could not be read."


class MissingFile(DeckValidationError):
    user_message = "Please attach a deck file (.txt or .csv)."


class InvalidFormat(DeckValidationError):
    user_message = "Supported extensions are .txt or .csv."


class TooLarge(DeckValidationError):
    user_message = f"File size exceeds the limit of {MAX_FILE_BYTES // 1000}kb."


class WrongDeckSize(DeckValidationError):
    user_message = (
        "Deck must contain exactly "
        + " or ".join(str(size) for size in ALLOWED_DECK_SIZES)
        + " cards."
    )

    def __init__(self, total: int):
        super().__init__(f"deck has {total} cards")
        self.total = total


class TooManyUniqueCards(DeckValidationError):
    user_message = (
        f"Deck contains more than the allowed {MAX_UNIQUE_CARDS} unique cards. "
        "Please reduce the deck size."
    )

    def __init__(self, unique: int):
        super().__init__(f"deck has {unique} unique cards")
        self.unique = unique


class EmptyCardName(DeckValidationError):
    user_message = "Card name cannot be empty."


class InvalidQuantity(DeckValidationError):
    user_message = "Card quantities must be at least 1."


# =============================================================================
# LOOKUPS (isolated per card)
# =============================================================================

class LookupFailure(ManaBaseError):
    user_message = "An error occurred while fetching data from the API."


class TransientLookupError(LookupFailure):
    """Network trouble, timeouts, rate limiting or a 5xx. Worth retrying."""


class CardNotFound(LookupFailure):
    """The card service answered and the card is not there."""

    user_message = "Card not found."


# =============================================================================
# RENDERING (fatal to the current run)
# =============================================================================

class RenderError(ManaBaseError):
    user_message = "The mana chart could not be generated."
