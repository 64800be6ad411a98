"""
Mana Base Crafter - Scryfall API Client
=======================================

Async client for the two card queries the bot needs:

- fuzzy lookup by name (``/cards/named?fuzzy=``), the primary strategy
- a search for double-faced printings of a name, used as the fallback

Errors are sorted into ``CardNotFound`` (Scryfall answered, no such card)
and ``TransientLookupError`` (worth retrying). Retries and throttling are
the caller's job; see card_lookup.py.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from config import HTTP_HEADERS, HTTP_TIMEOUT, SCRYFALL_API
from errors import CardNotFound, TransientLookupError
from models import CardRecord

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = 429


def is_transient_status(status_code: int) -> bool:
    """Rate limiting and any server-side failure; everything else in 4xx is final."""
    return status_code == TOO_MANY_REQUESTS or status_code >= 500


def card_record_from_json(card: Dict[str, Any]) -> CardRecord:
    """
    Build a CardRecord from a Scryfall card object.

    Double-faced cards keep their cost and images on ``card_faces``; the
    front face is used when the top level has none.
    """
    faces = card.get("card_faces") or []
    front = faces[0] if faces else {}

    mana_cost = card.get("mana_cost")
    if not mana_cost:
        mana_cost = front.get("mana_cost") or None

    image_uris = card.get("image_uris") or front.get("image_uris") or {}

    return CardRecord(
        name=card.get("name", "Unknown"),
        mana_cost=mana_cost,
        type_line=card.get("type_line") or front.get("type_line"),
        image_uris=image_uris,
        scryfall_uri=card.get("scryfall_uri"),
    )


def _parse_scryfall_error(response: httpx.Response) -> str:
    """Pull Scryfall's ``details`` text out of an error body, if there is one."""
    try:
        return response.json().get("details", f"HTTP {response.status_code}")
    except ValueError:
        return f"HTTP {response.status_code}"


class ScryfallClient:
    """
    Thin async wrapper around the Scryfall endpoints used by the bot.

    Use it as an async context manager so the connection pool is closed at
    the end of a run. An existing ``httpx.AsyncClient`` can be passed in
    (tests hand in one backed by ``httpx.MockTransport``).
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=SCRYFALL_API,
            headers=HTTP_HEADERS,
            timeout=HTTP_TIMEOUT,
        )

    async def __aenter__(self) -> "ScryfallClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, endpoint: str, params: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = await self._client.get(endpoint, params=params)
        except httpx.TimeoutException as e:
            raise TransientLookupError(f"{endpoint} timed out") from e
        except httpx.TransportError as e:
            raise TransientLookupError(f"{endpoint} transport error: {e}") from e

        if is_transient_status(response.status_code):
            raise TransientLookupError(f"{endpoint} returned HTTP {response.status_code}")
        if response.status_code >= 400:
            raise CardNotFound(_parse_scryfall_error(response))

        try:
            return response.json()
        except ValueError as e:
            raise TransientLookupError(f"{endpoint} returned invalid JSON") from e

    async def get_card_by_name(self, name: str) -> CardRecord:
        """
        Fuzzy lookup of a single card.

        Raises:
            CardNotFound: Scryfall has no card close enough to ``name``
            TransientLookupError: the request failed and may work later
        """
        card = await self._get("/cards/named", {"fuzzy": name})
        return card_record_from_json(card)

    async def search_double_faced(self, name: str) -> CardRecord:
        """
        Fallback for names the fuzzy lookup cannot place, usually one face
        of a transforming or modal double-faced card.
        """
        query = name.replace('"', '')
        result = await self._get("/cards/search", {"q": f'is:double-faced name:"{query}"'})
        cards = result.get("data") or []
        if not cards:
            raise CardNotFound(f"no double-faced card named {name!r}")
        return card_record_from_json(cards[0])
