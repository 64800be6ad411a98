"""
Mana Base Crafter - Deck Analysis Pipeline
==========================================

Glues the stages together for one uploaded deck file:

    attachment -> download -> parse -> card lookups -> mana counts
               -> chart spec -> chart URL -> chat message

Every run opens its own HTTP clients and keeps no state between runs.
The chat side follows a two-phase reply: acknowledge straight away,
complete once the analysis is done. ``run`` always completes exactly once,
whatever goes wrong in between.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional, Protocol

import httpx

from card_lookup import CardLookupOrchestrator
from config import (
    DEADLINE_SECONDS,
    HTTP_HEADERS,
    HTTP_TIMEOUT,
    MAX_FILE_BYTES,
    MAX_UNIQUE_CARDS,
)
from deck_parser import parse_deck_list, validate_attachment, validate_downloaded_content
from errors import (
    GENERIC_ERROR,
    DeckValidationError,
    RenderError,
    TooLarge,
    TooManyUniqueCards,
)
from mana_chart import build_chart_spec
from mana_symbols import aggregate_mana_symbols
from models import AttachmentInfo, ChartSpec, LookupOutcome
from quickchart_client import QuickChartClient
from scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)

NO_CARDS_FOUND = "None of the cards in this deck could be found."
NO_COLORED_SYMBOLS = "No colored mana symbols were found in this deck."
TIMED_OUT = "The deck analysis took too long. Please try again later."

# Time kept back from the deadline for rendering and sending the reply
REPLY_RESERVE_SECONDS = 15.0

ChartRenderer = Callable[[ChartSpec], Awaitable[str]]


class DeferredReply(Protocol):
    """Two-phase reply handle supplied by the chat surface."""

    async def acknowledge(self) -> None:
        ...

    async def complete(self, content: str) -> None:
        ...


# =============================================================================
# RESULT COMPOSITION
# =============================================================================

def failure_warning(failure_count: int) -> str:
    noun = "card" if failure_count == 1 else "cards"
    return f"⚠️ {failure_count} {noun} could not be processed."


def chart_message(chart_url: str, failure_count: int = 0) -> str:
    lines = [f"[Mana Symbol Chart]({chart_url})"]
    if failure_count > 0:
        lines.append(failure_warning(failure_count))
    return "\n".join(lines)


async def compose_result(outcome: LookupOutcome, render: ChartRenderer) -> str:
    """
    Build the user-facing message for a finished lookup stage.

    Too many resolved cards short-circuits before any chart work. Partial
    failures are reported under the chart link.

    Raises:
        RenderError: the chart could not be rendered
    """
    if len(outcome.resolved) > MAX_UNIQUE_CARDS:
        return TooManyUniqueCards.user_message

    if not outcome.resolved:
        return NO_CARDS_FOUND

    spec = build_chart_spec(aggregate_mana_symbols(outcome.resolved))
    if not spec.slices:
        message = NO_COLORED_SYMBOLS
        if outcome.failure_count:
            message += "\n" + failure_warning(outcome.failure_count)
        return message

    chart_url = await render(spec)
    return chart_message(chart_url, outcome.failure_count)


# =============================================================================
# DOWNLOAD
# =============================================================================

async def download_attachment(client: httpx.AsyncClient, url: str) -> bytes:
    """
    Fetch an uploaded file, giving up as soon as it grows past the size
    limit instead of trusting the reported length.
    """
    body = bytearray()
    async with client.stream("GET", url) as response:
        response.raise_for_status()
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) > MAX_FILE_BYTES:
                raise TooLarge(f"download passed {MAX_FILE_BYTES} bytes")
    return bytes(body)


# =============================================================================
# PIPELINE
# =============================================================================

class DeckAnalysisPipeline:
    """
    One deck analysis run.

    Args:
        scryfall: Card lookups
        quickchart: Chart rendering (anything with ``async render(spec)``)
        downloader: HTTP client used to fetch the uploaded file
        orchestrator: Overrides the default Scryfall lookup orchestrator
        deadline_seconds: Budget for the whole run, from acknowledgement
    """

    def __init__(
        self,
        scryfall: ScryfallClient,
        quickchart: QuickChartClient,
        downloader: Optional[httpx.AsyncClient] = None,
        orchestrator: Optional[CardLookupOrchestrator] = None,
        deadline_seconds: float = DEADLINE_SECONDS,
    ):
        self.scryfall = scryfall
        self.quickchart = quickchart
        self.downloader = downloader
        self.orchestrator = orchestrator or CardLookupOrchestrator.from_scryfall(scryfall)
        self.deadline_seconds = deadline_seconds

    def _lookup_deadline(self, deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        return deadline - min(REPLY_RESERVE_SECONDS, self.deadline_seconds / 2)

    async def analyze_text(self, text: str, deadline: Optional[float] = None) -> str:
        """Parse a deck list, resolve its cards and return the chart message."""
        deck = parse_deck_list(text)
        outcome = await self.orchestrator.resolve(deck, deadline=self._lookup_deadline(deadline))
        return await compose_result(outcome, self.quickchart.render)

    async def analyze_attachment(self, attachment: Optional[AttachmentInfo], deadline: Optional[float] = None) -> str:
        attachment = validate_attachment(attachment)
        if self.downloader is None:
            raise RuntimeError("pipeline has no downloader")

        content = await download_attachment(self.downloader, attachment.url)
        text = validate_downloaded_content(content)
        return await self.analyze_text(text, deadline)

    async def run(self, attachment: Optional[AttachmentInfo], reply: DeferredReply) -> str:
        """
        Acknowledge, analyze, complete. Returns the message that was sent.

        Errors never escape: validation problems and the deadline get their
        own short message, everything else is logged and mapped to a generic
        one. A cancelled run still completes the reply before re-raising.
        """
        try:
            await reply.acknowledge()
            deadline = asyncio.get_running_loop().time() + self.deadline_seconds
            message = await asyncio.wait_for(
                self.analyze_attachment(attachment, deadline),
                timeout=self.deadline_seconds,
            )
        except DeckValidationError as e:
            logger.info("Rejected deck file: %s", e)
            message = e.user_message
        except asyncio.TimeoutError:
            logger.warning("Deck analysis passed its %.1fs deadline", self.deadline_seconds)
            message = TIMED_OUT
        except RenderError as e:
            logger.exception("Chart rendering failed: %s", e)
            message = e.user_message
        except asyncio.CancelledError:
            logger.warning("Deck analysis was cancelled")
            await reply.complete(GENERIC_ERROR)
            raise
        except Exception:
            logger.exception("Unexpected error while analyzing deck")
            message = GENERIC_ERROR

        await reply.complete(message)
        return message


@asynccontextmanager
async def open_pipeline(**kwargs) -> AsyncIterator[DeckAnalysisPipeline]:
    """Create the HTTP clients for one run and close them afterwards."""
    async with httpx.AsyncClient(headers=HTTP_HEADERS, timeout=HTTP_TIMEOUT, follow_redirects=True) as downloader:
        async with ScryfallClient() as scryfall, QuickChartClient() as quickchart:
            yield DeckAnalysisPipeline(scryfall, quickchart, downloader, **kwargs)
