"""
Mana Base Crafter MCP Server
============================
An MCP server exposing the bot's card lookup and deck mana analysis as
tools, so an assistant can chart a deck list pasted into a conversation.

Setup:
1. pip install -e .
2. Add to Claude Desktop config:  python mana_mcp.py
"""

import json
import logging

from mcp.server.fastmcp import FastMCP
from pydantic import BaseModel, ConfigDict, Field

from deck_analysis import open_pipeline
from errors import GENERIC_ERROR, DeckValidationError, LookupFailure, RenderError
from models import CardRecord
from retry_policy import RetryPolicy
from scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)

mcp = FastMCP("manabase_mcp")


# =============================================================================
# FORMATTING
# =============================================================================

def format_card_markdown(card: CardRecord) -> str:
    """Formats a looked-up card as readable markdown."""
    lines = [f"## {card.name} {card.mana_cost or ''}".rstrip()]

    if card.type_line:
        lines.append(f"**{card.type_line}**")

    if card.image_url:
        lines.append(f"\n![{card.name}]({card.image_url})")

    if card.scryfall_uri:
        lines.append(f"\n[View on Scryfall]({card.scryfall_uri})")

    return "\n".join(lines)


# =============================================================================
# INPUT MODELS
# =============================================================================

class CardLookupInput(BaseModel):
    """Input for looking up a specific card by name."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        description="Card name to look up, typos allowed (e.g., 'Lightning Bolt')",
        min_length=1,
        max_length=200
    )

    as_json: bool = Field(
        default=False,
        description="Return the card as JSON instead of markdown"
    )


class DecklistInput(BaseModel):
    """Input for charting the colored mana symbols of a deck list."""
    model_config = ConfigDict(str_strip_whitespace=True)

    decklist_text: str = Field(
        ...,
        description=(
            "Deck list, one card per line, quantity optional "
            "(e.g., '4 Lightning Bolt' or just 'Sol Ring'). Must total 60 or 100 cards."
        ),
        min_length=1,
        max_length=5000
    )


# =============================================================================
# TOOLS
# =============================================================================

@mcp.tool(
    name="manabase_get_card",
    annotations={
        "title": "Get MTG Card by Name",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True
    }
)
async def manabase_get_card(params: CardLookupInput) -> str:
    """
    Look up a Magic: The Gathering card by name on Scryfall.

    Args:
        params (CardLookupInput): card name and output format

    Returns:
        str: Card summary with image link, or JSON
    """
    async with ScryfallClient() as scryfall:
        try:
            card = await RetryPolicy().run(lambda: scryfall.get_card_by_name(params.name))
        except LookupFailure as e:
            logger.info("Card lookup for %r failed: %s", params.name, e)
            return f"**Error:** {e.user_message}"

    if params.as_json:
        return json.dumps(card.model_dump(), indent=2)
    return format_card_markdown(card)


@mcp.tool(
    name="manabase_analyze_decklist",
    annotations={
        "title": "Chart Deck Mana Symbols",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True
    }
)
async def manabase_analyze_decklist(params: DecklistInput) -> str:
    """
    Count the colored mana symbols in a deck list and return a pie chart link.

    Every unique card is looked up once on Scryfall; symbols are weighted by
    quantity. Cards that cannot be found are reported, not fatal.

    Args:
        params (DecklistInput): the pasted deck list

    Returns:
        str: Markdown link to the chart, or a short error
    """
    try:
        async with open_pipeline() as pipeline:
            return await pipeline.analyze_text(params.decklist_text)
    except (DeckValidationError, RenderError) as e:
        logger.info("Deck analysis failed: %s", e)
        return f"**Error:** {e.user_message}"
    except Exception:
        logger.exception("Unexpected error while analyzing deck list")
        return f"**Error:** {GENERIC_ERROR}"


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    # Run the MCP server using stdio transport (for local use)
    mcp.run()
