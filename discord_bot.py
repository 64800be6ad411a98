"""
Mana Base Crafter Discord Bot
=============================
A Discord bot that looks up Magic: The Gathering cards on Scryfall and
charts the colored mana symbols of an uploaded deck list.

Slash commands:
    /searchcard cardname:<name>       - image of a card (fuzzy matching)
    /analyzedeck textorcsvfile:<file> - mana symbol pie chart for a deck

Deck files are .txt or .csv, at most 5 kb, one card per line
("4 Lightning Bolt" or just "Sol Ring"), 60 or 100 cards in total.

Setup:
1. pip install -e .
2. Create a Discord bot at https://discord.com/developers/applications
3. Set environment variables (see below) or put them in a .env file
4. python discord_bot.py

Environment Variables:
    DISCORD_BOT_TOKEN - Your Discord bot token
    DISCORD_GUILD_ID  - Optional, sync commands to this server only (instant)

Discord Bot Permissions Needed:
    - Send Messages
    - Use Application Commands
"""

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from config import DISCORD_BOT_TOKEN, DISCORD_GUILD_ID, LOG_LEVEL
from deck_analysis import open_pipeline
from errors import GENERIC_ERROR, CardNotFound, LookupFailure
from models import AttachmentInfo
from retry_policy import RetryPolicy
from scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)

NO_IMAGE = "No image available for this card."


# =============================================================================
# COMMAND IMPLEMENTATIONS
# =============================================================================

async def lookup_card_message(name: str, scryfall: Optional[ScryfallClient] = None) -> str:
    """
    Look up a card and return the message to post: its image URL, or a
    short explanation when there is nothing to show.
    """
    name = name.strip()
    if not name:
        return CardNotFound.user_message

    client = scryfall or ScryfallClient()
    try:
        card = await RetryPolicy().run(lambda: client.get_card_by_name(name), f"lookup {name!r}")
    except LookupFailure as e:
        logger.info("Card lookup for %r failed: %s", name, e)
        return CardNotFound.user_message
    finally:
        if scryfall is None:
            await client.aclose()

    return card.image_url or NO_IMAGE


def attachment_info(attachment: Optional[discord.Attachment]) -> Optional[AttachmentInfo]:
    """Copy the bits of a Discord attachment the deck pipeline needs."""
    if attachment is None:
        return None
    return AttachmentInfo(filename=attachment.filename, size=attachment.size, url=attachment.url)


class InteractionReply:
    """
    Two-phase reply over a slash command interaction: defer first (Discord
    wants an answer within 3 seconds), then send a follow-up.
    """

    def __init__(self, interaction: discord.Interaction):
        self.interaction = interaction

    async def acknowledge(self) -> None:
        if not self.interaction.response.is_done():
            await self.interaction.response.defer(thinking=True)

    async def complete(self, content: str) -> None:
        await self.interaction.followup.send(content)


# =============================================================================
# DISCORD BOT
# =============================================================================

class ManaBaseBot(commands.Bot):

    async def setup_hook(self) -> None:
        # Guild commands show up instantly, global ones can take an hour
        if DISCORD_GUILD_ID:
            guild = discord.Object(id=int(DISCORD_GUILD_ID))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
        else:
            synced = await self.tree.sync()
        logger.info("Synced %d slash commands", len(synced))


intents = discord.Intents.default()

bot = ManaBaseBot(command_prefix=commands.when_mentioned, intents=intents)


@bot.event
async def on_ready():
    """Called when the bot successfully connects to Discord."""
    logger.info("Bot is ready! Logged in as %s", bot.user)
    await bot.change_presence(activity=discord.Activity(type=discord.ActivityType.listening, name="/commands"))


@bot.tree.command(name="searchcard", description="Show a Magic card by name")
@app_commands.describe(cardname="Card name, typos are fine")
async def search_card(interaction: discord.Interaction, cardname: str):
    await interaction.response.defer()
    message = await lookup_card_message(cardname)
    await interaction.followup.send(message)


@bot.tree.command(name="analyzedeck", description="Chart the colored mana symbols in a deck file")
@app_commands.describe(textorcsvfile="Deck list as .txt or .csv, one card per line")
async def analyze_deck(interaction: discord.Interaction, textorcsvfile: discord.Attachment):
    async with open_pipeline() as pipeline:
        await pipeline.run(attachment_info(textorcsvfile), InteractionReply(interaction))


@bot.tree.error
async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
    logger.error("Error in command %s", interaction.command and interaction.command.name, exc_info=error)
    if interaction.response.is_done():
        await interaction.followup.send(GENERIC_ERROR, ephemeral=True)
    else:
        await interaction.response.send_message(GENERIC_ERROR, ephemeral=True)


# =============================================================================
# MAIN
# =============================================================================

def main():
    """Main entry point."""
    if not DISCORD_BOT_TOKEN:
        print("Error: DISCORD_BOT_TOKEN environment variable not set")
        print("\nTo set it:")
        print("  Windows: set DISCORD_BOT_TOKEN=your_token_here")
        print("  Linux/Mac: export DISCORD_BOT_TOKEN=your_token_here")
        print("  or add it to a .env file next to this script")
        return

    discord.utils.setup_logging(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))
    logger.info("Starting Mana Base Crafter bot...")

    bot.run(DISCORD_BOT_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
