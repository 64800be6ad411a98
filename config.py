"""
Mana Base Crafter - Configuration
=================================

All the knobs for the bot live here. Values that depend on the deployment
(tokens, guild, throttling) can be overridden from the environment or a
.env file next to the bot.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# EXTERNAL APIS
# =============================================================================

SCRYFALL_API = "https://api.scryfall.com"
QUICKCHART_API = "https://quickchart.io"

# Scryfall requires a User-Agent that identifies the app
HTTP_HEADERS = {
    "User-Agent": "ManaBaseCrafterBot/1.0",
    "Accept": "application/json"
}

# Seconds before a single HTTP request gives up
HTTP_TIMEOUT = 30.0


# =============================================================================
# DECK FILE LIMITS
# =============================================================================

SUPPORTED_FILE_EXTENSIONS = (".txt", ".csv")

# 5 kb is plenty for a 100 card list
MAX_FILE_BYTES = 5000

# Commander is 100 cards, one extra as slack
MAX_UNIQUE_CARDS = 101

# Constructed (60) and Commander (100)
ALLOWED_DECK_SIZES = (60, 100)


# =============================================================================
# CARD LOOKUPS
# =============================================================================

# Scryfall asks for 50-100ms between requests
LOOKUP_CONCURRENCY = int(os.getenv("MANABASE_LOOKUP_CONCURRENCY", "5"))
DISPATCH_DELAY = float(os.getenv("MANABASE_DISPATCH_DELAY", "0.1"))

# Retries after the first attempt, with a fixed pause in between
RETRY_ATTEMPTS = 3
RETRY_DELAY = 0.1

# Discord interaction tokens last 15 minutes; leave room to send the reply
DEADLINE_SECONDS = float(os.getenv("MANABASE_DEADLINE_SECONDS", "600"))


# =============================================================================
# CHARTS
# =============================================================================

# Discord messages are capped at 2000 characters
MAX_CHART_URL_LENGTH = 1900


# =============================================================================
# BOT
# =============================================================================

DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN")

# Optional: sync slash commands to one guild (instant) instead of globally
DISCORD_GUILD_ID = os.getenv("DISCORD_GUILD_ID")

LOG_LEVEL = os.getenv("MANABASE_LOG_LEVEL", "INFO")
