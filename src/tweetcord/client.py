"""Client factories for tweetcord.

We explicitly build both clients up front so missing credentials fail the
process before any Twitter rule is touched.
"""

from __future__ import annotations

import logging
import os

import discord
from dotenv import load_dotenv

from tweetcord.adapters.twitter_stream import TwitterFilterStream

TWITTER_TOKEN_VAR = "TWITTER_TOKEN"
DISCORD_TOKEN_VAR = "DISCORD_TOKEN"


def require_token(name: str) -> str:
    """Read a token from the environment (.env included) or fail fast."""

    load_dotenv()
    token = os.getenv(name)
    if not token:
        raise RuntimeError(f"Missing {name} in environment")
    return token


def build_twitter_stream() -> TwitterFilterStream:
    """Create the filtered-stream adapter from TWITTER_TOKEN."""

    token = require_token(TWITTER_TOKEN_VAR)
    logging.getLogger(__name__).info("Initializing Twitter stream client")
    return TwitterFilterStream(token)


def build_discord_client() -> discord.Client:
    """Create a discord.py client that only needs the guild cache."""

    intents = discord.Intents.default()
    intents.guilds = True
    logging.getLogger(__name__).info("Initializing Discord client")
    return discord.Client(intents=intents)
