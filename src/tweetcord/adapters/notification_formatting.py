"""Shared notification formatting helpers.

Cards are built in the core; turning them into discord.Embed objects happens
here so the core stays free of discord.py types.
"""

from __future__ import annotations

from typing import List

import discord

from tweetcord.core.models import Card, NotificationPayload


def build_embed(card: Card) -> discord.Embed:
    """Render one platform-neutral card as a Discord embed."""

    embed = discord.Embed(
        title=card.title,
        url=card.url,
        description=card.description,
        color=card.color,
    )
    if card.author is not None:
        embed.set_author(name=card.author.name, url=card.author.url, icon_url=card.author.icon_url)
    if card.image_url:
        embed.set_image(url=card.image_url)
    return embed


def build_embeds(payload: NotificationPayload) -> List[discord.Embed]:
    return [build_embed(card) for card in payload.cards]
