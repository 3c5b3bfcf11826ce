"""Discord notification adapter.

Renders the payload as embeds and posts it to the resolved text channel, with
the mention prefix as plain message content.
"""

from __future__ import annotations

import discord

from tweetcord.adapters.notification_formatting import build_embeds
from tweetcord.core.models import DeliveryTarget, NotificationPayload


class DiscordNotifier:
    """Notifier adapter that sends messages through a discord.py client."""

    def __init__(self, client: discord.Client) -> None:
        self._client = client

    async def send(self, target: DeliveryTarget, payload: NotificationPayload) -> None:
        """Send the rendered notification; permission errors propagate to the caller."""

        channel = self._client.get_channel(target.channel_id)
        if channel is None:
            raise LookupError(f"Channel {target.channel_name} is no longer available in {target.community_name}")
        await channel.send(content=payload.mention or None, embeds=build_embeds(payload))
