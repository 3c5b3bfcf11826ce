"""Discord guild cache adapter.

Snapshots discord.py's guild, channel and role caches into core Community
views at dispatch time. The client keeps the cache current; we only read it.
"""

from __future__ import annotations

from typing import Any, List

import discord

from tweetcord.core.models import ChannelRef, Community, RoleRef


def community_from_guild(guild: Any) -> Community:
    """Build a Community view from a discord.Guild."""

    return Community(
        id=guild.id,
        name=guild.name,
        channels=tuple(
            ChannelRef(
                id=channel.id,
                name=channel.name,
                # Plain text channels only; announcement and voice channels are skipped.
                text_capable=channel.type == discord.ChannelType.text,
            )
            for channel in guild.channels
        ),
        roles=tuple(RoleRef(id=role.id, name=role.name) for role in guild.roles),
    )


class DiscordCommunityDirectory:
    """CommunityDirectory over the guilds a discord.py client can see."""

    def __init__(self, client: discord.Client) -> None:
        self._client = client

    def communities(self) -> List[Community]:
        return [community_from_guild(guild) for guild in self._client.guilds]
