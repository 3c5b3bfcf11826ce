"""Notification fan-out for stream posts.

This module is integration-agnostic. It only relies on ports for the
community cache and delivery, so a post is resolved into per-guild targets
and payloads without touching discord.py directly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from tweetcord.core.config import MentionKind, MentionPolicy, SubscriptionConfig
from tweetcord.core.context import BridgeContext
from tweetcord.core.models import (
    Card,
    CardAuthor,
    Community,
    DeliveryTarget,
    IncomingPost,
    NotificationPayload,
)

LOGGER = logging.getLogger(__name__)

EVERYONE_MARKER = "@everyone"
CARD_TITLE = "New Tweet"


def role_mention(role_id: int) -> str:
    return f"<@&{role_id}>"


def resolve_target(community: Community, channel_name: str) -> Optional[DeliveryTarget]:
    """Find the first text channel named like the destination, ignoring case."""

    wanted = channel_name.lower()
    for channel in community.channels:
        if channel.text_capable and channel.name.lower() == wanted:
            return DeliveryTarget(
                community_id=community.id,
                community_name=community.name,
                channel_id=channel.id,
                channel_name=channel.name,
            )
    return None


def mention_prefix(community: Community, policy: MentionPolicy) -> str:
    """Everyone beats role; a role missing from this guild means no mention."""

    if policy.kind is MentionKind.EVERYONE:
        return EVERYONE_MARKER
    if policy.kind is MentionKind.ROLE and policy.role_name:
        wanted = policy.role_name.lower()
        for role in community.roles:
            if role.name.lower() == wanted:
                return role_mention(role.id)
    return ""


def render_payload(post: IncomingPost, config: SubscriptionConfig, mention: str = "") -> NotificationPayload:
    """Build the primary post card and the optional banner card."""

    author = post.author
    if author is None:
        raise ValueError("Cannot render a post without author metadata")

    image = post.first_image
    cards: List[Card] = [
        Card(
            title=CARD_TITLE,
            url=post.url,
            description=post.text or None,
            image_url=image.url if image else None,
            author=CardAuthor(
                name=f"{author.name} ({author.handle})",
                icon_url=author.avatar_url,
                url=author.profile_url,
            ),
            color=config.color,
        )
    ]
    if config.banner:
        cards.append(Card(image_url=config.banner, color=config.color))

    return NotificationPayload(cards=tuple(cards), mention=mention)


class NotificationDispatcher:
    """Delivers each post to every guild that has the destination channel."""

    def __init__(self, context: BridgeContext) -> None:
        self._context = context

    async def dispatch(self, post: IncomingPost) -> List[DeliveryTarget]:
        """Fan a post out to all guilds. Never raises."""

        # Without an author there is nothing to attribute the card to.
        if not post.has_author:
            return []

        LOGGER.info("New tweet by %s", post.author.name)
        try:
            communities = list(self._context.directory.communities())
            results = await asyncio.gather(*(self._deliver(community, post) for community in communities))
        except Exception:
            LOGGER.exception("Error while dispatching tweet %s", post.id)
            return []

        delivered = [target for target in results if target is not None]
        LOGGER.debug(
            "Tweet %s delivered to %s of %s guilds",
            post.id,
            len(delivered),
            len(communities),
        )
        return delivered

    async def _deliver(self, community: Community, post: IncomingPost) -> Optional[DeliveryTarget]:
        config = self._context.config
        try:
            target = resolve_target(community, config.channel)
            if target is None:
                LOGGER.info("No channel named %s found in guild %s", config.channel, community.name)
                return None

            payload = render_payload(post, config, mention_prefix(community, config.mention))
            await self._context.notifier.send(target, payload)
        except Exception as exc:
            LOGGER.info("Impossible to send notification to %s", community.name)
            LOGGER.debug("Delivery error for guild %s: %s", community.name, exc, exc_info=True)
            return None

        LOGGER.info("Sent notification to %s in channel %s", community.name, target.channel_name)
        return target
