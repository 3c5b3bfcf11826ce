"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to tweepy or discord.py types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

TWITTER_BASE_URL = "https://twitter.com"
IMAGE_MEDIA_TYPES = frozenset({"photo", "animated_gif"})


def build_profile_url(handle: str) -> str:
    return f"{TWITTER_BASE_URL}/{handle}"


def build_post_url(handle: str, post_id: str) -> str:
    """Return the canonical status link used on notification cards."""

    return f"{TWITTER_BASE_URL}/{handle}/status/{post_id}"


@dataclass(frozen=True)
class FilterRule:
    """A desired stream rule: match expression plus correlation tag."""

    value: str
    tag: str


@dataclass(frozen=True)
class ActiveRule:
    """A rule as currently reported by the remote stream."""

    id: str
    value: str
    tag: Optional[str] = None


@dataclass(frozen=True)
class PostAuthor:
    id: str
    name: str
    handle: str
    avatar_url: Optional[str] = None

    @property
    def profile_url(self) -> str:
        return build_profile_url(self.handle)


@dataclass(frozen=True)
class PostMedia:
    key: str
    type: str
    url: Optional[str] = None


@dataclass(frozen=True)
class IncomingPost:
    """A single stream event: the post and its expanded metadata."""

    id: str
    text: str
    author: Optional[PostAuthor] = None
    media: tuple[PostMedia, ...] = ()

    @property
    def has_author(self) -> bool:
        return self.author is not None

    @property
    def first_image(self) -> Optional[PostMedia]:
        """First photo or animated GIF that carries a URL; extra media is ignored."""

        for item in self.media:
            if item.type in IMAGE_MEDIA_TYPES and item.url:
                return item
        return None

    @property
    def url(self) -> Optional[str]:
        if self.author is None:
            return None
        return build_post_url(self.author.handle, self.id)


@dataclass(frozen=True)
class ChannelRef:
    id: int
    name: str
    text_capable: bool


@dataclass(frozen=True)
class RoleRef:
    id: int
    name: str


@dataclass(frozen=True)
class Community:
    """Read-only snapshot of a guild as seen by the dispatcher."""

    id: int
    name: str
    channels: tuple[ChannelRef, ...] = ()
    roles: tuple[RoleRef, ...] = ()


@dataclass(frozen=True)
class DeliveryTarget:
    community_id: int
    community_name: str
    channel_id: int
    channel_name: str


@dataclass(frozen=True)
class CardAuthor:
    name: str
    icon_url: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class Card:
    """Platform-neutral rich content block, rendered to an embed by adapters."""

    title: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    author: Optional[CardAuthor] = None
    color: Optional[int] = None


@dataclass(frozen=True)
class NotificationPayload:
    """Everything sent to one delivery target."""

    cards: tuple[Card, ...]
    mention: str = ""
