"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Union

DEFAULT_CHANNEL = "twitter"
# Twitter brand blue.
DEFAULT_COLOR = 0x1DA1F2


class MentionKind(Enum):
    EVERYONE = "everyone"
    ROLE = "role"
    NONE = "none"


@dataclass(frozen=True)
class MentionPolicy:
    """Who gets pinged in front of a notification."""

    kind: MentionKind
    role_name: Optional[str] = None

    @classmethod
    def from_flags(cls, everyone: bool, role: Optional[str]) -> "MentionPolicy":
        """Resolve the everyone flag and role option; everyone always wins."""

        if everyone:
            return cls(MentionKind.EVERYONE)
        if role and role.strip():
            return cls(MentionKind.ROLE, role.strip())
        return cls(MentionKind.NONE)


@dataclass(frozen=True)
class SubscriptionConfig:
    """Read-only subscription settings shared by every core component."""

    users: tuple[str, ...]
    channel: str = DEFAULT_CHANNEL
    mention: MentionPolicy = MentionPolicy(MentionKind.NONE)
    banner: Optional[str] = None
    color: int = DEFAULT_COLOR


def normalize_handle(username: str) -> str:
    """Strip surrounding whitespace and a single leading '@'."""

    username = username.strip()
    if username.startswith("@"):
        username = username[1:]
    return username


class SubscriptionConfigBuilder:
    """Fluent builder producing a frozen SubscriptionConfig."""

    def __init__(self) -> None:
        self._users: List[str] = []
        self._seen: set[str] = set()
        self._channel = DEFAULT_CHANNEL
        self._everyone = False
        self._role: Optional[str] = None
        self._banner: Optional[str] = None
        self._color = DEFAULT_COLOR

    def add_user(self, username: str) -> "SubscriptionConfigBuilder":
        """Add a Twitter handle, with or without the leading '@'."""

        handle = normalize_handle(username)
        if not handle or handle.lower() in self._seen:
            return self
        self._seen.add(handle.lower())
        self._users.append(handle)
        return self

    def add_users(self, *usernames: Union[str, Iterable[str]]) -> "SubscriptionConfigBuilder":
        """Add several handles; nested lists are flattened."""

        for username in usernames:
            if isinstance(username, str):
                self.add_user(username)
            else:
                self.add_users(*username)
        return self

    def set_channel(self, channel: str) -> "SubscriptionConfigBuilder":
        self._channel = channel.strip()
        return self

    def tag_everyone(self, value: bool = True) -> "SubscriptionConfigBuilder":
        self._everyone = value
        return self

    def set_role(self, role_name: Optional[str]) -> "SubscriptionConfigBuilder":
        self._role = role_name
        return self

    def set_banner(self, banner_url: Optional[str]) -> "SubscriptionConfigBuilder":
        self._banner = banner_url or None
        return self

    def set_color(self, color: int) -> "SubscriptionConfigBuilder":
        self._color = color
        return self

    def build(self) -> SubscriptionConfig:
        if not self._channel:
            raise ValueError("Destination channel name must not be empty")
        return SubscriptionConfig(
            users=tuple(self._users),
            channel=self._channel,
            mention=MentionPolicy.from_flags(self._everyone, self._role),
            banner=self._banner,
            color=self._color,
        )
