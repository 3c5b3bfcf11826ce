"""Ports (interfaces) used by the core.

Ports define the minimal contracts for the filter stream, the chat client
cache and notification delivery so that the core can be reused with
different backends.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Iterable, Protocol, Sequence

from tweetcord.core.models import (
    ActiveRule,
    Community,
    DeliveryTarget,
    FilterRule,
    IncomingPost,
    NotificationPayload,
)

PostHandler = Callable[[IncomingPost], Awaitable[object]]


class StreamRulesPort(Protocol):
    """Rule management operations on the remote filtered stream."""

    async def list_rules(self) -> list[ActiveRule]:
        ...

    async def delete_rules(self, ids: Sequence[str]) -> None:
        ...

    async def add_rules(self, rules: Sequence[FilterRule]) -> None:
        ...


class StreamHandle(Protocol):
    """The single live stream connection."""

    async def wait_closed(self) -> None:
        ...

    def close(self) -> None:
        ...


class StreamPort(Protocol):
    """Opens the filtered stream with author and media expansions."""

    async def open(self, handler: PostHandler) -> StreamHandle:
        ...


class CommunityDirectory(Protocol):
    """Read-only view over the chat client's community cache."""

    def communities(self) -> Iterable[Community]:
        ...


class NotifierPort(Protocol):
    """Delivers one rendered payload to one target."""

    async def send(self, target: DeliveryTarget, payload: NotificationPayload) -> None:
        ...
