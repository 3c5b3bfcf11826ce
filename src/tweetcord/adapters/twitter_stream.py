"""Twitter filtered-stream adapter built on tweepy's AsyncStreamingClient.

Implements both the rule management port and the stream port. Each post
received on the stream is mapped to the core model and handed to the
registered handler in its own task, so slow fan-outs never block the reader.

tweepy retries refused or broken connections on its own, with backoff and no
cap. Here any request or connection error ends the stream task instead, so
the session sees the failure and re-runs reconciliation before reconnecting.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from tweepy import StreamRule
from tweepy.asynchronous import AsyncStreamingClient

from tweetcord.adapters.twitter_mapper import build_post
from tweetcord.core.models import ActiveRule, FilterRule, IncomingPost
from tweetcord.core.ports import PostHandler

LOGGER = logging.getLogger(__name__)

STREAM_EXPANSIONS = ["author_id", "attachments.media_keys"]
STREAM_USER_FIELDS = ["profile_image_url"]
STREAM_MEDIA_FIELDS = ["url"]


class PostStreamingClient(AsyncStreamingClient):
    """tweepy client that forwards mapped posts to a core handler."""

    def __init__(self, bearer_token: str, **kwargs) -> None:
        super().__init__(bearer_token, **kwargs)
        self.handler: Optional[PostHandler] = None
        self.connected: Optional[asyncio.Event] = None
        self.failure: Optional[str] = None
        self._pending: set[asyncio.Task] = set()

    def prepare_connect(self) -> asyncio.Event:
        """Reset connection state before a new filter() call; must run inside the loop."""

        self.connected = asyncio.Event()
        self.failure = None
        return self.connected

    def _fail(self, reason: str) -> None:
        self.failure = reason
        self.disconnect()

    async def on_response(self, response) -> None:
        post = build_post(response)
        if post is None or self.handler is None:
            return
        task = asyncio.create_task(self._handle(post))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _handle(self, post: IncomingPost) -> None:
        try:
            await self.handler(post)
        except Exception:
            LOGGER.exception("Error while handling tweet %s", post.id)

    async def on_connect(self) -> None:
        LOGGER.debug("Twitter stream connected")
        if self.connected is not None:
            self.connected.set()

    async def on_disconnect(self) -> None:
        LOGGER.info("Twitter stream disconnected")

    async def on_closed(self, resp) -> None:
        LOGGER.warning("Twitter closed the stream connection")
        self._fail("closed by Twitter")

    async def on_errors(self, errors) -> None:
        LOGGER.warning("Twitter stream reported errors: %s", errors)

    async def on_connection_error(self) -> None:
        LOGGER.warning("Twitter stream connection error")
        self._fail("connection error")

    async def on_request_error(self, status_code) -> None:
        LOGGER.warning("Twitter stream request failed with HTTP %s", status_code)
        self._fail(f"HTTP {status_code}")


class TaskStreamHandle:
    """Live stream handle wrapping tweepy's filter task."""

    def __init__(self, client: AsyncStreamingClient, task: asyncio.Task) -> None:
        self._client = client
        self._task = task

    async def wait_closed(self) -> None:
        # asyncio.wait never raises, even for a cancelled task.
        await asyncio.wait({self._task})

    def close(self) -> None:
        self._client.disconnect()


class TwitterFilterStream:
    """StreamRulesPort and StreamPort over the Twitter v2 filtered stream."""

    def __init__(self, bearer_token: str, client: Optional[PostStreamingClient] = None) -> None:
        self._client = client or PostStreamingClient(bearer_token)

    async def list_rules(self) -> list[ActiveRule]:
        response = await self._client.get_rules()
        rules = response.data or []
        return [ActiveRule(id=str(rule.id), value=rule.value, tag=rule.tag) for rule in rules]

    async def delete_rules(self, ids: Sequence[str]) -> None:
        response = await self._client.delete_rules(list(ids))
        if response.errors:
            raise RuntimeError(f"Twitter rejected rule deletion: {response.errors}")

    async def add_rules(self, rules: Sequence[FilterRule]) -> None:
        response = await self._client.add_rules(
            [StreamRule(value=rule.value, tag=rule.tag) for rule in rules]
        )
        if response.errors:
            raise RuntimeError(f"Twitter rejected stream rules: {response.errors}")

    async def open(self, handler: PostHandler) -> TaskStreamHandle:
        """Start the stream and return once Twitter has accepted the connection.

        Raises RuntimeError when the connection is refused or drops first.
        """

        running = self._client.task
        if running is not None and not running.done():
            raise RuntimeError("Twitter stream is already running")

        self._client.handler = handler
        connected = self._client.prepare_connect()
        task = self._client.filter(
            expansions=STREAM_EXPANSIONS,
            user_fields=STREAM_USER_FIELDS,
            media_fields=STREAM_MEDIA_FIELDS,
        )

        waiter = asyncio.create_task(connected.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            self._client.disconnect()
            raise
        finally:
            waiter.cancel()

        if task.done() or self._client.failure is not None or not connected.is_set():
            self._client.disconnect()
            reason = self._client.failure or "stream ended before connecting"
            raise RuntimeError(f"Twitter stream connection failed: {reason}")

        return TaskStreamHandle(self._client, task)
