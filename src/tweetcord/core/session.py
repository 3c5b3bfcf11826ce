"""Resilient stream session.

The session drives one strictly sequential loop:
1) Reconcile the remote rule set
2) Open the filtered stream with the post handler registered
3) On any failure in 1 or 2, log and start over from 1

There is no retry cap and no error classification: auth, network and
malformed-response failures are all retried the same way. Once the stream is
open the session is LISTENING; `run_forever` additionally restarts the cycle
when the stream closes on its own.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Optional

from tweetcord.core.context import BridgeContext
from tweetcord.core.ports import PostHandler, StreamHandle
from tweetcord.core.rules_engine import RuleReconciler

LOGGER = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    RECONCILING = "reconciling"
    CONNECTING = "connecting"
    LISTENING = "listening"
    STOPPED = "stopped"


class ResilientStreamSession:
    """Owns the single live stream handle and its reconnect loop."""

    def __init__(
        self,
        context: BridgeContext,
        reconciler: RuleReconciler,
        on_post: PostHandler,
        retry_delay: float = 0.0,
        reconnect_on_drop: bool = True,
    ) -> None:
        self._context = context
        self._reconciler = reconciler
        self._on_post = on_post
        self._retry_delay = retry_delay
        self._reconnect_on_drop = reconnect_on_drop
        self._stop = asyncio.Event()
        self._handle: Optional[StreamHandle] = None
        self._state = SessionState.IDLE
        self.attempts = 0

    @property
    def state(self) -> SessionState:
        return self._state

    async def connect(self) -> Optional[StreamHandle]:
        """Retry reconcile+connect until LISTENING; None if stopped first."""

        while not self._stop.is_set():
            self.attempts += 1
            try:
                self._state = SessionState.RECONCILING
                await self._reconciler.reconcile()

                self._state = SessionState.CONNECTING
                handle = await self._context.stream.open(self._on_post)
            except Exception as exc:
                self._state = SessionState.IDLE
                LOGGER.warning("Stream setup failed, restarting...")
                LOGGER.debug("Stream setup error on attempt %s: %s", self.attempts, exc, exc_info=True)
                await self._pause()
                continue

            if self._stop.is_set():
                # stop() raced with a successful open.
                handle.close()
                break

            self._handle = handle
            self._state = SessionState.LISTENING
            LOGGER.info("Connected to Twitter and listening for new tweets")
            return handle

        self._state = SessionState.STOPPED
        return None

    async def run_forever(self) -> None:
        """Connect, then reconnect whenever the live stream closes unexpectedly."""

        while True:
            handle = await self.connect()
            if handle is None or not self._reconnect_on_drop:
                return

            await handle.wait_closed()
            self._handle = None
            if self._stop.is_set():
                self._state = SessionState.STOPPED
                return

            self._state = SessionState.IDLE
            LOGGER.warning("Twitter stream closed, reconnecting...")

    def stop(self) -> None:
        """Cancellation signal: ends the retry loop and closes the live stream."""

        self._stop.set()
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        self._state = SessionState.STOPPED

    async def _pause(self) -> None:
        if self._retry_delay <= 0:
            # Yield so stop() and other tasks can run between tight retries.
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=self._retry_delay)
        except asyncio.TimeoutError:
            pass
