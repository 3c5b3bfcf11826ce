from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from tweetcord.core.config import SubscriptionConfigBuilder
from tweetcord.core.context import BridgeContext
from tweetcord.core.models import ActiveRule, FilterRule
from tweetcord.core.rules_engine import RuleReconciler
from tweetcord.core.session import ResilientStreamSession, SessionState


class FakeRules:
    def __init__(self, fail_times: int = 0) -> None:
        self.fail_times = fail_times
        self.lists = 0
        self.active: list[ActiveRule] = []

    async def list_rules(self) -> list[ActiveRule]:
        self.lists += 1
        if self.lists <= self.fail_times:
            raise PermissionError("401 Unauthorized")
        return list(self.active)

    async def delete_rules(self, ids: Sequence[str]) -> None:
        self.active = []

    async def add_rules(self, rules: Sequence[FilterRule]) -> None:
        self.active = [ActiveRule(id=rule.tag, value=rule.value, tag=rule.tag) for rule in rules]


class FakeHandle:
    def __init__(self) -> None:
        self._closed = asyncio.Event()
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    def close(self) -> None:
        self.close_calls += 1
        self._closed.set()

    def drop(self) -> None:
        # Remote side went away without anyone calling close().
        self._closed.set()


class FakeStream:
    def __init__(self, fail_times: int = 0) -> None:
        self.fail_times = fail_times
        self.opens = 0
        self.handles: list[FakeHandle] = []
        self.handler = None
        self.on_open = None

    async def open(self, handler) -> FakeHandle:
        self.opens += 1
        if self.opens <= self.fail_times:
            raise ConnectionError("stream refused")
        self.handler = handler
        handle = FakeHandle()
        self.handles.append(handle)
        if self.on_open is not None:
            self.on_open()
        return handle


async def _noop_handler(post) -> None:
    return None


def _session(
    rules: FakeRules,
    stream: FakeStream,
    *,
    reconnect_on_drop: bool = True,
    retry_delay: float = 0.0,
) -> ResilientStreamSession:
    config = SubscriptionConfigBuilder().add_users("alice", "bob").build()
    context = BridgeContext(config=config, rules=rules, stream=stream, directory=None, notifier=None)
    return ResilientStreamSession(
        context,
        RuleReconciler(context),
        _noop_handler,
        retry_delay=retry_delay,
        reconnect_on_drop=reconnect_on_drop,
    )


def _listening_records(caplog) -> list[logging.LogRecord]:
    return [record for record in caplog.records if "listening for new tweets" in record.getMessage()]


def test_connects_on_first_try() -> None:
    rules = FakeRules()
    stream = FakeStream()
    session = _session(rules, stream)

    handle = asyncio.run(session.connect())

    assert handle is stream.handles[0]
    assert session.state is SessionState.LISTENING
    assert session.attempts == 1
    assert [rule.tag for rule in rules.active] == ["alice", "bob"]


def test_k_connect_failures_then_listening_once(caplog) -> None:
    caplog.set_level(logging.DEBUG)
    rules = FakeRules()
    stream = FakeStream(fail_times=3)
    session = _session(rules, stream)

    handle = asyncio.run(session.connect())

    assert handle is not None
    assert session.attempts == 4
    assert rules.lists == 4
    assert stream.opens == 4
    assert len(_listening_records(caplog)) == 1
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 3
    debug_details = [r for r in caplog.records if r.levelno == logging.DEBUG and "stream refused" in r.getMessage()]
    assert len(debug_details) == 3


def test_reconcile_failures_are_retried_the_same_way() -> None:
    rules = FakeRules(fail_times=2)
    stream = FakeStream()
    session = _session(rules, stream)

    asyncio.run(session.connect())

    assert session.attempts == 3
    # The stream is only opened once reconciliation succeeded.
    assert stream.opens == 1
    assert session.state is SessionState.LISTENING


def test_registers_post_handler_on_open() -> None:
    stream = FakeStream()
    session = _session(FakeRules(), stream)
    asyncio.run(session.connect())
    assert stream.handler is _noop_handler


def test_stop_before_connect_returns_none() -> None:
    stream = FakeStream()
    session = _session(FakeRules(), stream)
    session.stop()

    assert asyncio.run(session.connect()) is None
    assert session.attempts == 0
    assert stream.opens == 0
    assert session.state is SessionState.STOPPED


def test_stop_ends_endless_retry_loop() -> None:
    stream = FakeStream(fail_times=10**9)
    session = _session(FakeRules(), stream)

    async def scenario() -> Optional[FakeHandle]:
        task = asyncio.create_task(session.connect())
        while stream.opens < 5:
            await asyncio.sleep(0)
        session.stop()
        return await task

    assert asyncio.run(scenario()) is None
    assert session.state is SessionState.STOPPED
    assert session.attempts >= 5


def test_stop_during_retry_delay_is_prompt() -> None:
    stream = FakeStream(fail_times=10**9)
    session = _session(FakeRules(), stream, retry_delay=60)

    async def scenario() -> Optional[FakeHandle]:
        task = asyncio.create_task(session.connect())
        while stream.opens < 1:
            await asyncio.sleep(0)
        session.stop()
        return await asyncio.wait_for(task, timeout=5)

    assert asyncio.run(scenario()) is None
    assert session.attempts == 1


def test_stop_racing_a_successful_open_closes_the_handle() -> None:
    stream = FakeStream()
    session = _session(FakeRules(), stream)
    stream.on_open = session.stop

    assert asyncio.run(session.connect()) is None
    assert stream.handles[0].closed
    assert session.state is SessionState.STOPPED


def test_run_forever_reconnects_after_stream_drop(caplog) -> None:
    caplog.set_level(logging.INFO)
    rules = FakeRules()
    stream = FakeStream()
    session = _session(rules, stream)

    async def scenario() -> None:
        task = asyncio.create_task(session.run_forever())
        while stream.opens < 1:
            await asyncio.sleep(0)
        stream.handles[0].drop()
        while stream.opens < 2:
            await asyncio.sleep(0)
        session.stop()
        await asyncio.wait_for(task, timeout=5)

    asyncio.run(scenario())

    assert session.attempts == 2
    # Rules are re-declared on every reconnect.
    assert rules.lists == 2
    assert stream.handles[1].closed
    assert session.state is SessionState.STOPPED
    assert len(_listening_records(caplog)) == 2


def test_run_forever_without_hardening_returns_after_listening() -> None:
    stream = FakeStream(fail_times=1)
    session = _session(FakeRules(), stream, reconnect_on_drop=False)

    asyncio.run(session.run_forever())

    assert session.attempts == 2
    assert session.state is SessionState.LISTENING
    assert not stream.handles[0].closed
