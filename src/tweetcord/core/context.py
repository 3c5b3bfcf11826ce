"""Explicit wiring object shared by the reconciler, session and dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from tweetcord.core.config import SubscriptionConfig
from tweetcord.core.ports import CommunityDirectory, NotifierPort, StreamPort, StreamRulesPort


@dataclass(frozen=True)
class BridgeContext:
    """Built once at startup; every field is read-only afterwards.

    The directory and notifier are only needed for dispatch; rule-only tools
    such as `tweetcord sync` leave them unset.
    """

    config: SubscriptionConfig
    rules: StreamRulesPort
    stream: StreamPort
    directory: Optional[CommunityDirectory] = None
    notifier: Optional[NotifierPort] = None
