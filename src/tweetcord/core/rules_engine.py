"""Stream rule building and reconciliation (core domain)."""

from __future__ import annotations

import logging
from typing import List

from tweetcord.core.config import SubscriptionConfig
from tweetcord.core.context import BridgeContext
from tweetcord.core.models import FilterRule

LOGGER = logging.getLogger(__name__)


def author_expression(handle: str) -> str:
    """Match expression selecting posts authored by exactly this account."""

    return f"from:{handle}"


def build_rules(config: SubscriptionConfig) -> List[FilterRule]:
    """Return one rule per followed author, tagged with the handle."""

    return [FilterRule(value=author_expression(user), tag=user) for user in config.users]


class RuleReconciler:
    """Replaces whatever rules are active remotely with the configured set.

    The operation is safe to repeat: every call re-reads the remote state, so a
    previous attempt that failed between delete and add is repaired by the next.
    """

    def __init__(self, context: BridgeContext) -> None:
        self._context = context
        self._desired = build_rules(context.config)

    async def reconcile(self) -> List[FilterRule]:
        """Read, then delete, then add. Any failure propagates to the caller."""

        port = self._context.rules
        active = await port.list_rules()

        # The remote API rejects a delete with an empty id list.
        if active:
            await port.delete_rules([rule.id for rule in active])
            LOGGER.debug("Deleted %s stale stream rules", len(active))

        if not self._desired:
            LOGGER.warning("No users configured; the stream will not match anything")
            return []

        await port.add_rules(self._desired)
        for rule in self._desired:
            LOGGER.info("Following %s", rule.tag)
        return list(self._desired)
