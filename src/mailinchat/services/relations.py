from __future__ import annotations

import asyncio
import logging
from collections import Counter

from mailinchat.core.models import FanOutResult, Relation
from mailinchat.core.protocols import RelationStore

from .fanout import fan_out


class RelationManager:
    """Find-or-create of relations between a sender and its recipients.

    Within one process a lock per (sender, recipient) pair serializes the
    find and the create, so overlapping ingestions of the same pair reuse the
    first relation. Across processes a uniqueness constraint of the relation
    store is required.
    """

    def __init__(self, store: RelationStore, logger: logging.Logger | logging.LoggerAdapter):
        self.store = store
        self.logger = logger
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._lock_users: Counter[tuple[str, str]] = Counter()

    async def find_or_create(self, left_profile_id: str, right_profile_id: str) -> Relation:
        pair = (left_profile_id, right_profile_id)
        lock = self._locks.setdefault(pair, asyncio.Lock())
        self._lock_users[pair] += 1
        try:
            async with lock:
                relations = await self.store.list_for_profile(left_profile_id)
                existing = next(
                    (relation for relation in relations if relation.right_profile_id == right_profile_id),
                    None,
                )
                if existing is not None:
                    self.logger.info("Relation found between %s and %s", left_profile_id, right_profile_id)
                    return existing

                self.logger.info("Relation not found between %s and %s, creating", left_profile_id, right_profile_id)
                return await self.store.create(left_profile_id, right_profile_id)
        finally:
            self._lock_users[pair] -= 1
            if self._lock_users[pair] <= 0:
                del self._lock_users[pair]
                self._locks.pop(pair, None)

    async def ensure(self, sender_id: str, recipient_ids: list[str]) -> FanOutResult[Relation]:
        result = await fan_out(recipient_ids, lambda recipient_id: self.find_or_create(sender_id, recipient_id))
        for outcome in result.failed:
            self.logger.error(
                "Relation %s -> %s failed: %s", sender_id, outcome.recipient_id, outcome.error
            )
        return result
