from __future__ import annotations

import logging
from typing import Any

from mailinchat.core.models import ChatMessage, FanOutResult
from mailinchat.core.protocols import ChatStore
from mailinchat.sources.models import MailEnvelope

from .fanout import fan_out


class MessageMaterializer:
    def __init__(self, store: ChatStore, logger: logging.Logger | logging.LoggerAdapter):
        self.store = store
        self.logger = logger

    async def _create(self, message: ChatMessage) -> dict[str, Any]:
        self.logger.info("Sending message %s to chat for profile %s", message.data.get("messageId"), message.to_profile_id)
        stored = await self.store.create_message(message)
        self.logger.info("Message sent to chat for profile %s", message.to_profile_id)
        return stored

    async def materialize(
        self,
        sender_id: str,
        recipient_ids: list[str],
        envelope: MailEnvelope,
    ) -> FanOutResult[dict[str, Any]]:
        payload = envelope.to_payload()
        result = await fan_out(
            recipient_ids,
            lambda recipient_id: self._create(
                ChatMessage(from_profile_id=sender_id, to_profile_id=recipient_id, data=payload)
            ),
        )
        for outcome in result.failed:
            self.logger.error(
                "Chat message %s -> %s failed: %s", sender_id, outcome.recipient_id, outcome.error
            )
        return result
