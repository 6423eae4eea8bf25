from __future__ import annotations

import logging

from mailinchat.config import Settings
from mailinchat.core.models import FanOutResult, IngestionResult
from mailinchat.core.protocols import MailProvider
from mailinchat.core.queue import WorkQueue
from mailinchat.parsers import build_envelope, parse_message

from .identity import IdentityResolver
from .messages import MessageMaterializer
from .relations import RelationManager


class IngestionService:
    def __init__(
        self,
        settings: Settings,
        provider: MailProvider,
        resolver: IdentityResolver,
        relations: RelationManager,
        messages: MessageMaterializer,
        queue: WorkQueue,
        logger: logging.Logger | logging.LoggerAdapter,
    ):
        self.settings = settings
        self.provider = provider
        self.resolver = resolver
        self.relations = relations
        self.messages = messages
        self.queue = queue
        self.logger = logger

    async def fetch_cycle(self) -> int:
        """List unread mail, mark it read, dispatch one parse task per message.

        Messages are marked read before parsing: a message whose task fails
        is not picked up again by a later cycle.
        """
        message_ids = await self.provider.list_unread(self.settings.inbox_label, self.settings.max_messages)
        if not message_ids:
            self.logger.info("No unread messages in %s", self.settings.inbox_label)
            return 0

        await self.provider.batch_mark_read(message_ids)
        self.logger.info("Marked %s messages as read", len(message_ids))

        for message_id in message_ids:
            self.logger.info("Sending message id %s to queue for parse", message_id)
            self.queue.submit(f"parse:{message_id}", lambda message_id=message_id: self.parse_and_save(message_id))
        return len(message_ids)

    async def parse_and_save(self, message_id: str) -> IngestionResult | None:
        raw = await self.provider.get(message_id)
        parsed = parse_message(raw)
        envelope = build_envelope(parsed)
        self.logger.info(
            "Parsed message %s from %s to %s cc %s",
            message_id,
            envelope.from_address,
            list(envelope.to),
            list(envelope.cc),
        )

        identities = await self.resolver.resolve(envelope)
        if identities is None:
            return None

        relations = await self.relations.ensure(identities.sender_id, identities.recipient_ids)
        related_ids = relations.succeeded_ids()
        if related_ids:
            messages = await self.messages.materialize(identities.sender_id, related_ids, envelope)
        else:
            messages = FanOutResult()

        result = IngestionResult(
            message_id=message_id,
            sender_id=identities.sender_id,
            sender_created=identities.sender_created,
            relations=relations,
            messages=messages,
        )
        if result.ok:
            self.logger.info("Message %s delivered to %s profiles", message_id, len(messages.succeeded))
        else:
            self.logger.warning("Message %s delivered partially: %s", message_id, result.summary())
        return result
