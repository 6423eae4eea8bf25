from __future__ import annotations

import base64
import logging
from typing import Any, Mapping

from mailinchat.config import ATTACHMENT_RETENTION_SEC
from mailinchat.core.protocols import KeyValueCache, MailProvider
from mailinchat.sources.models import AttachmentRef

CACHE_KEY_PREFIX = "attachment:"


def cache_key(attachment_id: str) -> str:
    return f"{CACHE_KEY_PREFIX}{attachment_id}"


def base64url_to_base64(value: str) -> str:
    standard = value.replace("-", "+").replace("_", "/")
    return standard + "=" * (-len(standard) % 4)


def _describe(attachment: AttachmentRef | Mapping[str, Any]) -> tuple[str | None, str | None, str | None]:
    if isinstance(attachment, AttachmentRef):
        return attachment.attachment_id, attachment.mime_type, attachment.filename
    return attachment.get("attachmentId"), attachment.get("mimeType"), attachment.get("filename")


class AttachmentService:
    """Attachment payloads served from the key-value cache.

    A hit is returned as stored, without refetch or expiry refresh. A miss
    fetches from the provider and stores ``{mimeType, filename, base64}`` for
    ``ttl_seconds``. Concurrent misses for one id both fetch; the last write
    stays.
    """

    def __init__(
        self,
        provider: MailProvider,
        cache: KeyValueCache,
        logger: logging.Logger | logging.LoggerAdapter,
        ttl_seconds: int = ATTACHMENT_RETENTION_SEC,
    ):
        self.provider = provider
        self.cache = cache
        self.logger = logger
        self.ttl_seconds = ttl_seconds

    async def get(self, message_id: str, attachment: AttachmentRef | Mapping[str, Any]) -> dict[str, Any]:
        attachment_id, mime_type, filename = _describe(attachment)
        if not attachment_id:
            raise ValueError("Attachment has no attachmentId")

        key = cache_key(attachment_id)
        cached = await self.cache.get(key)
        if cached is not None:
            self.logger.info("Returning cached attachment %s", attachment_id)
            return cached

        self.logger.info("Getting attachment %s of message %s from provider", attachment_id, message_id)
        data = await self.provider.get_attachment(message_id, attachment_id)
        value = {
            "mimeType": mime_type,
            "filename": filename,
            "base64": base64url_to_base64(data),
        }
        await self.cache.set(key, value, expire_seconds=self.ttl_seconds)
        return value
