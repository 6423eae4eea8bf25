"""Contracts of the collaborators the ingestion pipeline talks to.

Every call is an async boundary. Implementations live in
``mailinchat.sources`` (mail provider), ``mailinchat.core.rpc`` (directory,
relations, chat) and ``mailinchat.core.cache`` (key-value cache).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from mailinchat.core.models import ChatMessage, Profile, ProfileDraft, ProfileQuery, Relation


class MailProvider(ABC):
    @abstractmethod
    async def list_unread(self, label: str, max_messages: int = 100) -> list[str]:
        """Ids of unread messages carrying ``label``."""

    @abstractmethod
    async def get(self, message_id: str) -> dict[str, Any]:
        """Full provider message, payload tree included."""

    @abstractmethod
    async def batch_mark_read(self, message_ids: list[str]) -> None: ...

    @abstractmethod
    async def get_attachment(self, message_id: str, attachment_id: str) -> str:
        """Attachment bytes as base64url text."""

    @abstractmethod
    async def list_labels(self) -> list[dict[str, Any]]: ...


class ProfileDirectory(ABC):
    @abstractmethod
    async def find(self, query: ProfileQuery) -> list[Profile]:
        """Profiles matching any email or any alias of ``query``."""

    @abstractmethod
    async def create(self, draft: ProfileDraft) -> Profile: ...


class RelationStore(ABC):
    @abstractmethod
    async def list_for_profile(self, profile_id: str) -> list[Relation]:
        """Relations seen from ``profile_id`` (it is always the left side)."""

    @abstractmethod
    async def create(self, left_profile_id: str, right_profile_id: str) -> Relation: ...


class ChatStore(ABC):
    @abstractmethod
    async def create_message(self, message: ChatMessage) -> dict[str, Any]: ...


class KeyValueCache(ABC):
    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        """Stored value or ``None`` on miss."""

    @abstractmethod
    async def set(self, key: str, value: dict[str, Any], expire_seconds: int) -> None: ...
