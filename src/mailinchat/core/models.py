from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class Profile:
    id: str
    emails: tuple[str, ...] = ()
    mail_chat_aliases: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class ProfileQuery:
    emails: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class ProfileDraft:
    emails: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class Relation:
    left_profile_id: str
    right_profile_id: str
    id: str | None = None


@dataclass(slots=True)
class ChatMessage:
    from_profile_id: str
    to_profile_id: str
    data: dict[str, Any]

    def to_payload(self) -> dict[str, Any]:
        return {
            "fromProfileId": self.from_profile_id,
            "toProfileId": self.to_profile_id,
            "data": self.data,
        }


@dataclass(slots=True)
class FanOutOutcome(Generic[T]):
    recipient_id: str
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class FanOutResult(Generic[T]):
    outcomes: list[FanOutOutcome[T]] = field(default_factory=list)

    @property
    def succeeded(self) -> list[FanOutOutcome[T]]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> list[FanOutOutcome[T]]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    def succeeded_ids(self) -> list[str]:
        return [outcome.recipient_id for outcome in self.succeeded]


@dataclass(slots=True)
class ResolvedIdentities:
    sender_id: str
    recipients: list[Profile]
    sender_created: bool = False

    @property
    def recipient_ids(self) -> list[str]:
        return [profile.id for profile in self.recipients]


@dataclass(slots=True)
class IngestionResult:
    message_id: str
    sender_id: str
    sender_created: bool
    relations: FanOutResult[Relation]
    messages: FanOutResult[dict[str, Any]]

    @property
    def ok(self) -> bool:
        return self.relations.ok and self.messages.ok

    def summary(self) -> dict[str, Any]:
        return {
            "message_id": self.message_id,
            "sender_id": self.sender_id,
            "sender_created": self.sender_created,
            "relations_ok": len(self.relations.succeeded),
            "relations_failed": len(self.relations.failed),
            "messages_ok": len(self.messages.succeeded),
            "messages_failed": len(self.messages.failed),
        }
