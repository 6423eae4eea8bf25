from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


def index_headers(headers: list[tuple[str, str]] | tuple[tuple[str, str], ...] | None) -> dict[str, str]:
    result: dict[str, str] = {}
    for name, value in headers or ():
        if name:
            result[name.lower()] = value
    return result


def decode_body(value: str | None) -> str:
    if not value:
        return ""
    # Gmail bodies are base64url, sometimes without padding
    normalized = value.replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        data = base64.b64decode(normalized.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError):
        return ""
    return data.decode("utf-8", errors="replace")


def escape_text(value: str) -> str:
    escaped = []
    for char in value:
        if char in "\\$'\"":
            escaped.append("\\")
        escaped.append(char)
    return "".join(escaped).strip()


@dataclass(slots=True, frozen=True)
class PartBody:
    data: str | None = None
    size: int | None = None
    attachment_id: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> PartBody:
        size = payload.get("size")
        return cls(
            data=payload.get("data"),
            size=int(size) if size is not None else None,
            attachment_id=payload.get("attachmentId"),
        )


@dataclass(slots=True, frozen=True)
class MimePart:
    mime_type: str = ""
    filename: str | None = None
    headers: tuple[tuple[str, str], ...] = ()
    body: PartBody | None = None
    parts: tuple[MimePart, ...] = ()

    @property
    def is_container(self) -> bool:
        return bool(self.parts)

    @property
    def has_headers(self) -> bool:
        return bool(self.headers)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> MimePart:
        body = payload.get("body")
        return cls(
            mime_type=payload.get("mimeType") or "",
            filename=payload.get("filename") or None,
            headers=tuple(
                (item.get("name", ""), item.get("value", "")) for item in payload.get("headers") or []
            ),
            body=PartBody.from_payload(body) if body is not None else None,
            parts=tuple(cls.from_payload(child) for child in payload.get("parts") or []),
        )


@dataclass(slots=True, frozen=True)
class RawMessage:
    id: str
    thread_id: str | None = None
    label_ids: tuple[str, ...] = ()
    snippet: str | None = None
    history_id: str | None = None
    internal_date: int | None = None
    payload: MimePart | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> RawMessage:
        internal_date = payload.get("internalDate")
        root = payload.get("payload")
        return cls(
            id=payload.get("id", ""),
            thread_id=payload.get("threadId"),
            label_ids=tuple(payload.get("labelIds") or ()),
            snippet=payload.get("snippet"),
            history_id=payload.get("historyId"),
            internal_date=int(internal_date) if internal_date else None,
            payload=MimePart.from_payload(root) if root else None,
        )


@dataclass(slots=True, frozen=True)
class AttachmentRef:
    filename: str | None
    mime_type: str | None
    size: int | None
    attachment_id: str | None
    headers: Mapping[str, str] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "attachmentId": self.attachment_id,
            "mimeType": self.mime_type,
            "filename": self.filename,
        }


@dataclass(slots=True, frozen=True)
class ParsedMessage:
    id: str
    thread_id: str | None
    snippet: str | None
    headers: Mapping[str, str]
    label_ids: tuple[str, ...] = ()
    history_id: str | None = None
    internal_date: int | None = None
    text_plain: str | None = None
    text_html: str | None = None
    attachments: tuple[AttachmentRef, ...] = ()
    inline: tuple[AttachmentRef, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def subject(self) -> str | None:
        return self.headers.get("subject")

    @property
    def date(self) -> str | None:
        return self.headers.get("date")

    def plain_text(self) -> str:
        return escape_text(decode_body(self.text_plain))


@dataclass(slots=True, frozen=True)
class MailEnvelope:
    message: ParsedMessage
    from_address: str
    to: tuple[str, ...] = ()
    cc: tuple[str, ...] = ()
    to_alias: tuple[str, ...] = ()
    cc_alias: tuple[str, ...] = ()

    @property
    def message_id(self) -> str:
        return self.message.id

    @property
    def all_aliases(self) -> list[str]:
        return [*self.to_alias, *self.cc_alias]

    def to_payload(self) -> dict[str, Any]:
        message = self.message
        return {
            "messageId": message.id,
            "threadId": message.thread_id,
            "snippet": message.snippet,
            "from": self.from_address,
            "to": list(self.to),
            "cc": list(self.cc),
            "toAlias": list(self.to_alias),
            "ccAlias": list(self.cc_alias),
            "subject": message.subject,
            "date": message.date,
            "text": message.plain_text(),
            "html": message.text_html,
            "attachments": [attachment.to_payload() for attachment in message.attachments],
            "inline": [attachment.to_payload() for attachment in message.inline],
        }
