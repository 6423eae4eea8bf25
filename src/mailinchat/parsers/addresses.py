from __future__ import annotations

import re
from typing import Mapping

from mailinchat.core.errors import MailParseError
from mailinchat.sources.models import MailEnvelope, ParsedMessage

EMAIL_TOKEN_PATTERN = re.compile(r"[^@<\s,;\"]+@[^@\s>,;\"]+")


def extract_addresses(value: str | None) -> list[str]:
    if not value:
        return []
    return EMAIL_TOKEN_PATTERN.findall(value)


def extract_sender(headers: Mapping[str, str]) -> str | None:
    addresses = extract_addresses(headers.get("from"))
    return addresses[0] if addresses else None


def alias_of(address: str) -> str:
    return address.split("@", 1)[0]


def build_envelope(message: ParsedMessage) -> MailEnvelope:
    sender = extract_sender(message.headers)
    if sender is None:
        raise MailParseError(f"Message {message.id} has no sender address")

    to = extract_addresses(message.headers.get("to"))
    cc = extract_addresses(message.headers.get("cc"))
    return MailEnvelope(
        message=message,
        from_address=sender,
        to=tuple(to),
        cc=tuple(cc),
        to_alias=tuple(alias_of(address) for address in to),
        cc_alias=tuple(alias_of(address) for address in cc),
    )
