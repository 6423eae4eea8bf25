from __future__ import annotations

from collections import deque
from typing import Any, Mapping

from mailinchat.sources.models import AttachmentRef, MimePart, ParsedMessage, RawMessage, index_headers


def _disposition_contains(headers: Mapping[str, str], token: str) -> bool:
    return token in headers.get("content-disposition", "").lower()


def _attachment_ref(part: MimePart) -> AttachmentRef:
    body = part.body
    return AttachmentRef(
        filename=part.filename,
        mime_type=part.mime_type or None,
        size=body.size if body else None,
        attachment_id=body.attachment_id if body else None,
        headers=index_headers(part.headers),
    )


def parse_message(raw: RawMessage | Mapping[str, Any]) -> ParsedMessage:
    """Normalize a provider message into a ``ParsedMessage``.

    Parts are visited breadth-first. Each queued part carries the headers it is
    classified with: the root uses the message headers, every other part its
    own headers (an empty map when it has none). Repeated html/plain bodies
    overwrite each other, so the last visited one wins.
    """
    if not isinstance(raw, RawMessage):
        raw = RawMessage.from_payload(raw)

    root = raw.payload
    message_headers = index_headers(root.headers) if root else {}

    text_plain: str | None = None
    text_html: str | None = None
    attachments: list[AttachmentRef] = []
    inline: list[AttachmentRef] = []

    queue: deque[tuple[MimePart, dict[str, str]]] = deque()
    if root is not None:
        queue.append((root, message_headers))

    while queue:
        part, headers = queue.popleft()
        for child in part.parts:
            queue.append((child, index_headers(child.headers)))

        body = part.body
        if body is None:
            continue

        is_html = "text/html" in part.mime_type
        is_plain = "text/plain" in part.mime_type
        is_attachment = bool(body.attachment_id) or _disposition_contains(headers, "attachment")
        is_inline = _disposition_contains(headers, "inline")

        if is_html and not is_attachment:
            text_html = body.data
        elif is_plain and not is_attachment:
            text_plain = body.data
        elif is_attachment:
            attachments.append(_attachment_ref(part))
        elif is_inline:
            inline.append(_attachment_ref(part))

    return ParsedMessage(
        id=raw.id,
        thread_id=raw.thread_id,
        snippet=raw.snippet,
        headers=message_headers,
        label_ids=raw.label_ids,
        history_id=raw.history_id,
        internal_date=raw.internal_date,
        text_plain=text_plain,
        text_html=text_html,
        attachments=tuple(attachments),
        inline=tuple(inline),
    )
