from __future__ import annotations

import asyncio
from typing import Any

import google_auth_httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import build_http

from mailinchat.core.errors import MailProviderError
from mailinchat.core.protocols import MailProvider

from .auth import GmailAuthManager

UNREAD_LABEL = "UNREAD"


class GmailMailProvider(MailProvider):
    """Gmail API behind the async ``MailProvider`` contract.

    The discovery client is built once (``connect``) and shared. httplib2 is
    not thread safe, so every request executes on its own authorized
    transport inside a worker thread.
    """

    def __init__(self, service: Any, credentials: Any, user_id: str = "me"):
        self.service = service
        self.credentials = credentials
        self.user_id = user_id

    @classmethod
    def connect(cls, auth_manager: GmailAuthManager, user_id: str = "me") -> GmailMailProvider:
        creds = auth_manager.ensure_credentials()
        service = build("gmail", "v1", credentials=creds, cache_discovery=False)
        return cls(service=service, credentials=creds, user_id=user_id)

    def _new_http(self):
        return google_auth_httplib2.AuthorizedHttp(self.credentials, http=build_http())

    def _execute(self, request) -> dict[str, Any]:  # noqa: ANN001
        try:
            return request.execute(http=self._new_http())
        except HttpError as exc:
            raise MailProviderError(f"Gmail API error {exc.status_code}: {exc.reason}") from exc
        except OSError as exc:
            raise MailProviderError(f"Gmail transport error: {exc}") from exc

    async def _call(self, request) -> dict[str, Any]:  # noqa: ANN001
        return await asyncio.to_thread(self._execute, request)

    @property
    def _messages(self):
        return self.service.users().messages()

    async def list_unread(self, label: str, max_messages: int = 100) -> list[str]:
        ids: list[str] = []
        request = self._messages.list(
            userId=self.user_id,
            labelIds=[UNREAD_LABEL, label],
            maxResults=min(max_messages, 500),
        )
        while request is not None and len(ids) < max_messages:
            response = await self._call(request)
            ids.extend(meta["id"] for meta in response.get("messages", []))
            if len(ids) >= max_messages:
                break
            request = self._messages.list_next(request, response)
        return ids[:max_messages]

    async def get(self, message_id: str) -> dict[str, Any]:
        return await self._call(self._messages.get(userId=self.user_id, id=message_id, format="full"))

    async def batch_mark_read(self, message_ids: list[str]) -> None:
        if not message_ids:
            return
        await self._call(
            self._messages.batchModify(
                userId=self.user_id,
                body={"ids": list(message_ids), "removeLabelIds": [UNREAD_LABEL]},
            )
        )

    async def get_attachment(self, message_id: str, attachment_id: str) -> str:
        response = await self._call(
            self._messages.attachments().get(userId=self.user_id, messageId=message_id, id=attachment_id)
        )
        return response.get("data", "")

    async def list_labels(self) -> list[dict[str, Any]]:
        response = await self._call(self.service.users().labels().list(userId=self.user_id))
        return response.get("labels", [])
