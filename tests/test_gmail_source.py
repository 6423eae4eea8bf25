from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from googleapiclient.errors import HttpError

from mailinchat.core.errors import MailProviderError
from mailinchat.sources.email_gmail import GmailMailProvider


def _request(response: dict) -> MagicMock:
    request = MagicMock()
    request.execute.return_value = response
    return request


@pytest.fixture()
def provider(monkeypatch) -> GmailMailProvider:  # noqa: ANN001
    service = MagicMock()
    gmail = GmailMailProvider(service=service, credentials=object())
    monkeypatch.setattr(gmail, "_new_http", lambda: "http")
    return gmail


@pytest.mark.asyncio
async def test_list_unread_filters_by_label_and_pages(provider) -> None:  # noqa: ANN001
    messages = provider.service.users().messages()
    first = _request({"messages": [{"id": "m1"}, {"id": "m2"}], "nextPageToken": "p2"})
    second = _request({"messages": [{"id": "m3"}]})
    messages.list.return_value = first
    messages.list_next.side_effect = [second, None]

    ids = await provider.list_unread("INBOX", max_messages=10)

    assert ids == ["m1", "m2", "m3"]
    messages.list.assert_called_once_with(userId="me", labelIds=["UNREAD", "INBOX"], maxResults=10)
    first.execute.assert_called_once_with(http="http")


@pytest.mark.asyncio
async def test_list_unread_caps_results(provider) -> None:  # noqa: ANN001
    messages = provider.service.users().messages()
    messages.list.return_value = _request({"messages": [{"id": f"m{i}"} for i in range(5)]})

    ids = await provider.list_unread("INBOX", max_messages=3)

    assert ids == ["m0", "m1", "m2"]
    messages.list_next.assert_not_called()


@pytest.mark.asyncio
async def test_batch_mark_read_removes_unread_label(provider) -> None:  # noqa: ANN001
    messages = provider.service.users().messages()
    messages.batchModify.return_value = _request({})

    await provider.batch_mark_read(["m1", "m2"])
    await provider.batch_mark_read([])

    messages.batchModify.assert_called_once_with(
        userId="me", body={"ids": ["m1", "m2"], "removeLabelIds": ["UNREAD"]}
    )


@pytest.mark.asyncio
async def test_get_and_attachment_and_labels(provider) -> None:  # noqa: ANN001
    users = provider.service.users()
    users.messages().get.return_value = _request({"id": "m1", "payload": {}})
    users.messages().attachments().get.return_value = _request({"data": "AAA-_", "size": 3})
    users.labels().list.return_value = _request({"labels": [{"id": "INBOX", "name": "INBOX"}]})

    assert (await provider.get("m1"))["id"] == "m1"
    assert await provider.get_attachment("m1", "ATT-1") == "AAA-_"
    assert await provider.list_labels() == [{"id": "INBOX", "name": "INBOX"}]
    users.messages().get.assert_called_once_with(userId="me", id="m1", format="full")
    users.messages().attachments().get.assert_called_once_with(userId="me", messageId="m1", id="ATT-1")


@pytest.mark.asyncio
async def test_api_errors_are_wrapped(provider) -> None:  # noqa: ANN001
    response = MagicMock(status=401, reason="Unauthorized")
    request = MagicMock()
    request.execute.side_effect = HttpError(response, b'{"error": {"message": "bad token"}}')
    provider.service.users().messages().get.return_value = request

    with pytest.raises(MailProviderError):
        await provider.get("m1")
