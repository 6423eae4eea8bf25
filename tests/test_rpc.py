from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from mailinchat.core.errors import RpcError
from mailinchat.core.models import ChatMessage, ProfileDraft, ProfileQuery
from mailinchat.core.rpc import RpcChatStore, RpcClient, RpcProfileDirectory, RpcRelationStore
from mailinchat.core.rpc.adapters import profile_query_document


def _session(*bodies) -> MagicMock:  # noqa: ANN002
    session = MagicMock()
    responses = []
    for body in bodies:
        response = MagicMock()
        response.raise_for_status.return_value = None
        response.json.return_value = body
        responses.append(response)
    session.post.side_effect = responses
    return session


def test_profile_query_document_for_email_and_aliases() -> None:
    assert profile_query_document(ProfileQuery(emails=("a@x.com",))) == {
        "$or": [{"person.emails.email": "a@x.com"}, {"company.emails.email": "a@x.com"}]
    }
    assert profile_query_document(ProfileQuery(aliases=("b", "c"))) == {"company.mailInChat.alias": ["b", "c"]}


@pytest.mark.asyncio
async def test_client_posts_to_route_and_returns_data() -> None:
    session = _session({"data": [1, 2]})
    client = RpcClient("http://bus.local/rpc/", timeout_sec=3, session=session)

    data = await client.send_and_read("/auth/profile/get", {"q": 1})

    assert data == [1, 2]
    session.post.assert_called_once_with("http://bus.local/rpc/auth/profile/get", json={"q": 1}, timeout=3)


@pytest.mark.asyncio
async def test_client_wraps_transport_errors() -> None:
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("down")
    client = RpcClient("http://bus.local", session=session)

    with pytest.raises(RpcError) as exc_info:
        await client.send_and_read("/auth/relation/get", {})

    assert exc_info.value.route == "/auth/relation/get"


@pytest.mark.asyncio
async def test_client_raises_on_error_reply() -> None:
    client = RpcClient("http://bus.local", session=_session({"error": "forbidden"}))

    with pytest.raises(RpcError, match="forbidden"):
        await client.send_and_read("/auth/profile/create", {})


@pytest.mark.asyncio
async def test_profile_directory_maps_documents() -> None:
    session = _session(
        {
            "data": [
                {
                    "_id": "p1",
                    "person": {"emails": [{"email": "a@x.com"}]},
                    "company": {"emails": [{"email": "info@x.com"}], "mailInChat": {"alias": ["sales"]}},
                }
            ]
        },
        {"data": {"_id": "p2", "person": {"emails": [{"email": "new@x.com"}]}}},
    )
    directory = RpcProfileDirectory(RpcClient("http://bus.local", session=session))

    found = await directory.find(ProfileQuery(aliases=("sales",)))
    created = await directory.create(ProfileDraft(emails=("new@x.com",)))

    assert found[0].id == "p1"
    assert found[0].emails == ("a@x.com", "info@x.com")
    assert found[0].mail_chat_aliases == ("sales",)
    assert created.id == "p2"
    create_call = session.post.call_args_list[1]
    assert create_call.kwargs["json"] == {"person.emails": [{"email": "new@x.com"}]}


@pytest.mark.asyncio
async def test_profile_directory_skips_empty_query() -> None:
    session = MagicMock()
    directory = RpcProfileDirectory(RpcClient("http://bus.local", session=session))

    assert await directory.find(ProfileQuery()) == []
    session.post.assert_not_called()


@pytest.mark.asyncio
async def test_relation_store_reads_from_left_profile() -> None:
    session = _session(
        {"data": [{"_id": "r1", "profile": {"_id": "bob"}}, {"_id": "r2", "profile": {}}]},
        {"data": {"_id": "r3"}},
    )
    store = RpcRelationStore(RpcClient("http://bus.local", session=session))

    relations = await store.list_for_profile("alice")
    created = await store.create("alice", "carol")

    assert [(r.left_profile_id, r.right_profile_id, r.id) for r in relations] == [("alice", "bob", "r1")]
    assert created.id == "r3"
    first_call, second_call = session.post.call_args_list
    assert first_call.kwargs["json"] == {"profileId": "alice", "managerId": ""}
    assert second_call.kwargs["json"] == {"leftProfileId": "alice", "rightProfileId": "carol"}


@pytest.mark.asyncio
async def test_chat_store_sends_message_payload() -> None:
    session = _session({"data": {"_id": "msg-1"}})
    store = RpcChatStore(RpcClient("http://bus.local", session=session))

    stored = await store.create_message(ChatMessage("alice", "bob", {"messageId": "m1"}))

    assert stored == {"_id": "msg-1"}
    args, kwargs = session.post.call_args
    assert args[0] == "http://bus.local/chat/message/mailInChat/create"
    assert kwargs["json"] == {"fromProfileId": "alice", "toProfileId": "bob", "data": {"messageId": "m1"}}
