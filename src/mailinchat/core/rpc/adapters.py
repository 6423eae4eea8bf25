from __future__ import annotations

from typing import Any

from mailinchat.core.errors import RpcError
from mailinchat.core.models import ChatMessage, Profile, ProfileDraft, ProfileQuery, Relation
from mailinchat.core.protocols import ChatStore, ProfileDirectory, RelationStore

from .client import RpcClient

PROFILE_GET = "/auth/profile/get"
PROFILE_CREATE = "/auth/profile/create"
RELATION_GET = "/auth/relation/get"
RELATION_CREATE = "/auth/relation/create"
CHAT_MESSAGE_CREATE = "/chat/message/mailInChat/create"


def _emails(document: dict[str, Any], section: str) -> list[str]:
    entries = (document.get(section) or {}).get("emails") or []
    return [entry["email"] for entry in entries if entry.get("email")]


def profile_from_document(document: dict[str, Any]) -> Profile:
    aliases = ((document.get("company") or {}).get("mailInChat") or {}).get("alias") or []
    if isinstance(aliases, str):
        aliases = [aliases]
    return Profile(
        id=str(document["_id"]),
        emails=tuple(_emails(document, "person") + _emails(document, "company")),
        mail_chat_aliases=tuple(aliases),
    )


def profile_query_document(query: ProfileQuery) -> dict[str, Any]:
    clauses: list[dict[str, Any]] = []
    for email in query.emails:
        clauses.append({"person.emails.email": email})
        clauses.append({"company.emails.email": email})
    if query.aliases:
        clauses.append({"company.mailInChat.alias": list(query.aliases)})
    if len(clauses) == 1:
        return clauses[0]
    return {"$or": clauses}


class RpcProfileDirectory(ProfileDirectory):
    def __init__(self, client: RpcClient):
        self.client = client

    async def find(self, query: ProfileQuery) -> list[Profile]:
        if not query.emails and not query.aliases:
            return []
        documents = await self.client.send_and_read(PROFILE_GET, profile_query_document(query))
        return [profile_from_document(document) for document in documents or []]

    async def create(self, draft: ProfileDraft) -> Profile:
        document = await self.client.send_and_read(
            PROFILE_CREATE,
            {"person.emails": [{"email": email} for email in draft.emails]},
        )
        if not document or "_id" not in document:
            raise RpcError(PROFILE_CREATE, "reply carries no profile id")
        return profile_from_document(document)


class RpcRelationStore(RelationStore):
    def __init__(self, client: RpcClient):
        self.client = client

    async def list_for_profile(self, profile_id: str) -> list[Relation]:
        documents = await self.client.send_and_read(RELATION_GET, {"profileId": profile_id, "managerId": ""})
        relations = []
        for document in documents or []:
            other = (document.get("profile") or {}).get("_id")
            if other is None:
                continue
            relations.append(Relation(left_profile_id=profile_id, right_profile_id=str(other), id=document.get("_id")))
        return relations

    async def create(self, left_profile_id: str, right_profile_id: str) -> Relation:
        document = await self.client.send_and_read(
            RELATION_CREATE,
            {"leftProfileId": left_profile_id, "rightProfileId": right_profile_id},
        )
        relation_id = document.get("_id") if isinstance(document, dict) else None
        return Relation(left_profile_id=left_profile_id, right_profile_id=right_profile_id, id=relation_id)


class RpcChatStore(ChatStore):
    def __init__(self, client: RpcClient):
        self.client = client

    async def create_message(self, message: ChatMessage) -> dict[str, Any]:
        stored = await self.client.send_and_read(CHAT_MESSAGE_CREATE, message.to_payload())
        return stored if isinstance(stored, dict) else {"result": stored}
