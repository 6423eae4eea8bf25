from __future__ import annotations


class MailInChatError(RuntimeError):
    """Base error of the mail-in-chat bridge."""


class MailParseError(MailInChatError):
    """Raw message could not be turned into a chat envelope."""


class CollaboratorError(MailInChatError):
    """An external collaborator (provider, RPC, cache) failed."""


class MailProviderError(CollaboratorError):
    pass


class RpcError(CollaboratorError):
    def __init__(self, route: str, message: str):
        super().__init__(f"{route}: {message}")
        self.route = route


class CacheError(CollaboratorError):
    pass
