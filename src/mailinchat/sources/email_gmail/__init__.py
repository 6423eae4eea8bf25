from .auth import GmailAuthManager
from .source import GmailMailProvider

__all__ = ["GmailAuthManager", "GmailMailProvider"]
