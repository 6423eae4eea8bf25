from .adapters import RpcChatStore, RpcProfileDirectory, RpcRelationStore
from .client import RpcClient

__all__ = ["RpcClient", "RpcProfileDirectory", "RpcRelationStore", "RpcChatStore"]
