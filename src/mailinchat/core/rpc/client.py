from __future__ import annotations

import asyncio
from typing import Any

import requests

from mailinchat.core.errors import RpcError


class RpcClient:
    """Request/reply calls to the platform services over HTTP.

    ``route`` is the queue name the services consume (``/auth/profile/get``);
    the reply envelope is ``{"data": ...}`` and only ``data`` is returned.
    """

    def __init__(self, base_url: str, timeout_sec: float = 10.0, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self.session = session or requests.Session()

    def _send(self, route: str, payload: dict[str, Any]) -> Any:
        url = f"{self.base_url}/{route.lstrip('/')}"
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout_sec)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            raise RpcError(route, f"{exc.__class__.__name__}: {exc}") from exc
        except ValueError as exc:
            raise RpcError(route, "reply is not JSON") from exc

        if not isinstance(body, dict):
            raise RpcError(route, "reply is not an object")
        if body.get("error"):
            raise RpcError(route, str(body["error"]))
        return body.get("data")

    async def send_and_read(self, route: str, payload: dict[str, Any]) -> Any:
        return await asyncio.to_thread(self._send, route, payload)

    def close(self) -> None:
        self.session.close()
