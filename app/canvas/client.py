"""
HTTP client for the chats API.

Every method returns the server's response envelope as a dict
(``{"success": ..., "data": ..., "error": ..., "message": ...}``). Error
statuses return the server's error envelope; transport failures are folded
into ``{"success": False, "error": "Network error occurred"}``, so callers
only ever branch on ``success``.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

import httpx

from app.schemas.element import ElementBase, dump_elements

logger = logging.getLogger(__name__)

NETWORK_ERROR = "Network error occurred"

TokenProvider = Callable[[], Awaitable[Optional[str]]]


class ChatClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        get_auth_token: Optional[TokenProvider] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.get_auth_token = get_auth_token
        self.timeout = timeout
        self._transport = transport

    async def _token(self) -> Optional[str]:
        if self.get_auth_token is None:
            return None
        try:
            return await self.get_auth_token()
        except Exception as e:
            # Send the request anyway; the server answers 401
            logger.warning(f"Failed to get auth token: {e!r}")
            return None

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        token = await self._token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            async with httpx.AsyncClient(
                base_url=f"{self.base_url}/api",
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, endpoint, json=json, params=params, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"{method} {endpoint} failed: {e!r}")
            return {"success": False, "error": NETWORK_ERROR}

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            return body
        return {
            "success": False,
            "error": f"Unexpected response: {response.status_code} {response.reason_phrase}",
        }

    async def create_chat(self, title: str, elements: Iterable[ElementBase] = ()) -> Dict[str, Any]:
        return await self._request(
            "POST", "/chats", json={"title": title, "elements": dump_elements(elements)}
        )

    async def get_chats(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        return await self._request("GET", "/chats", params=params)

    async def get_chat(self, chat_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/chats/{chat_id}")

    async def update_chat(
        self,
        chat_id: str,
        title: Optional[str] = None,
        elements: Optional[Iterable[ElementBase]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if title is not None:
            payload["title"] = title
        if elements is not None:
            payload["elements"] = dump_elements(elements)
        return await self._request("PUT", f"/chats/{chat_id}", json=payload)

    async def delete_chat(self, chat_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/chats/{chat_id}")

    async def save_elements(self, chat_id: str, elements: Iterable[ElementBase]) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/chats/{chat_id}/elements", json={"elements": dump_elements(elements)}
        )

    async def analyze_code(self, code: str, language: str) -> Dict[str, Any]:
        return await self._request("POST", "/analyze", json={"code": code, "language": language})
