"""
Chat workspace: the list of a user's chats, the open chat, and the canvas
engine showing it.
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from app.canvas.client import ChatClient
from app.canvas.engine import ANALYSIS_FAILED, CanvasEngine
from app.schemas.element import parse_elements
from app.services.code_analyzer import CodeAnalysis

logger = logging.getLogger(__name__)

ERROR_DISPLAY_SECONDS = 5.0


class ClientAnalyzer:
    """Runs code analysis through the API instead of calling the provider directly."""

    def __init__(self, client: ChatClient):
        self.client = client

    async def analyze(self, code: str, language: str) -> CodeAnalysis:
        response = await self.client.analyze_code(code, language)
        data = response.get("data") if response.get("success") else None
        if not isinstance(data, dict):
            logger.warning(f"Code analysis failed: {response.get('error')}")
            return ANALYSIS_FAILED
        return CodeAnalysis(output=data.get("output", ""), explanation=data.get("explanation", ""))


class ChatWorkspace:
    """
    Mirrors the server's chats for one signed-in user.

    Failures never raise; they land in ``error``, which reads as None again
    ``ERROR_DISPLAY_SECONDS`` after it was set.
    """

    def __init__(
        self,
        client: ChatClient,
        engine: Optional[CanvasEngine] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.engine = engine or CanvasEngine()
        self.chats: List[Dict[str, Any]] = []
        self.current_chat: Optional[Dict[str, Any]] = None
        self.loading = False
        self._clock = clock
        self._error: Optional[str] = None
        self._error_at = 0.0

    @property
    def error(self) -> Optional[str]:
        if self._error is not None and self._clock() - self._error_at >= ERROR_DISPLAY_SECONDS:
            self._error = None
        return self._error

    def _fail(self, response: Dict[str, Any], fallback: str) -> None:
        self._error = response.get("error") or fallback
        self._error_at = self._clock()
        logger.warning(f"{fallback}: {self._error}")

    def _replace_chat(self, chat: Dict[str, Any]) -> None:
        self.chats = [chat if existing["id"] == chat["id"] else existing for existing in self.chats]
        if self.current_chat and self.current_chat["id"] == chat["id"]:
            self.current_chat = chat

    def _open(self, chat: Dict[str, Any]) -> bool:
        try:
            elements = parse_elements(chat.get("elements") or [])
        except ValidationError as e:
            logger.error(f"Chat {chat.get('id')} holds invalid elements: {e}")
            self._fail({}, "Failed to load chat")
            return False
        self.current_chat = chat
        self.engine.load(elements)
        return True

    async def load_chats(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> bool:
        self.loading = True
        try:
            response = await self.client.get_chats(page=page, limit=limit, search=search)
        finally:
            self.loading = False

        if not response.get("success") or not response.get("data"):
            self._fail(response, "Failed to load chats")
            return False
        self.chats = list(response["data"]["data"])
        return True

    async def create_chat(self, title: str) -> Optional[Dict[str, Any]]:
        """Create an empty chat, put it first in the list and open it."""
        self.loading = True
        try:
            response = await self.client.create_chat(title)
        finally:
            self.loading = False

        if not response.get("success") or not response.get("data"):
            self._fail(response, "Failed to create chat")
            return None
        chat = response["data"]
        self.chats = [chat] + self.chats
        self._open(chat)
        return chat

    async def select_chat(self, chat_id: str) -> bool:
        """Fetch a chat and show it. Undo history starts empty."""
        self.loading = True
        try:
            response = await self.client.get_chat(chat_id)
        finally:
            self.loading = False

        if not response.get("success") or not response.get("data"):
            self._fail(response, "Failed to load chat")
            return False
        return self._open(response["data"])

    async def rename_chat(self, chat_id: str, title: str) -> bool:
        response = await self.client.update_chat(chat_id, title=title)
        if not response.get("success") or not response.get("data"):
            self._fail(response, "Failed to update chat")
            return False
        self._replace_chat(response["data"])
        return True

    async def delete_chat(self, chat_id: str, confirm: bool = False) -> bool:
        """Delete only after the user confirmed."""
        if not confirm:
            return False

        response = await self.client.delete_chat(chat_id)
        if not response.get("success"):
            self._fail(response, "Failed to delete chat")
            return False

        self.chats = [chat for chat in self.chats if chat["id"] != chat_id]
        if self.current_chat and self.current_chat["id"] == chat_id:
            self.current_chat = None
            self.engine.load([])
        return True

    async def save(self) -> bool:
        """Store the engine's document in the open chat."""
        if self.current_chat is None:
            return False

        response = await self.client.save_elements(self.current_chat["id"], self.engine.elements)
        if not response.get("success") or not response.get("data"):
            self._fail(response, "Failed to save elements")
            return False
        self._replace_chat(response["data"])
        return True

    async def analyze_code(self, element_id: str) -> Optional[CodeAnalysis]:
        return await self.engine.analyze_code(element_id, ClientAnalyzer(self.client))
