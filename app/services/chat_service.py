"""
Chat persistence service.

Every query is filtered by the owner's user id, so a chat that belongs to
someone else is indistinguishable from one that does not exist.
"""
import logging
import math
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.chat import Chat
from app.schemas.element import ElementBase, dump_elements

logger = logging.getLogger(__name__)


class ChatService:
    """CRUD over a user's chats."""

    @staticmethod
    async def create_chat(
        session: AsyncSession,
        user_id: str,
        title: str,
        elements: Sequence[ElementBase] = (),
    ) -> Chat:
        chat = Chat(user_id=user_id, title=title, elements=dump_elements(elements))
        session.add(chat)
        await session.commit()
        await session.refresh(chat)
        logger.info(f"Created chat {chat.id} for {user_id}")
        return chat

    @staticmethod
    async def list_chats(
        session: AsyncSession,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
    ) -> Tuple[List[Chat], int]:
        """
        One page of the user's chats, newest first.

        Returns:
            (chats on the page, total matching chats)
        """
        conditions = [Chat.user_id == user_id]
        if search:
            conditions.append(
                func.lower(Chat.title).contains(search.lower(), autoescape=True)
            )

        total = await session.scalar(
            select(func.count()).select_from(Chat).where(*conditions)
        )

        result = await session.execute(
            select(Chat)
            .where(*conditions)
            .order_by(Chat.created_at.desc(), Chat.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def get_chat(session: AsyncSession, user_id: str, chat_id: str) -> Optional[Chat]:
        result = await session.execute(
            select(Chat).where(Chat.id == chat_id, Chat.user_id == user_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def update_chat(
        session: AsyncSession,
        user_id: str,
        chat_id: str,
        title: Optional[str] = None,
        elements: Optional[Sequence[ElementBase]] = None,
    ) -> Optional[Chat]:
        """Apply the fields that were given. Returns None when the chat is not the user's."""
        chat = await ChatService.get_chat(session, user_id, chat_id)
        if not chat:
            return None

        if title is not None:
            chat.title = title
        if elements is not None:
            chat.elements = dump_elements(elements)

        await session.commit()
        await session.refresh(chat)
        return chat

    @staticmethod
    async def save_elements(
        session: AsyncSession,
        user_id: str,
        chat_id: str,
        elements: Sequence[ElementBase],
    ) -> Optional[Chat]:
        """Overwrite the stored document. Last write wins."""
        chat = await ChatService.get_chat(session, user_id, chat_id)
        if not chat:
            return None

        chat.elements = dump_elements(elements)
        await session.commit()
        await session.refresh(chat)
        logger.debug(f"Saved {len(chat.elements)} elements to chat {chat_id}")
        return chat

    @staticmethod
    async def delete_chat(session: AsyncSession, user_id: str, chat_id: str) -> bool:
        result = await session.execute(
            delete(Chat).where(Chat.id == chat_id, Chat.user_id == user_id)
        )
        await session.commit()
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted chat {chat_id} for {user_id}")
        return deleted

    @staticmethod
    def total_pages(total: int, limit: int) -> int:
        return math.ceil(total / limit) if limit else 0
