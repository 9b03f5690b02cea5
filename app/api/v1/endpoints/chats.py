"""
Chat API Endpoints

All routes are scoped to the caller. A chat owned by someone else answers
404 exactly like a chat that does not exist.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AuthenticatedUser, get_current_user
from app.core.database import get_session
from app.schemas.chat import (
    CHAT_ID_PATTERN,
    ApiResponse,
    ChatCreate,
    ChatResponse,
    ChatUpdate,
    PaginatedResponse,
    SaveElementsRequest,
)
from app.services.chat_service import ChatService

router = APIRouter()

ChatId = Annotated[str, Path(alias="id", pattern=CHAT_ID_PATTERN, description="24 hex character chat id")]


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")


@router.post(
    "",
    response_model=ApiResponse[ChatResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_chat(
    chat_data: ChatCreate,
    session: AsyncSession = Depends(get_session),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    chat = await ChatService.create_chat(
        session, current_user.user_id, chat_data.title, chat_data.elements
    )
    return ApiResponse(
        success=True,
        data=ChatResponse.model_validate(chat),
        message="Chat created successfully",
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[ChatResponse]],
    response_model_exclude_none=True,
)
async def list_chats(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=200, description="Case-insensitive title filter"),
    session: AsyncSession = Depends(get_session),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """List the caller's chats, newest first."""
    chats, total = await ChatService.list_chats(
        session, current_user.user_id, page=page, limit=limit, search=search
    )
    return ApiResponse(
        success=True,
        data=PaginatedResponse[ChatResponse](
            data=[ChatResponse.model_validate(chat) for chat in chats],
            total=total,
            page=page,
            limit=limit,
            total_pages=ChatService.total_pages(total, limit),
        ),
    )


@router.get("/{id}", response_model=ApiResponse[ChatResponse], response_model_exclude_none=True)
async def get_chat(
    chat_id: ChatId,
    session: AsyncSession = Depends(get_session),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    chat = await ChatService.get_chat(session, current_user.user_id, chat_id)
    if not chat:
        raise _not_found()
    return ApiResponse(success=True, data=ChatResponse.model_validate(chat))


@router.put("/{id}", response_model=ApiResponse[ChatResponse], response_model_exclude_none=True)
async def update_chat(
    chat_id: ChatId,
    chat_data: ChatUpdate,
    session: AsyncSession = Depends(get_session),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Rename a chat and/or replace its elements."""
    chat = await ChatService.update_chat(
        session,
        current_user.user_id,
        chat_id,
        title=chat_data.title,
        elements=chat_data.elements,
    )
    if not chat:
        raise _not_found()
    return ApiResponse(
        success=True,
        data=ChatResponse.model_validate(chat),
        message="Chat updated successfully",
    )


@router.delete("/{id}", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_chat(
    chat_id: ChatId,
    session: AsyncSession = Depends(get_session),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    deleted = await ChatService.delete_chat(session, current_user.user_id, chat_id)
    if not deleted:
        raise _not_found()
    return ApiResponse(success=True, message="Chat deleted successfully")


@router.post(
    "/{id}/elements",
    response_model=ApiResponse[ChatResponse],
    response_model_exclude_none=True,
)
async def save_elements(
    chat_id: ChatId,
    payload: SaveElementsRequest,
    session: AsyncSession = Depends(get_session),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Overwrite the chat's element list (auto-save)."""
    chat = await ChatService.save_elements(
        session, current_user.user_id, chat_id, payload.elements
    )
    if not chat:
        raise _not_found()
    return ApiResponse(
        success=True,
        data=ChatResponse.model_validate(chat),
        message="Elements saved successfully",
    )
