"""Chat search API."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from lumachor.auth.session import get_current_user
from lumachor.db import get_db
from lumachor.schemas.chat import ChatSearchResponse, ChatSearchResult
from lumachor.schemas.user import AuthenticatedUser
from lumachor.services.chat_service import SEARCH_DEFAULT_LIMIT, ChatService

router = APIRouter(prefix="/chat-search", tags=["chat"])


@router.get("", response_model=ChatSearchResponse)
def search_chats(
    q: str = Query(""),
    limit: Optional[int] = Query(SEARCH_DEFAULT_LIMIT),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ChatSearchResponse:
    """Search the caller's chats by title and message content."""
    hits = ChatService(db).search_chats(user.id, q, limit=limit)
    return ChatSearchResponse(
        results=[
            ChatSearchResult(
                id=chat.id,
                title=chat.title,
                created_at=chat.created_at,
                last_message_at=last_message_at or chat.created_at,
            )
            for chat, last_message_at in hits
        ]
    )
