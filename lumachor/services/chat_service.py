"""Chat CRUD, history listing and search."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Query, Session

from lumachor.models.chat import Chat
from lumachor.models.message import Message
from lumachor.utils.db.filtering import LIKE_ESCAPE, like_pattern

SEARCH_DEFAULT_LIMIT = 25
SEARCH_MAX_LIMIT = 100


def clamp_search_limit(limit: Optional[int]) -> int:
    if limit is None:
        return SEARCH_DEFAULT_LIMIT
    return min(max(int(limit), 1), SEARCH_MAX_LIMIT)


class ChatService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_chat(self, chat_id: UUID) -> Optional[Chat]:
        return self.db.query(Chat).filter(Chat.id == chat_id).first()

    def create_chat(
        self,
        chat_id: UUID,
        user_id: UUID,
        title: str,
        visibility: str = "private",
    ) -> Chat:
        chat = Chat(id=chat_id, user_id=user_id, title=title, visibility=visibility)
        self.db.add(chat)
        self.db.commit()
        self.db.refresh(chat)
        return chat

    def delete_chat(self, chat: Chat) -> Chat:
        """Delete a chat with its messages, stream ids and context links."""
        self.db.delete(chat)
        self.db.commit()
        return chat

    def get_chats_query(self, user_id: UUID) -> Query[Chat]:
        """Get a query for a user's chats, newest first (for pagination)."""
        return (
            self.db.query(Chat)
            .filter(Chat.user_id == user_id)
            .order_by(Chat.created_at.desc())
        )

    def search_chats(
        self,
        user_id: UUID,
        query: str,
        limit: Optional[int] = SEARCH_DEFAULT_LIMIT,
    ) -> List[Tuple[Chat, Optional[datetime]]]:
        """
        Case-insensitive substring search over the user's chat titles and
        message content, most recently active first.

        An empty (or blank) query returns no results rather than every chat.
        Returns (chat, last_message_at) pairs; last_message_at is None for a
        chat without messages.
        """
        term = (query or "").strip()
        if not term:
            return []
        pattern = like_pattern(term)

        last_message = (
            select(
                Message.chat_id.label("chat_id"),
                func.max(Message.created_at).label("last_message_at"),
            )
            .group_by(Message.chat_id)
            .subquery()
        )
        matching_chat_ids = select(Message.chat_id).where(
            Message.search_text.ilike(pattern, escape=LIKE_ESCAPE)
        )
        activity = func.coalesce(last_message.c.last_message_at, Chat.created_at)

        rows = (
            self.db.query(Chat, last_message.c.last_message_at)
            .outerjoin(last_message, last_message.c.chat_id == Chat.id)
            .filter(Chat.user_id == user_id)
            .filter(
                or_(
                    Chat.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Chat.id.in_(matching_chat_ids),
                )
            )
            .order_by(activity.desc())
            .limit(clamp_search_limit(limit))
            .all()
        )
        return [(chat, last_message_at) for chat, last_message_at in rows]
