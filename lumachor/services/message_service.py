"""Message persistence, history reads and the rolling quota count."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from lumachor.models.chat import Chat
from lumachor.models.message import Message
from lumachor.schemas.chat import ChatMessage


class MessageService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create_message(
        self,
        chat_id: UUID,
        message: ChatMessage,
        attachments: Optional[List[Any]] = None,
        created_at: Optional[datetime] = None,
    ) -> Message:
        msg = Message(
            id=message.id,
            chat_id=chat_id,
            role=message.role,
            parts=message.parts,
            search_text=message.text,
            attachments=attachments or [],
            created_at=created_at or datetime.now(timezone.utc),
        )
        self.db.add(msg)
        self.db.commit()
        self.db.refresh(msg)
        return msg

    def get_messages(self, chat_id: UUID) -> List[Message]:
        """All messages of a chat in creation order."""
        return self.get_messages_query(chat_id).all()

    def get_messages_query(self, chat_id: UUID) -> Query[Message]:
        return (
            self.db.query(Message)
            .filter(Message.chat_id == chat_id)
            .order_by(Message.created_at)
        )

    def count_user_messages_since(self, user_id: UUID, hours: int = 24) -> int:
        """Count user-role messages across the user's chats in the trailing window."""
        cutoff = datetime.now(timezone.utc) - timedelta(hours=hours)
        return (
            self.db.query(func.count(Message.id))
            .join(Chat, Chat.id == Message.chat_id)
            .filter(
                Chat.user_id == user_id,
                Message.role == "user",
                Message.created_at >= cutoff,
            )
            .scalar()
            or 0
        )
