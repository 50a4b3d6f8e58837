"""Message model: append-only turn content, stored as ordered parts."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import relationship

from lumachor.db import Base
from lumachor.models.mixins import JSONType, utcnow


def parts_text(parts) -> str:
    """Concatenated text of the text parts in a parts list."""
    return "".join(
        part.get("text", "")
        for part in (parts or [])
        if isinstance(part, dict) and part.get("type") == "text"
    )


def _search_text_default(context) -> str:
    return parts_text(context.get_current_parameters().get("parts"))


class Message(Base):
    """One row per message; role is 'user', 'assistant' or 'system'."""

    __tablename__ = "messages"

    __table_args__ = (
        Index("ix_messages_chat_id_created_at", "chat_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chat_id = Column(
        Uuid,
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
    )
    role = Column(String(16), nullable=False)
    parts = Column(JSONType, nullable=False, default=list)
    attachments = Column(JSONType, nullable=False, default=list)
    # Text parts only, so search never matches part keys or attachment urls.
    search_text = Column(Text, nullable=False, default=_search_text_default)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    chat = relationship("Chat", back_populates="messages")

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return parts_text(self.parts)
