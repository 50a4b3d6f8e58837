"""Chat model: one row per conversation, owned by its creator."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from lumachor.db import Base
from lumachor.models.mixins import TimestampMixin


class Chat(Base, TimestampMixin):
    """Conversation bucket. Deleting it removes its messages, stream ids and context links."""

    __tablename__ = "chats"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(Text, nullable=False)
    visibility = Column(String(16), nullable=False, default="private")  # 'private' | 'public'

    messages = relationship(
        "Message",
        back_populates="chat",
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )
    stream_ids = relationship(
        "StreamId",
        back_populates="chat",
        cascade="all, delete-orphan",
    )
    context_links = relationship(
        "ChatContext",
        back_populates="chat",
        cascade="all, delete-orphan",
    )
