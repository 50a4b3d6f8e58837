"""Stream id model: one row per chat turn, used to resume a streamed reply."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from lumachor.db import Base
from lumachor.models.mixins import utcnow


class StreamId(Base):
    __tablename__ = "stream_ids"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chat_id = Column(
        Uuid,
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)

    chat = relationship("Chat", back_populates="stream_ids")
