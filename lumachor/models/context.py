"""Context library models: contexts, stars, public listings and chat links."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from lumachor.db import Base
from lumachor.models.mixins import JSONType, utcnow


class Context(Base):
    """Reusable context template. content is a JSON document or free text."""

    __tablename__ = "contexts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    tags = Column(JSONType, nullable=False, default=list)
    description = Column(Text, nullable=True)
    created_by = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    stars = relationship(
        "ContextStar",
        back_populates="context",
        cascade="all, delete-orphan",
    )
    public_listing = relationship(
        "PublicContext",
        back_populates="context",
        cascade="all, delete-orphan",
        uselist=False,
    )
    chat_links = relationship(
        "ChatContext",
        back_populates="context",
        cascade="all, delete-orphan",
    )


class ContextStar(Base):
    """A user's favorite marking; at most one row per (user, context)."""

    __tablename__ = "context_stars"

    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    context_id = Column(
        Uuid, ForeignKey("contexts.id", ondelete="CASCADE"), primary_key=True
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)

    context = relationship("Context", back_populates="stars")


class PublicContext(Base):
    """Listing of a context in the shared library; at most one per context."""

    __tablename__ = "public_contexts"

    __table_args__ = (
        UniqueConstraint("context_id", name="uq_public_contexts_context_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    context_id = Column(
        Uuid, ForeignKey("contexts.id", ondelete="CASCADE"), nullable=False
    )
    created_by = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    context = relationship("Context", back_populates="public_listing")


class ChatContext(Base):
    """Audit trail of contexts applied to a chat."""

    __tablename__ = "chat_contexts"

    chat_id = Column(
        Uuid, ForeignKey("chats.id", ondelete="CASCADE"), primary_key=True
    )
    context_id = Column(
        Uuid, ForeignKey("contexts.id", ondelete="CASCADE"), primary_key=True
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)

    chat = relationship("Chat", back_populates="context_links")
    context = relationship("Context", back_populates="chat_links")
