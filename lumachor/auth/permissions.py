"""Ownership checks applied before every mutation."""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from lumachor.errors import ForbiddenError


def owner_of(resource: Any) -> Optional[UUID]:
    """Chats are owned through user_id, contexts and listings through created_by."""
    owner = getattr(resource, "user_id", None)
    if owner is None:
        owner = getattr(resource, "created_by", None)
    return owner


def can_mutate(resource: Any, actor_id: UUID) -> bool:
    owner = owner_of(resource)
    return owner is not None and owner == actor_id


def can_read_chat(chat: Any, actor_id: Optional[UUID]) -> bool:
    if chat.visibility == "public":
        return True
    return actor_id is not None and can_mutate(chat, actor_id)


def ensure_can_mutate(resource: Any, actor_id: UUID, message: Optional[str] = None) -> None:
    if not can_mutate(resource, actor_id):
        raise ForbiddenError(message)
