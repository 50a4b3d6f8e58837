from functools import lru_cache
from typing import Optional
from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session

from lumachor.auth.permissions import can_read_chat
from lumachor.auth.session import get_optional_user
from lumachor.config import Settings, get_settings
from lumachor.db import get_db
from lumachor.errors import ForbiddenError, NotFoundError, UnauthorizedError
from lumachor.models.chat import Chat
from lumachor.models.context import Context, PublicContext
from lumachor.schemas.user import AuthenticatedUser
from lumachor.services.chat_service import ChatService
from lumachor.services.context_service import ContextService
from lumachor.services.public_context_service import PublicContextService
from lumachor.workers.llm import LLMRunner, build_llm_runner_from_env


@lru_cache(maxsize=1)
def _cached_llm_runner() -> LLMRunner:
    return build_llm_runner_from_env()


def get_llm_runner() -> LLMRunner:
    """FastAPI dependency for the process-wide LLM runner (overridden in tests)."""
    return _cached_llm_runner()


def get_app_settings() -> Settings:
    return get_settings()


def get_context_by_id(
    context_id: UUID,
    db: Session = Depends(get_db),
) -> Context:
    """FastAPI dependency to get a context by ID."""
    context = ContextService(db).get_context(context_id)
    if context is None:
        raise NotFoundError("Context not found")
    return context


def get_public_context_by_id(
    public_id: UUID,
    db: Session = Depends(get_db),
) -> PublicContext:
    """FastAPI dependency to get a public listing by ID."""
    listing = PublicContextService(db).get_public_context(public_id)
    if listing is None:
        raise NotFoundError("Public context not found")
    return listing


def get_readable_chat(
    chat_id: UUID,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> Chat:
    """A chat the caller may read: their own, or any public chat."""
    chat = ChatService(db).get_chat(chat_id)
    if chat is None:
        raise NotFoundError("Chat not found")
    if not can_read_chat(chat, user.id if user else None):
        if user is None:
            raise UnauthorizedError()
        raise ForbiddenError("This chat belongs to another user.")
    return chat
