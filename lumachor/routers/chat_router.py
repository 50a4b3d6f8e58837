"""Chat API: streamed turns, resume, deletion and history."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import StreamingResponse
from fastapi_pagination import Page, Params
from fastapi_pagination.ext.sqlalchemy import paginate
from sqlalchemy.orm import Session

from lumachor.auth.permissions import ensure_can_mutate
from lumachor.auth.session import get_current_user
from lumachor.commands.chat_turn_command import ChatTurnCommand
from lumachor.config import Settings
from lumachor.core.app_state import get_stream_client
from lumachor.core.resumable_stream import ResumableStreamClient
from lumachor.db import get_db
from lumachor.errors import NotFoundError, ValidationError
from lumachor.infra.logging_config import get_logger
from lumachor.models.chat import Chat
from lumachor.routers.utils.dependencies import (
    get_app_settings,
    get_llm_runner,
    get_readable_chat,
)
from lumachor.schemas.chat import ChatRead, ChatRequest, MessageRead
from lumachor.schemas.user import AuthenticatedUser
from lumachor.services.chat_service import ChatService
from lumachor.services.message_service import MessageService
from lumachor.services.stream_service import StreamService
from lumachor.utils.sse import SSE_HEADERS
from lumachor.workers.llm import LLMRunner

logger = get_logger("chat")

router = APIRouter(
    prefix="",
    tags=["chat"],
    responses={404: {"description": "Not found"}},
)


@router.post("/chat")
async def post_chat(
    body: ChatRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    runner: LLMRunner = Depends(get_llm_runner),
    settings: Settings = Depends(get_app_settings),
    stream_client: Optional[ResumableStreamClient] = Depends(get_stream_client),
) -> StreamingResponse:
    """Run one chat turn and stream the reply as server-sent events."""
    command = ChatTurnCommand(db, runner, settings, stream_client=stream_client)
    turn = await command.prepare(body, user)
    return StreamingResponse(
        command.stream(turn),
        media_type="text/event-stream",
        headers={**SSE_HEADERS, "X-Stream-Id": str(turn.stream_id)},
    )


@router.delete("/chat", response_model=ChatRead)
def delete_chat(
    id: Optional[UUID] = Query(None),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Chat:
    """Delete one of the caller's chats with everything attached to it."""
    if id is None:
        raise ValidationError("Parameter id is required.")
    svc = ChatService(db)
    chat = svc.get_chat(id)
    if chat is None:
        raise NotFoundError("Chat not found")
    ensure_can_mutate(chat, user.id, "This chat belongs to another user.")
    deleted = ChatRead.model_validate(chat)
    svc.delete_chat(chat)
    logger.info("Deleted chat %s for user %s", id, user.id)
    return deleted


@router.get("/chat/{chat_id}/stream")
def resume_chat_stream(
    chat: Chat = Depends(get_readable_chat),
    db: Session = Depends(get_db),
    stream_client: Optional[ResumableStreamClient] = Depends(get_stream_client),
) -> Response:
    """
    Reattach to the chat's latest stream: buffered frames first, then live
    frames until the turn finishes. 204 when there is nothing to resume.
    """
    if stream_client is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    latest = StreamService(db).get_latest_stream_id(chat.id)
    if latest is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    stream_id = str(latest.id)
    if not stream_client.has_frames(stream_id):
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return StreamingResponse(
        stream_client.follow(stream_id),
        media_type="text/event-stream",
        headers={**SSE_HEADERS, "X-Stream-Id": stream_id},
    )


@router.get("/chat/{chat_id}/messages", response_model=Page[MessageRead])
def list_chat_messages(
    params: Params = Depends(),
    chat: Chat = Depends(get_readable_chat),
    db: Session = Depends(get_db),
) -> Page[MessageRead]:
    """List messages for a chat with pagination, oldest first."""
    query = MessageService(db).get_messages_query(chat.id)
    return paginate(query, params=params)


@router.get("/history", response_model=Page[ChatRead])
def list_history(
    params: Params = Depends(),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Page[ChatRead]:
    """List the caller's chats, newest first."""
    query = ChatService(db).get_chats_query(user.id)
    return paginate(query, params=params)
