"""Command running one chat turn: quota, history, context merge, streamed reply."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import AsyncIterator, List, Optional, Set
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lumachor.auth.permissions import can_mutate
from lumachor.config import Settings
from lumachor.constants.chat_models import ChatModelId
from lumachor.constants.default_system_prompt import DefaultSystemPrompt
from lumachor.core.resumable_stream import ResumableStreamClient
from lumachor.errors import ForbiddenError, RateLimitedError
from lumachor.models.message import Message
from lumachor.schemas.chat import ChatMessage, ChatRequest
from lumachor.schemas.user import AuthenticatedUser
from lumachor.services.chat_service import ChatService
from lumachor.services.context_merge_service import (
    ContextMergeService,
    MergeableContext,
)
from lumachor.services.context_service import ContextService
from lumachor.services.message_service import MessageService
from lumachor.services.stream_service import StreamService
from lumachor.utils.db.db_session_helper import db_session
from lumachor.utils.rate_limit import check_daily_message_quota
from lumachor.utils.sse import (
    DONE_FRAME,
    error_event,
    finish_event,
    format_sse,
    start_event,
    text_delta_event,
)
from lumachor.workers.llm import TITLE_MAX_CHARS, LLMRunner

DEFAULT_TITLE = "New chat"

# Strong references to reply tasks still running after their client left.
_running_turns: Set[asyncio.Task] = set()


class TurnState(StrEnum):
    AUTHENTICATING = "authenticating"
    QUOTA_CHECKING = "quota_checking"
    LOADING_HISTORY = "loading_history"
    MERGING_CONTEXT = "merging_context"
    STREAMING = "streaming"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PreparedTurn:
    chat_id: UUID
    stream_id: UUID
    model_id: ChatModelId
    system_prompt: str
    messages: List[ChatMessage]


def to_chat_message(message: Message) -> ChatMessage:
    return ChatMessage(id=message.id, role=message.role, parts=list(message.parts or []))


class ChatTurnCommand:
    """
    One POST /chat request.

    prepare() does every check and write that must happen before the
    response starts, raising typed errors; stream() then yields SSE frames
    and persists the assistant reply when the model is done.
    """

    def __init__(
        self,
        db: Session,
        runner: LLMRunner,
        settings: Settings,
        stream_client: Optional[ResumableStreamClient] = None,
    ) -> None:
        self.db = db
        self.runner = runner
        self.settings = settings
        self.stream_client = stream_client
        self.logger = logging.getLogger(__name__)
        self.state = TurnState.AUTHENTICATING
        self.chat_id: Optional[UUID] = None
        self.task: Optional[asyncio.Task] = None

    def _transition(self, state: TurnState) -> None:
        self.logger.debug("Chat turn %s: %s -> %s", self.chat_id, self.state, state)
        self.state = state

    def _fail(self, error: Exception) -> Exception:
        self._transition(TurnState.FAILED)
        return error

    async def prepare(self, request: ChatRequest, user: AuthenticatedUser) -> PreparedTurn:
        self.chat_id = request.id

        self._transition(TurnState.QUOTA_CHECKING)
        if not check_daily_message_quota(self.db, user, self.settings):
            raise self._fail(RateLimitedError())

        self._transition(TurnState.LOADING_HISTORY)
        chat_svc = ChatService(self.db)
        message_svc = MessageService(self.db)
        user_message = request.message.to_chat_message()

        chat = chat_svc.get_chat(request.id)
        if chat is not None and not can_mutate(chat, user.id):
            raise self._fail(ForbiddenError("This chat belongs to another user."))
        if chat is None:
            title = await self._title_for(user_message)
            chat = chat_svc.create_chat(
                request.id,
                user.id,
                title,
                visibility=request.selected_visibility_type,
            )

        history = [to_chat_message(m) for m in message_svc.get_messages(chat.id)]
        message_svc.create_message(chat.id, user_message)
        stream = StreamService(self.db).create_stream_id(chat.id)

        self._transition(TurnState.MERGING_CONTEXT)
        context_svc = ContextService(self.db)
        rows = context_svc.get_contexts_by_ids(request.context_ids)
        merged = ContextMergeService(self.settings.context_block_max_chars).merge(
            [MergeableContext.from_row(row) for row in rows],
            DefaultSystemPrompt.for_model(request.selected_chat_model),
        )
        if rows:
            context_svc.link_contexts_to_chat(chat.id, [row.id for row in rows])

        messages = [*history, user_message]
        if merged.inline_message is not None:
            messages.insert(0, merged.inline_message)

        return PreparedTurn(
            chat_id=chat.id,
            stream_id=stream.id,
            model_id=request.selected_chat_model,
            system_prompt=merged.system_prompt,
            messages=messages,
        )

    async def _title_for(self, message: ChatMessage) -> str:
        try:
            return await self.runner.generate_title(message)
        except Exception as e:
            self.logger.warning("Title generation failed, using message text: %s", e)
            return message.text[:TITLE_MAX_CHARS] or DEFAULT_TITLE

    def _frame(self, stream_id: UUID, frame: str) -> str:
        if self.stream_client is not None:
            self.stream_client.safe_append(str(stream_id), frame)
        return frame

    async def stream(self, turn: PreparedTurn) -> AsyncIterator[str]:
        """
        Relay the model reply as SSE frames; always ends with finish and [DONE].

        The reply is produced by a background task, so a client that
        disconnects does not stop generation: the task keeps buffering frames
        for resume and still persists the assistant message.
        """
        queue: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self.task = asyncio.create_task(self._produce(turn, queue))
        _running_turns.add(self.task)
        self.task.add_done_callback(_running_turns.discard)

        while True:
            frame = await queue.get()
            if frame is None:
                break
            yield frame
        await self.task

    async def _produce(self, turn: PreparedTurn, queue: asyncio.Queue) -> None:
        def emit(frame: str) -> None:
            queue.put_nowait(self._frame(turn.stream_id, frame))

        self._transition(TurnState.STREAMING)
        message_id = str(uuid4())
        produced: List[str] = []
        failed = False
        try:
            emit(format_sse(start_event(message_id)))
            async for delta in self.runner.stream_reply(
                turn.model_id, turn.system_prompt, turn.messages
            ):
                produced.append(delta)
                emit(format_sse(text_delta_event(message_id, delta)))
        except Exception:
            failed = True
            self.logger.exception("Chat turn %s failed while streaming", turn.chat_id)
            emit(format_sse(error_event()))
        finally:
            try:
                self._persist_reply(turn.chat_id, message_id, "".join(produced))
                self._transition(TurnState.FAILED if failed else TurnState.DONE)
                emit(format_sse(finish_event()))
                emit(DONE_FRAME)
                if self.stream_client is not None:
                    self.stream_client.safe_mark_done(str(turn.stream_id))
            finally:
                queue.put_nowait(None)

    def _persist_reply(self, chat_id: UUID, message_id: str, text: str) -> None:
        """Store the assistant text, if any, in its own session."""
        self._transition(TurnState.PERSISTING)
        if not text:
            return
        reply = ChatMessage(
            id=UUID(message_id),
            role="assistant",
            parts=[{"type": "text", "text": text}],
        )
        try:
            with db_session() as db:
                MessageService(db).create_message(chat_id, reply)
        except SQLAlchemyError as e:
            self.logger.error("Failed to persist assistant reply for chat %s: %s", chat_id, e)
