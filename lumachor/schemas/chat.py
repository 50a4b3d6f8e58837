"""Pydantic schemas for chats, messages, chat turns and search."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import Field

from lumachor.constants.chat_models import DEFAULT_CHAT_MODEL, ChatModelId
from lumachor.schemas.base import CamelModel

Visibility = Literal["private", "public"]
MessageRole = Literal["user", "assistant", "system"]

MAX_TEXT_PART_CHARS = 2000


# -----------------------------------------------------------------------------
# Message parts
# -----------------------------------------------------------------------------


class TextPart(CamelModel):
    type: Literal["text"] = "text"
    text: str = Field(..., min_length=1, max_length=MAX_TEXT_PART_CHARS)


class FilePart(CamelModel):
    type: Literal["file"] = "file"
    url: str = Field(..., max_length=2048)
    media_type: Literal["image/jpeg", "image/png", "application/pdf"]
    name: Optional[str] = Field(None, max_length=100)


MessagePart = Annotated[Union[TextPart, FilePart], Field(discriminator="type")]


class ChatMessage(CamelModel):
    """A message as it travels through a chat turn (inbound, synthetic or reply)."""

    id: UUID = Field(default_factory=uuid4)
    role: MessageRole
    parts: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(
            part.get("text", "") for part in self.parts if part.get("type") == "text"
        )


# -----------------------------------------------------------------------------
# Chat turn request
# -----------------------------------------------------------------------------


class InboundUserMessage(CamelModel):
    id: UUID
    role: Literal["user"] = "user"
    parts: list[MessagePart] = Field(..., min_length=1)

    def to_chat_message(self) -> ChatMessage:
        return ChatMessage(
            id=self.id,
            role="user",
            parts=[part.model_dump(by_alias=True) for part in self.parts],
        )


class ChatRequest(CamelModel):
    """Body of POST /chat."""

    id: UUID
    message: InboundUserMessage
    selected_chat_model: ChatModelId = DEFAULT_CHAT_MODEL
    selected_visibility_type: Visibility = "private"
    context_ids: list[UUID] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Read models
# -----------------------------------------------------------------------------


class ChatRead(CamelModel):
    id: UUID
    user_id: UUID
    title: str
    visibility: Visibility
    created_at: datetime


class MessageRead(CamelModel):
    id: UUID
    chat_id: UUID
    role: MessageRole
    parts: list[dict[str, Any]]
    attachments: list[Any] = Field(default_factory=list)
    created_at: datetime


class ChatSearchResult(CamelModel):
    id: UUID
    title: str
    created_at: datetime
    last_message_at: datetime


class ChatSearchResponse(CamelModel):
    results: list[ChatSearchResult]
