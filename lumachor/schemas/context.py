"""Pydantic schemas for contexts, the generated context payload and the public library."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from lumachor.constants.chat_models import ChatModelId
from lumachor.schemas.base import CamelModel

NAME_MAX_CHARS = 80
DESCRIPTION_MAX_CHARS = 240


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Strip, lowercase, drop empties and duplicates (first occurrence wins)."""
    seen: list[str] = []
    for tag in tags:
        cleaned = (tag or "").strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


class ContextPayload(BaseModel):
    """The structured document a model must return when generating a context."""

    title: str = Field(..., min_length=3, max_length=120)
    description: str = Field(..., min_length=1, max_length=800)
    background_goals: list[str] = Field(..., min_length=1, max_length=20)
    tone_style: list[str] = Field(..., min_length=1, max_length=20)
    constraints_scope: list[str] = Field(..., min_length=1, max_length=20)
    example_prompts: list[str] = Field(..., min_length=1, max_length=10)


class ContextCreate(CamelModel):
    """Manual authoring path."""

    name: str = Field(..., min_length=2)
    content: str = Field(..., min_length=10)
    tags: list[str] = Field(default_factory=list)
    description: Optional[str] = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: list[str]) -> list[str]:
        return normalize_tags(v)


class ContextRead(CamelModel):
    id: UUID
    name: str
    content: str
    tags: list[str]
    description: Optional[str] = None
    created_by: UUID
    created_at: datetime


class ContextWithMeta(ContextRead):
    """Context annotated for the caller (withMeta=1)."""

    liked: Optional[bool] = None
    owner: Optional[bool] = None


class ContextListResponse(CamelModel):
    contexts: list[ContextWithMeta]


class ContextEnvelope(CamelModel):
    context: ContextRead


class GenerateContextRequest(CamelModel):
    user_prompt: str = Field(..., min_length=4)
    tags: list[str] = Field(default_factory=list)
    model: Optional[ChatModelId] = None


class GenerateContextResponse(CamelModel):
    context: ContextRead
    payload: ContextPayload


class StarToggleResponse(CamelModel):
    liked: bool


class DeleteContextResponse(CamelModel):
    deleted: bool


# -----------------------------------------------------------------------------
# Public library
# -----------------------------------------------------------------------------


class PublishRequest(CamelModel):
    context_id: UUID


class PublishResponse(CamelModel):
    public_id: UUID


class ImportContextRequest(CamelModel):
    public_id: UUID


class PublicContextRead(ContextRead):
    public_id: UUID
    publisher_id: UUID
    published_at: datetime
    owner: bool = False


class PublicContextListResponse(CamelModel):
    contexts: list[PublicContextRead]
