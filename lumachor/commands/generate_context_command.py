"""Command to generate a structured context with a language model and store it."""

from __future__ import annotations

import json
import logging
import re
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from pydantic_ai.exceptions import AgentRunError, ModelHTTPError
from sqlalchemy.orm import Session

from lumachor.constants.chat_models import DEFAULT_CHAT_MODEL, ChatModelId
from lumachor.constants.context_prompts import (
    GENERATOR_SYSTEM,
    TAGGER_SYSTEM,
    generator_prompt,
    tag_prompt,
)
from lumachor.errors import ModelOutputError, ProviderError
from lumachor.models.context import Context
from lumachor.schemas.context import (
    DESCRIPTION_MAX_CHARS,
    NAME_MAX_CHARS,
    ContextCreate,
    ContextPayload,
    GenerateContextRequest,
    normalize_tags,
)
from lumachor.schemas.user import AuthenticatedUser
from lumachor.services.context_service import ContextService
from lumachor.workers.llm import LLMRunner

GENERATION_TEMPERATURE = 0.3
TAGGING_TEMPERATURE = 0.2
MAX_GENERATED_TAGS = 8
UNTITLED_NAME = "Untitled Context"

PROVIDER_ERRORS = (AgentRunError, ModelHTTPError)

_LEADING_FENCE = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```\s*$")


def strip_fences(text: str) -> str:
    """Drop an optional leading ``` / ```json fence and a trailing fence."""
    return _TRAILING_FENCE.sub("", _LEADING_FENCE.sub("", text)).strip()


def parse_payload(raw: str) -> ContextPayload:
    """Parse model output into a ContextPayload; raises ValueError on drift."""
    try:
        return ContextPayload.model_validate(json.loads(strip_fences(raw)))
    except (json.JSONDecodeError, PydanticValidationError) as e:
        raise ValueError(str(e)) from e


def parse_tags(raw: str) -> List[str]:
    return normalize_tags(raw.split(","))[:MAX_GENERATED_TAGS]


class GenerateContextCommand:
    """
    Ask the model for the six-field context document, validate it and
    insert it as a Context owned by the caller.
    """

    def __init__(self, db: Session, runner: LLMRunner) -> None:
        self.db = db
        self.runner = runner
        self.logger = logging.getLogger(__name__)

    async def execute(
        self, request: GenerateContextRequest, user: AuthenticatedUser
    ) -> tuple[Context, ContextPayload]:
        model_id = request.model or DEFAULT_CHAT_MODEL
        user_tags = normalize_tags(request.tags)

        try:
            raw = await self.runner.generate_text(
                model_id,
                GENERATOR_SYSTEM,
                generator_prompt(request.user_prompt, user_tags),
                temperature=GENERATION_TEMPERATURE,
            )
        except PROVIDER_ERRORS as e:
            self.logger.error("Context generation failed on model %s: %s", model_id, e)
            raise ProviderError(
                f'Model "{model_id}" failed: {e}', model=str(model_id)
            ) from e

        try:
            payload = parse_payload(raw)
        except ValueError as e:
            self.logger.error("Model JSON drift (%s). Raw output: %s", e, raw)
            raise ModelOutputError() from e

        tags = user_tags or await self._generate_tags(payload)
        context = ContextService(self.db).create_context(
            ContextCreate(
                name=(payload.title.strip() or UNTITLED_NAME)[:NAME_MAX_CHARS],
                content=payload.model_dump_json(),
                tags=tags,
                description=payload.description[:DESCRIPTION_MAX_CHARS],
            ),
            created_by=user.id,
        )
        self.logger.info("Generated context %s for user %s", context.id, user.id)
        return context, payload

    async def _generate_tags(self, payload: ContextPayload) -> List[str]:
        """Best effort; any failure yields no tags."""
        try:
            raw: Optional[str] = await self.runner.generate_text(
                ChatModelId.TITLE,
                TAGGER_SYSTEM,
                tag_prompt(payload),
                temperature=TAGGING_TEMPERATURE,
            )
        except Exception as e:
            self.logger.warning("Tag generation failed: %s", e)
            return []
        return parse_tags(raw or "")
