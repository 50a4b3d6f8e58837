from __future__ import annotations

from typing import Any, AsyncIterator, Callable, List, Optional, Sequence

from pydantic_ai import Agent, DocumentUrl, ImageUrl
from pydantic_ai.messages import (
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.litellm import LiteLLMProvider
from pydantic_ai.settings import ModelSettings
from pydantic_ai.usage import UsageLimits

from lumachor.config import Settings, get_settings
from lumachor.constants.chat_models import ChatModelId
from lumachor.constants.context_prompts import TITLE_SYSTEM
from lumachor.infra.logging_config import get_logger
from lumachor.schemas.chat import ChatMessage
from lumachor.workers.tools import CHAT_TOOLS

logger = get_logger("llm")

SYSTEM_PROMPT_PREVIEW_CHARS = 3200
TITLE_MAX_CHARS = 80

ModelResolver = Callable[[ChatModelId], Model]


def _user_content(message: ChatMessage) -> List[Any]:
    """Convert message parts into pydantic_ai user content (text, images, documents)."""
    content: List[Any] = []
    for part in message.parts:
        kind = part.get("type")
        if kind == "text" and part.get("text"):
            content.append(part["text"])
        elif kind == "file" and part.get("url"):
            media_type = part.get("mediaType") or part.get("media_type") or ""
            if media_type.startswith("image/"):
                content.append(ImageUrl(url=part["url"]))
            else:
                content.append(DocumentUrl(url=part["url"]))
    return content


def _history_to_message_list(history: Sequence[ChatMessage]) -> List[Any]:
    """Convert chat messages to a pydantic_ai ModelMessage list for message_history."""
    out: List[Any] = []
    for item in history:
        if item.role == "user":
            content = _user_content(item)
            if content:
                out.append(ModelRequest(parts=[UserPromptPart(content=content)]))
        elif item.role == "assistant":
            text = item.text.strip()
            if text:
                out.append(ModelResponse(parts=[TextPart(content=text)]))
        elif item.role == "system":
            text = item.text.strip()
            if text:
                out.append(ModelRequest(parts=[SystemPromptPart(content=text)]))
    return out


def _message_list_with_system_prompt(
    system_prompt: str,
    history: Sequence[ChatMessage],
) -> List[Any]:
    """Build message_history with system prompt always first, then conversation history."""

    # https://github.com/pydantic/pydantic-ai/issues/4039
    # https://ai.pydantic.dev/agent/#system-prompts
    system_message = ModelRequest(parts=[SystemPromptPart(content=system_prompt)])
    return [system_message] + _history_to_message_list(history)


class LLMRunner:
    """
    Thin wrapper over pydantic_ai agents.

    resolve_model maps a logical ChatModelId to a pydantic_ai model, which
    lets tests swap in FunctionModel without touching the provider.
    """

    def __init__(self, resolve_model: ModelResolver, max_steps: int = 5) -> None:
        self._resolve_model = resolve_model
        self._max_steps = max_steps

    def _agent(self, model_id: ChatModelId, with_tools: bool = False) -> Agent:
        tools = CHAT_TOOLS if with_tools else []
        return Agent(self._resolve_model(model_id), tools=tools)

    async def generate_text(
        self,
        model_id: ChatModelId,
        system_prompt: str,
        prompt: str,
        temperature: Optional[float] = None,
    ) -> str:
        """Single non-streaming completion without tools."""
        settings = ModelSettings(temperature=temperature) if temperature is not None else None
        result = await self._agent(model_id).run(
            prompt,
            message_history=_message_list_with_system_prompt(system_prompt, []),
            model_settings=settings,
        )
        return str(result.output)

    async def stream_reply(
        self,
        model_id: ChatModelId,
        system_prompt: str,
        messages: Sequence[ChatMessage],
    ) -> AsyncIterator[str]:
        """
        Stream the assistant reply to the last message as text deltas.

        Earlier messages become history. Tools are offered to every model
        except the reasoning one, and tool round-trips are capped by
        max_steps.
        """
        if not messages:
            raise ValueError("stream_reply needs at least one message")
        *history, last = messages
        logger.info(
            "LLM request model=%s messages=%d system_prompt=%r",
            model_id,
            len(messages),
            system_prompt[:SYSTEM_PROMPT_PREVIEW_CHARS],
        )
        agent = self._agent(model_id, with_tools=model_id != ChatModelId.REASONING)
        async with agent.run_stream(
            _user_content(last) or last.text,
            message_history=_message_list_with_system_prompt(system_prompt, history),
            usage_limits=UsageLimits(request_limit=self._max_steps),
        ) as result:
            async for delta in result.stream_text(delta=True, debounce_by=None):
                if delta:
                    yield delta

    async def generate_title(self, message: ChatMessage) -> str:
        """Short title for a chat from its first user message."""
        title = await self.generate_text(ChatModelId.TITLE, TITLE_SYSTEM, message.text)
        title = title.strip().strip("\"'").replace(":", "").strip()
        if not title:
            raise ValueError("title model returned an empty title")
        return title[:TITLE_MAX_CHARS]


def provider_model_name(model_id: ChatModelId, settings: Settings) -> str:
    return {
        ChatModelId.CHAT: settings.llm_model,
        ChatModelId.REASONING: settings.llm_reasoning_model,
        ChatModelId.TITLE: settings.llm_title_model,
        ChatModelId.ARTIFACT: settings.llm_artifact_model,
    }[model_id]


def build_llm_runner_from_env() -> LLMRunner:
    settings = get_settings()
    logger.info(
        "LLM runner config: model=%s, api_key=%s, api_base=%s",
        settings.llm_model,
        "set" if settings.litellm_api_key else "not set",
        settings.litellm_api_base or "(default)",
    )
    if not settings.litellm_api_key:
        logger.warning(
            "LITELLM_API_KEY is not set; set it to a valid OpenAI or LiteLLM API key to avoid 401 errors."
        )
    provider = LiteLLMProvider(
        api_key=settings.litellm_api_key, api_base=settings.litellm_api_base
    )

    def resolve(model_id: ChatModelId) -> Model:
        return OpenAIChatModel(provider_model_name(model_id, settings), provider=provider)

    return LLMRunner(resolve, max_steps=settings.llm_max_steps)
