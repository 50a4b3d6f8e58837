"""Chat model identifiers exposed to clients."""

from enum import StrEnum


class ChatModelId(StrEnum):
    """Logical model ids; each maps to a provider model name in settings."""

    CHAT = "chat-model"
    REASONING = "chat-model-reasoning"
    TITLE = "title-model"
    ARTIFACT = "artifact-model"


DEFAULT_CHAT_MODEL = ChatModelId.CHAT
