from lumachor.constants.chat_models import ChatModelId


class DefaultSystemPrompt:
    """Base system prompt for chat turns, before any context block is merged in."""

    REGULAR = (
        "You are a friendly assistant! Keep your responses concise and helpful."
    )

    TOOLS = """
You can call tools when they help answer the user:
- get_current_datetime: when the user asks for today's date or the time.
- get_weather: when the user asks about the weather at a place; pass its latitude and longitude.
Do not call a tool when you can answer directly.
    """

    @classmethod
    def for_model(cls, chat_model: ChatModelId) -> str:
        if chat_model == ChatModelId.REASONING:
            return cls.REGULAR
        return f"{cls.REGULAR}\n\n{cls.TOOLS.strip()}"
