from lumachor.models.chat import Chat
from lumachor.models.context import ChatContext, Context, ContextStar, PublicContext
from lumachor.models.message import Message
from lumachor.models.stream import StreamId
from lumachor.models.user import User

__all__ = [
    "Chat",
    "ChatContext",
    "Context",
    "ContextStar",
    "Message",
    "PublicContext",
    "StreamId",
    "User",
]
