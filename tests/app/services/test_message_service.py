"""Tests for MessageService."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from lumachor.schemas.chat import ChatMessage
from lumachor.services.message_service import MessageService
from tests.fixtures.chat_fixtures import make_chat, make_message


def test_create_message_persists_parts(db, setup_chat):
    msg = ChatMessage(id=uuid4(), role="user", parts=[{"type": "text", "text": "Hi"}])
    row = MessageService(db).create_message(setup_chat.id, msg)
    assert row.id == msg.id
    assert row.text == "Hi"
    assert row.attachments == []


def test_get_messages_in_creation_order(db, setup_chat_with_messages):
    texts = [m.text for m in MessageService(db).get_messages(setup_chat_with_messages.id)]
    assert texts == ["What is a monad?", "A monad is a design pattern."]


def test_count_user_messages_since_only_counts_recent_user_messages(
    db, setup_user, setup_other_user
):
    now = datetime.now(timezone.utc)
    chat = make_chat(db, setup_user)
    second = make_chat(db, setup_user)
    make_message(db, chat, "one", created_at=now - timedelta(hours=1))
    make_message(db, second, "two", created_at=now - timedelta(hours=2))
    make_message(db, chat, "reply", role="assistant", created_at=now)
    make_message(db, chat, "old", created_at=now - timedelta(hours=30))
    make_message(db, make_chat(db, setup_other_user), "not mine", created_at=now)

    assert MessageService(db).count_user_messages_since(setup_user.id) == 2
