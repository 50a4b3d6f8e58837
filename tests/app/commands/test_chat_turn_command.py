"""Tests for ChatTurnCommand outside the HTTP layer."""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from lumachor.commands.chat_turn_command import ChatTurnCommand, TurnState
from lumachor.config import get_settings
from lumachor.core.resumable_stream import ResumableStreamClient
from lumachor.models.message import Message
from lumachor.schemas.chat import ChatRequest
from tests.app.routers.sse_helpers import sse_events


def _request(text="Hello"):
    return ChatRequest.model_validate(
        {
            "id": str(uuid4()),
            "message": {
                "id": str(uuid4()),
                "role": "user",
                "parts": [{"type": "text", "text": text}],
            },
        }
    )


def _assistant_texts(db):
    return [m.text for m in db.query(Message).filter(Message.role == "assistant").all()]


@pytest.mark.asyncio
async def test_stream_runs_after_request_session_is_closed(db, fake_llm, current_user):
    command = ChatTurnCommand(db, fake_llm.runner, get_settings())
    turn = await command.prepare(_request(), current_user)
    db.expunge_all()
    db.close()

    frames = [frame async for frame in command.stream(turn)]

    events = sse_events("".join(frames))
    assert events[-2:] == [{"type": "finish"}, "[DONE]"]
    assert _assistant_texts(db) == ["Hello there!"]
    assert command.state == TurnState.DONE


@pytest.mark.asyncio
async def test_reply_completes_after_client_disconnects(db, fake_llm, current_user):
    fake_llm.reply_chunks = ["One", " two", " three"]
    command = ChatTurnCommand(db, fake_llm.runner, get_settings())
    turn = await command.prepare(_request(), current_user)

    frames = command.stream(turn)
    first = await frames.__anext__()
    await frames.aclose()
    await command.task

    assert sse_events(first)[0]["type"] == "start"
    assert _assistant_texts(db) == ["One two three"]
    assert command.state == TurnState.DONE


@pytest.mark.asyncio
async def test_frames_are_buffered_then_stream_marked_done(db, fake_llm, current_user):
    redis_client = MagicMock()
    buffer = ResumableStreamClient(redis_client, ttl_seconds=60)
    command = ChatTurnCommand(db, fake_llm.runner, get_settings(), stream_client=buffer)
    turn = await command.prepare(_request(), current_user)

    frames = [frame async for frame in command.stream(turn)]

    pipe = redis_client.pipeline.return_value
    assert [c.args[1] for c in pipe.rpush.call_args_list] == frames
    redis_client.set.assert_called_once_with(
        f"lumachor:stream:{turn.stream_id}:done", "1", ex=60
    )
