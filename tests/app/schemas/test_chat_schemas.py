"""Tests for chat and context request schemas."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from lumachor.constants.chat_models import ChatModelId
from lumachor.schemas.chat import ChatRequest
from lumachor.schemas.context import ContextCreate, ContextPayload, normalize_tags


def _chat_body(**overrides):
    body = {
        "id": str(uuid4()),
        "message": {
            "id": str(uuid4()),
            "role": "user",
            "parts": [{"type": "text", "text": "Hello"}],
        },
        "selectedChatModel": "chat-model-reasoning",
        "selectedVisibilityType": "public",
        "contextIds": [str(uuid4())],
    }
    body.update(overrides)
    return body


def test_chat_request_reads_camel_case():
    req = ChatRequest.model_validate(_chat_body())
    assert req.selected_chat_model == ChatModelId.REASONING
    assert req.selected_visibility_type == "public"
    assert len(req.context_ids) == 1
    assert req.message.to_chat_message().text == "Hello"


def test_chat_request_defaults():
    body = _chat_body()
    for key in ("selectedChatModel", "selectedVisibilityType", "contextIds"):
        body.pop(key)
    req = ChatRequest.model_validate(body)
    assert req.selected_chat_model == ChatModelId.CHAT
    assert req.selected_visibility_type == "private"
    assert req.context_ids == []


def test_chat_request_rejects_long_text_part():
    body = _chat_body()
    body["message"]["parts"] = [{"type": "text", "text": "x" * 2001}]
    with pytest.raises(ValidationError):
        ChatRequest.model_validate(body)


def test_chat_request_rejects_unknown_media_type():
    body = _chat_body()
    body["message"]["parts"] = [
        {"type": "file", "url": "https://x/y.gif", "mediaType": "image/gif", "name": "y.gif"}
    ]
    with pytest.raises(ValidationError):
        ChatRequest.model_validate(body)


def test_file_part_keeps_camel_case_keys():
    body = _chat_body()
    body["message"]["parts"] = [
        {"type": "file", "url": "https://x/y.png", "mediaType": "image/png", "name": "y.png"}
    ]
    part = ChatRequest.model_validate(body).message.to_chat_message().parts[0]
    assert part["mediaType"] == "image/png"


def test_normalize_tags():
    assert normalize_tags([" Coding", "coding", "", "  ", "Tutor"]) == ["coding", "tutor"]


def test_context_create_minimums():
    with pytest.raises(ValidationError):
        ContextCreate(name="A", content="long enough content")
    with pytest.raises(ValidationError):
        ContextCreate(name="Tutor", content="short")


def test_context_payload_requires_every_field():
    with pytest.raises(ValidationError):
        ContextPayload.model_validate({"title": "Math Tutor", "description": "Helps."})
