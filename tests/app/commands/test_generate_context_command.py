"""Tests for GenerateContextCommand."""

import json

import pytest
from pydantic_ai.exceptions import UnexpectedModelBehavior

from lumachor.commands.generate_context_command import (
    GenerateContextCommand,
    parse_tags,
    strip_fences,
)
from lumachor.constants.chat_models import ChatModelId
from lumachor.errors import ModelOutputError, ProviderError
from lumachor.models.context import Context
from lumachor.schemas.context import GenerateContextRequest

PAYLOAD = {
    "title": "Patient Math Tutor",
    "description": "Guides students through algebra one step at a time.",
    "background_goals": ["Students are 12 to 14", "Build intuition before rules"],
    "tone_style": ["Encouraging", "Step-by-step"],
    "constraints_scope": ["No full homework answers"],
    "example_prompts": ["How do I solve 2x + 3 = 7?"],
}


def test_strip_fences():
    assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_fences('```\n{"a": 1}```') == '{"a": 1}'
    assert strip_fences('{"a": 1}') == '{"a": 1}'


def test_parse_tags():
    assert parse_tags(" Math, tutor ,, Algebra") == ["math", "tutor", "algebra"]
    assert len(parse_tags(",".join(f"t{i}" for i in range(12)))) == 8


@pytest.mark.asyncio
async def test_generate_context_with_fenced_json_and_auto_tags(db, fake_llm, current_user):
    fake_llm.queue(ChatModelId.CHAT, f"```json\n{json.dumps(PAYLOAD)}\n```")
    fake_llm.queue(ChatModelId.TITLE, "Math, education, tutoring")

    context, payload = await GenerateContextCommand(db, fake_llm.runner).execute(
        GenerateContextRequest(user_prompt="A tutor for algebra"), current_user
    )

    assert payload.title == "Patient Math Tutor"
    assert context.name == "Patient Math Tutor"
    assert context.description == PAYLOAD["description"]
    assert context.tags == ["math", "education", "tutoring"]
    assert context.created_by == current_user.id
    assert json.loads(context.content) == PAYLOAD
    sent = str(fake_llm.calls_for(ChatModelId.CHAT)[0][0])
    assert "A tutor for algebra" in sent


@pytest.mark.asyncio
async def test_generate_context_skips_tagging_when_tags_given(db, fake_llm, current_user):
    fake_llm.queue(ChatModelId.CHAT, json.dumps(PAYLOAD))

    context, _ = await GenerateContextCommand(db, fake_llm.runner).execute(
        GenerateContextRequest(user_prompt="A tutor for algebra", tags=["Math", ""]),
        current_user,
    )

    assert context.tags == ["math"]
    assert fake_llm.calls_for(ChatModelId.TITLE) == []


@pytest.mark.asyncio
async def test_generate_context_truncates_name_and_description(db, fake_llm, current_user):
    payload = {**PAYLOAD, "title": "T" * 100, "description": "D" * 500}
    fake_llm.queue(ChatModelId.CHAT, json.dumps(payload))

    context, _ = await GenerateContextCommand(db, fake_llm.runner).execute(
        GenerateContextRequest(user_prompt="long one", tags=["x"]), current_user
    )

    assert len(context.name) == 80
    assert len(context.description) == 240


@pytest.mark.asyncio
async def test_generate_context_tagging_failure_yields_no_tags(db, fake_llm, current_user):
    fake_llm.queue(ChatModelId.CHAT, json.dumps(PAYLOAD))
    fake_llm.queue(ChatModelId.TITLE, UnexpectedModelBehavior("tagger down"))

    context, _ = await GenerateContextCommand(db, fake_llm.runner).execute(
        GenerateContextRequest(user_prompt="A tutor for algebra"), current_user
    )

    assert context.tags == []


@pytest.mark.asyncio
async def test_generate_context_invalid_json_stores_nothing(db, fake_llm, current_user):
    fake_llm.queue(ChatModelId.CHAT, "Sure! Here is your context: {title: oops")

    with pytest.raises(ModelOutputError) as exc_info:
        await GenerateContextCommand(db, fake_llm.runner).execute(
            GenerateContextRequest(user_prompt="A tutor for algebra"), current_user
        )

    assert exc_info.value.detail["code"] == "bad_request:model_output"
    assert "oops" not in exc_info.value.detail["message"]
    assert db.query(Context).count() == 0


@pytest.mark.asyncio
async def test_generate_context_missing_field_is_model_output_error(db, fake_llm, current_user):
    partial = {k: v for k, v in PAYLOAD.items() if k != "example_prompts"}
    fake_llm.queue(ChatModelId.CHAT, json.dumps(partial))

    with pytest.raises(ModelOutputError):
        await GenerateContextCommand(db, fake_llm.runner).execute(
            GenerateContextRequest(user_prompt="A tutor for algebra"), current_user
        )


@pytest.mark.asyncio
async def test_generate_context_provider_failure(db, fake_llm, current_user):
    fake_llm.queue(ChatModelId.REASONING, UnexpectedModelBehavior("quota exceeded"))

    with pytest.raises(ProviderError) as exc_info:
        await GenerateContextCommand(db, fake_llm.runner).execute(
            GenerateContextRequest(
                user_prompt="A tutor for algebra", model=ChatModelId.REASONING
            ),
            current_user,
        )

    detail = exc_info.value.detail
    assert detail["code"] == "bad_request:provider"
    assert detail["model"] == "chat-model-reasoning"
    assert "quota exceeded" in detail["message"]
