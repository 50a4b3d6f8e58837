"""Tests for the contexts router."""

import json
from uuid import uuid4

from lumachor.constants.chat_models import ChatModelId
from lumachor.models.context import Context
from tests.conftest import act_as
from tests.fixtures.context_fixtures import make_context

GENERATED = {
    "title": "Interview Coach",
    "description": "Runs mock behavioral interviews and gives feedback.",
    "background_goals": ["Candidate targets senior roles", "Use the STAR method"],
    "tone_style": ["Direct", "Supportive"],
    "constraints_scope": ["No salary negotiation advice"],
    "example_prompts": ["Ask me a leadership question"],
}


def test_create_context(client, current_user):
    r = client.post(
        "/contexts",
        json={"name": "Tutor", "content": "Explain step by step.", "tags": [" Math ", "math"]},
    )
    assert r.status_code == 201
    context = r.json()["context"]
    assert context["name"] == "Tutor"
    assert context["tags"] == ["math"]
    assert context["createdBy"] == str(current_user.id)


def test_create_context_validation(client):
    r = client.post("/contexts", json={"name": "T", "content": "short"})
    assert r.status_code == 422
    assert r.json()["detail"]["code"] == "bad_request:validation"


def test_list_contexts_with_meta(client, current_user, setup_context, setup_other_users_context):
    client.patch(f"/contexts/{setup_other_users_context.id}")

    r = client.get("/contexts", params={"withMeta": "1"})

    assert r.status_code == 200
    rows = {row["name"]: row for row in r.json()["contexts"]}
    assert rows["Tutor"]["owner"] is True
    assert rows["Tutor"]["liked"] is False
    assert rows["Chef"]["owner"] is False
    assert rows["Chef"]["liked"] is True


def test_list_contexts_without_meta_has_no_flags(client, setup_context):
    row = client.get("/contexts").json()["contexts"][0]
    assert "liked" not in row
    assert "owner" not in row


def test_list_contexts_filters(client, setup_context, setup_other_users_context):
    def names(**params):
        return [row["name"] for row in client.get("/contexts", params=params).json()["contexts"]]

    assert names(mine="true") == ["Tutor"]
    assert names(tag="cooking") == ["Chef"]
    assert names(q="tutor") == ["Tutor"]
    assert names(starred="1") == []


def test_star_toggle_round_trip(client, setup_context):
    assert client.patch(f"/contexts/{setup_context.id}").json() == {"liked": True}
    assert client.patch(f"/contexts/{setup_context.id}").json() == {"liked": False}


def test_star_unknown_context(client):
    r = client.patch(f"/contexts/{uuid4()}")
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "not_found"


def test_delete_context(client, db, setup_context):
    assert client.delete(f"/contexts/{setup_context.id}").json() == {"deleted": True}
    assert db.query(Context).count() == 0


def test_delete_missing_context(client):
    assert client.delete(f"/contexts/{uuid4()}").json() == {"deleted": False}


def test_delete_someone_elses_context_is_forbidden(client, db, setup_other_users_context):
    r = client.delete(f"/contexts/{setup_other_users_context.id}")
    assert r.status_code == 403
    assert db.query(Context).count() == 1


def test_generate_context(client, fake_llm):
    fake_llm.queue(ChatModelId.CHAT, json.dumps(GENERATED))
    fake_llm.queue(ChatModelId.TITLE, "interview, career, coaching")

    r = client.post("/contexts/generate", json={"userPrompt": "Mock interviews please"})

    assert r.status_code == 201
    data = r.json()
    assert data["context"]["name"] == "Interview Coach"
    assert data["context"]["tags"] == ["interview", "career", "coaching"]
    assert data["payload"]["background_goals"] == GENERATED["background_goals"]


def test_generate_context_invalid_model_output(client, db, fake_llm):
    fake_llm.queue(ChatModelId.CHAT, "not json at all")

    r = client.post("/contexts/generate", json={"userPrompt": "Mock interviews please"})

    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["code"] == "bad_request:model_output"
    assert detail["message"] == "Model returned invalid JSON. Please try again."
    assert db.query(Context).count() == 0


def test_generate_context_requires_prompt(client):
    r = client.post("/contexts/generate", json={"userPrompt": "hi"})
    assert r.status_code == 422


def test_import_public_context(client, app, db, other_user, setup_context, setup_public_context):
    act_as(app, other_user)

    r = client.post("/contexts/import", json={"publicId": str(setup_public_context.id)})

    assert r.status_code == 201
    context = r.json()["context"]
    assert context["id"] != str(setup_context.id)
    assert context["createdBy"] == str(other_user.id)
    assert context["name"] == setup_context.name
    assert db.query(Context).count() == 2


def test_import_unknown_listing(client):
    r = client.post("/contexts/import", json={"publicId": str(uuid4())})
    assert r.status_code == 404


def test_list_contexts_requires_auth(anonymous_client, db):
    assert anonymous_client.get("/contexts").status_code == 401


def test_contexts_are_listed_newest_first(client, db, setup_user):
    make_context(db, setup_user, name="First")
    make_context(db, setup_user, name="Second")
    names = [row["name"] for row in client.get("/contexts").json()["contexts"]]
    assert names == ["Second", "First"]
