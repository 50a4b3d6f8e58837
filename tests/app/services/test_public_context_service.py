"""Tests for PublicContextService."""

from lumachor.models.context import PublicContext
from lumachor.services.context_service import ContextService
from lumachor.services.public_context_service import PublicContextService
from tests.fixtures.context_fixtures import make_context


def test_publish_twice_returns_same_listing(db, setup_user, setup_context):
    svc = PublicContextService(db)
    first, created = svc.publish(setup_context, setup_user.id)
    second, created_again = svc.publish(setup_context, setup_user.id)
    assert created is True
    assert created_again is False
    assert first.id == second.id
    assert db.query(PublicContext).count() == 1


def test_unpublish_removes_listing(db, setup_public_context):
    svc = PublicContextService(db)
    svc.unpublish(setup_public_context)
    assert svc.list_public() == []


def test_list_public_filters(db, setup_user, setup_public_context):
    other = make_context(db, setup_user, name="Chef", tags=["cooking"], description="Recipes")
    PublicContextService(db).publish(other, setup_user.id)

    svc = PublicContextService(db)
    assert [ctx.name for _, ctx in svc.list_public()] == ["Chef", "Tutor"]
    assert [ctx.name for _, ctx in svc.list_public(q="recipe")] == ["Chef"]
    assert [ctx.name for _, ctx in svc.list_public(tag="tutor")] == ["Tutor"]


def test_list_public_excludes_deleted_contexts(db, setup_context, setup_public_context):
    ContextService(db).delete_context(setup_context)
    assert PublicContextService(db).list_public() == []


def test_import_copies_into_callers_library(db, setup_other_user, setup_context, setup_public_context):
    copy = PublicContextService(db).import_context(setup_public_context, setup_other_user.id)
    assert copy.id != setup_context.id
    assert copy.created_by == setup_other_user.id
    assert (copy.name, copy.content, copy.tags, copy.description) == (
        setup_context.name,
        setup_context.content,
        setup_context.tags,
        setup_context.description,
    )


def test_list_public_tag_filter_applies_limit(db, setup_user):
    svc = PublicContextService(db)
    for i in range(4):
        svc.publish(make_context(db, setup_user, name=f"Tutor {i}", tags=["tutor"]), setup_user.id)
    svc.publish(make_context(db, setup_user, name="Chef", tags=["cooking"]), setup_user.id)

    rows = svc.list_public(tag="tutor", limit=3)

    assert len(rows) == 3
    assert all(ctx.tags == ["tutor"] for _, ctx in rows)
