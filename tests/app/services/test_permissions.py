"""Tests for ownership checks."""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from lumachor.auth.permissions import can_mutate, can_read_chat, ensure_can_mutate
from lumachor.errors import ForbiddenError


def test_can_mutate_uses_user_id_or_created_by():
    owner = uuid4()
    assert can_mutate(SimpleNamespace(user_id=owner), owner)
    assert can_mutate(SimpleNamespace(created_by=owner), owner)
    assert not can_mutate(SimpleNamespace(created_by=owner), uuid4())
    assert not can_mutate(SimpleNamespace(), owner)


def test_can_read_chat():
    owner = uuid4()
    private = SimpleNamespace(user_id=owner, visibility="private")
    public = SimpleNamespace(user_id=owner, visibility="public")
    assert can_read_chat(private, owner)
    assert not can_read_chat(private, uuid4())
    assert not can_read_chat(private, None)
    assert can_read_chat(public, None)


def test_ensure_can_mutate_raises_forbidden():
    with pytest.raises(ForbiddenError) as exc_info:
        ensure_can_mutate(SimpleNamespace(created_by=uuid4()), uuid4())
    assert exc_info.value.status_code == 403
