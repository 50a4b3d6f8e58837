"""User model: local mirror of the identity provider's users (FK target)."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, String, Uuid

from lumachor.db import Base
from lumachor.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(64), nullable=False)
