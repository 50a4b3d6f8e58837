"""Pydantic schemas for users and the authenticated caller."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from lumachor.constants.entitlements import UserType


class AuthenticatedUser(BaseModel):
    """Caller identity resolved from the bearer token."""

    id: UUID
    email: Optional[str] = None
    type: UserType = UserType.REGULAR
