"""User lookup and the idempotent ensure_user upsert."""

from __future__ import annotations

import time
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lumachor.models.user import User

EMAIL_MAX_CHARS = 64


class UserService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_user(self, user_id: UUID) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def ensure_user(self, user_id: UUID, email: Optional[str] = None) -> User:
        """
        Return the user row for user_id, creating it if missing.

        Emails that are missing or longer than the column allows are replaced
        by a guest placeholder.
        """
        user = self.get_user(user_id)
        if user is not None:
            return user
        safe_email = (
            email
            if email and len(email) <= EMAIL_MAX_CHARS
            else f"guest-{int(time.time() * 1000)}"
        )
        user = User(id=user_id, email=safe_email)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Another request created it first
            self.db.rollback()
            existing = self.get_user(user_id)
            if existing is None:
                raise
            return existing
        self.db.refresh(user)
        return user
