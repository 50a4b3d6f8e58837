"""
Daily message quota per user.

Counts the user-role messages a user sent across their chats in the
trailing 24 hours and compares against the entitlement for their user type.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from lumachor.config import Settings
from lumachor.constants.entitlements import max_messages_per_day
from lumachor.schemas.user import AuthenticatedUser
from lumachor.services.message_service import MessageService

logger = logging.getLogger(__name__)

QUOTA_WINDOW_HOURS = 24


def check_daily_message_quota(
    db: Session,
    user: AuthenticatedUser,
    settings: Settings,
) -> bool:
    """
    Check if the user may send another message.
    Returns True if allowed, False if the daily limit is reached.
    """
    limit = max_messages_per_day(user.type, settings)
    count = MessageService(db).count_user_messages_since(
        user.id, hours=QUOTA_WINDOW_HOURS
    )
    if count >= limit:
        logger.info(
            "User %s reached daily quota (%s/%s, type=%s)",
            user.id,
            count,
            limit,
            user.type,
        )
        return False
    return True
