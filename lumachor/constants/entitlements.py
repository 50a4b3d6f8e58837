"""User types and their daily message entitlements."""

from enum import StrEnum

from lumachor.config import Settings


class UserType(StrEnum):
    GUEST = "guest"
    REGULAR = "regular"


def max_messages_per_day(user_type: UserType, settings: Settings) -> int:
    if user_type == UserType.GUEST:
        return settings.max_messages_per_day_guest
    return settings.max_messages_per_day_regular
