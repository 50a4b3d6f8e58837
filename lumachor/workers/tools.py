"""Tools the chat agent may call during a turn."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import requests

from lumachor.infra.logging_config import get_logger

logger = get_logger("tools")

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
WEATHER_TIMEOUT_SECONDS = 10


def get_current_datetime() -> str:
    """Return the current date and time. Use when the user asks for today's date or what time it is."""
    return f"The date and time is {datetime.now(timezone.utc).isoformat()} (UTC)."


def get_weather(latitude: float, longitude: float) -> dict[str, Any]:
    """Get the current weather at a location.

    Args:
        latitude: Latitude of the location in decimal degrees.
        longitude: Longitude of the location in decimal degrees.
    """
    response = requests.get(
        OPEN_METEO_URL,
        params={
            "latitude": latitude,
            "longitude": longitude,
            "current": "temperature_2m",
            "hourly": "temperature_2m",
            "daily": "sunrise,sunset",
            "timezone": "auto",
        },
        timeout=WEATHER_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    logger.debug("Fetched weather for %s,%s", latitude, longitude)
    return response.json()


CHAT_TOOLS = [get_current_datetime, get_weather]
