from __future__ import annotations

import threading
from typing import Optional

from lumachor.config import get_settings
from lumachor.core.resumable_stream import ResumableStreamClient
from lumachor.infra.logging_config import get_logger

logger = get_logger("app_state")


class AppState:
    """Process-wide lazily created clients."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stream_client: Optional[ResumableStreamClient] = None
        self._stream_client_resolved = False

    def get_stream_client(self) -> Optional[ResumableStreamClient]:
        """The resumable stream client, or None when REDIS_URL is not configured."""
        if self._stream_client_resolved:
            return self._stream_client
        with self._lock:
            if not self._stream_client_resolved:
                settings = get_settings()
                if settings.redis_url:
                    self._stream_client = ResumableStreamClient.from_url(
                        settings.redis_url,
                        ttl_seconds=settings.resumable_stream_ttl_seconds,
                    )
                else:
                    logger.info(" > Resumable streams are disabled due to missing REDIS_URL")
                self._stream_client_resolved = True
        return self._stream_client


state = AppState()


def get_stream_client() -> Optional[ResumableStreamClient]:
    """FastAPI dependency."""
    return state.get_stream_client()
