"""
Redis-backed buffer of SSE frames so a client can resume an interrupted
chat stream. Each stream keeps its frames in a list that expires after the
configured TTL; a separate key marks the stream as finished.
"""

from __future__ import annotations

import logging
import time
from typing import Iterator, List, Optional

import redis

logger = logging.getLogger(__name__)

KEY_PREFIX = "lumachor:stream"


class ResumableStreamClient:
    def __init__(
        self,
        client: redis.Redis,
        ttl_seconds: int = 600,
        poll_interval_seconds: float = 0.2,
    ) -> None:
        self._redis = client
        self._ttl = ttl_seconds
        self._poll_interval = poll_interval_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int = 600) -> "ResumableStreamClient":
        return cls(redis.Redis.from_url(url, decode_responses=True), ttl_seconds)

    def _frames_key(self, stream_id: str) -> str:
        return f"{KEY_PREFIX}:{stream_id}:frames"

    def _done_key(self, stream_id: str) -> str:
        return f"{KEY_PREFIX}:{stream_id}:done"

    def append(self, stream_id: str, frame: str) -> None:
        key = self._frames_key(stream_id)
        pipe = self._redis.pipeline()
        pipe.rpush(key, frame)
        pipe.expire(key, self._ttl)
        pipe.execute()

    def mark_done(self, stream_id: str) -> None:
        self._redis.set(self._done_key(stream_id), "1", ex=self._ttl)

    def is_done(self, stream_id: str) -> bool:
        return bool(self._redis.exists(self._done_key(stream_id)))

    def has_frames(self, stream_id: str) -> bool:
        return self._redis.llen(self._frames_key(stream_id)) > 0

    def read_from(self, stream_id: str, start: int) -> List[str]:
        """Frames buffered at index start and later, in order."""
        return list(self._redis.lrange(self._frames_key(stream_id), start, -1))

    def follow(self, stream_id: str, timeout_seconds: Optional[float] = None) -> Iterator[str]:
        """
        Yield every buffered frame, then keep yielding new ones while the
        producing turn is still running.

        Stops once the stream is marked done and drained, or when the
        timeout (the buffer TTL by default) passes without completion.
        """
        deadline = time.monotonic() + (
            self._ttl if timeout_seconds is None else timeout_seconds
        )
        index = 0
        while True:
            # Read the flag first: frames appended before mark_done are then
            # always picked up by the read that follows.
            done = self.is_done(stream_id)
            frames = self.read_from(stream_id, index)
            index += len(frames)
            yield from frames
            if done:
                return
            if time.monotonic() >= deadline:
                logger.info("Stopped following stream %s before it finished", stream_id)
                return
            time.sleep(self._poll_interval)

    def safe_append(self, stream_id: str, frame: str) -> None:
        """Append, logging instead of failing the live stream when redis is down."""
        try:
            self.append(stream_id, frame)
        except redis.RedisError as e:
            logger.warning("Resumable stream append failed for %s: %s", stream_id, e)

    def safe_mark_done(self, stream_id: str) -> None:
        try:
            self.mark_done(stream_id)
        except redis.RedisError as e:
            logger.warning("Resumable stream finish failed for %s: %s", stream_id, e)
