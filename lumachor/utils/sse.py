"""Server-sent event framing for chat streams."""

from __future__ import annotations

import json
from typing import Any

DONE_FRAME = "data: [DONE]\n\n"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(event: dict[str, Any]) -> str:
    return f"data: {json.dumps(event, separators=(',', ':'))}\n\n"


def start_event(message_id: str) -> dict[str, Any]:
    return {"type": "start", "messageId": message_id}


def text_delta_event(message_id: str, delta: str) -> dict[str, Any]:
    return {"type": "text-delta", "id": message_id, "delta": delta}


def error_event(text: str = "Oops, an error occurred!") -> dict[str, Any]:
    return {"type": "error", "errorText": text}


def finish_event() -> dict[str, Any]:
    return {"type": "finish"}
