"""
Typed API errors.

Every error body is {"detail": {"code": <kind>, "message": ..., ...}} so
clients can tell the kinds apart without parsing messages.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from fastapi import HTTPException


class ErrorKind(StrEnum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    VALIDATION = "bad_request:validation"
    MODEL_OUTPUT = "bad_request:model_output"
    PROVIDER = "bad_request:provider"
    RATE_LIMITED = "rate_limit"
    NOT_FOUND = "not_found"
    DATABASE = "database"


class LumachorError(HTTPException):
    kind: ErrorKind = ErrorKind.VALIDATION
    status_code_default: int = 400
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(
            status_code=self.status_code_default,
            detail=error_body(self.kind, self.message, **extra),
        )


def error_body(kind: ErrorKind, message: str, **extra: Any) -> dict[str, Any]:
    return {"code": kind.value, "message": message, **extra}


class UnauthorizedError(LumachorError):
    kind = ErrorKind.UNAUTHORIZED
    status_code_default = 401
    default_message = "You need to sign in before continuing."

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        super().__init__(message, **extra)
        self.headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(LumachorError):
    kind = ErrorKind.FORBIDDEN
    status_code_default = 403
    default_message = "This resource belongs to another user."


class ValidationError(LumachorError):
    kind = ErrorKind.VALIDATION
    status_code_default = 400
    default_message = "Invalid request"


class ModelOutputError(LumachorError):
    kind = ErrorKind.MODEL_OUTPUT
    status_code_default = 400
    default_message = "Model returned invalid JSON. Please try again."


class ProviderError(LumachorError):
    kind = ErrorKind.PROVIDER
    status_code_default = 400
    default_message = "The language model provider failed."


class RateLimitedError(LumachorError):
    kind = ErrorKind.RATE_LIMITED
    status_code_default = 429
    default_message = (
        "You have exceeded your maximum number of messages for the day. "
        "Please try again later."
    )


class NotFoundError(LumachorError):
    kind = ErrorKind.NOT_FOUND
    status_code_default = 404
    default_message = "Not found"
