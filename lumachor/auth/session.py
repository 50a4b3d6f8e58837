"""
Bearer token verification.

Tokens are RS256 JWTs issued by the configured OIDC provider and verified
against its JWKS. With DISABLE_AUTH set, the caller is taken from the
X-User-Id / X-User-Email / X-User-Type headers instead.
"""

from __future__ import annotations

import uuid
from functools import lru_cache
from typing import Any, Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from lumachor.config import get_settings
from lumachor.constants.entitlements import UserType
from lumachor.db import get_db
from lumachor.errors import UnauthorizedError
from lumachor.infra.logging_config import get_logger
from lumachor.schemas.user import AuthenticatedUser
from lumachor.services.user_service import UserService

logger = get_logger("auth")

bearer_scheme = HTTPBearer(auto_error=False)

USER_TYPE_CLAIMS = ("user_type", "https://lumachor.app/user_type")


@lru_cache(maxsize=4)
def _jwks_client(oidc_domain: str) -> jwt.PyJWKClient:
    return jwt.PyJWKClient(f"https://{oidc_domain}/.well-known/jwks.json")


def _subject_to_uuid(subject: str) -> uuid.UUID:
    """Provider subjects are not always UUIDs; map those deterministically."""
    try:
        return uuid.UUID(subject)
    except ValueError:
        return uuid.uuid5(uuid.NAMESPACE_URL, subject)


def _user_type(value: Any) -> UserType:
    try:
        return UserType(str(value).lower())
    except ValueError:
        return UserType.REGULAR


def decode_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    try:
        signing_key = _jwks_client(settings.oidc_domain).get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=[a.strip() for a in settings.oidc_algorithms.split(",")],
            audience=settings.oidc_api_audience,
            issuer=settings.oidc_issuer,
        )
    except jwt.PyJWTError as e:
        logger.info("Rejected bearer token: %s", e)
        raise UnauthorizedError("Invalid or expired token.") from e


def _user_from_claims(claims: dict[str, Any]) -> AuthenticatedUser:
    subject = claims.get("sub")
    if not subject:
        raise UnauthorizedError("Token has no subject.")
    raw_type = next((claims[c] for c in USER_TYPE_CLAIMS if c in claims), None)
    return AuthenticatedUser(
        id=_subject_to_uuid(str(subject)),
        email=claims.get("email"),
        type=_user_type(raw_type) if raw_type else UserType.REGULAR,
    )


def _user_from_headers(request: Request) -> Optional[AuthenticatedUser]:
    raw_id = request.headers.get("X-User-Id")
    if not raw_id:
        return None
    return AuthenticatedUser(
        id=_subject_to_uuid(raw_id),
        email=request.headers.get("X-User-Email"),
        type=_user_type(request.headers.get("X-User-Type", UserType.REGULAR)),
    )


def resolve_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[AuthenticatedUser]:
    """Identify the caller without touching the database; None if anonymous."""
    if get_settings().disable_auth:
        return _user_from_headers(request)
    if credentials is None or not credentials.credentials:
        return None
    return _user_from_claims(decode_token(credentials.credentials))


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthenticatedUser:
    """FastAPI dependency: the authenticated caller, mirrored into the users table."""
    user = resolve_user(request, credentials)
    if user is None:
        raise UnauthorizedError()
    UserService(db).ensure_user(user.id, user.email)
    return user


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[AuthenticatedUser]:
    """Like get_current_user but anonymous callers (or bad tokens) yield None."""
    try:
        return resolve_user(request, credentials)
    except UnauthorizedError:
        return None
