"""Public context library API: browse, publish, unpublish."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from lumachor.auth.permissions import can_mutate, ensure_can_mutate
from lumachor.auth.session import get_current_user, get_optional_user
from lumachor.db import get_db
from lumachor.errors import ForbiddenError, NotFoundError
from lumachor.infra.logging_config import get_logger
from lumachor.models.context import PublicContext
from lumachor.routers.utils.dependencies import get_public_context_by_id
from lumachor.schemas.context import (
    ContextRead,
    PublicContextListResponse,
    PublicContextRead,
    PublishRequest,
    PublishResponse,
)
from lumachor.schemas.user import AuthenticatedUser
from lumachor.services.context_service import ContextService
from lumachor.services.public_context_service import PUBLIC_LIST_MAX, PublicContextService

logger = get_logger("public_contexts")

router = APIRouter(
    prefix="/public-contexts",
    tags=["public-contexts"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=PublicContextListResponse)
def list_public_contexts(
    q: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> PublicContextListResponse:
    """Browse the public library; no sign-in required."""
    rows = PublicContextService(db).list_public(q=q, tag=tag, limit=PUBLIC_LIST_MAX)
    return PublicContextListResponse(
        contexts=[
            PublicContextRead(
                **ContextRead.model_validate(context).model_dump(),
                public_id=listing.id,
                publisher_id=listing.created_by,
                published_at=listing.created_at,
                owner=user is not None and context.created_by == user.id,
            )
            for listing, context in rows
        ]
    )


@router.post("", response_model=PublishResponse, status_code=status.HTTP_201_CREATED)
def publish_context(
    body: PublishRequest,
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PublishResponse:
    """Publish one of the caller's contexts; publishing again returns the same listing."""
    context = ContextService(db).get_context(body.context_id)
    if context is None:
        raise NotFoundError("Context not found")
    ensure_can_mutate(context, user.id, "Only the creator can publish this context.")
    listing, created = PublicContextService(db).publish(context, user.id)
    if not created:
        response.status_code = status.HTTP_200_OK
    else:
        logger.info("User %s published context %s as %s", user.id, context.id, listing.id)
    return PublishResponse(public_id=listing.id)


@router.delete("/{public_id}", status_code=status.HTTP_204_NO_CONTENT)
def unpublish_context(
    user: AuthenticatedUser = Depends(get_current_user),
    listing: PublicContext = Depends(get_public_context_by_id),
    db: Session = Depends(get_db),
) -> Response:
    """Remove a listing; allowed for its publisher or the context's creator."""
    context = listing.context
    if not (can_mutate(listing, user.id) or (context and can_mutate(context, user.id))):
        raise ForbiddenError("Only the publisher can unpublish this context.")
    PublicContextService(db).unpublish(listing)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
