"""Contexts API: library listing, authoring, generation, stars, deletion and import."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from lumachor.auth.permissions import ensure_can_mutate
from lumachor.auth.session import get_current_user
from lumachor.commands.generate_context_command import GenerateContextCommand
from lumachor.db import get_db
from lumachor.errors import NotFoundError
from lumachor.infra.logging_config import get_logger
from lumachor.models.context import Context
from lumachor.routers.utils.dependencies import get_context_by_id, get_llm_runner
from lumachor.schemas.context import (
    ContextCreate,
    ContextEnvelope,
    ContextListResponse,
    ContextRead,
    ContextWithMeta,
    DeleteContextResponse,
    GenerateContextRequest,
    GenerateContextResponse,
    ImportContextRequest,
    StarToggleResponse,
)
from lumachor.schemas.user import AuthenticatedUser
from lumachor.services.context_service import LIST_MAX, ContextService
from lumachor.services.public_context_service import PublicContextService
from lumachor.workers.llm import LLMRunner

logger = get_logger("contexts")

router = APIRouter(
    prefix="/contexts",
    tags=["contexts"],
    responses={404: {"description": "Not found"}},
)


@router.get(
    "",
    response_model=ContextListResponse,
    response_model_exclude_none=True,
)
def list_contexts(
    q: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    mine: bool = Query(False),
    starred: bool = Query(False),
    with_meta: bool = Query(False, alias="withMeta"),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ContextListResponse:
    """List contexts, newest first, optionally annotated for the caller."""
    svc = ContextService(db)
    contexts = svc.list_contexts(
        user.id, q=q, tag=tag, mine=mine, starred=starred, limit=LIST_MAX
    )
    rows = [ContextWithMeta.model_validate(c) for c in contexts]
    if with_meta:
        liked_ids = svc.starred_context_ids(user.id, [c.id for c in contexts])
        for row in rows:
            row.liked = row.id in liked_ids
            row.owner = row.created_by == user.id
    return ContextListResponse(contexts=rows)


@router.post("", response_model=ContextEnvelope, status_code=status.HTTP_201_CREATED)
def create_context(
    body: ContextCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ContextEnvelope:
    """Create a context by hand."""
    context = ContextService(db).create_context(body, created_by=user.id)
    return ContextEnvelope(context=ContextRead.model_validate(context))


@router.post(
    "/generate",
    response_model=GenerateContextResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_context(
    body: GenerateContextRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    runner: LLMRunner = Depends(get_llm_runner),
) -> GenerateContextResponse:
    """Generate a structured context with the language model and save it."""
    context, payload = await GenerateContextCommand(db, runner).execute(body, user)
    return GenerateContextResponse(
        context=ContextRead.model_validate(context), payload=payload
    )


@router.post(
    "/import",
    response_model=ContextEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def import_context(
    body: ImportContextRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ContextEnvelope:
    """Copy a public context into the caller's library."""
    svc = PublicContextService(db)
    listing = svc.get_public_context(body.public_id)
    if listing is None:
        raise NotFoundError("Public context not found")
    context = svc.import_context(listing, user.id)
    if context is None:
        raise NotFoundError("Source context not found")
    logger.info("User %s imported public context %s", user.id, listing.id)
    return ContextEnvelope(context=ContextRead.model_validate(context))


@router.patch("/{context_id}", response_model=StarToggleResponse)
def toggle_star(
    user: AuthenticatedUser = Depends(get_current_user),
    context: Context = Depends(get_context_by_id),
    db: Session = Depends(get_db),
) -> StarToggleResponse:
    """Star or unstar a context for the caller."""
    return StarToggleResponse(liked=ContextService(db).toggle_star(user.id, context.id))


@router.delete("/{context_id}", response_model=DeleteContextResponse)
def delete_context(
    context_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DeleteContextResponse:
    """Delete one of the caller's contexts."""
    svc = ContextService(db)
    context = svc.get_context(context_id)
    if context is None:
        return DeleteContextResponse(deleted=False)
    ensure_can_mutate(context, user.id, "Only the creator can delete this context.")
    svc.delete_context(context)
    return DeleteContextResponse(deleted=True)
