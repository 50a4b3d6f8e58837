"""Public context library: publish, unpublish, browse and import."""

from __future__ import annotations

from itertools import islice
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lumachor.models.context import Context, PublicContext
from lumachor.services.context_service import has_tag
from lumachor.utils.db.filtering import (
    LIKE_ESCAPE,
    json_list_contains,
    like_pattern,
    supports_jsonb,
)

PUBLIC_LIST_MAX = 200


class PublicContextService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_public_context(self, public_id: UUID) -> Optional[PublicContext]:
        return self.db.query(PublicContext).filter(PublicContext.id == public_id).first()

    def get_by_context_id(self, context_id: UUID) -> Optional[PublicContext]:
        return (
            self.db.query(PublicContext)
            .filter(PublicContext.context_id == context_id)
            .first()
        )

    def publish(self, context: Context, user_id: UUID) -> Tuple[PublicContext, bool]:
        """
        List a context publicly. Publishing twice returns the existing listing.

        Returns (listing, created).
        """
        existing = self.get_by_context_id(context.id)
        if existing is not None:
            return existing, False
        listing = PublicContext(context_id=context.id, created_by=user_id)
        self.db.add(listing)
        try:
            self.db.commit()
        except IntegrityError:
            # Concurrent publish hit the unique constraint
            self.db.rollback()
            existing = self.get_by_context_id(context.id)
            if existing is None:
                raise
            return existing, False
        self.db.refresh(listing)
        return listing, True

    def unpublish(self, listing: PublicContext) -> None:
        self.db.delete(listing)
        self.db.commit()

    def list_public(
        self,
        q: Optional[str] = None,
        tag: Optional[str] = None,
        limit: int = PUBLIC_LIST_MAX,
    ) -> List[Tuple[PublicContext, Context]]:
        """Newest listings first; the inner join drops listings whose context is gone."""
        query = self.db.query(PublicContext, Context).join(
            Context, Context.id == PublicContext.context_id
        )
        term = (q or "").strip()
        if term:
            pattern = like_pattern(term)
            query = query.filter(
                or_(
                    Context.name.ilike(pattern, escape=LIKE_ESCAPE),
                    Context.description.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        query = query.order_by(PublicContext.created_at.desc())
        limit = min(max(limit, 1), PUBLIC_LIST_MAX)

        wanted = (tag or "").strip().lower()
        if not wanted:
            return [(listing, ctx) for listing, ctx in query.limit(limit).all()]
        if supports_jsonb(self.db):
            query = query.filter(json_list_contains(Context.tags, wanted))
            return [(listing, ctx) for listing, ctx in query.limit(limit).all()]
        rows = (
            (listing, ctx) for listing, ctx in query.yield_per(limit) if has_tag(ctx, wanted)
        )
        return list(islice(rows, limit))

    def import_context(self, listing: PublicContext, user_id: UUID) -> Optional[Context]:
        """Copy a listed context into the caller's library; None if the source is gone."""
        source = listing.context
        if source is None:
            return None
        copy = Context(
            name=source.name,
            content=source.content,
            tags=list(source.tags or []),
            description=source.description,
            created_by=user_id,
        )
        self.db.add(copy)
        self.db.commit()
        self.db.refresh(copy)
        return copy
