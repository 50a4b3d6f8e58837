"""Context library: listing, authoring, stars, deletion and chat links."""

from __future__ import annotations

from itertools import islice
from typing import Iterable, Iterator, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lumachor.infra.logging_config import get_logger
from lumachor.models.context import ChatContext, Context, ContextStar
from lumachor.schemas.context import ContextCreate, normalize_tags
from lumachor.utils.db.filtering import (
    LIKE_ESCAPE,
    json_list_contains,
    like_pattern,
    supports_jsonb,
)

logger = get_logger("context_service")

LIST_MAX = 50


class ContextService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_context(self, context_id: UUID) -> Optional[Context]:
        return self.db.query(Context).filter(Context.id == context_id).first()

    def get_contexts_by_ids(self, context_ids: Sequence[UUID]) -> List[Context]:
        """Load contexts keeping the requested order; unknown ids are skipped."""
        if not context_ids:
            return []
        rows = self.db.query(Context).filter(Context.id.in_(list(context_ids))).all()
        by_id = {row.id: row for row in rows}
        ordered: List[Context] = []
        for context_id in context_ids:
            row = by_id.pop(context_id, None)
            if row is not None:
                ordered.append(row)
        return ordered

    def list_contexts(
        self,
        user_id: UUID,
        q: Optional[str] = None,
        tag: Optional[str] = None,
        mine: bool = False,
        starred: bool = False,
        limit: int = LIST_MAX,
    ) -> List[Context]:
        """
        List contexts newest first.

        q matches name or description case-insensitively, tag requires
        membership in the context's tags, mine restricts to the caller's
        contexts and starred to the ones the caller starred.
        """
        query = self.db.query(Context)
        term = (q or "").strip()
        if term:
            pattern = like_pattern(term)
            query = query.filter(
                or_(
                    Context.name.ilike(pattern, escape=LIKE_ESCAPE),
                    Context.description.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        if mine:
            query = query.filter(Context.created_by == user_id)
        if starred:
            query = query.join(
                ContextStar,
                (ContextStar.context_id == Context.id) & (ContextStar.user_id == user_id),
            )
        query = query.order_by(Context.created_at.desc())
        limit = min(max(limit, 1), LIST_MAX)

        wanted = (tag or "").strip().lower()
        if not wanted:
            return query.limit(limit).all()
        if supports_jsonb(self.db):
            query = query.filter(json_list_contains(Context.tags, wanted))
            return query.limit(limit).all()
        # Without JSONB the membership test runs here, stopping at limit
        return list(islice(filter_by_tag(query.yield_per(limit), wanted), limit))

    def starred_context_ids(self, user_id: UUID, context_ids: Iterable[UUID]) -> set[UUID]:
        ids = list(context_ids)
        if not ids:
            return set()
        rows = (
            self.db.query(ContextStar.context_id)
            .filter(ContextStar.user_id == user_id, ContextStar.context_id.in_(ids))
            .all()
        )
        return {row[0] for row in rows}

    def create_context(
        self,
        data: ContextCreate,
        created_by: UUID,
    ) -> Context:
        context = Context(
            name=data.name,
            content=data.content,
            tags=normalize_tags(data.tags),
            description=data.description,
            created_by=created_by,
        )
        self.db.add(context)
        self.db.commit()
        self.db.refresh(context)
        return context

    def toggle_star(self, user_id: UUID, context_id: UUID) -> bool:
        """Flip the caller's star on a context; returns the new state."""
        star = (
            self.db.query(ContextStar)
            .filter(ContextStar.user_id == user_id, ContextStar.context_id == context_id)
            .first()
        )
        if star is not None:
            self.db.delete(star)
            self.db.commit()
            return False
        self.db.add(ContextStar(user_id=user_id, context_id=context_id))
        self.db.commit()
        return True

    def delete_context(self, context: Context) -> None:
        """Delete a context with its stars, public listing and chat links."""
        self.db.delete(context)
        self.db.commit()

    def link_contexts_to_chat(self, chat_id: UUID, context_ids: Sequence[UUID]) -> int:
        """
        Record which contexts were applied to a chat.

        Existing links are left alone. Failures are logged and swallowed since
        the links are only an audit trail. Returns the number of new links.
        """
        if not context_ids:
            return 0
        try:
            existing = {
                row[0]
                for row in self.db.query(ChatContext.context_id)
                .filter(
                    ChatContext.chat_id == chat_id,
                    ChatContext.context_id.in_(list(context_ids)),
                )
                .all()
            }
            new_ids = [cid for cid in dict.fromkeys(context_ids) if cid not in existing]
            for context_id in new_ids:
                self.db.add(ChatContext(chat_id=chat_id, context_id=context_id))
            self.db.commit()
            return len(new_ids)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning("Failed to link contexts to chat %s: %s", chat_id, e)
            return 0


def has_tag(context: Context, tag: str) -> bool:
    return tag in (context.tags or [])


def filter_by_tag(contexts: Iterable[Context], tag: str) -> Iterator[Context]:
    return (c for c in contexts if has_tag(c, tag))
