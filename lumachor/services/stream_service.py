"""Stream id bookkeeping for resumable chat streams."""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from lumachor.models.stream import StreamId


class StreamService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create_stream_id(self, chat_id: UUID, stream_id: Optional[UUID] = None) -> StreamId:
        row = StreamId(id=stream_id or uuid4(), chat_id=chat_id)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def get_latest_stream_id(self, chat_id: UUID) -> Optional[StreamId]:
        return (
            self.db.query(StreamId)
            .filter(StreamId.chat_id == chat_id)
            .order_by(StreamId.created_at.desc())
            .first()
        )
