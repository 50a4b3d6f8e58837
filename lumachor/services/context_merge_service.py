"""Service for merging user-selected contexts into a chat turn."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence
from uuid import uuid4

from lumachor.schemas.chat import ChatMessage

CONTEXT_BLOCK_MAX_CHARS = 120_000
CONTEXT_SEPARATOR = "\n\n---\n\n"
TRUNCATION_MARKER = "\n\n…(truncated)\n"
BLOCK_START = "[[CONTEXTUALIZE START]]"
BLOCK_END = "[[CONTEXTUALIZE END]]"
INLINE_PREAMBLE = "The following user-selected context must be applied when answering."


@dataclass(frozen=True)
class MergeableContext:
    name: str
    content: str

    @classmethod
    def from_row(cls, row: Any) -> "MergeableContext":
        return cls(name=row.name, content=row.content or "")


@dataclass(frozen=True)
class MergedContext:
    system_prompt: str
    inline_message: Optional[ChatMessage]


class ContextMergeService:
    """Composes the system prompt block and the synthetic context message."""

    def __init__(self, max_chars: int = CONTEXT_BLOCK_MAX_CHARS) -> None:
        self.max_chars = max_chars

    def build_context_block(self, rows: Sequence[MergeableContext]) -> str:
        """
        Render contexts as one delimited block for the system prompt.

        Bodies longer than max_chars are cut and marked as truncated; the
        delimiters are always kept.
        """
        if not rows:
            return ""
        body = CONTEXT_SEPARATOR.join(
            f"### Context: {row.name}\n{row.content.strip()}" for row in rows
        )
        if len(body) > self.max_chars:
            body = body[: self.max_chars] + TRUNCATION_MARKER
        return f"{BLOCK_START}\n\n{body}\n\n{BLOCK_END}"

    def build_inline_context_message(
        self, rows: Sequence[MergeableContext]
    ) -> Optional[ChatMessage]:
        """A user-role message restating the contexts, placed before the history."""
        if not rows:
            return None
        sections = "\n\n".join(
            f"## {i}. {row.name}\n```markdown\n{row.content.strip()}\n```"
            for i, row in enumerate(rows, start=1)
        )
        return ChatMessage(
            id=uuid4(),
            role="user",
            parts=[{"type": "text", "text": f"{INLINE_PREAMBLE}\n\n{sections}"}],
        )

    def merge(
        self, rows: Sequence[MergeableContext], base_system_prompt: str
    ) -> MergedContext:
        block = self.build_context_block(rows)
        system_prompt = f"{block}\n\n{base_system_prompt}" if block else base_system_prompt
        return MergedContext(
            system_prompt=system_prompt,
            inline_message=self.build_inline_context_message(rows),
        )
