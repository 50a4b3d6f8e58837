"""Prompt templates for context generation, tagging and chat titles."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lumachor.schemas.context import ContextPayload

GENERATOR_SYSTEM = (
    "Return ONLY a strict JSON object as specified. "
    "No markdown fences, no commentary, no code blocks."
)

TAGGER_SYSTEM = "Output only a comma-separated list of 3–6 short lowercase tags."

TITLE_SYSTEM = """
- you will generate a short title based on the first message a user begins a conversation with
- ensure it is not more than 80 characters long
- the title should be a summary of the user's message
- do not use quotes or colons
"""

TAG_SOURCE_MAX_CHARS = 4000


def generator_prompt(user_prompt: str, tags: list[str]) -> str:
    """Instructional prompt demanding the six-field context JSON."""
    selected = ", ".join(tags) or "(none)"
    return f"""You are an expert prompt engineer whose sole task is to craft a **high-quality, reusable context template** for a downstream chatbot.
This template must prepare the chatbot to operate with deep knowledge, clear goals, and actionable instructions.

USER'S REQUEST:
"{user_prompt}"

SELECTED TAGS: {selected}  (e.g. customer-support, coding, interview-prep, character-design)

────────────────────
INSTRUCTIONS
────────────────────
Using the user's request and the selected tags, generate a **rich, detailed** context that includes the following EXACT JSON fields:

{{
  "title": string - 3–6 words summarizing the chatbot's purpose for this context,
  "description": string - 1 short paragraph (2–4 sentences) explaining the overall role, mission, and intended impact of the chatbot in this context,
  "background_goals": string[] - 4–10 bullet points giving the key facts, assumptions, domain knowledge, and objectives the chatbot should operate with,
  "tone_style": string[] - 3–6 bullet points describing the exact communication style, voice, and any formatting rules (e.g. step-by-step, bullet lists, formal/informal),
  "constraints_scope": string[] - 3–6 bullet points stating clear boundaries, what to avoid, off-topic areas, and limits of knowledge or scope,
  "example_prompts": string[] - 2–5 realistic example user messages that are **directly relevant** to this context
}}

CONTENT REQUIREMENTS:
- The JSON must be **deeply informative**; avoid vague or generic statements.
- "background_goals" should give the chatbot **practical context** it can use immediately.
- "tone_style" must clearly communicate how the chatbot should sound and structure replies.
- "constraints_scope" must ensure the chatbot stays in its lane and avoids irrelevant or risky territory.
- "example_prompts" must be realistic queries a user in this context would actually ask.

OUTPUT RULES:
- Output STRICT JSON only: no markdown, no prose, no commentary.
- Each field must be present exactly as listed above.
- Strings must be concise yet rich in useful detail.
- All arrays must have at least the minimum required items.

Now produce the final JSON object."""


def tag_prompt(payload: "ContextPayload") -> str:
    """Ask for retrieval tags for an already generated context."""
    pack = "\n".join(
        [
            payload.title,
            payload.description,
            *payload.background_goals,
            *payload.tone_style,
            *payload.constraints_scope,
            *payload.example_prompts,
        ]
    )[:TAG_SOURCE_MAX_CHARS]
    return f"""You are labeling a prompt context for retrieval.
Return 3 short, lowercase, single-word tags that best categorize this context (no punctuation, no sentences).
Output MUST be a comma-separated list only (e.g. "coding, support, tutor").

CONTEXT:
{pack}
"""
