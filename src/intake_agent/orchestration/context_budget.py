"""Context budget: compress long transcripts into a summary plus a verbatim recent tail.

Strategy:
- keep the last ``recent_window`` messages verbatim (recent context matters most)
- summarize everything older into one system message
- restate gathered information in the summary prompt so no collected fact is lost
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping, Sequence

import structlog
from pydantic import BaseModel, Field

from intake_agent.domain.state import Message
from intake_agent.infrastructure.llm_client import LLMClient

logger = structlog.get_logger(__name__)

DEFAULT_THRESHOLD = 20
DEFAULT_RECENT_WINDOW = 10

SUMMARY_PROMPT = """Summarize this conversation history concisely while preserving all important context and information gathered.

Conversation to summarize:
{transcript}

Information gathered so far:
{gathered}

Provide a 2-3 paragraph summary that captures:
1. What the user initially requested
2. Key topics discussed
3. Any important context or details mentioned
4. The conversation flow and progression

Be concise but preserve all critical information."""


class SummarizationResult(BaseModel):
    should_summarize: bool
    summarized_messages: list[Message] | None = None
    recent_messages: list[Message] | None = None
    error: str | None = Field(default=None, description="Set when summarization was attempted and failed")


def estimate_token_count(messages: Sequence[Message]) -> int:
    """Rough estimate: one token per four characters of content."""
    total_chars = sum(len(m.content) for m in messages)
    return math.ceil(total_chars / 4)


def summary_header(old_count: int, summary: str) -> str:
    return (
        f"Previous conversation summary ({old_count} messages):\n\n{summary}\n\n"
        "The conversation continues below with recent messages."
    )


class ContextBudgetController:
    """Decides when the working context is too long and replaces it with summary + tail."""

    def __init__(
        self,
        llm_client: LLMClient,
        *,
        threshold: int = DEFAULT_THRESHOLD,
        recent_window: int = DEFAULT_RECENT_WINDOW,
        model: str | None = None,
    ) -> None:
        self._llm = llm_client
        self.threshold = threshold
        self.recent_window = recent_window
        self._model = model

    async def maybe_summarize(
        self,
        messages: Sequence[Message],
        gathered_info: Mapping[str, str],
        threshold: int | None = None,
    ) -> SummarizationResult:
        """
        Below the threshold this is a no-op. Above it, summarize all but the
        recent tail. Any failure falls back to should_summarize=False so the
        caller keeps using the full transcript.
        """
        limit = self.threshold if threshold is None else threshold
        if len(messages) < limit:
            return SummarizationResult(should_summarize=False)

        logger.info("summarizing_conversation", message_count=len(messages))
        recent = [m.model_copy() for m in messages[-self.recent_window:]]
        old = list(messages[: -self.recent_window])
        if not old:
            return SummarizationResult(should_summarize=False)

        prompt = SUMMARY_PROMPT.format(
            transcript="\n".join(f"{m.role}: {m.content}" for m in old),
            gathered=json.dumps(dict(gathered_info), indent=2, ensure_ascii=False),
        )
        try:
            summary = await self._llm.complete(
                [{"role": "user", "content": prompt}],
                model=self._model,
                temperature=0.3,
                max_tokens=500,
            )
        except Exception as e:  # any provider failure degrades to the full transcript
            logger.warning("summarization_failed", error=str(e), message_count=len(messages))
            return SummarizationResult(should_summarize=False, error=str(e))

        summary = (summary or "").strip()
        if not summary:
            logger.warning("summarization_failed", error="empty summary", message_count=len(messages))
            return SummarizationResult(should_summarize=False, error="empty summary")

        summarized = [Message(role="system", content=summary_header(len(old), summary)), *recent]
        logger.info("conversation_summarized", old_messages=len(old), summary_chars=len(summary))
        return SummarizationResult(
            should_summarize=True,
            summarized_messages=summarized,
            recent_messages=recent,
        )
