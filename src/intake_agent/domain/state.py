"""Conversation state models. gathered_information is overwrite-only; documents are append-only."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """A single transcript message."""

    role: Literal["user", "assistant", "system"]
    content: str

    def as_chat(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class UploadedDocument(BaseModel):
    """A file the user attached, with the text pulled out of it."""

    filename: str
    url: str
    extracted_text: str
    uploaded_at: datetime = Field(default_factory=_utcnow)
    uploaded_turn: int = Field(..., ge=1, description="1-based transcript position of the user message")


class ConversationState(BaseModel):
    """Canonical per-conversation record. missing_info and critical_missing are derived."""

    phase: str = Field(default="introduction", description="ConversationPhase value")
    gathered_information: dict[str, str] = Field(default_factory=dict)
    missing_info: list[str] = Field(default_factory=list)
    critical_missing: list[str] = Field(default_factory=list)
    uploaded_documents: list[UploadedDocument] = Field(default_factory=list)
    asked_fields: list[str] = Field(default_factory=list, description="Fields already targeted by a reply")
    current_topic: str | None = None
    last_user_message: str | None = None


class ConversationSession(BaseModel):
    """What the persistence provider stores between turns: state plus full transcript."""

    session_id: str
    state: ConversationState
    messages: list[Message] = Field(default_factory=list)
