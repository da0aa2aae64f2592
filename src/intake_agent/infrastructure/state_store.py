"""State store: Protocol + in-memory implementation."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from intake_agent.domain.state import ConversationSession


@runtime_checkable
class StateStore(Protocol):
    """Protocol for persisting and loading a conversation session (state + transcript)."""

    async def get(self, session_id: str) -> ConversationSession | None:
        """Load session. Return None if not found."""
        ...

    async def set(self, session_id: str, session: ConversationSession) -> None:
        """Persist session."""
        ...


class InMemoryStateStore:
    """In-memory store that round-trips through JSON, like a real backend would."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, session_id: str) -> ConversationSession | None:
        raw = self._store.get(session_id)
        if raw is None:
            return None
        return ConversationSession.model_validate_json(raw)

    async def set(self, session_id: str, session: ConversationSession) -> None:
        self._store[session_id] = session.model_dump_json()
