"""Agent runtime: routes turns by session id, one turn at a time per session."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from intake_agent.config.models import BotConfig
from intake_agent.config.settings import EngineSettings
from intake_agent.domain.state import ConversationSession
from intake_agent.infrastructure.documents import DocumentIngestor
from intake_agent.infrastructure.llm_client import LLMClient
from intake_agent.infrastructure.state_store import StateStore
from intake_agent.orchestration.agent import Attachment, IntakeAgent, TurnResult

logger = structlog.get_logger(__name__)


class AgentRuntime:
    """Holds config + collaborators; creates one IntakeAgent; isolates sessions by session_id."""

    def __init__(
        self,
        config: BotConfig,
        llm_client: LLMClient,
        state_store: StateStore,
        *,
        settings: EngineSettings | None = None,
        document_ingestor: DocumentIngestor | None = None,
    ) -> None:
        self.config = config
        self._store = state_store
        self._agent = IntakeAgent(
            config,
            llm_client,
            settings=settings,
            document_ingestor=document_ingestor,
        )
        # session_id -> (lock, number of turns holding or waiting on it)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def _lock(self, session_id: str) -> AsyncIterator[None]:
        """Serialize work on one session; the lock is dropped once nobody holds or awaits it."""
        lock, users = self._locks.get(session_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[session_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            _, users = self._locks[session_id]
            if users <= 1:
                del self._locks[session_id]
            else:
                self._locks[session_id] = (lock, users - 1)

    async def _load_or_create(self, session_id: str) -> tuple[ConversationSession, bool]:
        session = await self._store.get(session_id)
        if session is not None:
            return session, False
        state, greeting = self._agent.start_conversation()
        return ConversationSession(session_id=session_id, state=state, messages=[greeting]), True

    async def start_session(self, session_id: str) -> str:
        """
        Create the session with its greeting if it does not exist yet.
        Returns the greeting either way.
        """
        async with self._lock(session_id):
            session, created = await self._load_or_create(session_id)
            if created:
                await self._store.set(session_id, session)
                logger.info("session_started", session_id=session_id)
            return session.messages[0].content if session.messages else self.config.greeting

    async def handle_turn(
        self,
        session_id: str,
        user_message: str,
        attachment: Attachment | None = None,
    ) -> TurnResult:
        """
        Process one user message. Turns for the same session are serialized;
        state is persisted only after the turn produced a reply.
        """
        async with self._lock(session_id):
            session, _ = await self._load_or_create(session_id)
            result = await self._agent.process_turn(
                session.state,
                session.messages,
                user_message,
                attachment=attachment,
            )
            await self._store.set(
                session_id,
                ConversationSession(session_id=session_id, state=result.state, messages=result.messages),
            )
            if result.warnings:
                logger.warning(
                    "turn_degraded",
                    session_id=session_id,
                    warnings=[w.value for w in result.warnings],
                )
            return result

    async def handle_message(
        self,
        session_id: str,
        user_message: str,
        attachment: Attachment | None = None,
    ) -> str:
        """Route message to agent; return assistant reply."""
        result = await self.handle_turn(session_id, user_message, attachment)
        return result.reply

    async def get_session(self, session_id: str) -> ConversationSession | None:
        """Current state and transcript for a session (or None)."""
        return await self._store.get(session_id)
