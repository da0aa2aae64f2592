"""Intake agent: one turn = ingest, maybe summarize, extract, advance state, reply, sanitize."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Literal

import structlog
from pydantic import BaseModel, Field

from intake_agent.config.models import BotConfig
from intake_agent.config.settings import EngineSettings
from intake_agent.domain.confirmation import (
    build_confirmation_list,
    has_confirmation_list,
    is_explicit_confirmation,
)
from intake_agent.domain.extraction import ExtractionResult, parse_extraction
from intake_agent.domain.identity import sanitize_with_report
from intake_agent.domain.phases import ConversationPhase, next_phase
from intake_agent.domain.state import ConversationState, Message, UploadedDocument
from intake_agent.domain.transitions import (
    add_document,
    advance,
    initial_state,
    mark_asked,
    next_target_field,
)
from intake_agent.domain.validators import check_field_value
from intake_agent.infrastructure.documents import DocumentIngestor, filename_from_url
from intake_agent.infrastructure.llm_client import LLMClient
from intake_agent.orchestration.context_budget import ContextBudgetController
from intake_agent.orchestration.image_analysis import analyze_image
from intake_agent.orchestration.prompt_builder import (
    build_extraction_messages,
    build_reply_messages,
    build_reply_system_prompt,
)

logger = structlog.get_logger(__name__)

NO_INGESTOR_TEXT = "Document uploads are not available right now. Please describe the document instead."


class TurnProcessingError(Exception):
    """No assistant reply could be produced; the only error surfaced to the end user."""

    def __init__(self, message: str = "failed to process your message, please retry") -> None:
        super().__init__(message)


class TurnWarning(str, Enum):
    """Non-fatal problems that degraded a turn."""

    EXTRACTION_FAILED = "extraction_failed"
    SUMMARIZATION_FAILED = "summarization_failed"
    DOCUMENT_FAILED = "document_failed"
    IMAGE_FAILED = "image_failed"
    SANITIZER_NOT_CONVERGED = "sanitizer_not_converged"
    VALUE_CHECK_FAILED = "value_check_failed"


class Attachment(BaseModel):
    """A file sent along with the user's message."""

    url: str
    kind: Literal["document", "image"] = "document"
    filename: str | None = None

    @property
    def display_name(self) -> str:
        return self.filename or filename_from_url(self.url)


class TurnResult(BaseModel):
    reply: str
    state: ConversationState
    messages: list[Message] = Field(description="Full transcript including this turn")
    summarized: bool = False
    warnings: list[TurnWarning] = Field(default_factory=list)
    value_issues: dict[str, str] = Field(default_factory=dict)


class IntakeAgent:
    """One agent per bot: config + injected collaborators. Stateless between turns."""

    def __init__(
        self,
        config: BotConfig,
        llm_client: LLMClient,
        *,
        settings: EngineSettings | None = None,
        document_ingestor: DocumentIngestor | None = None,
        context_budget: ContextBudgetController | None = None,
    ) -> None:
        self.config = config
        self.settings = settings or EngineSettings()
        self._llm = llm_client
        self._documents = document_ingestor
        self._chat_model = config.llm_model or self.settings.chat_model
        self._budget = context_budget or ContextBudgetController(
            llm_client,
            threshold=self.settings.summarize_threshold,
            recent_window=self.settings.recent_window,
            model=self.settings.summary_model or self._chat_model,
        )

    def start_conversation(self) -> tuple[ConversationState, Message]:
        """Fresh state plus the sanitized greeting."""
        greeting = self._sanitize(self.config.greeting, [])
        return initial_state(self.config.bot_schema), Message(role="assistant", content=greeting)

    async def process_turn(
        self,
        state: ConversationState,
        messages: list[Message],
        user_message: str,
        *,
        attachment: Attachment | None = None,
    ) -> TurnResult:
        """
        Run one turn. Inputs are never mutated; the returned state is only
        produced once a reply exists. Raises TurnProcessingError if no reply
        text could be generated.
        """
        schema = self.config.bot_schema
        warnings: list[TurnWarning] = []
        previous_phase = ConversationPhase(state.phase)
        # Derived lists are rebuilt from the schema, whatever was stored.
        state = advance(state, {}, schema).state

        content = user_message
        if attachment is not None:
            content = f"{user_message}\n[Uploaded {attachment.kind}: {attachment.display_name}]".strip()
        transcript = [*messages, Message(role="user", content=content)]
        turn_number = len(transcript)

        document_text, image_text, budget = await asyncio.gather(
            self._ingest_document(attachment, warnings),
            self._analyze_image(attachment, transcript, warnings),
            self._budget.maybe_summarize(transcript, state.gathered_information),
        )
        if budget.error:
            warnings.append(TurnWarning.SUMMARIZATION_FAILED)
        working_context = budget.summarized_messages if budget.should_summarize else transcript

        if attachment is not None and attachment.kind == "document" and document_text is not None:
            state = add_document(
                state,
                UploadedDocument(
                    filename=attachment.display_name,
                    url=attachment.url,
                    extracted_text=document_text,
                    uploaded_turn=turn_number,
                ),
            )

        extraction = await self._extract(state, working_context, document_text, image_text, warnings)
        result = advance(state, extraction.extracted_information, schema)
        state = result.state

        value_issues = self._check_values(extraction.extracted_information)
        if value_issues:
            warnings.append(TurnWarning.VALUE_CHECK_FAILED)

        confirmed = previous_phase == ConversationPhase.CONFIRMING and (
            extraction.user_confirmed or is_explicit_confirmation(user_message)
        )
        phase = next_phase(
            previous_phase,
            result.critical_missing,
            has_user_turn=True,
            has_remaining_targets=next_target_field(state, schema) is not None,
            user_confirmed=confirmed,
            ready_to_confirm=extraction.ready_to_confirm,
        )
        state = state.model_copy(
            update={
                "phase": phase.value,
                "current_topic": extraction.current_topic or state.current_topic,
                "last_user_message": user_message,
            }
        )
        if phase != previous_phase:
            logger.info("phase_changed", previous=previous_phase.value, phase=phase.value)

        target = next_target_field(state, schema) if phase == ConversationPhase.COLLECTING else None
        system_prompt = build_reply_system_prompt(
            self.config,
            state,
            target_field=target,
            is_first_message=previous_phase == ConversationPhase.INTRODUCTION
            and not extraction.extracted_information,
            value_issues=value_issues,
            image_analysis=image_text,
        )
        reply = await self._generate_reply(system_prompt, working_context)

        if phase == ConversationPhase.CONFIRMING and not has_confirmation_list(reply):
            reply = f"{reply.rstrip()}\n\n{build_confirmation_list(state.gathered_information, schema)}"

        reply = self._sanitize(reply, warnings)
        state = mark_asked(state, target)

        return TurnResult(
            reply=reply,
            state=state,
            messages=[*transcript, Message(role="assistant", content=reply)],
            summarized=budget.should_summarize,
            warnings=warnings,
            value_issues=value_issues,
        )

    async def _ingest_document(self, attachment: Attachment | None, warnings: list[TurnWarning]) -> str | None:
        if attachment is None or attachment.kind != "document":
            return None
        if self._documents is None:
            warnings.append(TurnWarning.DOCUMENT_FAILED)
            return NO_INGESTOR_TEXT
        text, ok = await self._documents.extract_text_or_placeholder(attachment.url)
        if not ok:
            warnings.append(TurnWarning.DOCUMENT_FAILED)
        return text

    async def _analyze_image(
        self,
        attachment: Attachment | None,
        transcript: list[Message],
        warnings: list[TurnWarning],
    ) -> str | None:
        if attachment is None or attachment.kind != "image":
            return None
        history = "\n".join(f"{m.role}: {m.content}" for m in transcript[-6:])
        analysis = await analyze_image(
            self._llm,
            attachment.url,
            business_name=self.config.effective_business_name,
            history=history,
            model=self.settings.vision_model or self._chat_model,
        )
        if analysis is None:
            warnings.append(TurnWarning.IMAGE_FAILED)
        return analysis

    async def _extract(
        self,
        state: ConversationState,
        working_context: list[Message],
        document_text: str | None,
        image_text: str | None,
        warnings: list[TurnWarning],
    ) -> ExtractionResult:
        messages = build_extraction_messages(
            self.config,
            state,
            working_context,
            document_text=document_text,
            image_analysis=image_text,
        )
        try:
            raw = await self._llm.complete(
                messages,
                model=self.settings.extraction_model or self._chat_model,
                temperature=0.0,
                json_mode=True,
            )
            extraction = parse_extraction(raw)
        except Exception as e:  # extraction failure never aborts the turn
            logger.warning("extraction_failed", error=str(e))
            warnings.append(TurnWarning.EXTRACTION_FAILED)
            return ExtractionResult()

        if extraction.quarantined:
            logger.warning("extraction_reserved_keys_dropped", keys=sorted(extraction.quarantined))
        if extraction.extracted_information:
            logger.info("fields_extracted", keys=sorted(extraction.extracted_information))
        return extraction

    def _check_values(self, extracted: dict[str, str]) -> dict[str, str]:
        issues = {}
        for key, value in extracted.items():
            spec = self.config.bot_schema.required_info.get(key)
            if spec is None:
                continue
            ok, message = check_field_value(value, spec)
            if not ok:
                issues[key] = message
        return issues

    async def _generate_reply(self, system_prompt: str, working_context: list[Message]) -> str:
        try:
            reply = await self._llm.complete(
                build_reply_messages(system_prompt, working_context),
                model=self._chat_model,
                temperature=0.7,
            )
        except Exception as e:
            logger.error("reply_generation_failed", error=str(e))
            raise TurnProcessingError() from e
        reply = (reply or "").strip()
        if not reply:
            logger.error("reply_generation_failed", error="empty reply")
            raise TurnProcessingError()
        return reply

    def _sanitize(self, reply: str, warnings: list[TurnWarning]) -> str:
        report = sanitize_with_report(
            reply,
            self.config.effective_business_name,
            self.config.internal_identifiers,
            max_sweeps=self.settings.sanitizer_max_iterations,
        )
        if not report.converged:
            warnings.append(TurnWarning.SANITIZER_NOT_CONVERGED)
        return report.text
