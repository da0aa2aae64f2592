"""Conversation FSM: enum and pure transition function."""

from __future__ import annotations

from enum import Enum


class ConversationPhase(str, Enum):
    """Conversation lifecycle phases."""

    INTRODUCTION = "introduction"
    COLLECTING = "collecting"
    CONFIRMING = "confirming"
    COMPLETE = "complete"


def next_phase(
    phase: ConversationPhase,
    critical_missing: list[str],
    *,
    has_user_turn: bool,
    has_remaining_targets: bool,
    user_confirmed: bool = False,
    ready_to_confirm: bool = False,
) -> ConversationPhase:
    """
    Pure transition: given the current phase and what the turn produced,
    return the next phase. Completion needs every critical field and an
    explicit confirmation given while a recap was on screen.
    """
    if phase == ConversationPhase.COMPLETE:
        return ConversationPhase.COMPLETE

    if not has_user_turn:
        return phase

    if critical_missing:
        return ConversationPhase.COLLECTING

    if phase == ConversationPhase.CONFIRMING:
        if user_confirmed:
            return ConversationPhase.COMPLETE
        return ConversationPhase.CONFIRMING

    if not has_remaining_targets or ready_to_confirm:
        return ConversationPhase.CONFIRMING

    return ConversationPhase.COLLECTING
