"""Phase transitions: introduction -> collecting -> confirming -> complete."""

from __future__ import annotations

from intake_agent.domain.phases import ConversationPhase, next_phase


def test_introduction_without_user_turn_stays() -> None:
    p = next_phase(
        ConversationPhase.INTRODUCTION,
        ["name"],
        has_user_turn=False,
        has_remaining_targets=True,
    )
    assert p == ConversationPhase.INTRODUCTION


def test_introduction_goes_to_collecting() -> None:
    p = next_phase(
        ConversationPhase.INTRODUCTION,
        ["name", "email"],
        has_user_turn=True,
        has_remaining_targets=True,
    )
    assert p == ConversationPhase.COLLECTING


def test_critical_missing_blocks_confirmation_even_when_user_wants_to_finish() -> None:
    p = next_phase(
        ConversationPhase.COLLECTING,
        ["email"],
        has_user_turn=True,
        has_remaining_targets=True,
        ready_to_confirm=True,
        user_confirmed=True,
    )
    assert p == ConversationPhase.COLLECTING


def test_collecting_with_optional_fields_left_stays_collecting() -> None:
    p = next_phase(ConversationPhase.COLLECTING, [], has_user_turn=True, has_remaining_targets=True)
    assert p == ConversationPhase.COLLECTING


def test_collecting_goes_to_confirming_when_nothing_left_to_ask() -> None:
    p = next_phase(ConversationPhase.COLLECTING, [], has_user_turn=True, has_remaining_targets=False)
    assert p == ConversationPhase.CONFIRMING


def test_collecting_goes_to_confirming_when_user_wraps_up() -> None:
    p = next_phase(
        ConversationPhase.COLLECTING,
        [],
        has_user_turn=True,
        has_remaining_targets=True,
        ready_to_confirm=True,
    )
    assert p == ConversationPhase.CONFIRMING


def test_confirmation_outside_confirming_phase_does_not_complete() -> None:
    p = next_phase(
        ConversationPhase.COLLECTING,
        [],
        has_user_turn=True,
        has_remaining_targets=False,
        user_confirmed=True,
    )
    assert p == ConversationPhase.CONFIRMING


def test_confirming_with_confirmation_completes() -> None:
    p = next_phase(
        ConversationPhase.CONFIRMING,
        [],
        has_user_turn=True,
        has_remaining_targets=False,
        user_confirmed=True,
    )
    assert p == ConversationPhase.COMPLETE


def test_confirming_without_confirmation_stays() -> None:
    p = next_phase(ConversationPhase.CONFIRMING, [], has_user_turn=True, has_remaining_targets=False)
    assert p == ConversationPhase.CONFIRMING


def test_complete_is_terminal() -> None:
    p = next_phase(ConversationPhase.COMPLETE, ["email"], has_user_turn=True, has_remaining_targets=True)
    assert p == ConversationPhase.COMPLETE
