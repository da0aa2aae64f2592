"""State machine reducer: last-write-wins merge, derived missing lists, next field selection."""

from __future__ import annotations

import pytest

from intake_agent.config.models import BotSchema, FieldSpec
from intake_agent.domain.state import UploadedDocument
from intake_agent.domain.transitions import (
    add_document,
    advance,
    askable_fields,
    initial_state,
    mark_asked,
    next_target_field,
)


def test_two_turn_scenario(lead_schema: BotSchema) -> None:
    state = initial_state(lead_schema)

    state, missing, critical = advance(state, {"name": "Jane"}, lead_schema)
    assert missing == ["email", "budget"]
    assert critical == ["email"]

    state, missing, critical = advance(state, {"email": "jane@x.com"}, lead_schema)
    assert critical == []
    assert missing == ["budget"]
    assert state.missing_info == ["budget"]
    assert state.gathered_information == {"name": "Jane", "email": "jane@x.com"}


def test_last_write_wins(lead_schema: BotSchema) -> None:
    state = advance(initial_state(lead_schema), {"email": "old@x.com"}, lead_schema).state
    state = advance(state, {"email": "new@x.com"}, lead_schema).state
    assert state.gathered_information["email"] == "new@x.com"


def test_empty_extraction_leaves_state_unchanged(lead_schema: BotSchema) -> None:
    state = advance(initial_state(lead_schema), {"name": "Jane"}, lead_schema).state
    again = advance(state, {}, lead_schema).state
    assert again == state


def test_advance_does_not_mutate_input(lead_schema: BotSchema) -> None:
    state = initial_state(lead_schema)
    advance(state, {"name": "Jane"}, lead_schema)
    assert state.gathered_information == {}
    assert state.missing_info == ["name", "email", "budget"]


def test_unknown_keys_pass_through(lead_schema: BotSchema) -> None:
    state, missing, critical = advance(initial_state(lead_schema), {"favourite_colour": "blue"}, lead_schema)
    assert state.gathered_information == {"favourite_colour": "blue"}
    assert missing == ["name", "email", "budget"]
    assert critical == ["name", "email"]


@pytest.mark.parametrize(
    "updates",
    [
        [],
        [{"budget": "500"}],
        [{"name": "A"}, {"extra": "x"}, {"email": "a@b.co"}],
        [{"name": "A", "email": "a@b.co", "budget": "1"}],
    ],
)
def test_invariants_hold_for_every_reachable_state(lead_schema: BotSchema, updates: list[dict[str, str]]) -> None:
    state = initial_state(lead_schema)
    for update in updates:
        state = advance(state, update, lead_schema).state
        gathered = set(state.gathered_information)
        assert gathered.isdisjoint(state.missing_info)
        assert gathered | set(state.missing_info) >= set(lead_schema.required_info)
        assert set(state.critical_missing) <= set(state.missing_info)


def test_missing_order_follows_schema_declaration() -> None:
    schema = BotSchema(
        goal="g",
        required_info={
            "zeta": FieldSpec(description="z"),
            "alpha": FieldSpec(description="a", critical=True),
            "mid": FieldSpec(description="m"),
        },
    )
    state = advance(initial_state(schema), {"mid": "x"}, schema).state
    assert state.missing_info == ["zeta", "alpha"]


def test_add_document_appends(lead_schema: BotSchema) -> None:
    state = initial_state(lead_schema)
    doc = UploadedDocument(filename="a.txt", url="https://x/a.txt", extracted_text="hello", uploaded_turn=2)
    updated = add_document(state, doc)
    assert updated.uploaded_documents == [doc]
    assert state.uploaded_documents == []


def test_core_fields_targeted_before_contact_fields() -> None:
    schema = BotSchema(
        goal="g",
        required_info={
            "email": FieldSpec(description="Email", critical=True, behavior="strict"),
            "service_type": FieldSpec(description="Service", critical=True, behavior="strict"),
            "full_name": FieldSpec(description="Name", critical=True, behavior="strict"),
        },
    )
    state = initial_state(schema)
    assert askable_fields(state, schema) == ["service_type", "email", "full_name"]
    assert next_target_field(state, schema) == "service_type"


def test_conversational_field_asked_once(lead_schema: BotSchema) -> None:
    state = advance(initial_state(lead_schema), {"name": "Jane", "email": "j@x.com"}, lead_schema).state
    assert next_target_field(state, lead_schema) == "budget"
    state = mark_asked(state, "budget")
    assert state.asked_fields == ["budget"]
    assert next_target_field(state, lead_schema) is None


def test_strict_field_stays_askable(lead_schema: BotSchema) -> None:
    state = mark_asked(initial_state(lead_schema), "name")
    assert "name" in askable_fields(state, lead_schema)


def test_critical_conversational_field_stays_askable() -> None:
    schema = BotSchema(goal="g", required_info={"budget": FieldSpec(description="b", critical=True)})
    state = mark_asked(initial_state(schema), "budget")
    assert next_target_field(state, schema) == "budget"


def test_mark_asked_is_deduplicated(lead_schema: BotSchema) -> None:
    state = mark_asked(mark_asked(initial_state(lead_schema), "budget"), "budget")
    assert state.asked_fields == ["budget"]
    assert mark_asked(state, None) is state
