"""Pure state reducers: merge extracted fields, derive missing lists, pick the next field to ask."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NamedTuple

from intake_agent.config.models import BotSchema
from intake_agent.domain.phases import ConversationPhase
from intake_agent.domain.state import ConversationState, UploadedDocument

# Keys matching these are asked last, once the business details are known.
CONTACT_KEYWORDS = ("email", "phone", "name", "contact")


class AdvanceResult(NamedTuple):
    state: ConversationState
    missing_info: list[str]
    critical_missing: list[str]


def derive_missing(gathered: Mapping[str, str], schema: BotSchema) -> tuple[list[str], list[str]]:
    """(missing_info, critical_missing) in schema declaration order."""
    missing = [key for key in schema.required_info if key not in gathered]
    critical = [key for key in missing if schema.required_info[key].critical]
    return missing, critical


def initial_state(schema: BotSchema) -> ConversationState:
    """Fresh state: nothing gathered, every field missing, introduction phase."""
    missing, critical = derive_missing({}, schema)
    return ConversationState(
        phase=ConversationPhase.INTRODUCTION.value,
        missing_info=missing,
        critical_missing=critical,
    )


def advance(
    state: ConversationState,
    extracted: Mapping[str, str],
    schema: BotSchema,
) -> AdvanceResult:
    """
    Merge newly extracted values into gathered_information (last write wins)
    and recompute the derived lists. Keys unknown to the schema are kept but
    never count as missing. Does not touch the phase.
    """
    gathered = {**state.gathered_information, **dict(extracted)}
    missing, critical = derive_missing(gathered, schema)
    updated = state.model_copy(
        deep=True,
        update={
            "gathered_information": gathered,
            "missing_info": missing,
            "critical_missing": critical,
        },
    )
    return AdvanceResult(updated, list(missing), list(critical))


def restore_state(data: Mapping[str, Any], schema: BotSchema) -> ConversationState:
    """Load a persisted state; derived lists are rebuilt from the schema, not trusted."""
    state = ConversationState.model_validate(dict(data))
    return advance(state, {}, schema).state


def add_document(state: ConversationState, document: UploadedDocument) -> ConversationState:
    return state.model_copy(
        deep=True,
        update={"uploaded_documents": [*state.uploaded_documents, document]},
    )


def _is_contact_field(key: str) -> bool:
    lowered = key.lower()
    return any(word in lowered for word in CONTACT_KEYWORDS)


def askable_fields(state: ConversationState, schema: BotSchema) -> list[str]:
    """
    Missing fields that may still be asked: strict and critical fields until
    answered, conversational fields only until asked once. Core fields come
    before contact fields.
    """
    eligible = []
    for key in state.missing_info:
        spec = schema.required_info.get(key)
        if spec is None:
            continue
        if spec.behavior == "strict" or spec.critical or key not in state.asked_fields:
            eligible.append(key)
    core = [k for k in eligible if not _is_contact_field(k)]
    contact = [k for k in eligible if _is_contact_field(k)]
    return core + contact


def next_target_field(state: ConversationState, schema: BotSchema) -> str | None:
    fields = askable_fields(state, schema)
    return fields[0] if fields else None


def mark_asked(state: ConversationState, key: str | None) -> ConversationState:
    if key is None or key in state.asked_fields:
        return state
    return state.model_copy(deep=True, update={"asked_fields": [*state.asked_fields, key]})
