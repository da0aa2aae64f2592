"""Build extraction and reply prompts from bot config and current state."""

from __future__ import annotations

import json
from collections.abc import Sequence

from intake_agent.config.models import BotConfig, BotSchema
from intake_agent.domain.phases import ConversationPhase
from intake_agent.domain.state import ConversationState, Message
from intake_agent.domain.transitions import askable_fields

# Instruction for the extractor to return structured JSON (ExtractionResult shape)
EXTRACTION_JSON_SCHEMA = """
You must reply with a single JSON object (no markdown, no extra text) with exactly these keys:
- "extracted_information": object mapping field key -> string value, only for information the user actually gave (may be empty)
- "user_confirmed": true only if the user explicitly confirmed a recap of their details
- "ready_to_confirm": true if the user says they have nothing more to add or want to wrap up
- "current_topic": the field key currently being discussed, or null
"""

MAX_DOCUMENT_CHARS = 6000


def _describe_field(schema: BotSchema, key: str) -> str:
    spec = schema.required_info.get(key)
    if spec is None:
        return key.replace("_", " ")
    return spec.description or key.replace("_", " ")


def build_extraction_messages(
    config: BotConfig,
    state: ConversationState,
    working_context: Sequence[Message],
    *,
    document_text: str | None = None,
    image_analysis: str | None = None,
) -> list[dict[str, str]]:
    """
    Messages for the extraction call: field schema, what is already known,
    the (possibly summarized) conversation and any attached document text.
    """
    schema = config.bot_schema
    fields = {
        key: {
            "description": spec.description,
            "example": spec.example,
            "type": spec.type,
            **({"options": spec.options} if spec.options else {}),
        }
        for key, spec in schema.required_info.items()
    }
    parts = [
        "You extract structured information from an intake conversation.",
        f"Conversation goal: {schema.goal}",
        "",
        "Fields (use exactly these keys):",
        json.dumps(fields, indent=2, ensure_ascii=False),
        "",
        "Already gathered (only include a key again if the user changed it):",
        json.dumps(state.gathered_information, indent=2, ensure_ascii=False),
        "",
        "Extract ALL information present in the user's last message, even if several fields are mentioned at once.",
    ]
    if state.phase == ConversationPhase.CONFIRMING.value:
        parts.append("A recap of the details was just shown to the user; decide whether they confirmed it.")
    parts.append(EXTRACTION_JSON_SCHEMA.strip())

    conversation = "\n".join(f"{m.role}: {m.content}" for m in working_context)
    user_parts = [f"Conversation:\n{conversation}"]
    if document_text:
        user_parts.append(f"Text of the document the user just uploaded:\n{document_text[:MAX_DOCUMENT_CHARS]}")
    if image_analysis:
        user_parts.append(f"Analysis of the image the user just uploaded:\n{image_analysis}")

    return [
        {"role": "system", "content": "\n".join(parts)},
        {"role": "user", "content": "\n\n".join(user_parts)},
    ]


def _strategy(
    state: ConversationState,
    schema: BotSchema,
    target_field: str | None,
    is_first_message: bool,
) -> str:
    """What the assistant should do now and next, given the missing fields."""
    if is_first_message:
        return (
            "PLAN:\n"
            "- Start with a warm greeting.\n"
            "- Ask ONE open-ended question to get the ball rolling.\n"
            "- Do NOT ask for contact info yet."
        )
    if state.phase == ConversationPhase.COMPLETE.value:
        return (
            "PLAN:\n"
            "- The user confirmed their details. Thank them and explain the next step "
            "(a team member will reach out). Do not ask further questions."
        )
    if state.phase == ConversationPhase.CONFIRMING.value:
        return (
            "PLAN - CONFIRMATION REQUIRED:\n"
            "- Show a bulleted list of everything gathered.\n"
            '- Format: "Let me confirm everything:\\n- Field: value\\n\\nDoes everything look correct?"\n'
            "- Do NOT finish until the user confirms."
        )
    if target_field is None:
        return "PLAN:\n- Answer the user's question, then offer to wrap up."

    remaining = [k for k in askable_fields(state, schema) if k != target_field]
    current = _describe_field(schema, target_field)
    nxt = _describe_field(schema, remaining[0]) if remaining else "wrap up and confirm the details"
    return (
        "PLAN:\n"
        f'1. CURRENT TARGET: you need "{current}".\n'
        f'2. As soon as the user answers, acknowledge it briefly and ask for "{nxt}".\n'
        '3. Do not say "Is there anything else?"; ask the next specific question instead.'
    )


def build_reply_system_prompt(
    config: BotConfig,
    state: ConversationState,
    *,
    target_field: str | None,
    is_first_message: bool = False,
    value_issues: dict[str, str] | None = None,
    image_analysis: str | None = None,
) -> str:
    """
    Assemble the reply-generation system prompt: identity, business
    instructions, strategy, and internal notes on missing fields.
    """
    schema = config.bot_schema
    name = config.effective_business_name
    parts = [
        f"BUSINESS CONTEXT: You represent {name}.",
        "",
        "IDENTITY:",
        f"You are the intake coordinator for {name}. Always refer to the business as {name}.",
        "- Tone: natural, fluid, efficient. Text like a human (short, casual).",
    ]
    if schema.system_prompt:
        parts.extend(["", schema.system_prompt.strip()])
    parts.extend(
        [
            "",
            "KEY PRINCIPLES:",
            "- Acknowledge briefly, then ask the next question.",
            "- Ask for ONE piece of information at a time.",
            "- Rephrase internal field names into user-friendly questions.",
            "- Never mention internal notes, field keys or tools.",
            "",
            _strategy(state, schema, target_field, is_first_message),
            "",
            "(Internal note:",
            f" - Remaining fields to capture: [{', '.join(state.missing_info)}]",
            f" - Already asked (don't ask again unless strict): [{', '.join(state.asked_fields) or 'none'}])",
        ]
    )
    for key in state.missing_info:
        spec = schema.required_info.get(key)
        if spec and spec.behavior == "conversational" and key in state.asked_fields:
            parts.append(f" - {key} is optional and was already asked; do not push for it.")

    if value_issues:
        parts.append("")
        parts.append("VALUES TO DOUBLE-CHECK with the user:")
        for key, issue in value_issues.items():
            parts.append(f"  - {key}: {issue}")

    if state.uploaded_documents:
        names = ", ".join(d.filename for d in state.uploaded_documents)
        parts.extend(["", f"DOCUMENTS: User uploaded: {names}."])
        latest = state.uploaded_documents[-1]
        parts.append(f"Latest document ({latest.filename}) text:\n{latest.extracted_text[:MAX_DOCUMENT_CHARS]}")
    if image_analysis:
        parts.extend(["", f"IMAGE CONTEXT: User uploaded image analysis: {image_analysis}"])

    return "\n".join(parts)


def build_reply_messages(system_prompt: str, working_context: Sequence[Message]) -> list[dict[str, str]]:
    return [{"role": "system", "content": system_prompt}, *(m.as_chat() for m in working_context)]
