"""Prompt assembly for the extraction and reply calls."""

from __future__ import annotations

from intake_agent.config.models import BotConfig
from intake_agent.domain.state import Message, UploadedDocument
from intake_agent.domain.transitions import add_document, advance, initial_state, mark_asked
from intake_agent.orchestration.prompt_builder import (
    MAX_DOCUMENT_CHARS,
    build_extraction_messages,
    build_reply_messages,
    build_reply_system_prompt,
)


def test_extraction_messages_carry_schema_and_context(bot_config: BotConfig) -> None:
    state = advance(initial_state(bot_config.bot_schema), {"name": "Jane"}, bot_config.bot_schema).state
    context = [Message(role="assistant", content="Hi"), Message(role="user", content="jane@x.com")]
    system, user = build_extraction_messages(bot_config, state, context, document_text="x" * 10000)

    assert system["role"] == "system"
    assert '"email"' in system["content"]
    assert '"name": "Jane"' in system["content"]
    assert "extracted_information" in system["content"]
    assert user["content"].startswith("Conversation:\nassistant: Hi\nuser: jane@x.com")
    assert "x" * MAX_DOCUMENT_CHARS in user["content"]
    assert "x" * (MAX_DOCUMENT_CHARS + 1) not in user["content"]


def test_extraction_mentions_recap_when_confirming(bot_config: BotConfig) -> None:
    state = initial_state(bot_config.bot_schema).model_copy(update={"phase": "confirming"})
    system, _ = build_extraction_messages(bot_config, state, [], image_analysis="A cracked tile.")
    assert "recap" in system["content"]
    _, user = build_extraction_messages(bot_config, state, [], image_analysis="A cracked tile.")
    assert "A cracked tile." in user["content"]


def test_reply_prompt_targets_current_and_next_field(bot_config: BotConfig) -> None:
    state = initial_state(bot_config.bot_schema).model_copy(update={"phase": "collecting"})
    prompt = build_reply_system_prompt(bot_config, state, target_field="name")
    assert "You represent Acme Roofing." in prompt
    assert 'CURRENT TARGET: you need "Full name"' in prompt
    assert 'ask for "Budget"' in prompt
    assert "Be helpful." in prompt
    assert "Remaining fields to capture: [name, email, budget]" in prompt


def test_reply_prompt_first_message_plan(bot_config: BotConfig) -> None:
    prompt = build_reply_system_prompt(
        bot_config, initial_state(bot_config.bot_schema), target_field="name", is_first_message=True
    )
    assert "warm greeting" in prompt
    assert "CURRENT TARGET" not in prompt


def test_reply_prompt_confirming_and_complete(bot_config: BotConfig) -> None:
    state = initial_state(bot_config.bot_schema)
    confirming = build_reply_system_prompt(bot_config, state.model_copy(update={"phase": "confirming"}), target_field=None)
    assert "CONFIRMATION REQUIRED" in confirming
    complete = build_reply_system_prompt(bot_config, state.model_copy(update={"phase": "complete"}), target_field=None)
    assert "team member will reach out" in complete


def test_reply_prompt_notes_value_issues_documents_and_asked_optional(bot_config: BotConfig) -> None:
    state = mark_asked(initial_state(bot_config.bot_schema), "budget")
    state = add_document(
        state,
        UploadedDocument(filename="scope.txt", url="https://x/scope.txt", extracted_text="Replace shingles", uploaded_turn=2),
    )
    prompt = build_reply_system_prompt(
        bot_config,
        state,
        target_field="name",
        value_issues={"email": "Did you mean jane@gmail.com?"},
        image_analysis="Missing shingles near the chimney.",
    )
    assert "budget is optional and was already asked" in prompt
    assert "email: Did you mean jane@gmail.com?" in prompt
    assert "DOCUMENTS: User uploaded: scope.txt." in prompt
    assert "Replace shingles" in prompt
    assert "Missing shingles near the chimney." in prompt


def test_reply_messages_prepend_system_prompt() -> None:
    context = [Message(role="system", content="summary"), Message(role="user", content="hi")]
    msgs = build_reply_messages("SYS", context)
    assert msgs[0] == {"role": "system", "content": "SYS"}
    assert msgs[1:] == [{"role": "system", "content": "summary"}, {"role": "user", "content": "hi"}]
