"""Pytest fixtures: MockLLMClient, example schemas and configs, state factories."""

from __future__ import annotations

from pathlib import Path

import pytest

from intake_agent.config.models import BotConfig, BotSchema, FieldSpec
from intake_agent.domain.state import Message
from intake_agent.infrastructure.llm_client import MockLLMClient
from intake_agent.infrastructure.state_store import InMemoryStateStore


@pytest.fixture
def lead_schema() -> BotSchema:
    """3 fields: name and email critical, budget optional."""
    return BotSchema(
        goal="Product Inquiries",
        system_prompt="Be helpful.",
        required_info={
            "name": FieldSpec(description="Full name", critical=True, behavior="strict"),
            "email": FieldSpec(description="Email address", type="email", critical=True, behavior="strict"),
            "budget": FieldSpec(description="Budget", type="number", critical=False),
        },
    )


@pytest.fixture
def bot_config(lead_schema: BotSchema) -> BotConfig:
    return BotConfig(
        slug="acme-roofing-leads",
        business_name="Acme Roofing",
        greeting="Hi! Welcome to acme-roofing-leads.",
        schema=lead_schema,
    )


@pytest.fixture
def mock_llm() -> MockLLMClient:
    """Mock LLM that returns empty text until scripted responses are set."""
    return MockLLMClient()


@pytest.fixture
def state_store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def long_transcript() -> list[Message]:
    """25 alternating messages."""
    return [
        Message(role="user" if i % 2 == 0 else "assistant", content=f"Message {i}")
        for i in range(25)
    ]


@pytest.fixture
def configs_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "configs"
