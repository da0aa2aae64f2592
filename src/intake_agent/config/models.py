"""Pydantic models for bot configuration. Central contract for the field schema."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Field schema ---

FieldType = Literal["text", "email", "phone", "number", "date", "url", "select", "file_upload"]
FieldBehavior = Literal["strict", "conversational"]

# Names used by ConversationState itself; a field key may not shadow them.
RESERVED_FIELD_KEYS = frozenset(
    {
        "phase",
        "gathered_information",
        "missing_info",
        "critical_missing",
        "uploaded_documents",
        "asked_fields",
        "current_topic",
        "last_user_message",
    }
)


def is_reserved_key(key: str) -> bool:
    """True for keys that belong to the engine, not to a business schema."""
    return key.startswith("_") or key in RESERVED_FIELD_KEYS


class FieldSpec(BaseModel):
    """One piece of information the conversation should collect."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(..., description="What this information is")
    example: str = Field(default="", description="Example of a good answer")
    type: FieldType = Field(default="text", description="Type hint for value checks")
    critical: bool = Field(default=False, description="Must be collected before completion")
    behavior: FieldBehavior = Field(
        default="conversational",
        description="strict: ask until answered | conversational: ask once, may be skipped",
    )
    # Only meaningful for type="select"
    options: list[str] = Field(default_factory=list)


class BotSchema(BaseModel):
    """Conversation goal, instructions and the ordered set of fields to gather."""

    goal: str = Field(..., description="Internal goal of the conversation")
    system_prompt: str = Field(default="", description="Business-specific instructions")
    required_info: dict[str, FieldSpec] = Field(..., min_length=1)
    schema_version: Literal["agentic_v1"] = "agentic_v1"

    @field_validator("required_info")
    @classmethod
    def _check_keys(cls, value: dict[str, FieldSpec]) -> dict[str, FieldSpec]:
        for key in value:
            if not key.strip():
                raise ValueError("field keys must be non-empty")
            if is_reserved_key(key):
                raise ValueError(f"field key {key!r} collides with a reserved internal name")
        return value

    @property
    def field_keys(self) -> list[str]:
        """Field keys in declaration order."""
        return list(self.required_info)

    @property
    def critical_keys(self) -> list[str]:
        return [k for k, spec in self.required_info.items() if spec.critical]


# --- Top-level bot config ---


class BotConfig(BaseModel):
    """Full bot configuration loaded from YAML."""

    slug: str = Field(..., description="Internal identifier, e.g. acme-roofing-quotes")
    business_name: str | None = Field(default=None, description="Name shown to end users")
    greeting: str = Field(
        default="Hi! How can we help you today?",
        description="Opening assistant message",
    )
    bot_schema: BotSchema = Field(..., alias="schema")
    llm_model: str | None = Field(default=None, description="Overrides the engine chat model")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def effective_business_name(self) -> str:
        """Business-facing name; falls back to a title-cased slug."""
        if self.business_name and self.business_name.strip():
            return self.business_name.strip()
        return self.slug.replace("-", " ").replace("_", " ").title()

    @property
    def internal_identifiers(self) -> list[str]:
        """Strings that must never reach the user verbatim."""
        return [self.bot_schema.goal, self.slug]
