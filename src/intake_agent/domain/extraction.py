"""Extractor output contract: what the LLM learned from the user's last message."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from intake_agent.config.models import is_reserved_key


class ExtractionFailure(Exception):
    """The extractor produced no usable result for this turn."""


class ExtractionResult(BaseModel):
    """Structured output from the extraction call for one turn."""

    extracted_information: dict[str, str] = Field(default_factory=dict)
    user_confirmed: bool = Field(default=False, description="User explicitly confirmed the recap")
    ready_to_confirm: bool = Field(default=False, description="User wants to wrap up")
    current_topic: str | None = None
    quarantined: dict[str, str] = Field(
        default_factory=dict,
        description="Keys dropped because they collide with reserved internal names",
    )


def _strip_code_fence(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        lines = raw.split("\n")
        if lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        raw = "\n".join(lines)
    return raw


def _coerce_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        text = ", ".join(str(v).strip() for v in value if v is not None and str(v).strip())
    elif isinstance(value, dict):
        text = json.dumps(value, ensure_ascii=False)
    else:
        text = str(value).strip()
    return text or None


def clean_extracted_fields(raw: Any) -> tuple[dict[str, str], dict[str, str]]:
    """
    Normalize an extracted mapping to (accepted, quarantined) key -> str.
    Empty values are dropped; reserved keys are set aside, never merged.
    """
    accepted: dict[str, str] = {}
    quarantined: dict[str, str] = {}
    if not isinstance(raw, dict):
        return accepted, quarantined
    for key, value in raw.items():
        if not isinstance(key, str) or not key.strip():
            continue
        text = _coerce_value(value)
        if text is None:
            continue
        key = key.strip()
        if is_reserved_key(key):
            quarantined[key] = text
        else:
            accepted[key] = text
    return accepted, quarantined


def parse_extraction(raw: str) -> ExtractionResult:
    """Parse extractor response text. Raises ExtractionFailure if it is not a JSON object."""
    body = _strip_code_fence(raw or "")
    if not body:
        raise ExtractionFailure("empty extraction response")
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ExtractionFailure(f"extraction response is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionFailure("extraction response is not a JSON object")

    accepted, quarantined = clean_extracted_fields(data.get("extracted_information"))
    topic = data.get("current_topic")
    try:
        return ExtractionResult(
            extracted_information=accepted,
            user_confirmed=bool(data.get("user_confirmed", False)),
            ready_to_confirm=bool(data.get("ready_to_confirm", False)),
            current_topic=str(topic) if topic else None,
            quarantined=quarantined,
        )
    except ValidationError as e:
        raise ExtractionFailure(f"invalid extraction payload: {e}") from e
