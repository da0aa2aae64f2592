"""Confirmation gate: recap lists and explicit user confirmation."""

from __future__ import annotations

import re
from collections.abc import Mapping

from intake_agent.config.models import BotSchema

BULLET_RE = re.compile(r"[-•]\s")
CONFIRMATION_RE = re.compile(
    r"^(yes|yeah|yep|yup|looks good|correct|that'?s right|that is right|all good|perfect|confirmed)[.!\s]*$",
    re.IGNORECASE,
)
CONFIRM_LANGUAGE = ("confirm", "does everything look", "is everything correct")


def has_confirmation_list(message: str) -> bool:
    """At least one bullet and some confirmation language."""
    if not message:
        return False
    lowered = message.lower()
    has_bullet = BULLET_RE.search(message) is not None
    return has_bullet and any(phrase in lowered for phrase in CONFIRM_LANGUAGE)


def format_field_name(key: str) -> str:
    """snake_case -> Title Case."""
    return " ".join(word.capitalize() for word in key.split("_") if word)


def build_confirmation_list(gathered: Mapping[str, str], schema: BotSchema) -> str:
    lines = ["Let me confirm everything:"]
    for key, value in gathered.items():
        spec = schema.required_info.get(key)
        label = spec.description if spec and spec.description else format_field_name(key)
        lines.append(f"- {label}: {value}")
    lines.append("")
    lines.append("Does everything look correct?")
    return "\n".join(lines)


def is_explicit_confirmation(user_message: str | None) -> bool:
    if not user_message:
        return False
    return CONFIRMATION_RE.match(user_message.strip()) is not None
