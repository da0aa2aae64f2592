"""Configuration loading and validation."""

from intake_agent.config.models import (
    BotConfig,
    BotSchema,
    FieldSpec,
    RESERVED_FIELD_KEYS,
    is_reserved_key,
)
from intake_agent.config.loader import load_bot_config, load_bot_configs, resolve_bot_config
from intake_agent.config.settings import EngineSettings

__all__ = [
    "BotConfig",
    "BotSchema",
    "EngineSettings",
    "FieldSpec",
    "RESERVED_FIELD_KEYS",
    "is_reserved_key",
    "load_bot_config",
    "load_bot_configs",
    "resolve_bot_config",
]
