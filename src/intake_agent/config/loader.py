"""Load and validate bot configs from YAML: one file, or a directory of bots keyed by slug."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from intake_agent.config.models import BotConfig

CONFIG_SUFFIXES = (".yaml", ".yml")


def load_bot_config(path: str | Path) -> BotConfig:
    """
    Parse one YAML file into a BotConfig.
    Raises FileNotFoundError, or ValueError for empty, malformed or invalid config.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path.name}: {e}") from e
    if data is None:
        raise ValueError("Config file is empty")
    if not isinstance(data, dict):
        raise ValueError("Invalid config: top level must be a mapping")

    try:
        return BotConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid config in {path.name}: {e}") from e


def load_bot_configs(directory: str | Path) -> dict[str, BotConfig]:
    """All bot configs in a directory, by slug. Duplicate slugs are an error."""
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Config directory not found: {directory}")

    bots: dict[str, BotConfig] = {}
    for path in sorted(directory.iterdir()):
        if path.suffix.lower() not in CONFIG_SUFFIXES:
            continue
        config = load_bot_config(path)
        if config.slug in bots:
            raise ValueError(f"Duplicate bot slug {config.slug!r} in {path.name}")
        bots[config.slug] = config
    return bots


def resolve_bot_config(path: str | Path, slug: str | None = None) -> BotConfig:
    """A file loads directly; a directory needs the slug of the bot to run."""
    path = Path(path)
    if not path.is_dir():
        return load_bot_config(path)
    bots = load_bot_configs(path)
    if slug is None:
        if len(bots) != 1:
            raise ValueError(f"{path} holds {len(bots)} bots; pick one with --bot ({', '.join(bots)})")
        return next(iter(bots.values()))
    if slug not in bots:
        raise ValueError(f"Unknown bot {slug!r}; available: {', '.join(bots) or 'none'}")
    return bots[slug]
