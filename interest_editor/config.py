"""
Configuration management for the interest editor.

Handles persistent configuration including:
- Primary interest limits (percentage of the catalog, min and max)
- Edit session idle TTL
- Storage backend selection

Config is stored in config.json next to the executable/project root.
Environment variables take priority over the file.
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from interest_editor.paths import get_config_path

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY_PERCENTAGE = 0.3
DEFAULT_MIN_PRIMARY_INTERESTS = 1
DEFAULT_MAX_PRIMARY_INTERESTS = 5
DEFAULT_SESSION_TTL_MINUTES = 30


@dataclass(frozen=True)
class InterestLimits:
    """Bounds used to compute the primary ceiling."""
    primary_percentage: float = DEFAULT_PRIMARY_PERCENTAGE
    min_primary_interests: int = DEFAULT_MIN_PRIMARY_INTERESTS
    max_primary_interests: int = DEFAULT_MAX_PRIMARY_INTERESTS

    def __post_init__(self):
        if not 0.0 <= self.primary_percentage <= 1.0:
            raise ValueError(
                f"primary_percentage must be within [0, 1], got {self.primary_percentage}"
            )
        if self.min_primary_interests < 0:
            raise ValueError("min_primary_interests must not be negative")
        if self.min_primary_interests > self.max_primary_interests:
            raise ValueError(
                f"min_primary_interests ({self.min_primary_interests}) exceeds "
                f"max_primary_interests ({self.max_primary_interests})"
            )


def load_config() -> dict:
    """Load configuration from config.json."""
    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to read {config_path}: {e}")
            return {}
    return {}


def save_config(config: dict) -> None:
    """Save configuration to config.json."""
    config_path = get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def _env_or_config(env_name: str, config: dict, key: str, default, cast):
    raw = os.environ.get(env_name)
    if raw is None or raw == "":
        raw = config.get(key, default)
    try:
        return cast(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value for {env_name}/{key}: {raw!r}") from e


def get_interest_limits(config: Optional[dict] = None) -> InterestLimits:
    """
    Build the primary interest limits.

    Priority:
    1. Environment variables PRIMARY_PERCENTAGE, MIN_PRIMARY_INTERESTS, MAX_PRIMARY_INTERESTS
    2. "interest_limits" section of config.json
    3. Built-in defaults
    """
    if config is None:
        config = load_config()
    section = config.get("interest_limits", {})

    return InterestLimits(
        primary_percentage=_env_or_config(
            "PRIMARY_PERCENTAGE", section, "primary_percentage",
            DEFAULT_PRIMARY_PERCENTAGE, float
        ),
        min_primary_interests=_env_or_config(
            "MIN_PRIMARY_INTERESTS", section, "min_primary_interests",
            DEFAULT_MIN_PRIMARY_INTERESTS, int
        ),
        max_primary_interests=_env_or_config(
            "MAX_PRIMARY_INTERESTS", section, "max_primary_interests",
            DEFAULT_MAX_PRIMARY_INTERESTS, int
        ),
    )


def get_session_ttl(config: Optional[dict] = None) -> timedelta:
    """Idle TTL of an edit session (SESSION_TTL_MINUTES, default 30 minutes)."""
    if config is None:
        config = load_config()
    minutes = _env_or_config(
        "SESSION_TTL_MINUTES", config, "session_ttl_minutes",
        DEFAULT_SESSION_TTL_MINUTES, int
    )
    if minutes <= 0:
        raise ValueError(f"Session TTL must be positive, got {minutes} minutes")
    return timedelta(minutes=minutes)


def set_interest_limits(limits: InterestLimits) -> None:
    """Persist interest limits to config.json."""
    config = load_config()
    config["interest_limits"] = {
        "primary_percentage": limits.primary_percentage,
        "min_primary_interests": limits.min_primary_interests,
        "max_primary_interests": limits.max_primary_interests,
    }
    save_config(config)
