"""
Tool: Task Engine Configuration
Purpose: Load task engine settings from args/task_engine.yaml

Missing file or missing keys fall back to the built-in defaults, so the
engine runs with no configuration at all.

Usage:
    from syncscript.tasks.config import load_config, get_reward_amounts

    amounts = get_reward_amounts()   # {"step": 5, "milestone": 15, "task": 30}

Dependencies:
    - pyyaml
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from . import CONFIG_PATH, DEFAULT_REWARDS, REWARD_LEVELS
from .errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_ACTIVITY_MAX_ENTRIES = 200


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load task engine configuration."""
    config_path = path or CONFIG_PATH
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    logger.debug(f"No task engine config at {config_path}, using defaults")
    return {}


def get_reward_amounts(config: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
    """
    Resolve reward amounts per level.

    Args:
        config: Already-loaded config (loads args/task_engine.yaml if omitted)

    Returns:
        dict mapping step/milestone/task to a non-negative integer amount
    """
    if config is None:
        config = load_config()

    configured = config.get("task_engine", {}).get("rewards", {}) or {}
    amounts = dict(DEFAULT_REWARDS)

    for level, value in configured.items():
        if level not in REWARD_LEVELS:
            raise ValidationError(f"Unknown reward level '{level}'. Must be one of: {REWARD_LEVELS}")
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValidationError(f"Reward for '{level}' must be a non-negative integer, got {value!r}")
        amounts[level] = value

    return amounts


def get_activity_limit(config: Optional[Dict[str, Any]] = None) -> int:
    """Maximum number of entries kept in the activity feed."""
    if config is None:
        config = load_config()
    limit = config.get("task_engine", {}).get("activity", {}).get("max_entries", DEFAULT_ACTIVITY_MAX_ENTRIES)
    return int(limit)
