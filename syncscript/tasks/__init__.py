"""Task Engine - hierarchical completion and reward attribution

Philosophy:
    Finishing something should feel like finishing something.
    Every step, milestone and task pays out energy exactly once, no matter
    how many times it gets ticked and unticked afterwards.

Components:
    models.py: Task → Milestone → Step entities and invariant checks
    rewards.py: One-time reward ledger ("energy")
    cascade.py: Toggle operations with upward auto-completion
    filters.py: Multi-dimensional filter/sort engine and presets
    queries.py: Derived views (unscheduled, today, prioritized, by tag)
    store.py: Owned task collection with persistence and reward hooks
    analytics.py: Completion and energy overview

Usage:
    from syncscript.tasks.store import load_tasks
    from syncscript.tasks.filters import FilterConfig

    store = load_tasks(snapshot)
    result = store.toggle_step("task1", "ms1", "step1")
    print(result.rewards)

    high = store.query(FilterConfig(priorities={"high"}, completed=False))
"""

from pathlib import Path

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_PATH = PROJECT_ROOT / "args" / "task_engine.yaml"

# Ordinals
PRIORITIES = ("urgent", "high", "medium", "low")
PRIORITY_ORDER = {"urgent": 0, "high": 1, "medium": 2, "low": 3}
ENERGY_LEVELS = ("high", "medium", "low")

# Reward levels and default energy per level
REWARD_LEVELS = ("step", "milestone", "task")
DEFAULT_REWARDS = {"step": 5, "milestone": 15, "task": 30}

# Filter vocabulary
SORT_FIELDS = ("due_date", "priority", "created_at", "progress", "title")
SORT_ORDERS = ("asc", "desc")
TAG_MATCH_MODES = ("any", "all")

__all__ = [
    "PROJECT_ROOT",
    "CONFIG_PATH",
    "PRIORITIES",
    "PRIORITY_ORDER",
    "ENERGY_LEVELS",
    "REWARD_LEVELS",
    "DEFAULT_REWARDS",
    "SORT_FIELDS",
    "SORT_ORDERS",
    "TAG_MATCH_MODES",
]
