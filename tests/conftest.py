"""Shared test fixtures for SyncScript tests.

This module provides common fixtures used across all test modules:
- Task builders with milestones and steps
- A fixed reference time for date-window filters
- Stores with explicit reward amounts (no config file lookup)

Usage:
    def test_something(make_task):
        task = make_task("t1", milestones=2, steps=2)
        ...
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from syncscript.tasks.models import Milestone, Priority, Step, Task
from syncscript.tasks.rewards import RewardLedger
from syncscript.tasks.store import TaskStore


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent
PACKAGE_DIR = PROJECT_ROOT / "syncscript"


# ─────────────────────────────────────────────────────────────────────────────
# Time Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def now() -> datetime:
    """Fixed reference time: a Wednesday at noon."""
    return datetime(2024, 5, 15, 12, 0, 0)


@pytest.fixture
def fixed_clock(now) -> Callable[[], datetime]:
    """Clock callable returning the fixed reference time."""
    return lambda: now


# ─────────────────────────────────────────────────────────────────────────────
# Reward Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def reward_amounts() -> dict[str, int]:
    """Default reward amounts, passed explicitly so tests ignore local config."""
    return {"step": 5, "milestone": 15, "task": 30}


@pytest.fixture
def ledger(reward_amounts) -> RewardLedger:
    return RewardLedger(reward_amounts)


# ─────────────────────────────────────────────────────────────────────────────
# Task Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """Factory for tasks with a regular milestone/step shape.

    Milestone ids are ``m1``, ``m2``... and step ids ``m1s1``, ``m1s2``...
    """

    def _make(
        task_id: str = "t1",
        title: str | None = None,
        milestones: int = 0,
        steps: int = 0,
        **fields,
    ) -> Task:
        built = []
        for i in range(1, milestones + 1):
            milestone_id = f"m{i}"
            built.append(
                Milestone(
                    id=milestone_id,
                    title=f"Milestone {i}",
                    steps=[Step(id=f"{milestone_id}s{j}", title=f"Step {j}") for j in range(1, steps + 1)],
                )
            )
        return Task(id=task_id, title=title or f"Task {task_id}", milestones=built, **fields)

    return _make


@pytest.fixture
def sample_task(make_task) -> Task:
    """Task with two milestones of two steps each."""
    return make_task("t1", title="Plan launch", milestones=2, steps=2, priority=Priority.HIGH)


@pytest.fixture
def store(sample_task, ledger, fixed_clock) -> TaskStore:
    """Store holding sample_task, with explicit amounts and a fixed clock."""
    return TaskStore([sample_task], ledger=ledger, activity_limit=50, clock=fixed_clock)


@pytest.fixture
def sample_task_dict(now) -> dict:
    """Dashboard-style camelCase task payload."""
    return {
        "id": "t9",
        "title": "Ship newsletter",
        "description": "Monthly update",
        "priority": "urgent",
        "energyLevel": "low",
        "dueDate": (now + timedelta(days=2)).isoformat(),
        "createdAt": (now - timedelta(days=1)).isoformat(),
        "tags": ["writing", "marketing"],
        "assignedTo": [{"userId": "u1", "name": "Ada"}, "u2"],
        "subtasks": [
            {
                "id": "m1",
                "title": "Draft",
                "completed": True,
                "energyAwarded": True,
                "steps": [{"id": "s1", "title": "Outline", "completed": True, "rewardGranted": True}],
            },
            {"id": "m2", "title": "Send", "steps": []},
        ],
    }
