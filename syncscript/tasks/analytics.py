"""
Tool: Task Analytics
Purpose: Completion counts and energy earned across a task collection

Energy earned counts an entity only while it is both completed and
reward-granted, so reopened work drops out of the total even though its
reward was never revoked from the ledger.

Usage:
    from syncscript.tasks.analytics import task_overview

    overview = task_overview(store.list_tasks())
    print(overview["energy_earned"])
"""

from collections.abc import Iterable
from typing import Any, Dict, List, Optional

from . import DEFAULT_REWARDS, PRIORITIES
from .models import Task


def _rate(done: int, total: int) -> float:
    return round(done / total * 100, 1) if total else 0.0


def task_overview(tasks: Iterable[Task], amounts: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
    """
    Summarize completion and energy for a set of tasks.

    Args:
        tasks: Tasks to summarize
        amounts: Reward per level (defaults to DEFAULT_REWARDS)

    Returns:
        dict with per-level totals, completion rate, energy earned and
        priority distribution
    """
    amounts = amounts or DEFAULT_REWARDS
    tasks = list(tasks)

    totals = {"tasks": 0, "milestones": 0, "steps": 0}
    completed = {"tasks": 0, "milestones": 0, "steps": 0}
    energy = 0

    for task in tasks:
        totals["tasks"] += 1
        if task.completed:
            completed["tasks"] += 1
            if task.reward_granted:
                energy += amounts["task"]

        for milestone in task.milestones:
            totals["milestones"] += 1
            if milestone.completed:
                completed["milestones"] += 1
                if milestone.reward_granted:
                    energy += amounts["milestone"]

            for step in milestone.steps:
                totals["steps"] += 1
                if step.completed:
                    completed["steps"] += 1
                    if step.reward_granted:
                        energy += amounts["step"]

    return {
        "total_tasks": totals["tasks"],
        "completed_tasks": completed["tasks"],
        "total_milestones": totals["milestones"],
        "completed_milestones": completed["milestones"],
        "total_steps": totals["steps"],
        "completed_steps": completed["steps"],
        "completion_rate": _rate(completed["tasks"], totals["tasks"]),
        "energy_earned": energy,
        "priority_distribution": priority_distribution(tasks),
    }


def priority_distribution(tasks: Iterable[Task]) -> List[Dict[str, Any]]:
    """Count and completion per priority, urgent first."""
    buckets = {p: {"priority": p, "count": 0, "completed": 0} for p in PRIORITIES}
    for task in tasks:
        bucket = buckets[task.priority.value]
        bucket["count"] += 1
        if task.completed:
            bucket["completed"] += 1
    return [buckets[p] for p in PRIORITIES]
