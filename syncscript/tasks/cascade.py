"""
Tool: Completion Cascade Engine
Purpose: Toggle completion at any level and auto-complete ancestors

Rules:
    - A toggle flips `completed`; calling it twice restores the original value.
    - Completing an entity pays its level reward once (see rewards.py).
      Reopening never revokes, re-completing never re-grants.
    - Completion cascades upward only: all steps done completes the
      milestone, all milestones done completes the task (task bonus).
    - Reopening never cascades, and a parent toggle never touches children.
    - The full id path is resolved before anything is mutated.

Usage:
    from syncscript.tasks.cascade import CompletionEngine

    engine = CompletionEngine({task.id: task})
    result = engine.toggle_step("task1", "ms1", "step3")
    result.task        # mutated Task subtree
    result.events      # completed/reopened events, leaf first
    result.rewards     # newly granted RewardEvents

Concurrency:
    Not thread-safe. Callers serialize mutations per Task subtree
    (TaskStore holds one lock per task id).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .errors import NotFoundError
from .models import Milestone, RewardLevel, Step, Task
from .rewards import RewardEvent, RewardLedger

logger = logging.getLogger(__name__)

COMPLETED = "completed"
REOPENED = "reopened"


@dataclass
class CompletionEvent:
    """One completion-state transition produced by a toggle."""

    kind: str  # "completed" | "reopened"
    level: RewardLevel
    entity_id: str
    title: str = ""
    amount: int = 0
    auto: bool = False  # True when reached through the upward cascade

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "level": self.level.value,
            "entity_id": self.entity_id,
            "title": self.title,
            "amount": self.amount,
            "auto": self.auto,
        }


@dataclass
class ToggleResult:
    """The mutated Task subtree plus what happened to it."""

    task: Task
    events: list[CompletionEvent] = field(default_factory=list)
    rewards: list[RewardEvent] = field(default_factory=list)

    @property
    def energy_earned(self) -> int:
        return sum(r.amount for r in self.rewards)

    def to_dict(self) -> dict[str, Any]:
        return {
            "task": self.task.to_dict(),
            "events": [e.to_dict() for e in self.events],
            "rewards": [r.to_dict() for r in self.rewards],
            "energy_earned": self.energy_earned,
        }


class CompletionEngine:
    """Applies toggles to an explicitly passed task collection.

    Args:
        tasks: Mapping of task id to Task. Mutated in place.
        ledger: Reward ledger; a default-configured one is created if omitted.
        clock: Source of completion timestamps.
    """

    def __init__(
        self,
        tasks: Mapping[str, Task],
        ledger: RewardLedger | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.tasks = tasks
        self.ledger = ledger or RewardLedger()
        self.clock = clock

    # ─────────────────────────────────────────────────────────────────────────
    # Public toggles
    # ─────────────────────────────────────────────────────────────────────────

    def toggle_step(self, task_id: str, milestone_id: str, step_id: str) -> ToggleResult:
        task = self._resolve_task(task_id)
        milestone = self._resolve_milestone(task, milestone_id)
        step = self._resolve_step(milestone, step_id)

        result = ToggleResult(task=task)
        if self._flip(step, RewardLevel.STEP, result):
            self._cascade_to_milestone(task, milestone, result)
        return result

    def toggle_milestone(self, task_id: str, milestone_id: str) -> ToggleResult:
        task = self._resolve_task(task_id)
        milestone = self._resolve_milestone(task, milestone_id)

        result = ToggleResult(task=task)
        if self._flip(milestone, RewardLevel.MILESTONE, result):
            self._cascade_to_task(task, result)
        return result

    def toggle_task(self, task_id: str) -> ToggleResult:
        task = self._resolve_task(task_id)

        result = ToggleResult(task=task)
        self._flip(task, RewardLevel.TASK, result)
        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Resolution
    # ─────────────────────────────────────────────────────────────────────────

    def _resolve_task(self, task_id: str) -> Task:
        task = self.tasks.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def _resolve_milestone(self, task: Task, milestone_id: str) -> Milestone:
        milestone = task.get_milestone(milestone_id)
        if milestone is None:
            raise NotFoundError("milestone", milestone_id, parent_id=task.id)
        return milestone

    def _resolve_step(self, milestone: Milestone, step_id: str) -> Step:
        step = milestone.get_step(step_id)
        if step is None:
            raise NotFoundError("step", step_id, parent_id=milestone.id)
        return step

    # ─────────────────────────────────────────────────────────────────────────
    # Transitions
    # ─────────────────────────────────────────────────────────────────────────

    def _flip(self, entity: Step | Milestone | Task, level: RewardLevel, result: ToggleResult) -> bool:
        """Flip completion. Returns True when the entity is now completed."""
        if entity.completed:
            self._reopen(entity, level, result)
            return False
        self._complete(entity, level, result, auto=False)
        return True

    def _complete(
        self,
        entity: Step | Milestone | Task,
        level: RewardLevel,
        result: ToggleResult,
        auto: bool,
    ) -> None:
        entity.completed = True
        entity.completed_at = self.clock()

        reward = self.ledger.grant(entity, level)
        if reward:
            result.rewards.append(reward)

        result.events.append(
            CompletionEvent(
                kind=COMPLETED,
                level=level,
                entity_id=entity.id,
                title=entity.title,
                amount=reward.amount if reward else 0,
                auto=auto,
            )
        )
        logger.info(f"{level.value} {entity.id} completed{' (auto)' if auto else ''}")

    def _reopen(self, entity: Step | Milestone | Task, level: RewardLevel, result: ToggleResult) -> None:
        # reward_granted stays set
        entity.completed = False
        entity.completed_at = None
        result.events.append(
            CompletionEvent(kind=REOPENED, level=level, entity_id=entity.id, title=entity.title)
        )
        logger.info(f"{level.value} {entity.id} reopened")

    def _cascade_to_milestone(self, task: Task, milestone: Milestone, result: ToggleResult) -> None:
        if milestone.completed or not milestone.all_steps_completed:
            return
        self._complete(milestone, RewardLevel.MILESTONE, result, auto=True)
        self._cascade_to_task(task, result)

    def _cascade_to_task(self, task: Task, result: ToggleResult) -> None:
        if task.completed or not task.all_milestones_completed:
            return
        self._complete(task, RewardLevel.TASK, result, auto=True)
