"""
Tool: Task Store
Purpose: Owned task collection exposing toggles, queries and reward hooks

Callers hold a TaskStore instead of mutating a shared global list. The store
wires the collaborators around the core engine:

    toggle → CompletionEngine → reward listeners → activity feed → persistence

Each Task subtree (task + milestones + steps) is one unit of mutual
exclusion: two toggles on the same task never interleave, toggles on
different tasks do not block each other. Reads hand out deep copies taken
under the same locks, so a query never observes a half-finished cascade.

Usage:
    from syncscript.tasks.store import load_tasks

    store = load_tasks(snapshot, persistence=my_repo)
    store.subscribe(lambda reward: balance.add(reward.amount))

    store.toggle_step("task1", "ms1", "step1")
    store.schedule_task("task1", "2024-05-15T14:00")
    store.query(FilterConfig(overdue=True))
    store.preset("high-priority")

Dependencies:
    - threading (stdlib)
"""

from __future__ import annotations

import copy
import logging
import threading
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from .analytics import task_overview
from .cascade import CompletionEngine, ToggleResult
from .config import get_activity_limit, load_config
from .errors import NotFoundError, ValidationError
from .filters import FilterConfig, apply_filters, get_preset
from .models import (
    Task,
    apply_task_changes,
    copy_task,
    parse_datetime,
    validate_milestone_target,
    validate_task,
)
from .queries import get_view, tasks_by_tag
from .rewards import RewardEvent, RewardLedger

logger = logging.getLogger(__name__)

RewardListener = Callable[[RewardEvent], None]


class TaskPersistence(Protocol):
    """Durable storage collaborator. Receives whole tasks, overwrites by id."""

    def save_task(self, task: Task) -> None: ...

    def delete_task(self, task_id: str) -> None: ...


@dataclass
class ActivityEntry:
    """One line of the activity feed ("completed step 'Book venue'")."""

    kind: str
    task_id: str
    entity_id: str
    title: str
    description: str
    amount: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "task_id": self.task_id,
            "entity_id": self.entity_id,
            "title": self.title,
            "description": self.description,
            "amount": self.amount,
            "timestamp": self.timestamp.isoformat(),
        }


class TaskStore:
    """In-memory task repository built around a CompletionEngine.

    Args:
        tasks: Initial tasks, e.g. from the persistence collaborator.
        ledger: Reward ledger; defaults to configured amounts.
        persistence: Optional collaborator receiving each mutated task.
        activity_limit: Feed size; defaults to task_engine.activity.max_entries.
        clock: Source of timestamps.
    """

    def __init__(
        self,
        tasks: Iterable[Task] = (),
        ledger: RewardLedger | None = None,
        persistence: TaskPersistence | None = None,
        activity_limit: int | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._tasks: dict[str, Task] = {}
        self._engine = CompletionEngine(self._tasks, ledger=ledger, clock=clock)
        self._persistence = persistence
        self._listeners: list[RewardListener] = []
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()
        self._clock = clock

        if activity_limit is None:
            activity_limit = get_activity_limit(load_config())
        self._activity: deque[ActivityEntry] = deque(maxlen=activity_limit)

        for task in tasks:
            self._insert(task)

    # ─────────────────────────────────────────────────────────────────────────
    # Collection
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def ledger(self) -> RewardLedger:
        return self._engine.ledger

    def _insert(self, task: Task) -> None:
        with self._guard:
            if task.id in self._tasks:
                raise ValidationError(f"Task already exists: {task.id}")
            self._tasks[task.id] = task
            self._locks[task.id] = threading.Lock()

    def _lock_for(self, task_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(task_id)
        if lock is None:
            raise NotFoundError("task", task_id)
        return lock

    def _persist(self, task: Task) -> None:
        if self._persistence:
            self._persistence.save_task(task)

    def add_task(self, task: Task) -> Task:
        """Validate, insert and persist a new task.

        Milestone target dates must fall between now and the task due date.
        """
        validate_task(task)
        now = self._clock()
        for milestone in task.milestones:
            validate_milestone_target(milestone, task, now=now)
        if task.created_at is None:
            task.created_at = now
        self._insert(task)
        logger.info(f"Task added: {task.id}")
        self._persist(task)
        return task

    def get_task(self, task_id: str) -> Task:
        """Copy of one task, taken while no toggle is running on it."""
        with self._lock_for(task_id):
            task = self._tasks.get(task_id)
            if task is None:
                raise NotFoundError("task", task_id)
            return copy.deepcopy(task)

    def list_tasks(self) -> list[Task]:
        """Copies of every task, each taken under its own lock.

        Readers never see a subtree halfway through a cascade.
        """
        with self._guard:
            entries = list(self._locks.items())

        snapshot = []
        for task_id, lock in entries:
            with lock:
                task = self._tasks.get(task_id)
                if task is not None:
                    snapshot.append(copy.deepcopy(task))
        return snapshot

    def remove_task(self, task_id: str) -> Task:
        with self._lock_for(task_id):
            with self._guard:
                task = self._tasks.pop(task_id, None)
                self._locks.pop(task_id, None)
            if task is None:
                raise NotFoundError("task", task_id)
            if self._persistence:
                self._persistence.delete_task(task_id)
        logger.info(f"Task removed: {task_id}")
        return task

    def snapshot(self) -> list[dict[str, Any]]:
        return [t.to_dict() for t in self.list_tasks()]

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    # ─────────────────────────────────────────────────────────────────────────
    # Edits
    # ─────────────────────────────────────────────────────────────────────────

    def _edit(self, task_id: str, change: Callable[[Task], None]) -> Task:
        """Apply a change to a copy, validate it, then swap it in for the stored task."""
        with self._lock_for(task_id):
            task = self._tasks.get(task_id)
            if task is None:
                raise NotFoundError("task", task_id)
            draft = copy.deepcopy(task)
            change(draft)
            validate_task(draft)
            self._tasks[task_id] = draft
            self._persist(draft)
            return copy.deepcopy(draft)

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        """Edit task-level fields (title, description, priority, energy, due date, tags, assignees)."""
        updated = self._edit(task_id, lambda draft: apply_task_changes(draft, changes))
        logger.info(f"Task updated: {task_id} ({', '.join(sorted(changes)) or 'no fields'})")
        return updated

    def schedule_task(self, task_id: str, scheduled_time: datetime | str) -> Task:
        when = parse_datetime(scheduled_time)
        if when is None:
            raise ValidationError("Scheduled time is required")

        def change(draft: Task) -> None:
            draft.scheduled_time = when

        updated = self._edit(task_id, change)
        logger.info(f"Task scheduled: {task_id} at {when.isoformat()}")
        return updated

    def unschedule_task(self, task_id: str) -> Task:
        def change(draft: Task) -> None:
            draft.scheduled_time = None

        updated = self._edit(task_id, change)
        logger.info(f"Task unscheduled: {task_id}")
        return updated

    def duplicate_task(self, task_id: str) -> Task:
        """Insert a fresh copy: new ids, nothing completed or rewarded, no schedule."""
        duplicate = copy_task(self.get_task(task_id), now=self._clock())
        self._insert(duplicate)
        logger.info(f"Task duplicated: {task_id} -> {duplicate.id}")
        self._persist(duplicate)
        return duplicate

    # ─────────────────────────────────────────────────────────────────────────
    # Toggles
    # ─────────────────────────────────────────────────────────────────────────

    def toggle_step(self, task_id: str, milestone_id: str, step_id: str) -> ToggleResult:
        return self._apply(task_id, lambda: self._engine.toggle_step(task_id, milestone_id, step_id))

    def toggle_milestone(self, task_id: str, milestone_id: str) -> ToggleResult:
        return self._apply(task_id, lambda: self._engine.toggle_milestone(task_id, milestone_id))

    def toggle_task(self, task_id: str) -> ToggleResult:
        return self._apply(task_id, lambda: self._engine.toggle_task(task_id))

    def _apply(self, task_id: str, toggle: Callable[[], ToggleResult]) -> ToggleResult:
        with self._lock_for(task_id):
            result = toggle()
            self._record_activity(result)
            self._notify(result.rewards)
            self._persist(result.task)
            result.task = copy.deepcopy(result.task)

        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Collaborators
    # ─────────────────────────────────────────────────────────────────────────

    def subscribe(self, listener: RewardListener) -> Callable[[], None]:
        """Register a reward listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, rewards: list[RewardEvent]) -> None:
        for reward in rewards:
            for listener in list(self._listeners):
                try:
                    listener(reward)
                except Exception as e:
                    logger.warning(f"Reward listener failed for {reward.level.value} {reward.entity_id}: {e}")

    def _record_activity(self, result: ToggleResult) -> None:
        entries = []
        for event in result.events:
            verb = "completed" if event.kind == "completed" else "reopened"
            entries.append(
                ActivityEntry(
                    kind=f"{event.level.value}_{event.kind}",
                    task_id=result.task.id,
                    entity_id=event.entity_id,
                    title=event.title,
                    description=f'{verb} {event.level.value} "{event.title}"',
                    amount=event.amount,
                    timestamp=self._clock(),
                )
            )
        # Toggles on different tasks append concurrently
        with self._guard:
            self._activity.extend(entries)

    def activity(self, limit: int | None = None) -> list[ActivityEntry]:
        """Most recent activity first."""
        with self._guard:
            entries = list(reversed(self._activity))
        return entries[:limit] if limit else entries

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    def query(self, config: FilterConfig, now: datetime | None = None) -> list[Task]:
        return apply_filters(self.list_tasks(), config, now=now)

    def preset(self, preset_id: str, now: datetime | None = None) -> list[Task]:
        return self.query(get_preset(preset_id), now=now)

    def view(self, name: str, now: datetime | None = None) -> list[Task]:
        return get_view(self.list_tasks(), name, now=now)

    def by_tag(self, tag: str) -> list[Task]:
        return tasks_by_tag(self.list_tasks(), tag)

    def overview(self) -> dict[str, Any]:
        return task_overview(self.list_tasks(), self.ledger.amounts())


def load_tasks(items: Iterable[dict[str, Any]], **kwargs: Any) -> TaskStore:
    """Build a store from plain task dicts (e.g. a persisted snapshot)."""
    return TaskStore(tasks=[Task.from_dict(item) for item in items], **kwargs)
