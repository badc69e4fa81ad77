"""Task engine data models.

Defines the three-level hierarchy the cascade engine walks:
    Task → Milestone → Step

Each level owns its children exclusively (a tree, never a graph), so the
engine can always walk strictly upward from a toggled leaf.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from . import PRIORITY_ORDER
from .errors import ValidationError


class Priority(str, Enum):
    """Task priority. Ordered by PRIORITY_ORDER, not alphabetically."""

    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return PRIORITY_ORDER[self.value]


class EnergyLevel(str, Enum):
    """Energy a task demands. Independent of priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RewardLevel(str, Enum):
    """Hierarchy level, used to look up reward amounts."""

    STEP = "step"
    MILESTONE = "milestone"
    TASK = "task"


# ─────────────────────────────────────────────────────────────────────────────
# Value helpers
# ─────────────────────────────────────────────────────────────────────────────


def parse_datetime(value: Any) -> datetime | None:
    """Coerce an ISO string, date or datetime into a naive local datetime.

    Timezone-aware values are converted to local time so every timestamp in
    the engine compares against ``datetime.now()``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValidationError(f"Invalid timestamp: {value!r}") from e
    else:
        raise ValidationError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def parse_priority(value: Any) -> Priority:
    if isinstance(value, Priority):
        return value
    try:
        return Priority(str(value).lower())
    except ValueError as e:
        raise ValidationError(f"Invalid priority: {value!r}. Must be one of: {[p.value for p in Priority]}") from e


def parse_energy_level(value: Any) -> EnergyLevel | None:
    if value is None or value == "":
        return None
    if isinstance(value, EnergyLevel):
        return value
    try:
        return EnergyLevel(str(value).lower())
    except ValueError as e:
        raise ValidationError(
            f"Invalid energy level: {value!r}. Must be one of: {[lvl.value for lvl in EnergyLevel]}"
        ) from e


def _assignee_id(value: Any) -> str:
    # Dashboard payloads carry assignee objects; only the id matters here
    if isinstance(value, dict):
        for key in ("user_id", "userId", "id"):
            if value.get(key):
                return str(value[key])
        raise ValidationError(f"Assignee has no id: {value!r}")
    return str(value)


def _get(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key wins. Accepts snake_case and camelCase spellings."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def _reward_flag(data: dict[str, Any]) -> bool:
    return bool(_get(data, "reward_granted", "rewardGranted", "energyAwarded", default=False))


def _require_id(data: dict[str, Any], kind: str) -> str:
    if not data.get("id"):
        raise ValidationError(f"{kind} requires an id")
    return str(data["id"])


def _require_title(kind: str, entity_id: str, title: str) -> None:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError(f"{kind} {entity_id} must have a title")


def _as_list(value: Any, name: str) -> list[Any]:
    """Collection fields must arrive as lists; a bare string would split into characters."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise ValidationError(f"{name} must be a list, got {type(value).__name__}")
    return list(value)


def generate_id() -> str:
    """Generate a short unique ID."""
    return uuid.uuid4().hex[:12]


# ─────────────────────────────────────────────────────────────────────────────
# Entities
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class Step:
    """Leaf unit of work."""

    id: str
    title: str
    completed: bool = False
    reward_granted: bool = False
    completed_at: datetime | None = None

    def __post_init__(self):
        _require_title("Step", self.id, self.title)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "reward_granted": self.reward_granted,
            "completed_at": format_datetime(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Step:
        return cls(
            id=_require_id(data, "Step"),
            title=data.get("title", ""),
            completed=bool(data.get("completed", False)),
            reward_granted=_reward_flag(data),
            completed_at=parse_datetime(_get(data, "completed_at", "completedAt")),
        )


@dataclass
class Milestone:
    """Mid-level grouping of steps.

    With at least one step, "all steps completed" forces completed=True.
    With no steps, completion only changes through an explicit toggle.
    """

    id: str
    title: str
    completed: bool = False
    reward_granted: bool = False
    target_date: datetime | None = None
    steps: list[Step] = field(default_factory=list)
    completed_at: datetime | None = None

    def __post_init__(self):
        _require_title("Milestone", self.id, self.title)

    def get_step(self, step_id: str) -> Step | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    @property
    def all_steps_completed(self) -> bool:
        return bool(self.steps) and all(s.completed for s in self.steps)

    @property
    def progress(self) -> float:
        if not self.steps:
            return 0.0
        return sum(1 for s in self.steps if s.completed) / len(self.steps) * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "reward_granted": self.reward_granted,
            "target_date": format_datetime(self.target_date),
            "completed_at": format_datetime(self.completed_at),
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Milestone:
        return cls(
            id=_require_id(data, "Milestone"),
            title=data.get("title", ""),
            completed=bool(data.get("completed", False)),
            reward_granted=_reward_flag(data),
            target_date=parse_datetime(_get(data, "target_date", "targetDate")),
            steps=[Step.from_dict(s) for s in _as_list(data.get("steps"), "steps")],
            completed_at=parse_datetime(_get(data, "completed_at", "completedAt")),
        )


@dataclass
class Task:
    """Root entity. Owns its milestones, which own their steps."""

    id: str
    title: str
    completed: bool = False
    reward_granted: bool = False
    priority: Priority = Priority.MEDIUM
    energy_level: EnergyLevel | None = None
    due_date: datetime | None = None
    tags: set[str] = field(default_factory=set)
    assigned_to: set[str] = field(default_factory=set)
    milestones: list[Milestone] = field(default_factory=list)
    description: str | None = None
    created_at: datetime | None = None
    scheduled_time: datetime | None = None
    completed_at: datetime | None = None

    def get_milestone(self, milestone_id: str) -> Milestone | None:
        for milestone in self.milestones:
            if milestone.id == milestone_id:
                return milestone
        return None

    @property
    def all_milestones_completed(self) -> bool:
        return bool(self.milestones) and all(m.completed for m in self.milestones)

    @property
    def completed_milestone_count(self) -> int:
        return sum(1 for m in self.milestones if m.completed)

    @property
    def progress(self) -> float:
        """Percentage of completed milestones (0 when there are none)."""
        if not self.milestones:
            return 0.0
        return self.completed_milestone_count / len(self.milestones) * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "reward_granted": self.reward_granted,
            "priority": self.priority.value,
            "energy_level": self.energy_level.value if self.energy_level else None,
            "due_date": format_datetime(self.due_date),
            "created_at": format_datetime(self.created_at),
            "scheduled_time": format_datetime(self.scheduled_time),
            "completed_at": format_datetime(self.completed_at),
            "tags": sorted(self.tags),
            "assigned_to": sorted(self.assigned_to),
            "progress": self.progress,
            "milestones": [m.to_dict() for m in self.milestones],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Build a Task from a plain dict (snake_case or dashboard camelCase)."""
        task_id = _require_id(data, "Task")
        milestones = _as_list(_get(data, "milestones", "subtasks"), "milestones")
        assignees = _as_list(_get(data, "assigned_to", "assignedTo"), "assigned_to")
        return cls(
            id=task_id,
            title=data.get("title", ""),
            description=data.get("description"),
            completed=bool(data.get("completed", False)),
            reward_granted=_reward_flag(data),
            priority=parse_priority(data.get("priority") or Priority.MEDIUM.value),
            energy_level=parse_energy_level(_get(data, "energy_level", "energyLevel")),
            due_date=parse_datetime(_get(data, "due_date", "dueDate")),
            created_at=parse_datetime(_get(data, "created_at", "createdAt")),
            scheduled_time=parse_datetime(_get(data, "scheduled_time", "scheduledTime")),
            completed_at=parse_datetime(_get(data, "completed_at", "completedAt")),
            tags={str(t) for t in _as_list(data.get("tags"), "tags")},
            assigned_to={_assignee_id(a) for a in assignees},
            milestones=[Milestone.from_dict(m) for m in milestones],
        )


# ─────────────────────────────────────────────────────────────────────────────
# Edits
# ─────────────────────────────────────────────────────────────────────────────

_EDIT_PARSERS: dict[str, Callable[[Any], Any]] = {
    "title": lambda v: v,
    "description": lambda v: v,
    "priority": parse_priority,
    "energy_level": parse_energy_level,
    "due_date": parse_datetime,
    "tags": lambda v: {str(t) for t in _as_list(v, "tags")},
    "assigned_to": lambda v: {_assignee_id(a) for a in _as_list(v, "assigned_to")},
}

EDITABLE_FIELDS = tuple(_EDIT_PARSERS)


def apply_task_changes(task: Task, changes: dict[str, Any]) -> None:
    """Set task-level fields from a partial edit. Completion and rewards are not editable."""
    unknown = sorted(set(changes) - set(_EDIT_PARSERS))
    if unknown:
        raise ValidationError(f"Fields cannot be edited: {unknown}. Editable: {list(EDITABLE_FIELDS)}")
    for name, value in changes.items():
        setattr(task, name, _EDIT_PARSERS[name](value))


def copy_task(task: Task, now: datetime) -> Task:
    """Copy a task under fresh ids with completion, rewards and schedule cleared."""
    return Task(
        id=generate_id(),
        title=f"{task.title} (Copy)",
        description=task.description,
        priority=task.priority,
        energy_level=task.energy_level,
        due_date=task.due_date,
        tags=set(task.tags),
        assigned_to=set(task.assigned_to),
        created_at=now,
        milestones=[
            Milestone(
                id=generate_id(),
                title=m.title,
                target_date=m.target_date,
                steps=[Step(id=generate_id(), title=s.title) for s in m.steps],
            )
            for m in task.milestones
        ],
    )


# ─────────────────────────────────────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────────────────────────────────────


def validate_task(task: Task) -> None:
    """
    Creation/edit-time validation.

    Not called by the cascade engine; toggles are total over valid entities.

    Raises:
        ValidationError: on the first problem found
    """
    if not task.title or not task.title.strip():
        raise ValidationError(f"Task {task.id} must have a title")

    seen: set[str] = set()
    for milestone in task.milestones:
        if milestone.id in seen:
            raise ValidationError(f"Duplicate milestone id in task {task.id}: {milestone.id}")
        seen.add(milestone.id)

        if milestone.target_date and task.due_date and milestone.target_date > task.due_date:
            raise ValidationError(
                f"Milestone '{milestone.title}' target date is after the task due date"
            )

        step_ids: set[str] = set()
        for step in milestone.steps:
            if step.id in step_ids:
                raise ValidationError(f"Duplicate step id in milestone {milestone.id}: {step.id}")
            step_ids.add(step.id)


def validate_milestone_target(milestone: Milestone, task: Task, now: datetime | None = None) -> None:
    """Check a newly authored milestone's target date window: now <= target <= task due."""
    if milestone.target_date is None:
        return
    now = now or datetime.now()
    if milestone.target_date < now:
        raise ValidationError(f"Milestone '{milestone.title}' target date is in the past")
    if task.due_date and milestone.target_date > task.due_date:
        raise ValidationError(
            f"Milestone '{milestone.title}' target date is after the task due date"
        )


def check_consistency(task: Task) -> list[str]:
    """List hierarchy invariant violations for a task (empty list means healthy).

    Meant for tests and debugging, not for the toggle path.
    """
    problems: list[str] = []

    for milestone in task.milestones:
        if milestone.all_steps_completed and not milestone.completed:
            problems.append(f"milestone {milestone.id}: all steps completed but milestone is not")
        if milestone.completed and not milestone.reward_granted:
            problems.append(f"milestone {milestone.id}: completed without reward")
        for step in milestone.steps:
            if step.completed and not step.reward_granted:
                problems.append(f"step {step.id}: completed without reward")

    if task.all_milestones_completed and not task.completed:
        problems.append(f"task {task.id}: all milestones completed but task is not")
    if task.completed and not task.reward_granted:
        problems.append(f"task {task.id}: completed without reward")

    ids = [m.id for m in task.milestones]
    if len(ids) != len(set(ids)):
        problems.append(f"task {task.id}: duplicate milestone ids")

    return problems
