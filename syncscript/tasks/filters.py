"""
Tool: Task Filter Engine
Purpose: Multi-dimensional filtering and stable sorting of tasks

Every option on FilterConfig is independent and optional. An absent option
imposes no constraint; all present options are AND-ed together. The engine
is a pure function over its inputs - it never mutates tasks.

Sorting is stable. Missing values (no due date, no created_at) always sort
last, in both directions. Priority sorts by its fixed ordinal
(urgent, high, medium, low), never alphabetically.

Usage:
    from syncscript.tasks.filters import FilterConfig, apply_filters

    config = FilterConfig(priorities={"high"}, completed=False, sort_by="due_date")
    visible = apply_filters(tasks, config)

    active_filter_count(config)   # 2 -> drives the filter badge
    apply_filters(tasks, get_preset("overdue"))
"""

from __future__ import annotations

import copy
import dataclasses
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from . import SORT_FIELDS, SORT_ORDERS, TAG_MATCH_MODES
from .errors import NotFoundError, ValidationError
from .models import EnergyLevel, Priority, Task, parse_datetime, parse_energy_level, parse_priority


@dataclass
class DateRange:
    """Inclusive date window. Either bound may be open."""

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self):
        self.start = parse_datetime(self.start)
        self.end = parse_datetime(self.end)

    def contains(self, value: datetime) -> bool:
        if self.start and value < self.start:
            return False
        if self.end and value > self.end:
            return False
        return True


@dataclass
class ProgressRange:
    """Inclusive milestone-progress window in percent."""

    min: float | None = None
    max: float | None = None

    def contains(self, value: float) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


@dataclass
class FilterConfig:
    """Filter and sort options. Defaults mean "no constraint"."""

    search_query: str = ""
    completed: bool | str | None = None  # True / False / "all"
    priorities: set[Priority] | None = None
    energy_levels: set[EnergyLevel] | None = None
    due_date_range: DateRange | None = None
    overdue: bool = False
    due_today: bool = False
    due_this_week: bool = False
    assigned_to: set[str] | None = None
    unassigned: bool = False
    tags: set[str] | None = None
    tag_match_mode: str = "any"
    has_milestones: bool | None = None
    milestone_progress: ProgressRange | None = None
    scheduled: bool | None = None
    scheduled_today: bool = False
    sort_by: str | None = None
    sort_order: str = "asc"

    def __post_init__(self):
        if self.completed not in (None, True, False, "all"):
            raise ValidationError(f"Invalid completed filter: {self.completed!r}. Use true, false or 'all'")
        if self.priorities is not None:
            self.priorities = {parse_priority(p) for p in self.priorities}
        if self.energy_levels is not None:
            self.energy_levels = {parse_energy_level(e) for e in self.energy_levels}
        if self.assigned_to is not None:
            self.assigned_to = {str(a) for a in self.assigned_to}
        if self.tags is not None:
            self.tags = set(self.tags)
        if isinstance(self.due_date_range, dict):
            self.due_date_range = DateRange(**self.due_date_range)
        if isinstance(self.milestone_progress, dict):
            self.milestone_progress = ProgressRange(**self.milestone_progress)
        if self.tag_match_mode not in TAG_MATCH_MODES:
            raise ValidationError(f"Invalid tag match mode: {self.tag_match_mode!r}. Must be one of: {TAG_MATCH_MODES}")
        if self.sort_by is not None and self.sort_by not in SORT_FIELDS:
            raise ValidationError(f"Invalid sort field: {self.sort_by!r}. Must be one of: {SORT_FIELDS}")
        if self.sort_order not in SORT_ORDERS:
            raise ValidationError(f"Invalid sort order: {self.sort_order!r}. Must be one of: {SORT_ORDERS}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FilterConfig:
        """Build a config from snake_case or dashboard camelCase keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_ALIASES.get(key, key)
            if name not in known:
                raise ValidationError(f"Unknown filter option: {key}")
            if name == "sort_by" and isinstance(value, str):
                value = _CAMEL_ALIASES.get(value, value)
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        for key in ("priorities", "energy_levels"):
            if data[key] is not None:
                data[key] = sorted(v.value for v in data[key])
        for key in ("assigned_to", "tags"):
            if data[key] is not None:
                data[key] = sorted(data[key])
        if self.due_date_range:
            data["due_date_range"] = {
                "start": self.due_date_range.start.isoformat() if self.due_date_range.start else None,
                "end": self.due_date_range.end.isoformat() if self.due_date_range.end else None,
            }
        return data


_CAMEL_ALIASES = {
    "searchQuery": "search_query",
    "energyLevels": "energy_levels",
    "dueDateRange": "due_date_range",
    "dueToday": "due_today",
    "dueThisWeek": "due_this_week",
    "assignedTo": "assigned_to",
    "tagMatchMode": "tag_match_mode",
    "hasMilestones": "has_milestones",
    "milestoneProgress": "milestone_progress",
    "scheduledToday": "scheduled_today",
    "sortBy": "sort_by",
    "sortOrder": "sort_order",
    # sort field spellings
    "dueDate": "due_date",
    "createdAt": "created_at",
}


# ─────────────────────────────────────────────────────────────────────────────
# Filtering
# ─────────────────────────────────────────────────────────────────────────────


def _start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def _build_predicates(config: FilterConfig, now: datetime) -> list[Callable[[Task], bool]]:
    predicates: list[Callable[[Task], bool]] = []

    query = config.search_query.strip().lower() if config.search_query else ""
    if query:
        predicates.append(
            lambda t: query in t.title.lower() or (t.description is not None and query in t.description.lower())
        )

    if config.completed is not None and config.completed != "all":
        wanted = config.completed
        predicates.append(lambda t: t.completed == wanted)

    if config.priorities:
        priorities = config.priorities
        predicates.append(lambda t: t.priority in priorities)

    if config.energy_levels:
        energy_levels = config.energy_levels
        predicates.append(lambda t: t.energy_level is not None and t.energy_level in energy_levels)

    if config.due_date_range is not None:
        window = config.due_date_range
        predicates.append(lambda t: t.due_date is not None and window.contains(t.due_date))

    if config.overdue:
        predicates.append(lambda t: t.due_date is not None and not t.completed and t.due_date < now)

    if config.due_today:
        today = _start_of_day(now)
        tomorrow = today + timedelta(days=1)
        predicates.append(lambda t: t.due_date is not None and today <= t.due_date < tomorrow)

    if config.due_this_week:
        week_end = now + timedelta(days=7)
        predicates.append(lambda t: t.due_date is not None and now <= t.due_date <= week_end)

    if config.assigned_to:
        assignees = config.assigned_to
        predicates.append(lambda t: bool(t.assigned_to & assignees))

    if config.unassigned:
        predicates.append(lambda t: not t.assigned_to)

    if config.tags:
        tags = config.tags
        if config.tag_match_mode == "all":
            predicates.append(lambda t: bool(t.tags) and tags <= t.tags)
        else:
            predicates.append(lambda t: bool(t.tags & tags))

    if config.has_milestones is not None:
        wanted_milestones = config.has_milestones
        predicates.append(lambda t: bool(t.milestones) == wanted_milestones)

    if config.milestone_progress is not None:
        progress_range = config.milestone_progress
        predicates.append(lambda t: bool(t.milestones) and progress_range.contains(t.progress))

    if config.scheduled is not None:
        wanted_scheduled = config.scheduled
        predicates.append(lambda t: (t.scheduled_time is not None) == wanted_scheduled)

    if config.scheduled_today:
        day_start = _start_of_day(now)
        day_end = day_start + timedelta(days=1)
        predicates.append(lambda t: t.scheduled_time is not None and day_start <= t.scheduled_time < day_end)

    return predicates


def apply_filters(tasks: Iterable[Task], config: FilterConfig, now: datetime | None = None) -> list[Task]:
    """
    Filter and sort tasks.

    Args:
        tasks: Tasks to query (not mutated)
        config: Filter options; absent options impose no constraint
        now: Reference time for overdue/today/week windows (defaults to now)

    Returns:
        New list of matching tasks, sorted when config.sort_by is set
    """
    now = now or datetime.now()
    predicates = _build_predicates(config, now)
    filtered = [t for t in tasks if all(p(t) for p in predicates)]

    if config.sort_by:
        filtered = sort_tasks(filtered, config.sort_by, config.sort_order)

    return filtered


# ─────────────────────────────────────────────────────────────────────────────
# Sorting
# ─────────────────────────────────────────────────────────────────────────────


_SORT_KEYS: dict[str, Callable[[Task], Any]] = {
    "due_date": lambda t: t.due_date,
    "created_at": lambda t: t.created_at,
    "priority": lambda t: t.priority.rank,
    "progress": lambda t: t.progress,
    "title": lambda t: t.title.casefold(),
}


def sort_tasks(tasks: Iterable[Task], sort_by: str, sort_order: str = "asc") -> list[Task]:
    """Stable sort; tasks missing the sort value go last regardless of order."""
    if sort_by not in _SORT_KEYS:
        raise ValidationError(f"Invalid sort field: {sort_by!r}. Must be one of: {SORT_FIELDS}")
    if sort_order not in SORT_ORDERS:
        raise ValidationError(f"Invalid sort order: {sort_order!r}. Must be one of: {SORT_ORDERS}")

    key = _SORT_KEYS[sort_by]
    tasks = list(tasks)
    present = [t for t in tasks if key(t) is not None]
    missing = [t for t in tasks if key(t) is None]

    # reverse=True keeps equal elements in their original order
    present.sort(key=key, reverse=sort_order == "desc")
    return present + missing


# ─────────────────────────────────────────────────────────────────────────────
# Filter badge helpers
# ─────────────────────────────────────────────────────────────────────────────


def active_filter_count(config: FilterConfig) -> int:
    """Number of engaged filter dimensions (three priorities still count as one)."""
    count = 0

    if config.search_query and config.search_query.strip():
        count += 1
    if config.completed is not None and config.completed != "all":
        count += 1
    if config.priorities:
        count += 1
    if config.energy_levels:
        count += 1
    if config.due_date_range and (config.due_date_range.start or config.due_date_range.end):
        count += 1
    if config.overdue:
        count += 1
    if config.due_today:
        count += 1
    if config.due_this_week:
        count += 1
    if config.assigned_to:
        count += 1
    if config.unassigned:
        count += 1
    if config.tags:
        count += 1
    if config.has_milestones is not None:
        count += 1
    if config.milestone_progress is not None:
        count += 1
    if config.scheduled is not None:
        count += 1
    if config.scheduled_today:
        count += 1

    return count


def is_filter_empty(config: FilterConfig) -> bool:
    return active_filter_count(config) == 0


def clear_filters() -> FilterConfig:
    """Canonical default configuration."""
    return FilterConfig(search_query="", completed="all", sort_by="due_date", sort_order="asc")


# ─────────────────────────────────────────────────────────────────────────────
# Presets
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class FilterPreset:
    id: str
    label: str
    description: str
    config: FilterConfig = field(default_factory=FilterConfig)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "config": self.config.to_dict(),
        }


FILTER_PRESETS: dict[str, FilterPreset] = {
    preset.id: preset
    for preset in (
        FilterPreset(
            id="overdue",
            label="Overdue Tasks",
            description="Tasks past their due date",
            config=FilterConfig(overdue=True, completed=False, sort_by="due_date", sort_order="asc"),
        ),
        FilterPreset(
            id="due-today",
            label="Due Today",
            description="Tasks due today",
            config=FilterConfig(due_today=True, completed=False, sort_by="priority", sort_order="asc"),
        ),
        FilterPreset(
            id="due-week",
            label="Due This Week",
            description="Tasks due within 7 days",
            config=FilterConfig(due_this_week=True, completed=False, sort_by="due_date", sort_order="asc"),
        ),
        FilterPreset(
            id="high-priority",
            label="High Priority",
            description="Urgent and high priority tasks",
            config=FilterConfig(
                priorities={Priority.URGENT, Priority.HIGH},
                completed=False,
                sort_by="due_date",
                sort_order="asc",
            ),
        ),
        FilterPreset(
            id="unassigned",
            label="Unassigned",
            description="Tasks without assignees",
            config=FilterConfig(unassigned=True, completed=False, sort_by="priority", sort_order="asc"),
        ),
        FilterPreset(
            id="in-progress",
            label="In Progress",
            description="Tasks with started milestones",
            config=FilterConfig(
                has_milestones=True,
                milestone_progress=ProgressRange(min=1, max=99),
                completed=False,
                sort_by="progress",
                sort_order="desc",
            ),
        ),
    )
}


def get_preset(preset_id: str) -> FilterConfig:
    """Return a fresh copy of a preset's config."""
    preset = FILTER_PRESETS.get(preset_id)
    if preset is None:
        raise NotFoundError("preset", preset_id)
    return copy.deepcopy(preset.config)
