"""
Tool: Task Views
Purpose: Fixed query presets over the filter engine

Each view is just a FilterConfig handed to apply_filters. Nothing here has
logic of its own beyond picking the config (and, for prioritized_tasks,
a secondary sort key).

Usage:
    from syncscript.tasks.queries import prioritized_tasks, todays_tasks

    for task in prioritized_tasks(store.list_tasks()):
        print(task.priority.value, task.title)
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from .errors import NotFoundError
from .filters import FilterConfig, apply_filters, sort_tasks
from .models import Priority, Task

VIEWS = ("unscheduled", "scheduled", "today", "prioritized", "completed")


def unscheduled_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Open tasks with no scheduled time yet."""
    return apply_filters(tasks, FilterConfig(scheduled=False, completed=False))


def scheduled_tasks(tasks: Iterable[Task]) -> list[Task]:
    return apply_filters(tasks, FilterConfig(scheduled=True))


def todays_tasks(tasks: Iterable[Task], now: datetime | None = None) -> list[Task]:
    """Tasks scheduled within [start of today, start of tomorrow)."""
    return apply_filters(tasks, FilterConfig(scheduled_today=True), now=now)


def prioritized_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Open urgent/high tasks, urgent first, then earliest due date.

    Ties on both keys keep input order; tasks without a due date go last
    within their priority.
    """
    config = FilterConfig(
        priorities={Priority.URGENT, Priority.HIGH},
        completed=False,
        sort_by="due_date",
    )
    # Stable sort: the priority pass preserves due-date order inside each priority
    return sort_tasks(apply_filters(tasks, config), "priority")


def tasks_by_tag(tasks: Iterable[Task], tag: str) -> list[Task]:
    return apply_filters(tasks, FilterConfig(tags={tag}))


def completed_tasks(tasks: Iterable[Task]) -> list[Task]:
    return apply_filters(tasks, FilterConfig(completed=True))


def get_view(tasks: Iterable[Task], view: str, now: datetime | None = None) -> list[Task]:
    """Dispatch a named view (see VIEWS)."""
    if view == "unscheduled":
        return unscheduled_tasks(tasks)
    if view == "scheduled":
        return scheduled_tasks(tasks)
    if view == "today":
        return todays_tasks(tasks, now=now)
    if view == "prioritized":
        return prioritized_tasks(tasks)
    if view == "completed":
        return completed_tasks(tasks)
    raise NotFoundError("view", view)
