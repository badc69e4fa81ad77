"""
Pydantic models for Dashboard API request/response types.

Request models are converted into engine objects (Task, FilterConfig) at
the route boundary; the engine itself never sees pydantic types.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from syncscript.tasks.filters import DateRange, FilterConfig, ProgressRange
from syncscript.tasks.models import (
    EnergyLevel,
    Milestone,
    Priority,
    Step,
    Task,
    generate_id,
    parse_datetime,
)


# =============================================================================
# Task Creation
# =============================================================================


class StepCreate(BaseModel):
    id: str | None = Field(None, description="Step ID (generated if omitted)")
    title: str = Field(..., min_length=1, description="Step title")


class MilestoneCreate(BaseModel):
    id: str | None = Field(None, description="Milestone ID (generated if omitted)")
    title: str = Field(..., min_length=1, description="Milestone title")
    target_date: datetime | None = Field(None, description="Target date, not after task due date")
    steps: list[StepCreate] = Field(default_factory=list, description="Ordered steps")


class TaskCreate(BaseModel):
    """New task with its milestones and steps."""

    id: str | None = Field(None, description="Task ID (generated if omitted)")
    title: str = Field(..., min_length=1, description="Task title")
    description: str | None = Field(None, description="Longer description, searchable")
    priority: Priority = Field(default=Priority.MEDIUM, description="urgent/high/medium/low")
    energy_level: EnergyLevel | None = Field(None, description="Energy the task demands")
    due_date: datetime | None = Field(None, description="Due date")
    scheduled_time: datetime | None = Field(None, description="Calendar slot")
    tags: list[str] = Field(default_factory=list, description="Tags")
    assigned_to: list[str] = Field(default_factory=list, description="Assignee IDs")
    milestones: list[MilestoneCreate] = Field(default_factory=list, description="Ordered milestones")

    def to_task(self) -> Task:
        return Task(
            id=self.id or generate_id(),
            title=self.title,
            description=self.description,
            priority=self.priority,
            energy_level=self.energy_level,
            due_date=parse_datetime(self.due_date),
            scheduled_time=parse_datetime(self.scheduled_time),
            tags=set(self.tags),
            assigned_to=set(self.assigned_to),
            milestones=[
                Milestone(
                    id=m.id or generate_id(),
                    title=m.title,
                    target_date=parse_datetime(m.target_date),
                    steps=[Step(id=s.id or generate_id(), title=s.title) for s in m.steps],
                )
                for m in self.milestones
            ],
        )


class TaskUpdate(BaseModel):
    """Partial edit of task-level fields. Omitted fields stay as they are."""

    title: str | None = Field(None, min_length=1, description="Task title")
    description: str | None = Field(None, description="Longer description")
    priority: Priority | None = Field(None, description="urgent/high/medium/low")
    energy_level: EnergyLevel | None = Field(None, description="Energy the task demands")
    due_date: datetime | None = Field(None, description="Due date")
    tags: list[str] | None = Field(None, description="Replaces all tags")
    assigned_to: list[str] | None = Field(None, description="Replaces all assignees")

    def to_changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ScheduleRequest(BaseModel):
    scheduled_time: datetime = Field(..., description="Calendar slot for the task")


# =============================================================================
# Filtering
# =============================================================================


class DateRangeModel(BaseModel):
    start: datetime | None = None
    end: datetime | None = None


class ProgressRangeModel(BaseModel):
    min: float | None = Field(None, ge=0, le=100)
    max: float | None = Field(None, ge=0, le=100)


class TaskQuery(BaseModel):
    """Filter/sort request. Every field is optional; omitted means no constraint."""

    search_query: str = Field(default="", description="Substring match on title and description")
    completed: bool | Literal["all"] | None = Field(None, description="true, false or 'all'")
    priorities: list[Priority] | None = None
    energy_levels: list[EnergyLevel] | None = None
    due_date_range: DateRangeModel | None = None
    overdue: bool = False
    due_today: bool = False
    due_this_week: bool = False
    assigned_to: list[str] | None = None
    unassigned: bool = False
    tags: list[str] | None = None
    tag_match_mode: Literal["any", "all"] = "any"
    has_milestones: bool | None = None
    milestone_progress: ProgressRangeModel | None = None
    scheduled: bool | None = None
    scheduled_today: bool = False
    sort_by: Literal["due_date", "priority", "created_at", "progress", "title"] | None = None
    sort_order: Literal["asc", "desc"] = "asc"

    def to_config(self) -> FilterConfig:
        return FilterConfig(
            search_query=self.search_query,
            completed=self.completed,
            priorities=set(self.priorities) if self.priorities is not None else None,
            energy_levels=set(self.energy_levels) if self.energy_levels is not None else None,
            due_date_range=(
                DateRange(self.due_date_range.start, self.due_date_range.end)
                if self.due_date_range
                else None
            ),
            overdue=self.overdue,
            due_today=self.due_today,
            due_this_week=self.due_this_week,
            assigned_to=set(self.assigned_to) if self.assigned_to is not None else None,
            unassigned=self.unassigned,
            tags=set(self.tags) if self.tags is not None else None,
            tag_match_mode=self.tag_match_mode,
            has_milestones=self.has_milestones,
            milestone_progress=(
                ProgressRange(self.milestone_progress.min, self.milestone_progress.max)
                if self.milestone_progress
                else None
            ),
            scheduled=self.scheduled,
            scheduled_today=self.scheduled_today,
            sort_by=self.sort_by,
            sort_order=self.sort_order,
        )


# =============================================================================
# Responses
# =============================================================================


class TaskListResponse(BaseModel):
    tasks: list[dict[str, Any]] = Field(default_factory=list, description="Serialized tasks")
    total: int = Field(default=0, description="Number of tasks returned")
    active_filters: int = Field(default=0, description="Engaged filter dimensions")


class ToggleResponse(BaseModel):
    task: dict[str, Any] = Field(..., description="Mutated task subtree")
    events: list[dict[str, Any]] = Field(default_factory=list, description="Completion events")
    rewards: list[dict[str, Any]] = Field(default_factory=list, description="Newly granted rewards")
    energy_earned: int = Field(default=0, description="Energy granted by this toggle")


class HealthCheck(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy", description="Overall system status")
    version: str = Field(default="0.1.0", description="API version")
    timestamp: datetime = Field(default_factory=datetime.now, description="Check timestamp")
    tasks_loaded: int = Field(default=0, description="Tasks in the store")


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error message")
    code: str = Field(default="INTERNAL_ERROR", description="Error code")
    details: dict[str, Any] | None = Field(None, description="Additional details")
