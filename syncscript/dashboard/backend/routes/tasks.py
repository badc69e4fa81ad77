"""
Tasks Route - toggles, filtered lists and views

Provides endpoints for the task board:
- List, create, fetch, edit, duplicate and delete tasks
- Schedule and unschedule tasks on the calendar
- Toggle completion at task, milestone and step level
- Filter/sort queries and named presets
- Derived views (unscheduled, today, prioritized, ...)
- Energy overview and activity feed
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from syncscript.dashboard.backend.models import (
    ScheduleRequest,
    TaskCreate,
    TaskListResponse,
    TaskQuery,
    TaskUpdate,
    ToggleResponse,
)
from syncscript.logging_config import bind_request_context, clear_request_context, get_logger
from syncscript.tasks.cascade import ToggleResult
from syncscript.tasks.errors import NotFoundError, ValidationError
from syncscript.tasks.filters import FILTER_PRESETS, active_filter_count
from syncscript.tasks.models import Task
from syncscript.tasks.store import TaskStore

logger = get_logger(__name__)


router = APIRouter()

_store: TaskStore | None = None


def get_store() -> TaskStore:
    """Shared store for the running app (created empty on first use)."""
    global _store
    if _store is None:
        _store = TaskStore()
    return _store


def set_store(store: TaskStore | None) -> None:
    """Swap the app's store (startup snapshot loading, tests)."""
    global _store
    _store = store


def _task_list(tasks: list[Task], active_filters: int = 0) -> TaskListResponse:
    return TaskListResponse(
        tasks=[t.to_dict() for t in tasks],
        total=len(tasks),
        active_filters=active_filters,
    )


def _toggle_response(result: ToggleResult) -> ToggleResponse:
    logger.info(
        "task_toggled",
        events=[f"{e.level.value}_{e.kind}" for e in result.events],
        energy_earned=result.energy_earned,
    )
    return ToggleResponse(**result.to_dict())


# =============================================================================
# Collection Endpoints
# =============================================================================


@router.get("", response_model=TaskListResponse)
async def list_tasks(store: TaskStore = Depends(get_store)):
    """List every task in insertion order."""
    return _task_list(store.list_tasks())


@router.post("", status_code=201)
async def create_task(request: TaskCreate, store: TaskStore = Depends(get_store)):
    """Create a task with its milestones and steps."""
    try:
        task = store.add_task(request.to_task())
    except ValidationError as e:
        logger.info("task_rejected", reason=str(e))
        raise HTTPException(status_code=422, detail=str(e))
    logger.info("task_created", task_id=task.id, milestones=len(task.milestones))
    return task.to_dict()


@router.post("/query", response_model=TaskListResponse)
async def query_tasks(request: TaskQuery, store: TaskStore = Depends(get_store)):
    """Filter and sort tasks. All filters are AND-ed."""
    try:
        config = request.to_config()
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _task_list(store.query(config), active_filter_count(config))


@router.get("/presets")
async def list_presets():
    """Available filter presets."""
    return {"presets": [p.to_dict() for p in FILTER_PRESETS.values()]}


@router.get("/presets/{preset_id}", response_model=TaskListResponse)
async def preset_tasks(preset_id: str, store: TaskStore = Depends(get_store)):
    try:
        return _task_list(store.preset(preset_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/views/{view}", response_model=TaskListResponse)
async def view_tasks(view: str, store: TaskStore = Depends(get_store)):
    """Derived views: unscheduled, scheduled, today, prioritized, completed."""
    try:
        return _task_list(store.view(view))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/tags/{tag}", response_model=TaskListResponse)
async def tasks_with_tag(tag: str, store: TaskStore = Depends(get_store)):
    return _task_list(store.by_tag(tag))


@router.get("/analytics/overview")
async def overview(store: TaskStore = Depends(get_store)):
    """Completion counts and energy earned."""
    return store.overview()


@router.get("/activity/feed")
async def activity_feed(
    limit: int = Query(default=50, ge=1, le=500),
    store: TaskStore = Depends(get_store),
):
    """Most recent completion/reopen activity first."""
    entries = store.activity(limit)
    return {"events": [e.to_dict() for e in entries], "total": len(entries)}


# =============================================================================
# Single Task Endpoints
# =============================================================================


@router.get("/{task_id}")
async def get_task(task_id: str, store: TaskStore = Depends(get_store)):
    try:
        return store.get_task(task_id).to_dict()
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{task_id}/toggle", response_model=ToggleResponse)
async def toggle_task(task_id: str, store: TaskStore = Depends(get_store)):
    """Toggle a task. Never touches its milestones."""
    bind_request_context(task_id=task_id)
    try:
        return _toggle_response(store.toggle_task(task_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    finally:
        clear_request_context()


@router.post("/{task_id}/milestones/{milestone_id}/toggle", response_model=ToggleResponse)
async def toggle_milestone(task_id: str, milestone_id: str, store: TaskStore = Depends(get_store)):
    """Toggle a milestone; completing the last one completes the task."""
    bind_request_context(task_id=task_id, milestone_id=milestone_id)
    try:
        return _toggle_response(store.toggle_milestone(task_id, milestone_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    finally:
        clear_request_context()


@router.post("/{task_id}/milestones/{milestone_id}/steps/{step_id}/toggle", response_model=ToggleResponse)
async def toggle_step(
    task_id: str,
    milestone_id: str,
    step_id: str,
    store: TaskStore = Depends(get_store),
):
    """Toggle a step; completing the last step cascades upward."""
    bind_request_context(task_id=task_id, milestone_id=milestone_id, step_id=step_id)
    try:
        return _toggle_response(store.toggle_step(task_id, milestone_id, step_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    finally:
        clear_request_context()


# =============================================================================
# Edit Endpoints
# =============================================================================


@router.patch("/{task_id}")
async def update_task(task_id: str, request: TaskUpdate, store: TaskStore = Depends(get_store)):
    """Edit task-level fields. Completion only changes through the toggles."""
    try:
        task = store.update_task(task_id, request.to_changes())
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info("task_updated", task_id=task_id, fields=sorted(request.to_changes()))
    return task.to_dict()


@router.delete("/{task_id}")
async def delete_task(task_id: str, store: TaskStore = Depends(get_store)):
    try:
        store.remove_task(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    logger.info("task_deleted", task_id=task_id)
    return {"success": True, "task_id": task_id}


@router.post("/{task_id}/duplicate", status_code=201)
async def duplicate_task(task_id: str, store: TaskStore = Depends(get_store)):
    """Copy a task with fresh ids. The copy starts open, unrewarded and unscheduled."""
    try:
        task = store.duplicate_task(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    logger.info("task_duplicated", task_id=task_id, copy_id=task.id)
    return task.to_dict()


@router.put("/{task_id}/schedule")
async def schedule_task(task_id: str, request: ScheduleRequest, store: TaskStore = Depends(get_store)):
    """Place a task on the calendar."""
    try:
        task = store.schedule_task(task_id, request.scheduled_time)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info("task_scheduled", task_id=task_id, scheduled_time=task.scheduled_time.isoformat())
    return task.to_dict()


@router.delete("/{task_id}/schedule")
async def unschedule_task(task_id: str, store: TaskStore = Depends(get_store)):
    """Take a task off the calendar; it shows up in the unscheduled view again."""
    try:
        task = store.unschedule_task(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    logger.info("task_unscheduled", task_id=task_id)
    return task.to_dict()
