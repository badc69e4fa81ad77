#!/usr/bin/env python3
"""
SyncScript Command Line Interface

Main entry point for the `syncscript` command. Task commands work on a
JSON snapshot file (a list of task objects) and print JSON.

Usage:
    syncscript query tasks.json --priority high --status open --sort-by due_date
    syncscript query tasks.json --preset overdue
    syncscript toggle tasks.json TASK_ID --milestone MS_ID --step STEP_ID --write
    syncscript schedule tasks.json TASK_ID --at 2024-05-15T14:00 --write
    syncscript overview tasks.json
    syncscript dashboard          # Start the dashboard server
    syncscript --version          # Show version
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from syncscript.logging_config import setup_logging
from syncscript.tasks import ENERGY_LEVELS, PRIORITIES, SORT_FIELDS, TAG_MATCH_MODES
from syncscript.tasks.errors import TaskEngineError
from syncscript.tasks.filters import FILTER_PRESETS, FilterConfig, active_filter_count, get_preset
from syncscript.tasks.store import TaskStore, load_tasks

logger = logging.getLogger(__name__)


def _load_store(path: str) -> TaskStore:
    snapshot = Path(path)
    if not snapshot.exists():
        raise TaskEngineError(f"Snapshot not found: {path}")
    with open(snapshot) as f:
        items = json.load(f)
    if not isinstance(items, list):
        raise TaskEngineError("Snapshot must be a JSON list of tasks")
    logger.debug(f"Loaded {len(items)} tasks from {path}")
    return load_tasks(items)


def _write_store(store: TaskStore, path: str) -> None:
    with open(path, "w") as f:
        json.dump(store.snapshot(), f, indent=2)


def _print(result: dict) -> None:
    print(json.dumps(result, indent=2, default=str))


def build_filter_config(args) -> FilterConfig:
    """Translate query flags into a FilterConfig (a preset wins over flags)."""
    if args.preset:
        return get_preset(args.preset)

    completed = {"open": False, "done": True, "all": "all"}[args.status]
    return FilterConfig(
        search_query=args.search or "",
        completed=completed,
        priorities=set(args.priority) if args.priority else None,
        energy_levels=set(args.energy) if args.energy else None,
        tags=set(args.tag) if args.tag else None,
        tag_match_mode=args.match,
        assigned_to=set(args.assignee) if args.assignee else None,
        unassigned=args.unassigned,
        overdue=args.overdue,
        due_today=args.due_today,
        due_this_week=args.due_this_week,
        sort_by=args.sort_by,
        sort_order="desc" if args.desc else "asc",
    )


def cmd_query(args):
    """Handle query subcommand."""
    store = _load_store(args.file)
    config = build_filter_config(args)
    tasks = store.query(config)
    _print(
        {
            "success": True,
            "data": {
                "tasks": [t.to_dict() for t in tasks],
                "total": len(tasks),
                "active_filters": active_filter_count(config),
            },
        }
    )


def cmd_toggle(args):
    """Handle toggle subcommand."""
    if args.step and not args.milestone:
        raise TaskEngineError("--step requires --milestone")

    store = _load_store(args.file)

    if args.step:
        result = store.toggle_step(args.task_id, args.milestone, args.step)
    elif args.milestone:
        result = store.toggle_milestone(args.task_id, args.milestone)
    else:
        result = store.toggle_task(args.task_id)

    if args.write:
        _write_store(store, args.file)

    _print({"success": True, "data": result.to_dict()})


def cmd_schedule(args):
    """Handle schedule subcommand."""
    if bool(args.at) == args.clear:
        raise TaskEngineError("Pass exactly one of --at or --clear")

    store = _load_store(args.file)

    if args.clear:
        task = store.unschedule_task(args.task_id)
    else:
        task = store.schedule_task(args.task_id, args.at)

    if args.write:
        _write_store(store, args.file)

    _print({"success": True, "data": task.to_dict()})


def cmd_overview(args):
    """Handle overview subcommand."""
    store = _load_store(args.file)
    _print({"success": True, "data": store.overview()})


def cmd_dashboard(args):
    """Handle dashboard subcommand."""
    import uvicorn

    host = args.host or "127.0.0.1"
    port = args.port or 8080

    print(f"Starting SyncScript Dashboard at http://{host}:{port}")
    print("Press Ctrl+C to stop")

    uvicorn.run(
        "syncscript.dashboard.backend.main:app",
        host=host,
        port=port,
        reload=args.reload,
        log_level="info",
    )


def cmd_version(args):
    """Show version information."""
    try:
        from importlib.metadata import version

        v = version("syncscript")
    except Exception:
        v = "0.1.0 (development)"

    print(f"SyncScript version {v}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="syncscript",
        description="SyncScript - task completion, rewards and task queries",
    )
    parser.add_argument(
        "--version", "-V", action="store_true", help="Show version and exit"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show engine log messages"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Query subcommand
    query_parser = subparsers.add_parser("query", help="Filter and sort tasks from a snapshot")
    query_parser.add_argument("file", help="JSON snapshot (list of tasks)")
    query_parser.add_argument("--search", help="Substring match on title/description")
    query_parser.add_argument(
        "--status", choices=["open", "done", "all"], default="all", help="Completion status"
    )
    query_parser.add_argument("--priority", action="append", choices=PRIORITIES, help="Priority (repeatable)")
    query_parser.add_argument("--energy", action="append", choices=ENERGY_LEVELS, help="Energy level (repeatable)")
    query_parser.add_argument("--tag", action="append", help="Tag (repeatable)")
    query_parser.add_argument("--match", choices=TAG_MATCH_MODES, default="any", help="Tag match mode")
    query_parser.add_argument("--assignee", action="append", help="Assignee ID (repeatable)")
    query_parser.add_argument("--unassigned", action="store_true", help="Only tasks without assignees")
    query_parser.add_argument("--overdue", action="store_true", help="Only overdue tasks")
    query_parser.add_argument("--due-today", action="store_true", help="Only tasks due today")
    query_parser.add_argument("--due-this-week", action="store_true", help="Only tasks due within 7 days")
    query_parser.add_argument("--sort-by", choices=SORT_FIELDS, help="Sort field")
    query_parser.add_argument("--desc", action="store_true", help="Sort descending")
    query_parser.add_argument("--preset", choices=sorted(FILTER_PRESETS), help="Use a named preset")
    query_parser.set_defaults(func=cmd_query)

    # Toggle subcommand
    toggle_parser = subparsers.add_parser("toggle", help="Toggle a task, milestone or step")
    toggle_parser.add_argument("file", help="JSON snapshot (list of tasks)")
    toggle_parser.add_argument("task_id", help="Task ID")
    toggle_parser.add_argument("--milestone", help="Milestone ID")
    toggle_parser.add_argument("--step", help="Step ID (requires --milestone)")
    toggle_parser.add_argument("--write", action="store_true", help="Save the mutated snapshot")
    toggle_parser.set_defaults(func=cmd_toggle)

    # Schedule subcommand
    schedule_parser = subparsers.add_parser("schedule", help="Schedule or unschedule a task")
    schedule_parser.add_argument("file", help="JSON snapshot (list of tasks)")
    schedule_parser.add_argument("task_id", help="Task ID")
    schedule_parser.add_argument("--at", help="ISO timestamp of the calendar slot")
    schedule_parser.add_argument("--clear", action="store_true", help="Remove the scheduled time")
    schedule_parser.add_argument("--write", action="store_true", help="Save the mutated snapshot")
    schedule_parser.set_defaults(func=cmd_schedule)

    # Overview subcommand
    overview_parser = subparsers.add_parser("overview", help="Completion and energy overview")
    overview_parser.add_argument("file", help="JSON snapshot (list of tasks)")
    overview_parser.set_defaults(func=cmd_overview)

    # Dashboard subcommand
    dashboard_parser = subparsers.add_parser(
        "dashboard", help="Start the dashboard server"
    )
    dashboard_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    dashboard_parser.add_argument(
        "--port", type=int, default=8080, help="Port to bind to (default: 8080)"
    )
    dashboard_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )
    dashboard_parser.set_defaults(func=cmd_dashboard)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else os.environ.get("SYNCSCRIPT_LOG_LEVEL", "WARNING"))

    # Handle --version at top level
    if args.version:
        cmd_version(args)
        return 0

    # If no command given, show help
    if not args.command:
        parser.print_help()
        return 0

    try:
        args.func(args)
    except (TaskEngineError, json.JSONDecodeError) as e:
        _print({"success": False, "error": str(e)})
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
