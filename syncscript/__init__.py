"""SyncScript - task completion, reward attribution and task queries

Components:
    tasks/: Task → Milestone → Step engine (cascade, rewards, filters)
    dashboard/backend/: FastAPI application exposing the engine
    cli.py: `syncscript` command
"""

__version__ = "0.1.0"
