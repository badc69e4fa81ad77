"""
Integration test fixtures for SyncScript.

Provides fixtures specific to integration testing:
- FastAPI test client over an isolated task store
- JSON snapshot files for the CLI
"""

import json
from collections.abc import Generator
from pathlib import Path

import pytest


# ─────────────────────────────────────────────────────────────────────────────
# Dashboard API Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def api_store(sample_task, make_task, ledger):
    """Isolated store: the sample task plus an unassigned low-priority chore."""
    from syncscript.tasks.models import Priority
    from syncscript.tasks.store import TaskStore

    chore = make_task("t2", title="Water plants", priority=Priority.LOW, tags={"home"})
    return TaskStore([sample_task, chore], ledger=ledger, activity_limit=50)


@pytest.fixture
def test_client(api_store) -> Generator:
    """Test client with the app's store swapped for api_store."""
    from fastapi.testclient import TestClient

    from syncscript.dashboard.backend.main import app
    from syncscript.dashboard.backend.routes.tasks import set_store

    set_store(api_store)
    with TestClient(app) as client:
        yield client
    set_store(None)


# ─────────────────────────────────────────────────────────────────────────────
# CLI Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def snapshot_file(tmp_path, sample_task, make_task) -> Path:
    """JSON snapshot holding the sample task and one unassigned chore."""
    from syncscript.tasks.models import Priority

    chore = make_task("t2", title="Water plants", priority=Priority.LOW, tags={"home"})
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps([sample_task.to_dict(), chore.to_dict()]))
    return path
