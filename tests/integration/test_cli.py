"""
Integration tests for syncscript/cli.py

Runs the CLI entry point against JSON snapshot files and checks the JSON
it prints.
"""

import json

import pytest

from syncscript.cli import build_filter_config, build_parser, main
from syncscript.tasks.models import Priority


def run(capsys, *argv):
    """Run the CLI and return (exit code, parsed stdout)."""
    code = main(list(argv))
    out = capsys.readouterr().out
    return code, json.loads(out)


# ─────────────────────────────────────────────────────────────────────────────
# Query Command Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestQueryCommand:
    """Tests for `syncscript query`."""

    def test_returns_all_tasks(self, capsys, snapshot_file):
        code, result = run(capsys, "query", str(snapshot_file))

        assert code == 0
        assert result["success"] is True
        assert result["data"]["total"] == 2
        assert result["data"]["active_filters"] == 0

    def test_filters_by_priority_and_tag(self, capsys, snapshot_file):
        code, result = run(capsys, "query", str(snapshot_file), "--priority", "low", "--tag", "home")

        assert [t["id"] for t in result["data"]["tasks"]] == ["t2"]
        assert result["data"]["active_filters"] == 2

    def test_sorts_descending(self, capsys, snapshot_file):
        _, result = run(capsys, "query", str(snapshot_file), "--sort-by", "priority", "--desc")

        assert [t["id"] for t in result["data"]["tasks"]] == ["t2", "t1"]

    def test_preset(self, capsys, snapshot_file):
        _, result = run(capsys, "query", str(snapshot_file), "--preset", "unassigned")

        assert [t["id"] for t in result["data"]["tasks"]] == ["t1", "t2"]

    def test_missing_snapshot(self, capsys, tmp_path):
        code, result = run(capsys, "query", str(tmp_path / "absent.json"))

        assert code == 1
        assert result["success"] is False
        assert "Snapshot not found" in result["error"]

    def test_snapshot_must_be_a_list(self, capsys, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"id": "t1"}')

        code, result = run(capsys, "query", str(path))

        assert code == 1
        assert "JSON list" in result["error"]


class TestBuildFilterConfig:
    def test_status_flags(self):
        args = build_parser().parse_args(["query", "x.json", "--status", "open", "--priority", "high"])

        config = build_filter_config(args)

        assert config.completed is False
        assert config.priorities == {Priority.HIGH}

    def test_defaults_impose_nothing(self):
        config = build_filter_config(build_parser().parse_args(["query", "x.json"]))

        assert config.completed == "all"
        assert config.priorities is None
        assert config.sort_by is None


# ─────────────────────────────────────────────────────────────────────────────
# Toggle Command Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestToggleCommand:
    """Tests for `syncscript toggle`."""

    def test_toggle_step_prints_result(self, capsys, snapshot_file):
        code, result = run(capsys, "toggle", str(snapshot_file), "t1", "--milestone", "m1", "--step", "m1s1")

        assert code == 0
        assert result["data"]["energy_earned"] == 5

    def test_without_write_leaves_file(self, capsys, snapshot_file):
        before = snapshot_file.read_text()

        run(capsys, "toggle", str(snapshot_file), "t2")

        assert snapshot_file.read_text() == before

    def test_write_keeps_reward_across_runs(self, capsys, snapshot_file):
        """Reopen and re-complete in separate runs: the reward is paid once."""
        _, first = run(capsys, "toggle", str(snapshot_file), "t2", "--write")
        run(capsys, "toggle", str(snapshot_file), "t2", "--write")
        _, third = run(capsys, "toggle", str(snapshot_file), "t2", "--write")

        assert first["data"]["energy_earned"] == 30
        assert third["data"]["energy_earned"] == 0
        saved = json.loads(snapshot_file.read_text())
        assert saved[1]["completed"] is True
        assert saved[1]["reward_granted"] is True

    def test_step_requires_milestone(self, capsys, snapshot_file):
        code, result = run(capsys, "toggle", str(snapshot_file), "t1", "--step", "m1s1")

        assert code == 1
        assert "--step requires --milestone" in result["error"]

    def test_unknown_task(self, capsys, snapshot_file):
        code, result = run(capsys, "toggle", str(snapshot_file), "nope")

        assert code == 1
        assert result["error"] == "Task not found: nope"


class TestScheduleCommand:
    """Tests for `syncscript schedule`."""

    def test_schedule_and_write(self, capsys, snapshot_file):
        code, result = run(capsys, "schedule", str(snapshot_file), "t2", "--at", "2030-01-02T09:00:00", "--write")

        assert code == 0
        assert result["data"]["scheduled_time"] == "2030-01-02T09:00:00"
        saved = json.loads(snapshot_file.read_text())
        assert saved[1]["scheduled_time"] == "2030-01-02T09:00:00"

    def test_clear(self, capsys, snapshot_file):
        run(capsys, "schedule", str(snapshot_file), "t2", "--at", "2030-01-02T09:00:00", "--write")

        _, result = run(capsys, "schedule", str(snapshot_file), "t2", "--clear")

        assert result["data"]["scheduled_time"] is None

    def test_needs_exactly_one_action(self, capsys, snapshot_file):
        code, result = run(capsys, "schedule", str(snapshot_file), "t2")

        assert code == 1
        assert "--at or --clear" in result["error"]

    def test_bad_timestamp(self, capsys, snapshot_file):
        code, result = run(capsys, "schedule", str(snapshot_file), "t2", "--at", "next tuesday")

        assert code == 1
        assert "Invalid timestamp" in result["error"]


# ─────────────────────────────────────────────────────────────────────────────
# Other Command Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestOverviewCommand:
    def test_overview(self, capsys, snapshot_file):
        code, result = run(capsys, "overview", str(snapshot_file))

        assert code == 0
        assert result["data"]["total_tasks"] == 2
        assert result["data"]["total_steps"] == 4

    @pytest.mark.parametrize(
        "milestone, error",
        [
            ({"title": "No id"}, "Milestone requires an id"),
            ({"id": "m1", "title": "M", "steps": [{"title": "No id"}]}, "Step requires an id"),
            ({"id": "m1", "title": ""}, "Milestone m1 must have a title"),
        ],
    )
    def test_malformed_snapshot_reports_error(self, capsys, tmp_path, milestone, error):
        """Bad children print a JSON error instead of a traceback."""
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps([{"id": "t1", "title": "x", "milestones": [milestone]}]))

        code, result = run(capsys, "overview", str(path))

        assert code == 1
        assert result == {"success": False, "error": error}


class TestTopLevel:
    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert "SyncScript version" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_invalid_choice_exits(self):
        with pytest.raises(SystemExit):
            main(["query", "x.json", "--priority", "critical"])
