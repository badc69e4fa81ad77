"""Tests for syncscript/tasks/models.py

The models define the Task → Milestone → Step tree.
Key functionality:
- Parsing snake_case and dashboard camelCase payloads
- Derived progress and completion helpers
- Creation-time validation
- Invariant checks used by the cascade tests
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from syncscript.tasks.errors import ValidationError
from syncscript.tasks.models import (
    EnergyLevel,
    Milestone,
    Priority,
    Step,
    Task,
    check_consistency,
    parse_datetime,
    parse_priority,
    validate_milestone_target,
    validate_task,
)


# ─────────────────────────────────────────────────────────────────────────────
# Value Parsing Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestParseDatetime:
    """Tests for timestamp coercion."""

    def test_parses_iso_string(self):
        """Should parse a naive ISO timestamp as-is."""
        assert parse_datetime("2024-05-15T09:30:00") == datetime(2024, 5, 15, 9, 30)

    def test_parses_date(self):
        """Should turn a date into midnight of that day."""
        assert parse_datetime(date(2024, 5, 15)) == datetime(2024, 5, 15)

    def test_empty_values_are_none(self):
        """None and empty strings mean "no timestamp"."""
        assert parse_datetime(None) is None
        assert parse_datetime("") is None

    def test_aware_values_become_naive(self):
        """Should convert aware timestamps to naive local time."""
        parsed = parse_datetime("2024-05-15T09:30:00Z")

        assert parsed.tzinfo is None
        expected = datetime(2024, 5, 15, 9, 30, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert parsed == expected

    def test_rejects_garbage(self):
        """Should raise ValidationError for unparseable input."""
        with pytest.raises(ValidationError):
            parse_datetime("next tuesday")
        with pytest.raises(ValidationError):
            parse_datetime(42)


class TestParsePriority:
    def test_accepts_any_case(self):
        assert parse_priority("URGENT") is Priority.URGENT

    def test_passes_enum_through(self):
        assert parse_priority(Priority.LOW) is Priority.LOW

    def test_rejects_unknown(self):
        with pytest.raises(ValidationError, match="Invalid priority"):
            parse_priority("critical")

    def test_rank_follows_fixed_order(self):
        """Ranks should follow urgent, high, medium, low."""
        ranks = [p.rank for p in (Priority.URGENT, Priority.HIGH, Priority.MEDIUM, Priority.LOW)]
        assert ranks == [0, 1, 2, 3]


# ─────────────────────────────────────────────────────────────────────────────
# Serialization Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestTaskFromDict:
    """Tests for building tasks from payloads."""

    def test_reads_camel_case_payload(self, sample_task_dict, now):
        """Should accept dashboard field names and the subtasks alias."""
        task = Task.from_dict(sample_task_dict)

        assert task.priority is Priority.URGENT
        assert task.energy_level is EnergyLevel.LOW
        assert task.due_date == now + timedelta(days=2)
        assert task.tags == {"writing", "marketing"}
        assert task.assigned_to == {"u1", "u2"}
        assert [m.id for m in task.milestones] == ["m1", "m2"]

    def test_reads_legacy_reward_flags(self, sample_task_dict):
        """energyAwarded and rewardGranted both set reward_granted."""
        task = Task.from_dict(sample_task_dict)

        assert task.milestones[0].reward_granted is True
        assert task.milestones[0].steps[0].reward_granted is True
        assert task.milestones[1].reward_granted is False

    def test_defaults_priority_to_medium(self):
        task = Task.from_dict({"id": "t1", "title": "Plain"})

        assert task.priority is Priority.MEDIUM
        assert task.milestones == []
        assert task.completed is False

    def test_requires_id(self):
        """Should raise ValidationError when id is missing."""
        with pytest.raises(ValidationError, match="id"):
            Task.from_dict({"title": "No id"})

    def test_rejects_assignee_without_id(self):
        with pytest.raises(ValidationError, match="Assignee"):
            Task.from_dict({"id": "t1", "title": "x", "assigned_to": [{"name": "Ada"}]})

    @pytest.mark.parametrize(
        "milestone, kind",
        [
            ({"title": "No id"}, "Milestone"),
            ({"id": "m1", "title": "M", "steps": [{"title": "No id"}]}, "Step"),
        ],
    )
    def test_children_require_ids(self, milestone, kind):
        """A milestone or step without an id is a ValidationError, not a KeyError."""
        with pytest.raises(ValidationError, match=f"{kind} requires an id"):
            Task.from_dict({"id": "t1", "title": "x", "milestones": [milestone]})

    @pytest.mark.parametrize("field", ["tags", "assigned_to", "milestones"])
    def test_rejects_string_collections(self, field):
        """A bare string must not be split into characters."""
        with pytest.raises(ValidationError, match=f"{field} must be a list"):
            Task.from_dict({"id": "t1", "title": "x", field: "work"})

    def test_accepts_tuple_tags(self):
        assert Task.from_dict({"id": "t1", "title": "x", "tags": ("a", "b")}).tags == {"a", "b"}

    def test_to_dict_is_readable_by_from_dict(self, sample_task_dict):
        """A serialized task should load back with the same state."""
        task = Task.from_dict(sample_task_dict)
        again = Task.from_dict(task.to_dict())

        assert again == task

    def test_to_dict_includes_progress(self, sample_task_dict):
        data = Task.from_dict(sample_task_dict).to_dict()

        assert data["progress"] == 50.0
        assert data["tags"] == ["marketing", "writing"]
        assert data["priority"] == "urgent"


# ─────────────────────────────────────────────────────────────────────────────
# Derived Property Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestDerivedProperties:
    """Tests for progress and completion helpers."""

    def test_task_progress_counts_completed_milestones(self, make_task):
        task = make_task(milestones=4)
        task.milestones[0].completed = True

        assert task.progress == 25.0
        assert task.completed_milestone_count == 1

    def test_task_without_milestones_has_zero_progress(self, make_task):
        assert make_task().progress == 0.0

    def test_empty_milestone_is_never_all_steps_completed(self):
        """A milestone with no steps has nothing to auto-complete from."""
        assert Milestone(id="m1", title="Empty").all_steps_completed is False

    def test_task_without_milestones_is_never_all_completed(self, make_task):
        assert make_task().all_milestones_completed is False

    def test_lookup_by_id(self, sample_task):
        assert sample_task.get_milestone("m2").title == "Milestone 2"
        assert sample_task.get_milestone("nope") is None
        assert sample_task.milestones[0].get_step("m1s2").title == "Step 2"


# ─────────────────────────────────────────────────────────────────────────────
# Validation Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestValidateTask:
    """Tests for creation-time validation."""

    def test_accepts_valid_task(self, sample_task):
        validate_task(sample_task)

    def test_rejects_blank_title(self, make_task):
        with pytest.raises(ValidationError, match="title"):
            validate_task(make_task(title="   "))

    @pytest.mark.parametrize(
        "build",
        [
            lambda: Step(id="s1", title=""),
            lambda: Step(id="s1", title="   "),
            lambda: Milestone(id="m1", title=""),
            lambda: Milestone(id="m1", title="\t"),
        ],
    )
    def test_children_reject_blank_titles(self, build):
        """Steps and milestones refuse blank titles when constructed."""
        with pytest.raises(ValidationError, match="must have a title"):
            build()

    def test_rejects_duplicate_milestone_ids(self):
        task = Task(id="t1", title="x", milestones=[Milestone(id="m", title="a"), Milestone(id="m", title="b")])

        with pytest.raises(ValidationError, match="Duplicate milestone"):
            validate_task(task)

    def test_rejects_duplicate_step_ids(self):
        milestone = Milestone(id="m", title="a", steps=[Step(id="s", title="1"), Step(id="s", title="2")])

        with pytest.raises(ValidationError, match="Duplicate step"):
            validate_task(Task(id="t1", title="x", milestones=[milestone]))

    def test_rejects_target_after_due_date(self, now):
        milestone = Milestone(id="m", title="Late", target_date=now + timedelta(days=5))
        task = Task(id="t1", title="x", due_date=now + timedelta(days=1), milestones=[milestone])

        with pytest.raises(ValidationError, match="after the task due date"):
            validate_task(task)


class TestValidateMilestoneTarget:
    def test_accepts_target_inside_window(self, now):
        task = Task(id="t1", title="x", due_date=now + timedelta(days=3))
        milestone = Milestone(id="m", title="Soon", target_date=now + timedelta(days=1))

        validate_milestone_target(milestone, task, now=now)

    def test_rejects_past_target(self, now):
        task = Task(id="t1", title="x")
        milestone = Milestone(id="m", title="Old", target_date=now - timedelta(days=1))

        with pytest.raises(ValidationError, match="in the past"):
            validate_milestone_target(milestone, task, now=now)

    def test_no_target_is_fine(self, now):
        validate_milestone_target(Milestone(id="m", title="Open"), Task(id="t1", title="x"), now=now)


class TestCheckConsistency:
    """Tests for the hierarchy invariant checker."""

    def test_fresh_task_is_consistent(self, sample_task):
        assert check_consistency(sample_task) == []

    def test_flags_milestone_left_open(self, sample_task):
        for step in sample_task.milestones[0].steps:
            step.completed = True
            step.reward_granted = True

        problems = check_consistency(sample_task)

        assert problems == ["milestone m1: all steps completed but milestone is not"]

    def test_flags_completion_without_reward(self, make_task):
        task = make_task()
        task.completed = True

        assert check_consistency(task) == ["task t1: completed without reward"]
