"""Tests for the filter value object."""

from __future__ import annotations

from taskboard.filters import TaskFilter
from taskboard.models import Priority


class TestTaskFilter:
    def test_blank_and_absent_are_equal(self) -> None:
        assert TaskFilter(assignee_id="", priority="   ") == TaskFilter()
        assert TaskFilter(assignee_id=None) == TaskFilter(assignee_id="")
        assert TaskFilter().is_empty

    def test_values_are_trimmed(self) -> None:
        f = TaskFilter(assignee_id="  u-1 ", priority=" high ")
        assert f.assignee_id == "u-1"
        assert f.priority == "HIGH"

    def test_enum_priority(self) -> None:
        assert TaskFilter(priority=Priority.LOW).priority == "LOW"

    def test_params_omit_unset(self) -> None:
        assert TaskFilter().to_params() == {}
        assert TaskFilter(priority="HIGH").to_params() == {"priority": "HIGH"}
        assert TaskFilter(assignee_id="u-1", priority="LOW").to_params() == {
            "assigneeId": "u-1",
            "priority": "LOW",
        }

    def test_with_changes_renormalizes(self) -> None:
        f = TaskFilter(assignee_id="u-1", priority="HIGH")
        cleared = f.with_changes(assignee_id=" ")
        assert cleared == TaskFilter(priority="HIGH")
        assert f.assignee_id == "u-1"
