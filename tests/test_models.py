"""Tests for wire models and draft validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from taskboard.errors import ValidationError
from taskboard.models import Comment, Priority, Task, TaskDraft, TaskStatus, coerce_status, to_iso_instant


class TestTaskModel:
    def test_parses_wire_payload(self) -> None:
        task = Task.model_validate({
            "id": "t-1",
            "title": "Ship v1",
            "description": "release",
            "priority": "HIGH",
            "status": "IN_PROGRESS",
            "assignee": {"id": "u-1", "email": "ada@example.com"},
            "dueDate": "2024-08-24T15:30:00.000Z",
            "badge": "soon",
            "createdAt": "2024-08-01T09:00:00Z",
            "somethingNew": 42,
        })
        assert task.priority == Priority.HIGH
        assert task.status == TaskStatus.IN_PROGRESS
        assert task.assignee_id == "u-1"
        assert task.due_date == datetime(2024, 8, 24, 15, 30, tzinfo=timezone.utc)
        assert task.badge == "soon"

    def test_unassigned(self) -> None:
        task = Task.model_validate({"id": "t-1", "title": "x", "assignee": None})
        assert task.assignee is None
        assert task.assignee_id is None

    def test_numeric_id_becomes_string(self) -> None:
        task = Task.model_validate({"id": 7, "title": "x"})
        assert task.id == "7"

    def test_unknown_status_kept_raw(self) -> None:
        task = Task.model_validate({"id": "t-1", "title": "x", "status": "ARCHIVED"})
        assert task.status == "ARCHIVED"
        assert coerce_status(task.status) is None

    def test_with_status_returns_copy(self) -> None:
        task = Task.model_validate({"id": "t-1", "title": "x", "status": "BACKLOG"})
        moved = task.with_status(TaskStatus.DONE)
        assert moved.status == TaskStatus.DONE
        assert task.status == TaskStatus.BACKLOG

    def test_comment_author(self) -> None:
        comment = Comment.model_validate({
            "id": "c-1",
            "body": "looks good",
            "author": {"id": "u-2", "email": "linus@example.com"},
            "createdAt": "2024-08-02T10:00:00Z",
        })
        assert comment.author.email == "linus@example.com"

    def test_status_labels(self) -> None:
        assert TaskStatus.IN_PROGRESS.label == "In Progress"
        assert coerce_status("review") == TaskStatus.REVIEW


class TestTaskDraft:
    def test_valid_payload(self) -> None:
        draft = TaskDraft(
            title="Ship v1",
            description="release",
            priority=Priority.HIGH,
            due_date="2024-08-24T15:30:00Z",
        )
        payload = draft.to_payload()
        assert payload == {
            "title": "Ship v1",
            "description": "release",
            "priority": "HIGH",
            "assigneeId": None,
            "dueDate": "2024-08-24T15:30:00.000Z",
        }

    def test_blank_assignee_normalized(self) -> None:
        draft = TaskDraft(title="t", description="d", assignee_id="   ", due_date="2024-08-24T15:30Z")
        assert draft.to_payload()["assigneeId"] is None

    def test_assignee_trimmed(self) -> None:
        draft = TaskDraft(title="t", description="d", assignee_id=" u-1 ", due_date="2024-08-24T15:30Z")
        assert draft.to_payload()["assigneeId"] == "u-1"

    def test_priority_string_accepted(self) -> None:
        draft = TaskDraft(title="t", description="d", priority="low", due_date="2024-08-24T15:30Z")
        assert draft.to_payload()["priority"] == "LOW"

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"title": "  "}, "Title is required"),
            ({"description": ""}, "Description is required"),
            ({"due_date": None}, "Due date and time are required"),
            ({"due_date": "2024-08-24"}, "complete date and time"),
            ({"due_date": "2024-13-45T99:99"}, "Invalid date format"),
            ({"priority": "URGENT"}, "Priority must be one of"),
        ],
    )
    def test_rejects_bad_drafts(self, kwargs: dict, message: str) -> None:
        fields = {"title": "t", "description": "d", "due_date": "2024-08-24T15:30Z"}
        fields.update(kwargs)
        draft = TaskDraft(**fields)
        with pytest.raises(ValidationError, match=message):
            draft.to_payload()

    def test_validate_lists_every_problem(self) -> None:
        errors = TaskDraft().validate()
        assert len(errors) == 3

    def test_payload_uses_validated_due_date(self) -> None:
        due = datetime(2024, 8, 24, 15, 30, tzinfo=timezone.utc)
        draft = TaskDraft(title="t", description="d", due_date=due)
        assert draft.validate() == []
        assert draft.to_payload()["dueDate"] == "2024-08-24T15:30:00.000Z"

    def test_aware_datetime_converted_to_utc(self) -> None:
        due = datetime(2024, 8, 24, 17, 30, tzinfo=timezone(timedelta(hours=2)))
        assert to_iso_instant(due) == "2024-08-24T15:30:00.000Z"

    def test_naive_datetime_is_local_time(self) -> None:
        naive = datetime(2024, 8, 24, 15, 30)
        expected = naive.astimezone().astimezone(timezone.utc)
        assert to_iso_instant(naive) == expected.strftime("%Y-%m-%dT%H:%M:%S.000Z")
