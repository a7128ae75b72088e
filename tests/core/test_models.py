"""Domain Model 单元测试

测试内容：
1. Task 默认值与约束
2. TaskPatch 字段出现标记（未提供 vs 已提供）
3. NotificationJob 工厂方法
"""

from datetime import UTC, date, datetime

import pytest
from pydantic import ValidationError
from taskhub.core.models import (
    MUTABLE_FIELDS,
    NotificationJob,
    NotificationKind,
    Task,
    TaskPatch,
    TaskStatus,
)


def _task(**overrides) -> Task:
    now = datetime.now(UTC)
    data = {
        "task_id": "01JTEST000000000000000001",
        "project_id": "01JPROJ000000000000000001",
        "name": "Write report",
        "priority": 2,
        "due_date": date(2030, 3, 1),
        "assignee": "bob@example.com",
        "created_at": now,
        "updated_at": now,
    }
    data.update(overrides)
    return Task(**data)


class TestTaskModel:
    def test_defaults(self):
        """新建 Task 默认 PENDING、version=0"""
        task = _task()
        assert task.status == TaskStatus.PENDING
        assert task.version == 0

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            _task(name="")

    def test_negative_version_rejected(self):
        with pytest.raises(ValidationError):
            _task(version=-1)

    def test_status_values(self):
        assert [s.value for s in TaskStatus] == ["PENDING", "IN_PROGRESS", "COMPLETED"]


class TestTaskPatch:
    def test_empty_patch_supplies_nothing(self):
        assert TaskPatch().supplied() == {}

    def test_only_supplied_fields_are_present(self):
        """未提供的字段不出现在 supplied 中"""
        patch = TaskPatch(priority=5)
        assert patch.supplied() == {"priority": 5}
        assert "name" not in patch.model_fields_set

    def test_supplied_follows_field_order(self):
        patch = TaskPatch(
            status=TaskStatus.COMPLETED,
            name="New",
            assignee="c@example.com",
        )
        assert list(patch.supplied()) == ["name", "assignee", "status"]
        assert list(MUTABLE_FIELDS) == ["name", "priority", "due_date", "assignee", "status"]

    def test_explicit_null_rejected(self):
        """已提供字段不允许为 null"""
        with pytest.raises(ValidationError):
            TaskPatch(name=None)

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            TaskPatch(name="")


class TestNotificationJob:
    def test_for_created(self):
        task = _task()
        job = NotificationJob.for_created(task, project_name="Alpha")
        assert job.kind == NotificationKind.CREATED
        assert job.recipient == "bob@example.com"
        assert job.project_name == "Alpha"
        assert job.changes == []
        assert len(job.job_id) == 26

    def test_for_updated_copies_changes(self):
        changes = ["priority changed to 4"]
        job = NotificationJob.for_updated(_task(), changes)
        changes.append("mutated later")
        assert job.kind == NotificationKind.UPDATED
        assert job.changes == ["priority changed to 4"]

    def test_for_status_changed(self):
        job = NotificationJob.for_status_changed(
            _task(), TaskStatus.PENDING, TaskStatus.COMPLETED
        )
        assert job.kind == NotificationKind.STATUS_CHANGED
        assert job.old_status == TaskStatus.PENDING
        assert job.new_status == TaskStatus.COMPLETED

    def test_recipient_is_assignee_at_creation(self):
        task = _task(assignee="first@example.com")
        job = NotificationJob.for_created(task)
        task = task.model_copy(update={"assignee": "second@example.com"})
        assert job.recipient == "first@example.com"
