"""TaskService 测试 -- 编排层通知策略与错误映射

测试内容：
1. 创建：version=0 + CREATED 通知；项目不存在（包括预检查后被删除）抛 ProjectNotFoundError
2. 更新：有变更才通知；无变更不提交、不通知
3. 状态更新：总是提交、总是通知（即使状态未变）
4. 并发状态更新：一个成功，一个 TaskConflictError
5. 删除：不做版本检查、不通知；不存在抛 TaskNotFoundError
6. 列表：日期范围颠倒抛 InvalidInputError，筛选与排序参数透传到存储层
"""

import asyncio
from datetime import date

import pytest
import pytest_asyncio
from taskhub.core.exceptions import (
    InvalidInputError,
    ProjectNotFoundError,
    TaskConflictError,
    TaskNotFoundError,
)
from taskhub.core.models import (
    NotificationKind,
    SortOrder,
    TaskDraft,
    TaskPatch,
    TaskSortField,
    TaskStatus,
)
from taskhub.core.mutation import MutationService
from taskhub.gateway.services.notification_dispatcher import NotificationDispatcher
from taskhub.gateway.services.task_service import TaskService


@pytest_asyncio.fixture
async def dispatcher(recording_handler):
    d = NotificationDispatcher(recording_handler, min_workers=2, max_workers=4, queue_capacity=10)
    yield d
    if not d.closed:
        await d.shutdown(timeout=1)


@pytest.fixture
def service(store_group, dispatcher) -> TaskService:
    return TaskService(store_group, dispatcher, MutationService(store_group.task_store))


def _draft(**overrides) -> TaskDraft:
    data = {
        "name": "Prepare demo",
        "priority": 4,
        "due_date": date(2030, 5, 1),
        "assignee": "carol@example.com",
    }
    data.update(overrides)
    return TaskDraft(**data)


class TestCreate:
    async def test_create_notifies(self, service, dispatcher, recording_handler, project):
        task = await service.create_task(project.project_id, _draft())
        await dispatcher.shutdown(timeout=5)

        assert task.version == 0
        assert task.status == TaskStatus.PENDING
        [job] = recording_handler.handled
        assert job.kind == NotificationKind.CREATED
        assert job.recipient == "carol@example.com"
        assert job.project_name == project.name
        assert job.snapshot == task

    async def test_create_unknown_project(self, service, dispatcher, recording_handler):
        with pytest.raises(ProjectNotFoundError) as exc_info:
            await service.create_task("missing", _draft())
        await dispatcher.shutdown(timeout=5)

        assert str(exc_info.value) == "Project not found with id: missing"
        assert recording_handler.handled == []

    async def test_project_removed_before_insert(
        self, service, dispatcher, recording_handler, store_group, project, monkeypatch
    ):
        """预检查之后项目被删除，插入在同一事务内被拒绝"""
        project_store = store_group.project_store

        async def stale_lookup(project_id):
            return project

        monkeypatch.setattr(project_store, "get_project", stale_lookup)
        await project_store.delete_project(project.project_id)

        with pytest.raises(ProjectNotFoundError):
            await service.create_task(project.project_id, _draft())
        await dispatcher.shutdown(timeout=5)

        assert await store_group.task_store.list_tasks() == []
        assert recording_handler.handled == []


class TestUpdate:
    async def test_update_with_changes(self, service, dispatcher, recording_handler, task):
        updated = await service.update_task(task.task_id, TaskPatch(priority=1, name=task.name))
        await dispatcher.shutdown(timeout=5)

        assert updated.version == 1
        [job] = recording_handler.handled
        assert job.kind == NotificationKind.UPDATED
        assert job.changes == ["priority changed to 1"]

    async def test_noop_update_skips_commit_and_notification(
        self, service, dispatcher, recording_handler, task
    ):
        """提交内容与当前值一致：版本不变、不通知"""
        result = await service.update_task(
            task.task_id, TaskPatch(name=task.name, priority=task.priority)
        )
        await dispatcher.shutdown(timeout=5)

        assert result.version == 0
        assert recording_handler.handled == []

    async def test_update_missing(self, service):
        with pytest.raises(TaskNotFoundError) as exc_info:
            await service.update_task("missing", TaskPatch(priority=2))
        assert str(exc_info.value) == "Task not found with id: missing"

    async def test_notification_uses_assignee_after_commit(
        self, service, dispatcher, recording_handler, task
    ):
        await service.update_task(task.task_id, TaskPatch(assignee="dave@example.com"))
        await dispatcher.shutdown(timeout=5)

        [job] = recording_handler.handled
        assert job.recipient == "dave@example.com"


class TestUpdateStatus:
    async def test_same_status_still_commits_and_notifies(
        self, service, dispatcher, recording_handler, task
    ):
        result = await service.update_status(task.task_id, TaskStatus.PENDING)
        await dispatcher.shutdown(timeout=5)

        assert result.version == 1
        [job] = recording_handler.handled
        assert job.kind == NotificationKind.STATUS_CHANGED
        assert job.old_status == TaskStatus.PENDING
        assert job.new_status == TaskStatus.PENDING

    async def test_status_change(self, service, dispatcher, recording_handler, task):
        result = await service.update_status(task.task_id, TaskStatus.COMPLETED)
        await dispatcher.shutdown(timeout=5)

        assert result.status == TaskStatus.COMPLETED
        [job] = recording_handler.handled
        assert (job.old_status, job.new_status) == (TaskStatus.PENDING, TaskStatus.COMPLETED)

    async def test_concurrent_status_updates_conflict(
        self, service, dispatcher, recording_handler, store_group, task, monkeypatch
    ):
        """两个调用都读到 version 0：恰好一个成功，另一个收到冲突"""
        barrier = asyncio.Barrier(2)
        original_load = store_group.task_store.load

        async def synced_load(task_id):
            snapshot = await original_load(task_id)
            await barrier.wait()
            return snapshot

        monkeypatch.setattr(store_group.task_store, "load", synced_load)

        results = await asyncio.gather(
            service.update_status(task.task_id, TaskStatus.IN_PROGRESS),
            service.update_status(task.task_id, TaskStatus.COMPLETED),
            return_exceptions=True,
        )
        await dispatcher.shutdown(timeout=5)

        conflicts = [r for r in results if isinstance(r, TaskConflictError)]
        successes = [r for r in results if not isinstance(r, BaseException)]
        assert len(conflicts) == 1
        assert len(successes) == 1
        assert successes[0].version == 1
        assert conflicts[0].recoverable is True
        assert str(conflicts[0]) == "Task was modified by another process. Please retry."

        final = await store_group.task_store.get_task(task.task_id)
        assert final.version == 1
        assert final.status == successes[0].status
        assert len(recording_handler.handled) == 1

    async def test_missing_task(self, service):
        with pytest.raises(TaskNotFoundError):
            await service.update_status("missing", TaskStatus.COMPLETED)


class TestDeleteAndQuery:
    async def test_delete_is_silent(self, service, dispatcher, recording_handler, task):
        await service.update_task(task.task_id, TaskPatch(priority=5))
        await service.delete_task(task.task_id)
        await dispatcher.shutdown(timeout=5)

        assert [j.kind for j in recording_handler.handled] == [NotificationKind.UPDATED]
        with pytest.raises(TaskNotFoundError):
            await service.get_task(task.task_id)

    async def test_delete_missing(self, service):
        with pytest.raises(TaskNotFoundError):
            await service.delete_task("missing")

    async def test_list_tasks_for_unknown_project(self, service):
        with pytest.raises(ProjectNotFoundError):
            await service.list_tasks("missing")

    async def test_list_tasks_by_status(self, service, project, task):
        await service.create_task(project.project_id, _draft(name="second"))
        await service.update_status(task.task_id, TaskStatus.COMPLETED)

        completed = await service.list_tasks(project.project_id, "COMPLETED")
        assert [t.task_id for t in completed] == [task.task_id]
        assert len(await service.list_tasks()) == 2

    async def test_list_tasks_inverted_range(self, service, project):
        with pytest.raises(InvalidInputError) as exc_info:
            await service.list_tasks(
                project.project_id, due_from=date(2030, 3, 1), due_to=date(2030, 2, 1)
            )
        assert str(exc_info.value) == "Start date must be before end date"

    async def test_list_tasks_filters_passed_through(self, service, project, task):
        await service.create_task(project.project_id, _draft(name="Ship it", priority=5))

        found = await service.list_tasks(
            name="ship",
            due_from=date(2030, 1, 1),
            due_to=date(2030, 12, 31),
            sort_by=TaskSortField.PRIORITY,
            order=SortOrder.DESC,
        )
        assert [t.name for t in found] == ["Ship it"]

    async def test_works_without_dispatcher(self, store_group, project):
        service = TaskService(store_group)
        task = await service.create_task(project.project_id, _draft())
        assert (await service.update_status(task.task_id, TaskStatus.COMPLETED)).version == 1
