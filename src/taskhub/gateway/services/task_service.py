"""TaskService -- 任务创建/更新/状态变更/删除业务逻辑

组合 MutationService 与 NotificationDispatcher，并决定每种操作的通知策略：
- create_task：提交后无条件发送 CREATED 通知
- update_task：仅当存在实际变更时发送 UPDATED 通知
- update_status：无条件提交并发送 STATUS_CHANGED 通知（即使状态未变）
- delete_task：直接删除，不做版本检查，不发送通知
"""

from datetime import UTC, date, datetime

import structlog
from ulid import ULID

from taskhub.core.exceptions import (
    ERROR_INVALID_DATE_RANGE,
    InvalidInputError,
    ProjectNotFoundError,
    TaskConflictError,
    TaskNotFoundError,
)
from taskhub.core.models import (
    Conflict,
    MutationResult,
    NotFound,
    NotificationJob,
    SortOrder,
    Task,
    TaskDraft,
    TaskPatch,
    TaskSortField,
    TaskStatus,
)
from taskhub.core.mutation import MutationService
from taskhub.core.store import StoreGroup

from .notification_dispatcher import NotificationDispatcher

log = structlog.get_logger()


class TaskService:
    """任务业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        dispatcher: NotificationDispatcher | None = None,
        mutation_service: MutationService | None = None,
    ) -> None:
        self._stores = store_group
        self._dispatcher = dispatcher
        self._mutations = mutation_service or MutationService(store_group.task_store)

    async def create_task(self, project_id: str, draft: TaskDraft) -> Task:
        """为项目创建任务（version=0，状态 PENDING）

        Raises:
            ProjectNotFoundError: 项目不存在
        """
        project = await self._stores.project_store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)

        # 时间戳在存储层创建路径中重新赋值
        now = datetime.now(UTC)
        task = Task(
            task_id=str(ULID()),
            project_id=project_id,
            name=draft.name,
            priority=draft.priority,
            due_date=draft.due_date,
            assignee=draft.assignee,
            status=TaskStatus.PENDING,
            version=0,
            created_at=now,
            updated_at=now,
        )
        created = await self._stores.task_store.create_task(task)
        log.info("task_created", task_id=created.task_id, project_id=project_id)

        await self._notify(NotificationJob.for_created(created, project_name=project.name))
        return created

    async def update_task(self, task_id: str, patch: TaskPatch) -> Task:
        """部分更新任务

        Raises:
            TaskNotFoundError: 任务不存在
            TaskConflictError: 并发修改导致版本冲突
        """
        result = self._unwrap(await self._mutations.update(task_id, patch))

        if result.changes:
            await self._notify(NotificationJob.for_updated(result.task, result.changes))
        return result.task

    async def update_status(self, task_id: str, status: TaskStatus) -> Task:
        """仅更新任务状态

        Raises:
            TaskNotFoundError: 任务不存在
            TaskConflictError: 并发修改导致版本冲突
        """
        outcome = await self._mutations.update(
            task_id,
            TaskPatch(status=status),
            always_commit=True,
        )
        result = self._unwrap(outcome)

        await self._notify(
            NotificationJob.for_status_changed(result.task, result.previous.status, status)
        )
        return result.task

    async def delete_task(self, task_id: str) -> None:
        """删除任务

        Raises:
            TaskNotFoundError: 任务不存在
        """
        deleted = await self._stores.task_store.delete_task(task_id)
        if not deleted:
            raise TaskNotFoundError(task_id)
        log.info("task_deleted", task_id=task_id)

    async def get_task(self, task_id: str) -> Task:
        """查询任务详情

        Raises:
            TaskNotFoundError: 任务不存在
        """
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def list_tasks(
        self,
        project_id: str | None = None,
        status: str | None = None,
        *,
        name: str | None = None,
        due_from: date | None = None,
        due_to: date | None = None,
        sort_by: TaskSortField = TaskSortField.DUE_DATE,
        order: SortOrder = SortOrder.ASC,
    ) -> list[Task]:
        """查询任务列表

        Raises:
            InvalidInputError: 截止日期范围颠倒
            ProjectNotFoundError: 指定的项目不存在
        """
        if due_from and due_to and due_from > due_to:
            raise InvalidInputError(ERROR_INVALID_DATE_RANGE)
        if project_id and not await self._stores.project_store.project_exists(project_id):
            raise ProjectNotFoundError(project_id)
        return await self._stores.task_store.list_tasks(
            project_id,
            status,
            name=name,
            due_from=due_from,
            due_to=due_to,
            sort_by=sort_by,
            order=order,
        )

    @staticmethod
    def _unwrap(outcome: MutationResult | NotFound | Conflict) -> MutationResult:
        """将显式结果转换为类型化异常"""
        if isinstance(outcome, NotFound):
            raise TaskNotFoundError(outcome.resource_id)
        if isinstance(outcome, Conflict):
            raise TaskConflictError(
                outcome.task_id,
                outcome.expected_version,
                outcome.current_version,
            )
        return outcome

    async def _notify(self, job: NotificationJob) -> None:
        if self._dispatcher is None:
            return
        mode = await self._dispatcher.submit(job)
        log.debug(
            "notification_submitted",
            job_id=job.job_id,
            kind=job.kind.value,
            task_id=job.snapshot.task_id,
            mode=mode.value,
        )
