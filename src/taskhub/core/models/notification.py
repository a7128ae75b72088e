"""NotificationJob -- 提交成功后投递给调度器的临时任务

不持久化。recipient 取提交时刻的 assignee。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field
from ulid import ULID

from .enums import NotificationKind, TaskStatus
from .task import Task


class NotificationJob(BaseModel):
    """通知任务"""

    job_id: str = Field(default_factory=lambda: str(ULID()), description="任务 ID")
    kind: NotificationKind = Field(description="通知类型")
    recipient: str = Field(description="接收方（提交时的 assignee）")
    snapshot: Task = Field(description="已提交的 Task 快照")
    changes: list[str] = Field(
        default_factory=list,
        description="变更描述列表（仅 UPDATED）",
    )
    old_status: TaskStatus | None = Field(default=None, description="原状态（仅 STATUS_CHANGED）")
    new_status: TaskStatus | None = Field(default=None, description="新状态（仅 STATUS_CHANGED）")
    project_name: str | None = Field(default=None, description="项目名称（已知时）")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="任务创建时间",
    )

    @classmethod
    def for_created(cls, task: Task, project_name: str | None = None) -> "NotificationJob":
        return cls(
            kind=NotificationKind.CREATED,
            recipient=task.assignee,
            snapshot=task,
            project_name=project_name,
        )

    @classmethod
    def for_updated(cls, task: Task, changes: list[str]) -> "NotificationJob":
        return cls(
            kind=NotificationKind.UPDATED,
            recipient=task.assignee,
            snapshot=task,
            changes=list(changes),
        )

    @classmethod
    def for_status_changed(
        cls,
        task: Task,
        old_status: TaskStatus,
        new_status: TaskStatus,
    ) -> "NotificationJob":
        return cls(
            kind=NotificationKind.STATUS_CHANGED,
            recipient=task.assignee,
            snapshot=task,
            old_status=old_status,
            new_status=new_status,
        )
