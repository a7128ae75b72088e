"""taskhub Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import DispatchMode, NotificationKind, SortOrder, TaskSortField, TaskStatus
from .notification import NotificationJob
from .project import Project
from .results import Conflict, MutationResult, NotFound
from .task import MUTABLE_FIELDS, Task, TaskDraft, TaskPatch

__all__ = [
    # 枚举
    "TaskStatus",
    "NotificationKind",
    "DispatchMode",
    "TaskSortField",
    "SortOrder",
    # Task
    "Task",
    "TaskDraft",
    "TaskPatch",
    "MUTABLE_FIELDS",
    # Project
    "Project",
    # Notification
    "NotificationJob",
    # 结果类型
    "NotFound",
    "Conflict",
    "MutationResult",
]
