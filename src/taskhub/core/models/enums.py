"""枚举定义

包含 TaskStatus、NotificationKind、DispatchMode 以及任务列表排序枚举。
TaskStatus 不设流转约束：任意状态可变更为任意其他状态。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态（无状态机约束）"""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class NotificationKind(StrEnum):
    """通知类型"""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    STATUS_CHANGED = "STATUS_CHANGED"


class DispatchMode(StrEnum):
    """通知任务提交后的执行方式"""

    # 交给新启动的 worker
    WORKER = "worker"
    # 进入有界队列等待空闲 worker
    QUEUED = "queued"
    # 队列已满且 worker 已达上限：由提交方同步执行
    CALLER_RUNS = "caller_runs"
    # 调度器已关闭，任务未执行
    REJECTED = "rejected"


class TaskSortField(StrEnum):
    """任务列表排序字段"""

    DUE_DATE = "due_date"
    PRIORITY = "priority"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"
