"""taskhub 异常体系

NotFound 与 Conflict 在编排层以类型化异常同步抛给调用方，二者永不混淆。
NotificationFailure 只在通知调度器内部被捕获并记录，不会传播给提交方。
"""

# 对外错误消息
ERROR_TASK_NOT_FOUND = "Task not found with id: "
ERROR_PROJECT_NOT_FOUND = "Project not found with id: "
ERROR_CONCURRENT_MODIFICATION = "Task was modified by another process. Please retry."
ERROR_INVALID_DATE_RANGE = "Start date must be before end date"


class TaskHubError(Exception):
    """taskhub 基础异常"""

    def __init__(self, message: str, recoverable: bool = False) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 调用方是否可通过重新加载后重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class NotFoundError(TaskHubError):
    """引用的 Task 或 Project 不存在，对本次调用是终止性的"""

    code = "NOT_FOUND"

    def __init__(self, message: str, resource_id: str) -> None:
        super().__init__(message, recoverable=False)
        self.resource_id = resource_id


class TaskNotFoundError(NotFoundError):
    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(ERROR_TASK_NOT_FOUND + task_id, task_id)


class ProjectNotFoundError(NotFoundError):
    code = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str) -> None:
        super().__init__(ERROR_PROJECT_NOT_FOUND + project_id, project_id)


class InvalidInputError(TaskHubError):
    """请求参数组合不合法（如截止日期范围颠倒），在进入核心逻辑前拒绝"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message, recoverable=False)


class TaskConflictError(TaskHubError):
    """提交时版本不匹配

    核心层不做隐式重试，调用方可重新加载后重试整个流程。
    """

    code = "CONCURRENT_MODIFICATION"

    def __init__(
        self,
        task_id: str,
        expected_version: int,
        current_version: int,
    ) -> None:
        super().__init__(ERROR_CONCURRENT_MODIFICATION, recoverable=True)
        self.task_id = task_id
        self.expected_version = expected_version
        self.current_version = current_version


class NotificationFailure(TaskHubError):
    """通知任务执行失败（尽力而为、至多一次）"""

    def __init__(self, message: str, job_id: str) -> None:
        super().__init__(message, recoverable=False)
        self.job_id = job_id
