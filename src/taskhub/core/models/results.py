"""存储层与变更服务的显式结果类型

load / commit_if_version / update 以返回值而非异常表达 NotFound 与 Conflict，
调用方必须对每种结果分别处理。
"""

from typing import Literal

from pydantic import BaseModel, Field

from .task import Task


class NotFound(BaseModel):
    """引用的记录不存在（终止性结果）"""

    resource: Literal["task", "project"] = Field(description="资源类型")
    resource_id: str = Field(description="资源 ID")


class Conflict(BaseModel):
    """版本不匹配（可恢复：调用方可重新加载后重试）"""

    task_id: str
    expected_version: int = Field(description="提交时期望的版本号")
    current_version: int = Field(description="提交时数据库中的实际版本号")


class MutationResult(BaseModel):
    """部分更新结果"""

    previous: Task = Field(description="加载时的快照")
    task: Task = Field(description="提交后（或未提交时为加载时）的快照")
    changes: list[str] = Field(default_factory=list, description="有序变更描述")
    committed: bool = Field(description="是否实际执行了 CAS 提交")
