"""Store Protocol 接口定义

定义 TaskStore 的抽象接口，供 MutationService 依赖，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import date
from typing import Any, Protocol

from ..models.enums import SortOrder, TaskSortField
from ..models.results import Conflict, NotFound
from ..models.task import Task


class TaskStore(Protocol):
    """Task 存储接口（乐观并发控制原语）"""

    async def create_task(self, task: Task) -> Task:
        """创建任务记录，返回 version=0 的快照"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def load(self, task_id: str) -> Task | NotFound:
        """加载当前快照（含版本号）"""
        ...

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
        """查询任务列表（筛选 + 排序）"""
        ...

    async def commit_if_version(
        self,
        task_id: str,
        expected_version: int,
        fields: dict[str, Any],
    ) -> Task | Conflict | NotFound:
        """版本匹配时原子提交，否则返回 Conflict，不做重试"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务（不做版本检查）"""
        ...
