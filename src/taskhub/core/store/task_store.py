"""TaskStore SQLite 实现 -- 乐观并发控制原语

commit_if_version 以单行条件 UPDATE 实现 compare-and-swap：
版本匹配才写入并令 version + 1，否则不做任何修改并返回 Conflict。
本层不做任何重试，重试策略由调用方决定。
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any

import aiosqlite
import structlog

from ..exceptions import ProjectNotFoundError
from ..models.enums import SortOrder, TaskSortField, TaskStatus
from ..models.results import Conflict, NotFound
from ..models.task import MUTABLE_FIELDS, Task
from .transaction import transaction

log = structlog.get_logger()

_TASK_COLUMNS = (
    "task_id, project_id, name, priority, due_date, assignee, "
    "status, version, created_at, updated_at"
)


# 排序字段 -> 列名（白名单）
_SORT_COLUMNS = {
    TaskSortField.DUE_DATE: "due_date",
    TaskSortField.PRIORITY: "priority",
}


def _escape_like(value: str) -> str:
    """转义 LIKE 通配符"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _to_column(field: str, value: Any) -> Any:
    """将模型字段值转换为列值"""
    if field == "due_date":
        return value.isoformat()
    if field == "status":
        return TaskStatus(value).value
    return value


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        write_lock: asyncio.Lock,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._conn = conn
        self._write_lock = write_lock
        self._clock = clock

    async def create_task(self, task: Task) -> Task:
        """创建任务记录（version 固定为 0，时间戳由本层赋值）

        Raises:
            ProjectNotFoundError: 所属项目不存在（与插入在同一事务内检查）
        """
        now = self._clock()
        created = task.model_copy(
            update={"version": 0, "created_at": now, "updated_at": now}
        )
        async with transaction(self._conn, self._write_lock) as conn:
            cursor = await conn.execute(
                "SELECT 1 FROM projects WHERE project_id = ?",
                (created.project_id,),
            )
            if await cursor.fetchone() is None:
                raise ProjectNotFoundError(created.project_id)
            await conn.execute(
                f"""
                INSERT INTO tasks ({_TASK_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    created.task_id,
                    created.project_id,
                    created.name,
                    created.priority,
                    created.due_date.isoformat(),
                    created.assignee,
                    created.status.value,
                    created.version,
                    created.created_at.isoformat(),
                    created.updated_at.isoformat(),
                ),
            )
        return created

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def load(self, task_id: str) -> Task | NotFound:
        """加载当前快照（含版本号）"""
        task = await self.get_task(task_id)
        if task is None:
            return NotFound(resource="task", resource_id=task_id)
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

        Args:
            project_id: 按项目筛选
            status: 按状态筛选
            name: 名称模糊匹配（不区分大小写），空白视为未提供
            due_from: 截止日期下限（含）
            due_to: 截止日期上限（含）
            sort_by: 排序字段
            order: 排序方向；相同排序值按 created_at 正序
        """
        clauses: list[str] = []
        params: list[str] = []
        if project_id:
            clauses.append("project_id = ?")
            params.append(project_id)
        if status:
            clauses.append("status = ?")
            params.append(status)
        if name and name.strip():
            clauses.append("LOWER(name) LIKE ? ESCAPE '\\'")
            params.append(f"%{_escape_like(name.strip().lower())}%")
        if due_from:
            clauses.append("due_date >= ?")
            params.append(due_from.isoformat())
        if due_to:
            clauses.append("due_date <= ?")
            params.append(due_to.isoformat())
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        column = _SORT_COLUMNS[TaskSortField(sort_by)]
        direction = "DESC" if SortOrder(order) == SortOrder.DESC else "ASC"
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks {where} "
            f"ORDER BY {column} {direction}, created_at ASC",
            tuple(params),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def commit_if_version(
        self,
        task_id: str,
        expected_version: int,
        fields: dict[str, Any],
    ) -> Task | Conflict | NotFound:
        """版本匹配时原子写入 fields，version + 1，刷新 updated_at

        Args:
            task_id: 任务 ID
            expected_version: 加载时读到的版本号
            fields: 要写入的字段（仅限可变字段）

        Returns:
            提交后的 Task；版本不匹配返回 Conflict；记录不存在返回 NotFound
        """
        unknown = set(fields) - set(MUTABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported task fields: {sorted(unknown)}")

        assignments = [f"{name} = ?" for name in MUTABLE_FIELDS if name in fields]
        values = [_to_column(name, fields[name]) for name in MUTABLE_FIELDS if name in fields]
        assignments += ["version = version + 1", "updated_at = ?"]
        values.append(self._clock().isoformat())

        async with transaction(self._conn, self._write_lock) as conn:
            cursor = await conn.execute(
                f"UPDATE tasks SET {', '.join(assignments)} "
                "WHERE task_id = ? AND version = ?",
                (*values, task_id, expected_version),
            )
            if cursor.rowcount == 0:
                # 同一事务内回查，区分不存在与版本冲突
                cursor = await conn.execute(
                    "SELECT version FROM tasks WHERE task_id = ?",
                    (task_id,),
                )
                row = await cursor.fetchone()
                if row is None:
                    return NotFound(resource="task", resource_id=task_id)
                return Conflict(
                    task_id=task_id,
                    expected_version=expected_version,
                    current_version=row[0],
                )

            cursor = await conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks WHERE task_id = ?",
                (task_id,),
            )
            row = await cursor.fetchone()

        log.debug(
            "task_committed",
            task_id=task_id,
            version=expected_version + 1,
        )
        return self._row_to_task(row)

    async def delete_task(self, task_id: str) -> bool:
        """删除任务（不做版本检查）

        Returns:
            True 如果记录存在并已删除
        """
        async with transaction(self._conn, self._write_lock) as conn:
            cursor = await conn.execute(
                "DELETE FROM tasks WHERE task_id = ?",
                (task_id,),
            )
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row[0],
            project_id=row[1],
            name=row[2],
            priority=row[3],
            due_date=date.fromisoformat(row[4]),
            assignee=row[5],
            status=row[6],
            version=row[7],
            created_at=datetime.fromisoformat(row[8]),
            updated_at=datetime.fromisoformat(row[9]),
        )
