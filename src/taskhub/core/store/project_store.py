"""ProjectStore SQLite 实现

Project 的查找接口供 Task 创建时做归属校验。
删除 Project 依赖外键 ON DELETE CASCADE 级联删除其 Task。
"""

import asyncio
from datetime import UTC, datetime

import aiosqlite

from ..models.project import Project
from .transaction import transaction

_PROJECT_COLUMNS = "project_id, name, description, created_at, updated_at"


class SqliteProjectStore:
    """ProjectStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection, write_lock: asyncio.Lock) -> None:
        self._conn = conn
        self._write_lock = write_lock

    async def create_project(self, project: Project) -> None:
        """创建项目记录"""
        async with transaction(self._conn, self._write_lock) as conn:
            await conn.execute(
                f"INSERT INTO projects ({_PROJECT_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (
                    project.project_id,
                    project.name,
                    project.description,
                    project.created_at.isoformat(),
                    project.updated_at.isoformat(),
                ),
            )

    async def get_project(self, project_id: str) -> Project | None:
        """根据 project_id 查询项目"""
        cursor = await self._conn.execute(
            f"SELECT {_PROJECT_COLUMNS} FROM projects WHERE project_id = ?",
            (project_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_project(row)

    async def project_exists(self, project_id: str) -> bool:
        cursor = await self._conn.execute(
            "SELECT 1 FROM projects WHERE project_id = ?",
            (project_id,),
        )
        return await cursor.fetchone() is not None

    async def list_projects(self) -> list[Project]:
        """查询项目列表，按 created_at 倒序"""
        cursor = await self._conn.execute(
            f"SELECT {_PROJECT_COLUMNS} FROM projects ORDER BY created_at DESC"
        )
        rows = await cursor.fetchall()
        return [self._row_to_project(row) for row in rows]

    async def update_project(
        self,
        project_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> Project | None:
        """部分更新项目，返回更新后的项目；不存在返回 None"""
        async with transaction(self._conn, self._write_lock) as conn:
            await conn.execute(
                """
                UPDATE projects
                SET name = COALESCE(?, name),
                    description = COALESCE(?, description),
                    updated_at = ?
                WHERE project_id = ?
                """,
                (name, description, datetime.now(UTC).isoformat(), project_id),
            )
        return await self.get_project(project_id)

    async def count_tasks(self, project_id: str) -> int:
        cursor = await self._conn.execute(
            "SELECT COUNT(*) FROM tasks WHERE project_id = ?",
            (project_id,),
        )
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def delete_project(self, project_id: str) -> bool:
        """删除项目（级联删除其任务）

        Returns:
            True 如果记录存在并已删除
        """
        async with transaction(self._conn, self._write_lock) as conn:
            cursor = await conn.execute(
                "DELETE FROM projects WHERE project_id = ?",
                (project_id,),
            )
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_project(row: aiosqlite.Row) -> Project:
        """将数据库行转换为 Project 模型"""
        return Project(
            project_id=row[0],
            name=row[1],
            description=row[2],
            created_at=datetime.fromisoformat(row[3]),
            updated_at=datetime.fromisoformat(row[4]),
        )
