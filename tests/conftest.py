"""全局 pytest 配置 -- 临时 SQLite 数据库 + Store fixture"""

from collections.abc import AsyncGenerator
from datetime import UTC, date, datetime
from pathlib import Path

import pytest_asyncio
from taskhub.core.models import Project, Task, TaskStatus
from taskhub.core.store import StoreGroup, create_store_group


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供已初始化的 StoreGroup"""
    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.close()


@pytest_asyncio.fixture
async def project(store_group: StoreGroup) -> Project:
    """预置一个项目"""
    now = datetime.now(UTC)
    project = Project(
        project_id="01JPROJ0000000000000000001",
        name="Website Redesign",
        description="Q3 redesign",
        created_at=now,
        updated_at=now,
    )
    await store_group.project_store.create_project(project)
    return project


@pytest_asyncio.fixture
async def task(store_group: StoreGroup, project: Project) -> Task:
    """预置一个 version=0 的任务"""
    now = datetime.now(UTC)
    return await store_group.task_store.create_task(
        Task(
            task_id="01JTASK0000000000000000001",
            project_id=project.project_id,
            name="Draft wireframes",
            priority=3,
            due_date=date(2030, 1, 15),
            assignee="alice@example.com",
            status=TaskStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
    )
