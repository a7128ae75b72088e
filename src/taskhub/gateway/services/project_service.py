"""ProjectService -- 项目创建/查询/更新/删除

删除项目时其任务由数据库级联删除。
"""

from datetime import UTC, datetime

import structlog
from ulid import ULID

from taskhub.core.exceptions import ProjectNotFoundError
from taskhub.core.models import Project
from taskhub.core.store import StoreGroup

log = structlog.get_logger()


class ProjectService:
    """项目业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def create_project(self, name: str, description: str = "") -> Project:
        now = datetime.now(UTC)
        project = Project(
            project_id=str(ULID()),
            name=name,
            description=description,
            created_at=now,
            updated_at=now,
        )
        await self._stores.project_store.create_project(project)
        log.info("project_created", project_id=project.project_id)
        return project

    async def get_project(self, project_id: str) -> Project:
        """查询项目

        Raises:
            ProjectNotFoundError: 项目不存在
        """
        project = await self._stores.project_store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def project_exists(self, project_id: str) -> bool:
        return await self._stores.project_store.project_exists(project_id)

    async def list_projects(self) -> list[Project]:
        return await self._stores.project_store.list_projects()

    async def update_project(
        self,
        project_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> Project:
        """部分更新项目：空白名称视为未提供

        Raises:
            ProjectNotFoundError: 项目不存在
        """
        if name is not None and not name.strip():
            name = None
        project = await self._stores.project_store.update_project(
            project_id, name=name, description=description
        )
        if project is None:
            raise ProjectNotFoundError(project_id)
        log.info("project_updated", project_id=project_id)
        return project

    async def count_tasks(self, project_id: str) -> int:
        return await self._stores.project_store.count_tasks(project_id)

    async def delete_project(self, project_id: str) -> None:
        """删除项目（级联删除其任务）

        Raises:
            ProjectNotFoundError: 项目不存在
        """
        if not await self._stores.project_store.delete_project(project_id):
            raise ProjectNotFoundError(project_id)
        log.info("project_deleted", project_id=project_id)
