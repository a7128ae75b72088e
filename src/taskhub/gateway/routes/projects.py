"""项目路由

POST   /api/projects: 创建项目
GET    /api/projects: 项目列表
GET    /api/projects/{project_id}: 项目详情（含任务数）
PATCH  /api/projects/{project_id}: 部分更新
DELETE /api/projects/{project_id}: 删除项目（级联删除任务）
"""

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field
from taskhub.core.config import PROJECT_DESCRIPTION_MAX_LENGTH, PROJECT_NAME_MAX_LENGTH
from taskhub.core.models import Project

from ..deps import get_project_service
from ..services.project_service import ProjectService

router = APIRouter()


class ProjectCreateRequest(BaseModel):
    """创建项目请求体"""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=PROJECT_NAME_MAX_LENGTH)
    description: str = Field(default="", max_length=PROJECT_DESCRIPTION_MAX_LENGTH)


class ProjectUpdateRequest(BaseModel):
    """部分更新项目请求体（空白名称视为未提供）"""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, max_length=PROJECT_NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=PROJECT_DESCRIPTION_MAX_LENGTH)


class ProjectResponse(BaseModel):
    """项目响应"""

    project_id: str
    name: str
    description: str
    created_at: str
    updated_at: str
    task_count: int | None = None


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]


def _to_response(project: Project, task_count: int | None = None) -> ProjectResponse:
    return ProjectResponse(
        project_id=project.project_id,
        name=project.name,
        description=project.description,
        created_at=project.created_at.isoformat(),
        updated_at=project.updated_at.isoformat(),
        task_count=task_count,
    )


@router.post("/api/projects", status_code=201, response_model=ProjectResponse)
async def create_project(
    req: ProjectCreateRequest,
    service: ProjectService = Depends(get_project_service),
):
    project = await service.create_project(req.name, req.description)
    return _to_response(project, task_count=0)


@router.get("/api/projects", response_model=ProjectListResponse)
async def list_projects(service: ProjectService = Depends(get_project_service)):
    projects = await service.list_projects()
    return ProjectListResponse(projects=[_to_response(p) for p in projects])


@router.get("/api/projects/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
):
    """查询项目详情，附带当前任务数"""
    project = await service.get_project(project_id)
    return _to_response(project, task_count=await service.count_tasks(project_id))


@router.patch("/api/projects/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    req: ProjectUpdateRequest,
    service: ProjectService = Depends(get_project_service),
):
    project = await service.update_project(
        project_id,
        name=req.name,
        description=req.description,
    )
    return _to_response(project, task_count=await service.count_tasks(project_id))


@router.delete("/api/projects/{project_id}", status_code=204)
async def delete_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
):
    await service.delete_project(project_id)
    return Response(status_code=204)
