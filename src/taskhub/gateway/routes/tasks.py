"""任务路由

POST   /api/projects/{project_id}/tasks: 在项目下创建任务
GET    /api/projects/{project_id}/tasks: 项目下任务列表
GET    /api/tasks: 全部任务列表
GET    /api/tasks/{task_id}: 任务详情
PATCH  /api/tasks/{task_id}: 部分更新（只覆盖请求体中出现的字段）
PATCH  /api/tasks/{task_id}/status: 仅更新状态
DELETE /api/tasks/{task_id}: 删除任务

列表支持 status、name、start_date/end_date 筛选，按 sort_by（due_date|priority）与
order（asc|desc）排序，默认截止日期升序；日期范围颠倒返回 400。
版本冲突返回 409，调用方可重新读取后重试。
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, ConfigDict, Field, model_validator
from taskhub.core.config import PRIORITY_MAX, PRIORITY_MIN, TASK_NAME_MAX_LENGTH
from taskhub.core.models import (
    SortOrder,
    Task,
    TaskDraft,
    TaskPatch,
    TaskSortField,
    TaskStatus,
)

from ..deps import get_task_service
from ..services.task_service import TaskService

router = APIRouter()

# 负责人必须是邮件地址（通知接收方）
ASSIGNEE_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class TaskCreateRequest(BaseModel):
    """创建任务请求体"""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=TASK_NAME_MAX_LENGTH)
    priority: int = Field(ge=PRIORITY_MIN, le=PRIORITY_MAX)
    due_date: date
    assignee: str = Field(pattern=ASSIGNEE_PATTERN)


class TaskUpdateRequest(BaseModel):
    """部分更新请求体，未出现的字段保持不变"""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=TASK_NAME_MAX_LENGTH)
    priority: int | None = Field(default=None, ge=PRIORITY_MIN, le=PRIORITY_MAX)
    due_date: date | None = None
    assignee: str | None = Field(default=None, pattern=ASSIGNEE_PATTERN)
    status: TaskStatus | None = None

    @model_validator(mode="after")
    def _reject_explicit_null(self) -> "TaskUpdateRequest":
        for field_name in self.model_fields_set:
            if getattr(self, field_name) is None:
                raise ValueError(f"{field_name} must not be null")
        return self


class TaskStatusRequest(BaseModel):
    status: TaskStatus


class TaskResponse(BaseModel):
    """任务响应"""

    task_id: str
    project_id: str
    name: str
    priority: int
    due_date: str
    assignee: str
    status: str
    version: int
    created_at: str
    updated_at: str


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse]


class TaskListQuery:
    """任务列表查询参数（筛选 + 排序）"""

    def __init__(
        self,
        status: TaskStatus | None = Query(default=None, description="按状态筛选"),
        name: str | None = Query(
            default=None,
            max_length=TASK_NAME_MAX_LENGTH,
            description="名称模糊匹配（不区分大小写）",
        ),
        start_date: date | None = Query(default=None, description="截止日期下限（含）"),
        end_date: date | None = Query(default=None, description="截止日期上限（含）"),
        sort_by: TaskSortField = Query(default=TaskSortField.DUE_DATE, description="排序字段"),
        order: SortOrder = Query(default=SortOrder.ASC, description="排序方向"),
    ) -> None:
        self.status = status
        self.name = name
        self.start_date = start_date
        self.end_date = end_date
        self.sort_by = sort_by
        self.order = order

    def as_kwargs(self) -> dict:
        return {
            "status": self.status,
            "name": self.name,
            "due_from": self.start_date,
            "due_to": self.end_date,
            "sort_by": self.sort_by,
            "order": self.order,
        }


def _to_response(task: Task) -> TaskResponse:
    return TaskResponse(
        task_id=task.task_id,
        project_id=task.project_id,
        name=task.name,
        priority=task.priority,
        due_date=task.due_date.isoformat(),
        assignee=task.assignee,
        status=task.status.value,
        version=task.version,
        created_at=task.created_at.isoformat(),
        updated_at=task.updated_at.isoformat(),
    )


@router.post(
    "/api/projects/{project_id}/tasks",
    status_code=201,
    response_model=TaskResponse,
)
async def create_task(
    project_id: str,
    req: TaskCreateRequest,
    service: TaskService = Depends(get_task_service),
):
    draft = TaskDraft(
        name=req.name,
        priority=req.priority,
        due_date=req.due_date,
        assignee=req.assignee,
    )
    task = await service.create_task(project_id, draft)
    return _to_response(task)


@router.get("/api/projects/{project_id}/tasks", response_model=TaskListResponse)
async def list_project_tasks(
    project_id: str,
    query: TaskListQuery = Depends(),
    service: TaskService = Depends(get_task_service),
):
    tasks = await service.list_tasks(project_id, **query.as_kwargs())
    return TaskListResponse(tasks=[_to_response(t) for t in tasks])


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    query: TaskListQuery = Depends(),
    service: TaskService = Depends(get_task_service),
):
    """查询全部任务，支持状态、名称、截止日期范围筛选与排序"""
    tasks = await service.list_tasks(**query.as_kwargs())
    return TaskListResponse(tasks=[_to_response(t) for t in tasks])


@router.get("/api/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    return _to_response(await service.get_task(task_id))


@router.patch("/api/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    req: TaskUpdateRequest,
    service: TaskService = Depends(get_task_service),
):
    """部分更新任务

    只有请求体中出现的字段进入 TaskPatch；显式 null 在请求校验阶段被拒绝。
    """
    supplied = req.model_dump(exclude_unset=True)
    task = await service.update_task(task_id, TaskPatch(**supplied))
    return _to_response(task)


@router.patch("/api/tasks/{task_id}/status", response_model=TaskResponse)
async def update_task_status(
    task_id: str,
    req: TaskStatusRequest,
    service: TaskService = Depends(get_task_service),
):
    task = await service.update_status(task_id, req.status)
    return _to_response(task)


@router.delete("/api/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    await service.delete_task(task_id)
    return Response(status_code=204)
