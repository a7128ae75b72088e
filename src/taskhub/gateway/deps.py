"""依赖注入模块 -- 通过 FastAPI Depends 注入服务实例

Store、调度器与 MutationService 通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Depends, Request
from taskhub.core.store import StoreGroup

from .services.notification_dispatcher import NotificationDispatcher
from .services.project_service import ProjectService
from .services.task_service import TaskService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_dispatcher(request: Request) -> NotificationDispatcher | None:
    """从 app.state 获取 NotificationDispatcher 实例"""
    return getattr(request.app.state, "dispatcher", None)


def get_task_service(
    request: Request,
    store_group: StoreGroup = Depends(get_store_group),
    dispatcher: NotificationDispatcher | None = Depends(get_dispatcher),
) -> TaskService:
    """按请求构造 TaskService，共享进程级 MutationService"""
    return TaskService(
        store_group,
        dispatcher,
        getattr(request.app.state, "mutation_service", None),
    )


def get_project_service(
    store_group: StoreGroup = Depends(get_store_group),
) -> ProjectService:
    return ProjectService(store_group)
