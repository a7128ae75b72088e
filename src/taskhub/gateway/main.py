"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 通知调度器启动/排空 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from taskhub.core.config import get_db_path
from taskhub.core.mutation import MutationService
from taskhub.core.store import create_store_group

from .config import load_dispatcher_config
from .errors import register_error_handlers
from .middleware.logging_config import setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, projects, tasks
from .services.notification_dispatcher import NotificationDispatcher
from .services.notifier import NotificationSender

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 与调度器，关闭时排空通知并关闭连接"""
    # 启动：初始化 Store
    store_group = await create_store_group(get_db_path())
    app.state.store_group = store_group

    # 进程级 MutationService（累计冲突计数）
    app.state.mutation_service = MutationService(store_group.task_store)

    # 通知调度器
    dispatcher_config = load_dispatcher_config()
    sender = NotificationSender(send_delay_ms=dispatcher_config.send_delay_ms)
    app.state.notification_sender = sender
    app.state.dispatcher = NotificationDispatcher.from_config(sender.send, dispatcher_config)
    log.info(
        "notification_dispatcher_started",
        min_workers=dispatcher_config.min_workers,
        max_workers=dispatcher_config.max_workers,
        queue_capacity=dispatcher_config.queue_capacity,
    )

    yield

    # 关闭：先排空通知，再关闭数据库连接
    if getattr(app.state, "dispatcher", None):
        await app.state.dispatcher.shutdown()
    if getattr(app.state, "store_group", None):
        await app.state.store_group.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TaskHub Gateway",
        version="0.1.0",
        description="项目与任务管理 API（乐观锁 + 异步通知）",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()

    register_error_handlers(app)

    # 注册路由
    app.include_router(projects.router, tags=["projects"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
