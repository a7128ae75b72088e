"""健康检查与指标路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性与通知调度器状态。
GET /api/metrics: 通知调度器运行指标 + 乐观锁冲突计数。
"""

import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性
    2. notification_dispatcher: 调度器已初始化且未关闭
    """
    checks = {}
    all_ok = True

    # 1. SQLite 连通性检查
    try:
        store_group = request.app.state.store_group
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except Exception as e:
        log.warning("ready_check_failed", check="sqlite", error=str(e))
        checks["sqlite"] = f"error: {str(e)}"
        all_ok = False

    # 2. 通知调度器
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        checks["notification_dispatcher"] = "disabled"
    elif dispatcher.closed:
        checks["notification_dispatcher"] = "stopped"
        all_ok = False
    else:
        checks["notification_dispatcher"] = "ok"

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={"status": status_text, "checks": checks},
    )


@router.get("/api/metrics")
async def metrics(request: Request):
    """运行指标：调度器统计 + 累计版本冲突次数"""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    mutation_service = getattr(request.app.state, "mutation_service", None)

    return {
        "notifications": dispatcher.stats().model_dump() if dispatcher else None,
        "mutations": {
            "conflict_count": mutation_service.conflict_count if mutation_service else 0,
        },
    }
