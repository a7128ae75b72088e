"""TraceMiddleware -- 记录级追踪

从路径中识别 /api/tasks/{task_id} 与 /api/projects/{project_id}，
绑定 task_id / project_id 以及 trace_id，贯穿同一记录的变更日志。
同时出现时（项目下的任务列表）trace_id 取最内层的记录。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID 字符串长度
_ULID_LENGTH = 26

# 路径段 -> 绑定到日志上下文的字段名
_RECORD_SEGMENTS = {"tasks": "task_id", "projects": "project_id"}


def extract_record_ids(path: str) -> dict[str, str]:
    """从请求路径中提取记录 ID（忽略 /status 等子路由）"""
    found: dict[str, str] = {}
    parts = path.split("/")
    for segment, next_part in zip(parts, parts[1:]):
        field = _RECORD_SEGMENTS.get(segment)
        if field and len(next_part) == _ULID_LENGTH:
            found[field] = next_part
    return found


class TraceMiddleware(BaseHTTPMiddleware):
    """为任务/项目操作绑定记录 ID 与 trace_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        record_ids = extract_record_ids(request.url.path)
        if record_ids:
            record_id = record_ids.get("task_id") or record_ids["project_id"]
            structlog.contextvars.bind_contextvars(
                trace_id=f"trace-{record_id}",
                **record_ids,
            )
        return await call_next(request)
