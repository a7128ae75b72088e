"""LoggingMiddleware -- 请求级访问日志

- 沿用调用方传入的 X-Request-ID，缺失或非法时生成 ULID
- request_id 绑定到 structlog contextvars，并回写到响应头
- 请求结束时记录耗时与状态码；错误响应附带业务错误码（由 errors 模块写入 request.state）
"""

import re
import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"

# 只接受短的可打印标识，避免日志注入
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

log = structlog.get_logger()


def resolve_request_id(inbound: str | None) -> str:
    """合法的入站 request_id 原样沿用，否则生成新的 ULID"""
    if inbound and _REQUEST_ID_PATTERN.match(inbound):
        return inbound
    return str(ULID())


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        # 先行创建 scope["state"]，下游异常处理器写入的 error_code 才能在此读到
        request.state.error_code = None

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        error_code = getattr(request.state, "error_code", None)
        if response.status_code >= 400:
            await log.awarning(
                "request_completed",
                status_code=response.status_code,
                duration_ms=duration_ms,
                error_code=error_code,
            )
        else:
            await log.ainfo(
                "request_completed",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
