"""异常到 HTTP 响应的映射

统一错误格式：{"error": {"code": ..., "message": ...}}
- NotFoundError -> 404
- TaskConflictError -> 409（可重试）
- InvalidInputError / 请求校验失败 -> 400

错误码同时写入 request.state.error_code，供请求日志记录。
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse
from taskhub.core.exceptions import InvalidInputError, NotFoundError, TaskConflictError

log = structlog.get_logger()

VALIDATION_ERROR = "VALIDATION_ERROR"


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def _record_error(request: Request, code: str) -> None:
    request.state.error_code = code


async def _handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    _record_error(request, exc.code)
    log.info("resource_not_found", code=exc.code, resource_id=exc.resource_id)
    return error_response(404, exc.code, str(exc))


async def _handle_conflict(request: Request, exc: TaskConflictError) -> JSONResponse:
    _record_error(request, exc.code)
    log.warning(
        "task_conflict_response",
        task_id=exc.task_id,
        expected_version=exc.expected_version,
        current_version=exc.current_version,
    )
    return error_response(409, exc.code, str(exc))


async def _handle_invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
    _record_error(request, exc.code)
    return error_response(400, exc.code, str(exc))


def _describe(err: dict) -> str:
    field = ".".join(str(p) for p in err["loc"] if p != "body")
    return f"{field}: {err['msg']}" if field else err["msg"]


async def _handle_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    _record_error(request, VALIDATION_ERROR)
    details = "; ".join(_describe(err) for err in exc.errors())
    return error_response(400, VALIDATION_ERROR, details or "Invalid request")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFoundError, _handle_not_found)
    app.add_exception_handler(TaskConflictError, _handle_conflict)
    app.add_exception_handler(InvalidInputError, _handle_invalid_input)
    app.add_exception_handler(RequestValidationError, _handle_validation)
