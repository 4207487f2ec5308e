"""异常处理 -- 将核心层异常映射为 HTTP 响应

统一错误响应格式：{"error": {"code": ..., "message": ...}}
"""

import aiosqlite
import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse
from testflow.core.exceptions import (
    AppError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
)

log = structlog.get_logger()

STATUS_CODES: dict[type[AppError], int] = {
    UnauthorizedError: 401,
    ForbiddenError: 403,
    NotFoundError: 404,
    BadRequestError: 400,
    ConflictError: 409,
    InternalError: 500,
}


def status_code_for(error: AppError) -> int:
    for error_type in type(error).__mro__:
        if error_type in STATUS_CODES:
            return STATUS_CODES[error_type]
    return 500


def error_response(
    status_code: int,
    code: str,
    message: str,
    details=None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    content: dict = {"error": {"code": code, "message": message}}
    if details is not None:
        content["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        log.error("request_failed", error_type=type(exc).__name__, error=exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return error_response(status_code, exc.code, exc.message, headers=headers)


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response(
        400,
        BadRequestError.code,
        "Validation error",
        details=jsonable_encoder(exc.errors()),
    )


async def handle_storage_error(request: Request, exc: aiosqlite.Error) -> JSONResponse:
    log.error("storage_error", error_type=type(exc).__name__, error=str(exc))
    return error_response(500, InternalError.code, "Internal storage error")


def register_error_handlers(app: FastAPI) -> None:
    """注册异常处理器"""
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(aiosqlite.Error, handle_storage_error)
