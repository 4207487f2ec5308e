"""LoggingMiddleware -- 请求级日志

为每个 HTTP 请求生成 request_id（ULID），与 method / path / client 一起
绑定到 structlog contextvars；按响应状态码选择日志级别，
健康检查请求只记 debug，并通过 X-Request-ID 响应头返回 request_id。
"""

import logging
import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"

# 探针请求，不占用 info 级别日志
QUIET_PATHS: frozenset[str] = frozenset({"/health", "/ready"})


def level_for(path: str, status_code: int) -> int:
    """请求完成日志的级别"""
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    if path in QUIET_PATHS:
        return logging.DEBUG
    return logging.INFO


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())
        path = request.url.path

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
            client=request.client.host if request.client else None,
        )

        log = structlog.get_logger()
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            await log.aexception(
                "request_failed",
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        await log.alog(
            level_for(path, response.status_code),
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
