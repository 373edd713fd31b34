"""HTTP middleware for request logging and tracing."""

import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.logging import generate_request_id, get_logger, request_id_var

logger = get_logger("taskbrain.api.requests")

# Not worth a log line per hit
QUIET_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware для логирования HTTP запросов.

    Каждому запросу назначается request ID (или берётся из входящего
    X-Request-ID), он попадает во все логи обработки запроса и
    возвращается клиенту в заголовке ответа.

    Пример лога (JSON):
    {
        "level": "INFO",
        "logger": "taskbrain.api.requests",
        "message": "Request completed",
        "request_id": "abc-123",
        "extra": {"method": "DELETE", "path": "/api/v1/tasks/...", "status": 200,
                  "duration_ms": 12, "client_ip": "127.0.0.1"}
    }
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        token = request_id_var.set(request_id)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": int((time.perf_counter() - start_time) * 1000),
                    "client_ip": client_ip,
                    "error": str(e),
                },
                exc_info=True,
            )
            request_id_var.reset(token)
            raise

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        response.headers["X-Request-ID"] = request_id

        if request.url.path not in QUIET_PATHS:
            log = logger.info if response.status_code < 400 else logger.warning
            log(
                "Request completed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": duration_ms,
                    "client_ip": client_ip,
                },
            )

        request_id_var.reset(token)
        return response
