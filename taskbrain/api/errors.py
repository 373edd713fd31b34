"""
Обработчики ошибок (Exception Handlers) для API.

Сервисы бросают доменные исключения (services/exceptions.py), ничего
не зная про HTTP. Здесь они превращаются в единый формат ответа:

    {"error": {"code": "...", "message": "...", "details": [...] | null}}

Соответствие кодов:
    NotFoundError             -> 404 NOT_FOUND
    CycleViolationError       -> 409 CYCLE_VIOLATION
    UniquenessViolationError  -> 409 ALREADY_EXISTS
    ValidationError           -> 400 VALIDATION_ERROR
    RequestValidationError    -> 422 VALIDATION_ERROR (Pydantic)
    CorruptionBoundError      -> 500 DATA_CORRUPTION
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..services.exceptions import (
    CorruptionBoundError,
    CycleViolationError,
    NotFoundError,
    TaskBrainError,
    UniquenessViolationError,
    ValidationError,
)
from .schemas import ErrorBody, ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class APIError(Exception):
    """
    Ошибка уровня API (не связанная с бизнес-логикой).

    Использование:
        raise APIError(
            code="BAD_REQUEST",
            message="parent_id and clear_parent are mutually exclusive",
            status_code=400
        )
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: list[dict] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


# Порядок важен: первый подходящий класс определяет статус
DOMAIN_STATUS_CODES: list[tuple[type[TaskBrainError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (CycleViolationError, status.HTTP_409_CONFLICT),
    (UniquenessViolationError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (CorruptionBoundError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def _error_response(
    status_code: int, code: str, message: str, details: list[ErrorDetail] | None = None
) -> JSONResponse:
    error_response = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=error_response.model_dump())


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Обработчик для APIError."""
    logger.warning(f"API Error: {exc.code} - {exc.message}")

    details = None
    if exc.details:
        details = [ErrorDetail(field=d["field"], message=d["message"]) for d in exc.details]

    return _error_response(exc.status_code, exc.code, exc.message, details)


async def domain_error_handler(request: Request, exc: TaskBrainError) -> JSONResponse:
    """
    Обработчик для доменных исключений сервисного слоя.

    CorruptionBoundError логируется как ERROR: в хранилище уже есть цикл,
    и дерево нужно чинить до того, как снова доверять обходам.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    for exc_class, code in DOMAIN_STATUS_CODES:
        if isinstance(exc, exc_class):
            status_code = code
            break

    if isinstance(exc, CorruptionBoundError):
        logger.error(f"Data corruption: {exc}", extra={"path": request.url.path})
    else:
        logger.warning(f"Domain Error: {exc.code} - {exc}")

    details = None
    field = getattr(exc, "field", None)
    if field:
        details = [ErrorDetail(field=field, message=str(exc))]

    return _error_response(status_code, exc.code, str(exc), details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Обработчик для ошибок валидации Pydantic (422).

    Pydantic возвращает ошибки в своём формате:
    {"detail": [{"type": "string_too_short", "loc": ["body", "name"], "msg": "..."}]}

    Мы преобразуем это в наш формат:
    {"error": {"code": "VALIDATION_ERROR", "message": "...",
               "details": [{"field": "name", "message": "..."}]}}
    """
    logger.warning(f"Validation Error: {exc.errors()}")

    details = []
    for error in exc.errors():
        # loc - путь к полю, например ["body", "name"] или ["query", "limit"]
        field_path = error.get("loc", [])
        field_name = field_path[-1] if field_path else "unknown"

        if len(field_path) > 1 and field_path[0] == "body":
            field_name = ".".join(str(p) for p in field_path[1:])

        details.append(
            ErrorDetail(field=str(field_name), message=error.get("msg", "Validation error"))
        )

    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        details,
    )


# =============================================================================
# РЕГИСТРАЦИЯ HANDLERS
# =============================================================================


def register_error_handlers(app):
    """
    Регистрирует все error handlers в приложении FastAPI.

    Вызывается из main.py:
        from taskbrain.api.errors import register_error_handlers
        register_error_handlers(app)
    """
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(TaskBrainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    logger.info("Error handlers registered")
