import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.domain.exceptions import (
    DomainException,
    EmptyCartError,
    ForbiddenError,
    InsufficientStockError,
    InvalidArgumentError,
    InvalidOrderStateError,
    NotFoundError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)

STATUS_BY_EXCEPTION = (
    (InvalidArgumentError, 400),
    (NotFoundError, 404),
    (InsufficientStockError, 400),
    (EmptyCartError, 400),
    (InvalidOrderStateError, 400),
    (UnauthenticatedError, 401),
    (ForbiddenError, 403),
)


def status_for(exc: DomainException) -> int:
    for exc_type, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return 500


def _envelope(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers
    )


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"Необработанная доменная ошибка на {request.url.path}: {exc}", exc_info=exc)
        return _envelope(status_code, "Internal server error")

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return _envelope(status_code, str(exc), headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return _envelope(400, "; ".join(problems) or "Invalid request")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Ошибка обработки {request.method} {request.url.path}: {exc}", exc_info=exc)
    return _envelope(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
