from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..utilities.logging_config import logger
from .exceptions import (
    CapabilityError,
    ConfigurationError,
    EnvironmentViolation,
    PaymentError,
    PaymentNotFoundError,
    PollingTimeoutError,
    ProviderTimeoutError,
    UpstreamError,
)

# Ordem importa: subclasses antes das bases
PAYMENT_ERROR_STATUS = (
    (ConfigurationError, 503),
    (CapabilityError, 503),
    (ProviderTimeoutError, 504),
    (PollingTimeoutError, 504),
    (UpstreamError, 502),
    (PaymentNotFoundError, 404),
    (EnvironmentViolation, 403),
)


def status_code_for(exc: PaymentError) -> int:
    for exc_type, status_code in PAYMENT_ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status_code
    return 502


def _error_body(error: str, message, status_code: int, **extra) -> dict:
    body = {"error": error, "message": message, "status_code": status_code}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def add_error_handlers(app):
    """
    Registra handlers de erro na aplicação FastAPI.
    """
    @app.exception_handler(PaymentError)
    async def payment_exception_handler(request: Request, exc: PaymentError):
        status_code = status_code_for(exc)
        logger.error(f"{type(exc).__name__} ({status_code}) em {request.url.path}: {exc}")

        extra = {"provider": exc.provider}
        if isinstance(exc, UpstreamError):
            extra["upstream_status"] = exc.status_code
        errors = getattr(exc, "errors", None)
        if errors:
            extra["providers"] = {name: str(err) for name, err in errors.items()}

        return JSONResponse(
            status_code=status_code,
            content=_error_body(type(exc).__name__, exc.message, status_code, **extra),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"RequestValidationError em {request.url.path}: {exc.errors()}")
        # `input` pode conter dados de cartão
        details = [{"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
        return JSONResponse(
            status_code=422,
            content=_error_body("ValidationError", details, 422),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.error(f"HTTPException: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("HTTPException", exc.detail, exc.status_code),
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.error(f"StarletteHTTPException: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("StarletteHTTPException", exc.detail, exc.status_code),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled Exception: {exc}")
        return JSONResponse(
            status_code=500,
            content=_error_body("InternalServerError", "Ocorreu um erro interno no servidor.", 500),
        )
