"""
Middleware y manejadores de excepciones.

- ``UnhandledExceptionMiddleware``: convierte cualquier excepción no
  controlada en una respuesta JSON 500 con formato problem details.
- ``app_exception_handler``: traduce las ``AppException`` a su código HTTP.
- ``validation_exception_handler``: devuelve los errores de validación de
  FastAPI como un 400 con formato problem details.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError
from starlette.middleware.base import BaseHTTPMiddleware

from coreweb.config import settings
from coreweb.core.exceptions import AppException, ProblemDetailsException
from coreweb.models.common import create_error_response
from coreweb.models.problems import ModelErrors, ValidationProblemDetails

logger = logging.getLogger(__name__)

REQUEST_LOCATIONS = ("body", "query", "path", "header", "cookie")


def get_base_exception(exc: BaseException) -> BaseException:
    """Excepción original de la cadena (``__cause__`` / ``__context__``)."""
    seen = {id(exc)}
    while True:
        inner = exc.__cause__ or exc.__context__
        if inner is None or id(inner) in seen:
            return exc
        seen.add(id(inner))
        exc = inner


def is_sensitive_exception(exc: BaseException) -> bool:
    """True si el mensaje puede exponer información sensible (p. ej. de conexión)."""
    if isinstance(exc, DBAPIError):
        return True
    message = str(exc)
    return any(marker in message for marker in settings.sensitive_error_markers)


def handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    message = str(exc)
    if is_sensitive_exception(exc):
        message = (
            f"Ocurrió una excepción de tipo {type(get_base_exception(exc)).__name__}. "
            "El mensaje ha sido suprimido, contacte a soporte para más información."
        )

    logger.error(
        f"Excepción no controlada al ejecutar {request.method} {request.url.path}",
        exc_info=exc,
    )

    problem = ValidationProblemDetails.from_exception(request, message, status_code=500)
    return JSONResponse(status_code=500, content=problem.to_response_body())


class UnhandledExceptionMiddleware(BaseHTTPMiddleware):
    """Captura las excepciones no controladas y responde con un 500 en JSON."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return handle_unhandled_exception(request, exc)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convierte una AppException en su respuesta HTTP."""
    if isinstance(exc, ProblemDetailsException):
        problem = ValidationProblemDetails.from_model_errors(request, exc.errors, exc.status_code)
        return JSONResponse(status_code=exc.status_code, content=problem.to_response_body())

    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} en {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} en {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            error=type(exc).__name__,
            message=exc.message,
            details=exc.details or None,
        ),
    )


def _error_key(location: tuple) -> str:
    parts = [str(part) for part in location]
    if len(parts) > 1 and parts[0] in REQUEST_LOCATIONS:
        parts = parts[1:]
    return ".".join(parts)


def _error_message(error: dict) -> str:
    # Los ValueError de los validadores conservan el mensaje original ("código|mensaje")
    ctx_error = (error.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return error["msg"]


def model_errors_from_validation(exc: RequestValidationError) -> ModelErrors:
    errors = ModelErrors()
    for error in exc.errors():
        errors.add_error(_error_key(error["loc"]), _error_message(error))
    return errors


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Responde los errores de validación de modelos con un 400 problem details."""
    errors = model_errors_from_validation(exc)
    problem = ValidationProblemDetails.from_model_errors(request, errors, status_code=400)

    if settings.log_validation_errors:
        logger.info(f"Validación fallida en {request.method} {request.url.path}: {dict(errors)}")

    return JSONResponse(status_code=400, content=problem.to_response_body())


def add_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


def add_unhandled_exception_middleware(app: FastAPI) -> None:
    app.add_middleware(UnhandledExceptionMiddleware)
