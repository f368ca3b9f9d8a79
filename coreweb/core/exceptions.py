"""
Excepciones personalizadas de la librería.

Estas excepciones proporcionan una forma estructurada de manejar errores
y mapearlos a códigos de estado HTTP apropiados en la capa de API
(ver ``coreweb.middleware``).
"""

from typing import Optional, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from coreweb.models.problems import ModelErrors


class AppException(Exception):
    """Excepción base para todos los errores de la aplicación."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class BusinessException(AppException):
    """Excepción para errores de lógica de negocio."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=message, status_code=400, details=details)


class NotFoundException(AppException):
    """Excepción cuando un recurso no se encuentra."""

    def __init__(
        self,
        resource: str,
        identifier: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        message = f"{resource} no encontrado"
        if identifier:
            message += f": {identifier}"
        super().__init__(message=message, status_code=404, details=details)


class UnauthorizedException(AppException):
    """Excepción cuando la autenticación es requerida o falla."""

    def __init__(
        self,
        message: str = "No autenticado",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=message, status_code=401, details=details)


class ForbiddenException(AppException):
    """Excepción cuando el usuario carece de permisos para realizar una acción."""

    def __init__(
        self,
        message: str = "No autorizado para realizar esta acción",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=message, status_code=403, details=details)


class ValidationException(AppException):
    """Excepción para errores de validación."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        if field:
            details = details or {}
            details["field"] = field
        super().__init__(message=message, status_code=422, details=details)


class UnsupportedMediaTypeException(AppException):
    """Excepción cuando el cuerpo de la petición tiene un content-type no soportado."""

    def __init__(
        self,
        content_type: Optional[str],
        expected: str,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        details.update({"content_type": content_type, "expected": expected})
        super().__init__(
            message=f"Content-Type no soportado: {content_type or 'ninguno'}",
            status_code=415,
            details=details,
        )


class ConfigurationException(AppException):
    """Excepción cuando falta un servicio o una configuración requerida."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=message, status_code=500, details=details)


class DatabaseException(AppException):
    """Excepción para errores de base de datos."""

    def __init__(
        self,
        message: str = "Error de base de datos",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=message, status_code=500, details=details)


class ProblemDetailsException(AppException):
    """
    Excepción que se responde como ``ValidationProblemDetails``.

    Lleva los errores de modelo (clave -> mensajes) que se serializan en la
    propiedad ``errors`` de la respuesta.
    """

    def __init__(
        self,
        errors: "ModelErrors",
        status_code: int = 400,
        message: str = "One or more model validation errors occurred.",
    ):
        self.errors = errors
        super().__init__(message=message, status_code=status_code, details=dict(errors))
