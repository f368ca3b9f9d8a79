"""
Modelos de respuesta de error.

``ValidationProblemDetails`` sigue el formato de RFC 7807 con una propiedad
``errors`` que agrupa los errores por campo; cada error lleva un código y
un mensaje. ``ApiErrorResult`` es la forma simple (mensaje + lista de errores).
"""
import time
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from starlette.requests import Request

DEFAULT_ERROR_CODE = "0000"
VALIDATION_PROBLEM_TYPE = "https://tools.ietf.org/html/rfc7231#section-6.5.1"
VALIDATION_PROBLEM_TITLE = "One or more model validation errors occurred."
VALIDATION_PROBLEM_DETAIL = "See the errors property for details"
UNHANDLED_PROBLEM_TITLE = "An unhandled exception has occurred."


class ErrorItem(BaseModel):
    """Error individual con código y mensaje."""
    code: str = Field(..., description="Código del error")
    message: str = Field(..., description="Mensaje del error")

    @classmethod
    def parse(cls, key: str, raw_message: str) -> "ErrorItem":
        """
        Interpreta un mensaje con formato ``"<código>|<mensaje>"``.

        Si la primera parte no es numérica el mensaje completo se usa con
        el código por defecto ``0000``.
        """
        parts = raw_message.split("|")
        if parts[0].strip().lstrip("-").isdigit():
            message = "|".join(parts[1:]) if len(parts) > 1 else f"{key} error occurred"
            return cls(code=parts[0], message=message)
        return cls(code=DEFAULT_ERROR_CODE, message=raw_message)


class ModelErrors(dict):
    """Errores de modelo agrupados por clave, en orden de inserción."""

    def add_error(self, key: str, message: str) -> "ModelErrors":
        self.setdefault(key, []).append(message)
        return self

    def add_error_with_code(self, key: str, message: str, error_code: str) -> "ModelErrors":
        """Añade un error con código (se almacena como ``código|mensaje``)."""
        return self.add_error(key, f"{error_code}|{message}")

    @property
    def is_valid(self) -> bool:
        return not any(self.values())


def get_trace_id(request: Request) -> str:
    """Identificador de traza de la petición (cabecera X-Request-ID o generado)."""
    trace_id = getattr(request.state, "trace_id", None) or request.headers.get("x-request-id")
    if not trace_id:
        trace_id = f"{int(time.time() * 1000)}-{id(request)}"
        request.state.trace_id = trace_id
    return trace_id


class ValidationProblemDetails(BaseModel):
    """Respuesta de error de validación (problem details)."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(VALIDATION_PROBLEM_TYPE)
    title: str = Field(VALIDATION_PROBLEM_TITLE)
    status: int = Field(400)
    detail: str = Field(VALIDATION_PROBLEM_DETAIL)
    instance: Optional[str] = Field(None, description="Ruta de la petición")
    trace_id: Optional[str] = Field(None, alias="traceId")
    errors: Dict[str, List[ErrorItem]] = Field(default_factory=dict)

    @classmethod
    def from_model_errors(
        cls,
        request: Request,
        errors: Dict[str, List[str]],
        status_code: int = 400,
    ) -> "ValidationProblemDetails":
        return cls(
            status=status_code,
            instance=request.url.path,
            trace_id=get_trace_id(request),
            errors={
                key: [ErrorItem.parse(key, message) for message in messages]
                for key, messages in errors.items()
            },
        )

    @classmethod
    def from_exception(
        cls,
        request: Request,
        message: str,
        status_code: int = 500,
    ) -> "ValidationProblemDetails":
        return cls(
            title=UNHANDLED_PROBLEM_TITLE,
            status=status_code,
            detail=message,
            instance=request.url.path,
            trace_id=get_trace_id(request),
            errors={"Exception": [ErrorItem.parse("Exception", message)]},
        )

    def to_response_body(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class ApiError(BaseModel):
    """Error asociado (opcionalmente) a un campo."""
    field: Optional[str] = Field(None, description="Campo asociado al error")
    message: str = Field(..., description="Mensaje del error")


class ApiErrorResult(BaseModel):
    """Resultado de error simple: mensaje general y lista de errores."""
    message: str
    errors: List[ApiError] = Field(default_factory=list)

    @classmethod
    def from_model_errors(cls, errors: Dict[str, List[str]], default_message: str = "Api error") -> "ApiErrorResult":
        return cls(
            message=default_message,
            errors=[
                ApiError(field=key or None, message=message)
                for key, messages in errors.items()
                for message in messages
            ],
        )

    @classmethod
    def from_exception(cls, exc: Exception, default_message: str) -> "ApiErrorResult":
        return cls(message=default_message, errors=[ApiError(message=str(exc))])

    @classmethod
    def from_description(cls, error_description: str) -> "ApiErrorResult":
        return cls(message=error_description, errors=[ApiError(message=error_description)])

    def to_response_body(self) -> dict:
        return self.model_dump(exclude_none=True)
