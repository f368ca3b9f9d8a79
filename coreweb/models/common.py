"""
Modelos comunes de respuesta.

Estos modelos proporcionan respuestas de error consistentes para los
errores de la aplicación (``AppException``).
"""
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorResponse(BaseModel):
    """Respuesta estándar de error."""
    success: bool = Field(False, description="Indica que la operación falló")
    error: str = Field(..., description="Tipo de error")
    message: str = Field(..., description="Mensaje descriptivo del error")
    details: Optional[dict] = Field(None, description="Detalles adicionales del error")
    timestamp: datetime = Field(default_factory=_utcnow, description="Timestamp de la respuesta")


def create_error_response(error: str, message: str, details: Optional[dict] = None) -> dict:
    """Helper para crear respuestas de error serializables a JSON."""
    return ErrorResponse(error=error, message=message, details=details).model_dump(mode="json")
