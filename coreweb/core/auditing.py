"""
Auditoría de acciones: registra quién ejecuta una ruta y sobre qué recurso.
"""

import logging
from typing import Dict, Optional, Protocol, runtime_checkable

from fastapi import Depends, Request

from coreweb.auth import get_current_claims
from coreweb.config import settings
from coreweb.utils.http import get_request_referer, get_user_id

logger = logging.getLogger(__name__)

NO_ROUTE_NAME = "Ruta sin nombre"
NO_ID_PARAMETER = "Sin parámetro id"


@runtime_checkable
class AuditLogger(Protocol):
    def write_log(
        self,
        event_name: str,
        event_message: str,
        user_id: str,
        event_source: str,
        audit_info: Dict[str, str],
    ) -> None:
        ...


class LoggingAuditLogger:
    """Escribe los eventos de auditoría en el logger ``coreweb.audit``."""

    def __init__(self, audit_logger: Optional[logging.Logger] = None):
        self.logger = audit_logger or logging.getLogger("coreweb.audit")

    def write_log(
        self,
        event_name: str,
        event_message: str,
        user_id: str,
        event_source: str,
        audit_info: Dict[str, str],
    ) -> None:
        self.logger.info(
            f"{event_name}: {event_message} (usuario={user_id}, origen={event_source}, info={audit_info})",
            extra={
                "audit_event": event_name,
                "audit_user": user_id,
                "audit_source": event_source,
                "audit_info": audit_info,
            },
        )


def _find_target_id(request: Request) -> Optional[str]:
    for params in (request.path_params, request.query_params):
        for key, value in params.items():
            if key.lower() == "id":
                return str(value)
    return None


def _event_source(request: Request) -> str:
    endpoint = request.scope.get("endpoint")
    if endpoint is None:
        return request.url.path
    return f"{endpoint.__module__}.{endpoint.__qualname__}"


class Auditing:
    """
    Dependencia que escribe un registro de auditoría antes de ejecutar la ruta.

    El registro lleva el tipo de evento (nombre de la ruta), el id del
    recurso (parámetro ``id``) y, si existe, el referer de la petición.
    El audit logger se toma de ``app.state.audit_logger``.
    """

    def __init__(self, event_name: str, event_message: str):
        self.event_name = event_name
        self.event_message = event_message

    def __call__(self, request: Request, claims: dict = Depends(get_current_claims)) -> Dict[str, str]:
        route = request.scope.get("route")
        event_type = getattr(route, "name", None) or NO_ROUTE_NAME
        event_target_id = _find_target_id(request) or NO_ID_PARAMETER

        # Sin usuario se audita con el nombre de la aplicación
        user_id = get_user_id(claims) or settings.app_name.upper()

        audit_info = {
            "EventType": event_type,
            "EventTargetId": event_target_id,
        }
        referer = get_request_referer(request)
        if referer:
            audit_info["Referer"] = referer

        audit_logger = getattr(request.app.state, "audit_logger", None) or LoggingAuditLogger()
        audit_logger.write_log(self.event_name, self.event_message, user_id, _event_source(request), audit_info)
        return audit_info
