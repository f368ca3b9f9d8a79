"""
Utilidades para peticiones/respuestas HTTP.

Funciones auxiliares para leer cabeceras, claims y archivos subidos, y para
formatear peticiones y respuestas en los logs.
"""
import os
from typing import Any, Callable, Mapping, Optional

from fastapi import Request, UploadFile
from starlette.responses import Response

USER_ID_CLAIM_TYPES = (
    "http://schemas.microsoft.com/identity/claims/objectidentifier",
    "oid",
)
MASKED_HEADERS = ("cookie", "set-cookie")


def get_request_locale(request: Request, default_culture: str = "en") -> str:
    """
    Obtiene la primera cultura de la cabecera Accept-Language.

    Args:
        request: Petición actual
        default_culture: Cultura devuelta si la cabecera no existe

    Returns:
        Código de cultura (p. ej. "es-CO")
    """
    user_langs = request.headers.get("accept-language", "")
    first_lang = user_langs.split(",")[0].strip()
    return first_lang or default_culture


def get_request_header(request: Request, key: str) -> Optional[str]:
    """Valor de una cabecera de la petición, o None si no existe."""
    return request.headers.get(key)


def get_request_referer(request: Request) -> Optional[str]:
    return get_request_header(request, "referer")


def get_client_ip_address(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def get_claim_value(claims: Mapping[str, Any], key: str, cast: Callable[[Any], Any] = str) -> Any:
    """
    Obtiene un claim convertido al tipo indicado.

    Returns:
        El valor convertido, o None si el claim no existe
    """
    value = claims.get(key)
    if value is None:
        return None
    return cast(value)


def get_user_id(claims: Mapping[str, Any]) -> Optional[str]:
    """Identificador del usuario (claim ``oid`` o su forma URI)."""
    for claim_type in USER_ID_CLAIM_TYPES:
        value = claims.get(claim_type)
        if value:
            return str(value)
    return None


def get_action_name(request: Request) -> Optional[str]:
    """Nombre de la función que atiende la petición."""
    endpoint = request.scope.get("endpoint")
    return getattr(endpoint, "__name__", None)


def get_file_extension(file: Optional[UploadFile], remove_fullstop: bool = True) -> Optional[str]:
    """
    Obtiene la extensión de un archivo subido.

    Args:
        file: Archivo subido
        remove_fullstop: Si True, devuelve la extensión sin el punto

    Returns:
        Extensión del archivo, o None si no hay archivo o nombre
    """
    if file is None or not file.filename:
        return None

    ext = os.path.splitext(file.filename)[1]
    if ext and remove_fullstop:
        ext = ext.replace(".", "")
    return ext


def get_filename_without_extension(file: UploadFile) -> str:
    return os.path.splitext(os.path.basename(file.filename or ""))[0]


def _format_headers(headers: Mapping[str, str]) -> str:
    formatted = []
    for key, value in headers.items():
        if key.lower() in MASKED_HEADERS:
            value = value.split("=")[0] + "=<set>"
        formatted.append(f"{key}:{value}")
    return ", ".join(formatted)


def _format_user(lines: list, claims: Optional[Mapping[str, Any]]) -> None:
    claims = claims or {}
    lines.append(f"User: {claims.get('name') or claims.get('sub') or ''}")
    lines.append(f"Authenticated: {bool(claims)}")
    lines.append(f"AuthType: {'Bearer' if claims else ''}")


def request_to_formatted_string(request: Request, claims: Optional[Mapping[str, Any]] = None) -> str:
    """Texto con la información de la petición para los logs (las cookies se ocultan)."""
    if claims is None:
        claims = getattr(request.state, "claims", None)

    lines = ["Request information: "]
    lines.append(f"Headers: {_format_headers(request.headers)}")
    lines.append(f"Hostname: {request.url.hostname or ''}")
    lines.append(f"Referer: {get_request_referer(request) or ''}")
    lines.append(f"Path: {request.url.path}")
    lines.append(f"Method: {request.method}")
    lines.append(f"ContentType: {request.headers.get('content-type', '')}")
    _format_user(lines, claims)
    return "\n".join(lines)


def response_to_formatted_string(response: Response, claims: Optional[Mapping[str, Any]] = None) -> str:
    """Texto con la información de la respuesta para los logs (las cookies se ocultan)."""
    body = getattr(response, "body", b"") or b""

    lines = ["Response information: "]
    lines.append(f"Headers: {_format_headers(response.headers)}")
    lines.append(f"Body: {len(body)} bytes")
    lines.append(f"StatusCode: {response.status_code}")
    lines.append(f"ContentType: {response.headers.get('content-type', '')}")
    _format_user(lines, claims)
    return "\n".join(lines)
