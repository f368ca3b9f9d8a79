"""
Configuración de una aplicación FastAPI con los componentes de la librería:
manejo de errores, health probe, localización y documentación versionada.
"""
import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.routing import APIRoute

from coreweb.config import settings
from coreweb.core.auditing import AuditLogger
from coreweb.core.feature_flags import FeatureFlagService
from coreweb.middleware import add_exception_handlers, add_unhandled_exception_middleware

logger = logging.getLogger(__name__)

VERSIONED_PATH = re.compile(r"^/v(\d+(?:\.\d+)?)(?:/|$)")
TEST_LANGUAGE_ALIAS = "tl"


def add_health_probe(app: FastAPI, endpoint_route: str = "probe") -> FastAPI:
    """Registra GET /{endpoint_route} que responde ``Running``."""

    async def probe():
        return "Running"

    app.add_api_route(
        f"/{endpoint_route.strip('/')}",
        probe,
        methods=["GET"],
        response_class=PlainTextResponse,
        include_in_schema=False,
    )
    return app


def _match_culture(requested: Optional[str], cultures: Sequence[str], default_culture: str) -> str:
    if not requested:
        return default_culture

    by_name = {culture.lower(): culture for culture in cultures}
    for candidate in requested.split(","):
        name = candidate.split(";")[0].strip().lower()
        if not name:
            continue
        if name in by_name:
            return by_name[name]
        parent = name.split("-")[0]
        if parent in by_name:
            return by_name[parent]
    return default_culture


def add_localization(
    app: FastAPI,
    supported_cultures: Iterable[str],
    default_culture: str = "en",
    test_language_code: str = "ts",
) -> FastAPI:
    """
    Resuelve la cultura de cada petición en ``request.state.culture``.

    La cultura se toma del parámetro ``culture`` o de la cabecera
    Accept-Language; ``tl`` selecciona el idioma de pruebas.

    Raises:
        ValueError: Si la cultura por defecto no está entre las soportadas
    """
    cultures = list(supported_cultures)
    if default_culture not in cultures:
        raise ValueError(
            f'La cultura por defecto "{default_culture}" no está en la lista de culturas soportadas'
        )
    if test_language_code not in cultures:
        cultures.append(test_language_code)

    async def localization_middleware(request: Request, call_next):
        culture = request.query_params.get("culture") or request.headers.get("accept-language")
        if culture == TEST_LANGUAGE_ALIAS:
            culture = test_language_code
        request.state.culture = _match_culture(culture, cultures, default_culture)
        return await call_next(request)

    app.middleware("http")(localization_middleware)
    app.state.supported_cultures = cultures
    return app


def api_version_prefix(version: float) -> str:
    """Prefijo de ruta de una versión de API, p. ej. ``/v1.0``."""
    return f"/v{version:.1f}"


def _version_label(version: float) -> str:
    return f"v{version:.1f}"


def _route_in_version(route: APIRoute, label: str) -> bool:
    match = VERSIONED_PATH.match(route.path)
    # Las rutas sin versión aparecen en todas las versiones
    if match is None:
        return True
    return _version_label(float(match.group(1))) == label


def build_versioned_openapi(app: FastAPI, version: float) -> dict:
    """Documento OpenAPI con las rutas de una versión y el esquema Bearer."""
    label = _version_label(version)
    routes = [
        route for route in app.routes
        if not isinstance(route, APIRoute) or _route_in_version(route, label)
    ]
    schema = get_openapi(
        title=f"{app.title} {version:.1f}",
        version=label,
        description=app.description,
        routes=routes,
    )
    schema.setdefault("components", {}).setdefault("securitySchemes", {})["Bearer"] = {
        "type": "apiKey",
        "name": "Authorization",
        "in": "header",
        "description": "API Bearer Token Authentication",
    }
    schema["security"] = [{"Bearer": []}]
    return schema


def add_versioned_docs(
    app: FastAPI,
    versions: Iterable[float],
    route_prepend: Optional[str] = None,
) -> FastAPI:
    """
    Publica un documento OpenAPI por versión y una Swagger UI con todas.

    - ``/swagger/v{X.Y}/swagger.json`` por cada versión
    - ``/swagger``: Swagger UI (la versión más reciente es la principal)
    - Cabecera ``api-supported-versions`` en todas las respuestas

    Args:
        app: Aplicación FastAPI
        versions: Versiones de la API (p. ej. [1.0, 2.0])
        route_prepend: Prefijo de las URLs que usa la UI (app detrás de un proxy)
    """
    versions = sorted(set(versions))
    if not versions:
        raise ValueError("Se requiere al menos una versión de API")

    prefix = f"/{route_prepend.strip('/')}" if route_prepend else ""
    cache: Dict[str, dict] = {}

    def make_openapi_endpoint(version: float):
        label = _version_label(version)

        async def openapi_json():
            if label not in cache:
                cache[label] = build_versioned_openapi(app, version)
            return JSONResponse(cache[label])

        return openapi_json

    urls: List[dict] = []
    for version in versions:
        label = _version_label(version)
        app.add_api_route(
            f"/swagger/{label}/swagger.json",
            make_openapi_endpoint(version),
            methods=["GET"],
            include_in_schema=False,
        )
        urls.append({"url": f"{prefix}/swagger/{label}/swagger.json", "name": f"{app.title} Api {version:.1f}"})

    latest = urls[-1]

    async def swagger_ui():
        return get_swagger_ui_html(
            openapi_url=latest["url"],
            title=f"{app.title} - Swagger UI",
            swagger_ui_parameters={"urls": urls, "urls.primaryName": latest["name"]},
        )

    app.add_api_route("/swagger", swagger_ui, methods=["GET"], include_in_schema=False)

    supported = ", ".join(f"{version:.1f}" for version in versions)

    async def report_api_versions(request: Request, call_next):
        response = await call_next(request)
        response.headers["api-supported-versions"] = supported
        return response

    app.middleware("http")(report_api_versions)
    app.state.api_versions = versions
    app.state.default_api_version = versions[-1]
    return app


def setup_core_web(
    app: FastAPI,
    feature_flags: Optional[FeatureFlagService] = None,
    audit_logger: Optional[AuditLogger] = None,
    health_probe: bool = True,
) -> FastAPI:
    """
    Registra los manejadores de errores, el middleware de excepciones no
    controladas y los servicios opcionales en ``app.state``.
    """
    add_exception_handlers(app)
    add_unhandled_exception_middleware(app)

    if feature_flags is not None:
        app.state.feature_flags = feature_flags
    if audit_logger is not None:
        app.state.audit_logger = audit_logger
    if health_probe:
        add_health_probe(app)

    logger.info(f"CoreWeb configurado para {app.title} ({settings.app_name} v{settings.app_version})")
    return app
