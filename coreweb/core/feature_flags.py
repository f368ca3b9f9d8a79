"""
Feature flags: servicio de consulta y dependencia para habilitar rutas.

El servicio se registra en ``app.state.feature_flags`` (ver
``coreweb.app.setup_core_web``).
"""

import logging
from typing import Dict, Optional, Protocol, runtime_checkable

from fastapi import Request

from coreweb.config import Settings, settings as default_settings
from coreweb.core.exceptions import ConfigurationException, ProblemDetailsException
from coreweb.models.problems import ModelErrors

logger = logging.getLogger(__name__)


@runtime_checkable
class FeatureFlagService(Protocol):
    def get_feature_flag(self, key: str) -> bool:
        ...


class InMemoryFeatureFlags:
    """Feature flags en memoria; los flags desconocidos devuelven ``default``."""

    def __init__(self, flags: Optional[Dict[str, bool]] = None, default: bool = False):
        self._flags = dict(flags or {})
        self.default = default

    def get_feature_flag(self, key: str) -> bool:
        return self._flags.get(key, self.default)

    def set_feature_flag(self, key: str, value: bool) -> None:
        self._flags[key] = value


class SettingsFeatureFlags:
    """Feature flags leídos de ``Settings.feature_flags``."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    def get_feature_flag(self, key: str) -> bool:
        return bool(self.settings.feature_flags.get(key, False))


def get_feature_flag_service(request: Request) -> Optional[FeatureFlagService]:
    return getattr(request.app.state, "feature_flags", None)


class FeatureFlag:
    """
    Dependencia que solo deja continuar la petición si el flag está activo.

    Usage::

        @router.get("/reports", dependencies=[Depends(FeatureFlag("Reports"))])
    """

    def __init__(self, feature_flag_key: str):
        self.feature_flag_key = feature_flag_key

    def __call__(self, request: Request) -> None:
        service = get_feature_flag_service(request)
        if service is None:
            raise ConfigurationException("No hay un servicio de feature flags registrado")

        if not service.get_feature_flag(self.feature_flag_key):
            logger.info(f"Ruta {request.url.path} deshabilitada por el flag {self.feature_flag_key}")
            errors = ModelErrors().add_error("Feature", "Esta ruta ha sido deshabilitada.")
            raise ProblemDetailsException(errors, status_code=404)
