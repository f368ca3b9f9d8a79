"""
Configuración centralizada de la librería usando pydantic-settings.

Este módulo maneja las variables de entorno que controlan el comportamiento
de los componentes web (paginación, tokens, CSV, feature flags, logging).
"""
import secrets
import logging
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Configuración cargada desde variables de entorno."""

    # Application
    app_name: str = Field(
        default="CoreWeb",
        description="Nombre de la aplicación que usa la librería"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Versión de la aplicación"
    )
    debug_mode: bool = Field(
        default=False,
        description="Modo debug (solo para desarrollo)"
    )

    # JWT Configuration
    jwt_secret_key: str = Field(
        default="",
        description="Clave secreta para validar tokens JWT (OBLIGATORIO en producción)"
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="Algoritmo para firmar JWT"
    )
    jwt_access_minutes: int = Field(
        default=30,
        ge=1,
        le=1440,
        description="Tiempo de expiración del token en minutos"
    )
    jwt_issuer: Optional[str] = Field(
        default=None,
        description="Emisor esperado del token JWT (None = no se valida)"
    )
    jwt_audience: Optional[str] = Field(
        default=None,
        description="Audiencia esperada del token JWT (None = no se valida)"
    )

    # Paginación / búsqueda
    default_page_size: int = Field(
        default=100,
        ge=0,
        description="Tamaño de página por defecto (0 = todos los registros)"
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        description="Tamaño máximo de página permitido"
    )

    # CSV
    csv_delimiter: str = Field(
        default=";",
        min_length=1,
        description="Delimitador usado por los formatters CSV"
    )
    csv_use_single_line_header: bool = Field(
        default=True,
        description="Escribe/omite una línea de cabecera en CSV"
    )

    # Feature flags y roles
    roles_feature_flag: str = Field(
        default="RolesBasedAuthentication",
        description="Feature flag que activa la validación de roles"
    )
    feature_flags: dict[str, bool] = Field(
        default_factory=dict,
        description="Feature flags estáticos (JSON en variables de entorno)"
    )

    # Errores
    sensitive_error_markers: list[str] = Field(
        default_factory=lambda: ["Cannot open server"],
        description="Fragmentos de mensaje que provocan suprimir el detalle del error"
    )
    log_validation_errors: bool = Field(
        default=False,
        description="Registra en el log los errores de validación de modelos"
    )

    # Localización
    default_culture: str = Field(
        default="en",
        description="Cultura por defecto cuando la petición no indica ninguna"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Nivel de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        """Valida y genera JWT_SECRET_KEY si no existe."""
        if not v or len(v) < 32:
            generated_key = secrets.token_urlsafe(48)
            logger.warning(
                "JWT_SECRET_KEY no configurado o muy corto. "
                "Se generó una clave temporal para desarrollo. "
                "En producción, configura JWT_SECRET_KEY en .env"
            )
            return generated_key
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Valida que el nivel de logging sea válido."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(
                f"Nivel de log '{v}' no válido. Usando 'INFO'. "
                f"Niveles válidos: {valid_levels}"
            )
            return "INFO"
        return v_upper

    @property
    def is_production(self) -> bool:
        """Determina si la app está en modo producción."""
        return not self.debug_mode


# Instancia global de configuración
settings = Settings()


def configure_logging():
    """Configura el sistema de logging de la aplicación."""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format=log_format,
        handlers=[
            logging.StreamHandler(),
        ]
    )

    # Reducir verbosidad de librerías externas
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logger.info(f"Logging configurado en nivel {settings.log_level}")
    logger.info(f"Aplicación: {settings.app_name} v{settings.app_version}")


def get_settings() -> Settings:
    """Retorna la instancia de configuración (útil para dependency injection)."""
    return settings
