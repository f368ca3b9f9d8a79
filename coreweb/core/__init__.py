""" Componentes principales compartidos por la librería.

Este paquete contiene:

- Excepciones personalizadas
- Resolución de campos y motor de búsqueda
- Utilidades de seguridad (roles)
- Feature flags y formatters CSV

La auditoría vive en ``coreweb.core.auditing`` (depende de ``coreweb.auth``).
"""

from .exceptions import (
    AppException,
    BusinessException,
    NotFoundException,
    UnauthorizedException,
    ForbiddenException,
    ValidationException,
    UnsupportedMediaTypeException,
    ConfigurationException,
    DatabaseException,
    ProblemDetailsException,
)
from .security import (
    get_user_roles,
    user_has_role,
    require_role,
)
from .fields import (
    get_field_names,
    resolve_field,
    resolve_sort_field,
    read_field,
)
from .search import (
    SortedRecords,
    order_by,
    then_by,
    calculate_skip,
    calculate_total_pages,
    perform_search,
)
from .feature_flags import (
    FeatureFlagService,
    InMemoryFeatureFlags,
    SettingsFeatureFlags,
    FeatureFlag,
)
from .csv_formatters import (
    CsvFormatterOptions,
    CsvOutputFormatter,
    CsvInputFormatter,
    CsvBody,
    csv_response,
)
from .utils import (
    enum_to_value,
    is_collection_type,
)

__all__ = [
    # Excepciones
    "AppException",
    "BusinessException",
    "NotFoundException",
    "UnauthorizedException",
    "ForbiddenException",
    "ValidationException",
    "UnsupportedMediaTypeException",
    "ConfigurationException",
    "DatabaseException",
    "ProblemDetailsException",
    # seguridad
    "get_user_roles",
    "user_has_role",
    "require_role",
    # campos
    "get_field_names",
    "resolve_field",
    "resolve_sort_field",
    "read_field",
    # busqueda
    "SortedRecords",
    "order_by",
    "then_by",
    "calculate_skip",
    "calculate_total_pages",
    "perform_search",
    # feature flags
    "FeatureFlagService",
    "InMemoryFeatureFlags",
    "SettingsFeatureFlags",
    "FeatureFlag",
    # csv
    "CsvFormatterOptions",
    "CsvOutputFormatter",
    "CsvInputFormatter",
    "CsvBody",
    "csv_response",
    # utils
    "enum_to_value",
    "is_collection_type",
]
