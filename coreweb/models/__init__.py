from .search import SortSpec, FilterBase, SearchFilter, SearchResult
from .problems import (
    ErrorItem,
    ModelErrors,
    ValidationProblemDetails,
    ApiError,
    ApiErrorResult,
    get_trace_id,
)
from .common import ErrorResponse, create_error_response

__all__ = [
    # Búsqueda
    "SortSpec", "FilterBase", "SearchFilter", "SearchResult",
    # Problem details
    "ErrorItem", "ModelErrors", "ValidationProblemDetails", "ApiError", "ApiErrorResult",
    "get_trace_id",
    # Common responses
    "ErrorResponse", "create_error_response",
]
