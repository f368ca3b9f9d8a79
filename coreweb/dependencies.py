"""
Dependencias de FastAPI reutilizables en los route handlers.
"""

from typing import Callable, Optional

from fastapi import Query

from coreweb.config import settings
from coreweb.models.search import SearchFilter


def search_filter_dependency(filter_type: Optional[type] = None) -> Callable[..., SearchFilter]:
    """
    Crea una dependencia que construye un SearchFilter desde el query string.

    Parámetros aceptados: ``pageSize``, ``pageNumber``, ``sortBy``,
    ``ascending``, ``secondarySortBy`` y ``secondaryAscending``.

    Args:
        filter_type: Tipo de los datos de filtro contra el que se resuelven
            los campos de ordenación

    Usage::

        @router.get("/items", response_model=SearchResult[Item])
        def list_items(search_filter: SearchFilter[Item] = Depends(search_filter_dependency(Item))):
            return perform_search(items, search_filter)
    """
    filter_model = SearchFilter[filter_type] if filter_type is not None else SearchFilter

    def get_search_filter(
        page_size: int = Query(settings.default_page_size, alias="pageSize", ge=0, description="Items por página (0 = todos)"),
        page_number: int = Query(1, alias="pageNumber", description="Número de página"),
        sort_by: Optional[str] = Query(None, alias="sortBy", description="Campo de ordenación principal"),
        ascending: bool = Query(True, alias="ascending"),
        secondary_sort_by: Optional[str] = Query(None, alias="secondarySortBy", description="Campo de ordenación secundario"),
        secondary_ascending: bool = Query(True, alias="secondaryAscending"),
    ) -> SearchFilter:
        return filter_model(
            page_size=page_size,
            page_number=page_number,
            sort_by=sort_by,
            ascending=ascending,
            secondary_sort_by=secondary_sort_by,
            secondary_ascending=secondary_ascending,
        )

    return get_search_filter
