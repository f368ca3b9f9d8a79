"""
Motor de búsqueda: ordenación dinámica por nombre de campo y paginación.

Ordena una secuencia (o una consulta ORM de SQLAlchemy) por uno o dos campos
indicados como texto y devuelve la página pedida junto con su metadata.
Los parámetros inválidos nunca producen error: se normalizan a un valor por
defecto.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from coreweb.core.fields import read_field, resolve_field, resolve_sort_field
from coreweb.models.search import SearchFilter, SearchResult, SortSpec

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_MAX_PAGE_SIZE = 100


def _sort_key(field_name: str) -> Callable[[Any], tuple]:
    # None ordena antes que cualquier valor
    def key(record: Any) -> tuple:
        value = read_field(record, field_name)
        return (value is not None, value)
    return key


class SortedRecords(Generic[T]):
    """
    Secuencia ordenada por una o más claves.

    Cada clave adicional solo reordena los registros que empatan en todas
    las claves anteriores. El orden se calcula una vez, de forma perezosa,
    sin modificar la secuencia de entrada.
    """

    def __init__(
        self,
        records: Iterable[T],
        keys: Iterable[Tuple[str, bool]] = (),
        record_type: Optional[type] = None,
    ):
        self._source: List[T] = list(records)
        self._keys: List[Tuple[str, bool]] = list(keys)
        self.record_type = record_type
        self._items: Optional[List[T]] = None

    @property
    def sort_keys(self) -> Tuple[Tuple[str, bool], ...]:
        return tuple(self._keys)

    def then_by(self, field: Optional[str], ascending: bool = True, record_type: Optional[type] = None) -> "SortedRecords[T]":
        return then_by(self, field, ascending, record_type)

    def _materialize(self) -> List[T]:
        if self._items is None:
            items = list(self._source)
            # sort estable: se aplica desde la clave menos significativa
            for field_name, ascending in reversed(self._keys):
                items.sort(key=_sort_key(field_name), reverse=not ascending)
            self._items = items
        return self._items

    def __iter__(self) -> Iterator[T]:
        return iter(self._materialize())

    def __len__(self) -> int:
        return len(self._source)

    def __getitem__(self, index):
        return self._materialize()[index]


def _infer_type(records: List[Any]) -> Optional[type]:
    return type(records[0]) if records else None


def order_by(
    records: Iterable[T],
    field: Optional[str],
    ascending: bool = True,
    record_type: Optional[type] = None,
) -> SortedRecords[T]:
    """
    Ordena los registros por un campo indicado por nombre.

    Args:
        records: Registros a ordenar (no se modifican)
        field: Nombre del campo; si está vacío o no existe se usa el primer
            campo declarado del tipo
        ascending: Orden ascendente o descendente
        record_type: Tipo contra el que se resuelve el campo (por defecto el
            tipo del primer registro)

    Returns:
        SortedRecords con la ordenación principal
    """
    items = list(records)
    record_type = record_type or _infer_type(items)
    if record_type is None:
        return SortedRecords(items)

    field_name = resolve_sort_field(record_type, field)
    return SortedRecords(items, [(field_name, ascending)], record_type)


def then_by(
    sorted_records: SortedRecords[T],
    field: Optional[str],
    ascending: bool = True,
    record_type: Optional[type] = None,
) -> SortedRecords[T]:
    """
    Añade una ordenación secundaria a una secuencia ya ordenada.

    Usa las mismas reglas de resolución de campo que ``order_by``.
    """
    record_type = record_type or sorted_records.record_type or _infer_type(sorted_records._source)
    if record_type is None:
        return sorted_records

    field_name = resolve_sort_field(record_type, field)
    return SortedRecords(
        sorted_records._source,
        list(sorted_records.sort_keys) + [(field_name, ascending)],
        record_type,
    )


def _resolve_sorts(filter_type: type, search_filter: SearchFilter) -> Tuple[SortSpec, Optional[SortSpec]]:
    primary = SortSpec(
        field=resolve_sort_field(filter_type, search_filter.sort_by),
        ascending=search_filter.ascending,
    )

    # La secundaria nunca usa el campo por defecto: si no resuelve se omite
    secondary_name = search_filter.secondary_sort_by
    if not secondary_name or secondary_name.lower() == primary.field.lower():
        return primary, None

    resolved = resolve_field(filter_type, secondary_name)
    if resolved is None:
        logger.debug(f"Campo de ordenación secundario '{secondary_name}' no encontrado en {filter_type.__name__}")
        return primary, None

    return primary, SortSpec(field=resolved, ascending=search_filter.secondary_ascending)


def _resolve_on_records(
    record_type: Optional[type],
    primary: SortSpec,
    secondary: Optional[SortSpec],
) -> Tuple[SortSpec, Optional[SortSpec]]:
    # Los nombres del tipo de filtro se vuelven a resolver contra el tipo de los registros
    if record_type is None or issubclass(record_type, Mapping):
        return primary, secondary

    primary = SortSpec(field=resolve_sort_field(record_type, primary.field), ascending=primary.ascending)
    if secondary is None:
        return primary, None

    resolved = resolve_field(record_type, secondary.field)
    if resolved is None:
        logger.debug(f"Campo de ordenación secundario '{secondary.field}' no encontrado en {record_type.__name__}")
        return primary, None
    if resolved.lower() == primary.field.lower():
        return primary, None

    return primary, SortSpec(field=resolved, ascending=secondary.ascending)


def _normalize_paging(search_filter: SearchFilter, total_records: int, max_page_size: int) -> Tuple[int, int]:
    page_size = search_filter.page_size
    if page_size > max_page_size:
        page_size = max_page_size

    # 0 significa todos los registros
    if page_size == 0:
        page_size = total_records

    return page_size, search_filter.page_number


def calculate_skip(page_number: int, page_size: int) -> int:
    """
    Calcula cuántos registros saltar para la página indicada.

    Args:
        page_number: Número de página (1-indexed; 0 y 1 son la primera)
        page_size: Número de elementos por página

    Returns:
        Número de elementos a saltar
    """
    return page_size * (page_number - 1 if page_number > 1 else 0)


def calculate_total_pages(total_records: int, page_size: int) -> int:
    """Total de páginas; 0 cuando no hay registros."""
    if total_records == 0 or page_size <= 0:
        return 0
    return (total_records + page_size - 1) // page_size


def _build_result(
    items: List[Any],
    total_records: int,
    page_size: int,
    page_number: int,
    search_filter: SearchFilter,
    primary: Optional[SortSpec],
    secondary: Optional[SortSpec],
) -> SearchResult:
    total_pages = calculate_total_pages(total_records, page_size)

    return SearchResult(
        items=items,
        total_record_count=total_records,
        page_size=page_size,
        page_number=page_number,
        total_pages=total_pages,
        has_next_page=total_pages > page_number,
        sort_by=primary.field if primary else search_filter.sort_by,
        ascending=search_filter.ascending,
        secondary_sort_by=secondary.field if secondary else search_filter.secondary_sort_by,
        secondary_ascending=search_filter.secondary_ascending,
        primary_sort=primary,
        secondary_sort=secondary,
    )


def _search_query(
    query: Query,
    search_filter: SearchFilter,
    max_page_size: int,
    filter_type: Optional[type],
) -> SearchResult:
    entity = query.column_descriptions[0]["entity"]
    filter_type = filter_type or search_filter.filter_type or entity

    primary, secondary = _resolve_on_records(entity, *_resolve_sorts(filter_type, search_filter))

    direction = asc if primary.ascending else desc
    query = query.order_by(direction(getattr(entity, primary.field)))
    if secondary is not None:
        direction = asc if secondary.ascending else desc
        query = query.order_by(direction(getattr(entity, secondary.field)))

    total_records = query.count()
    page_size, page_number = _normalize_paging(search_filter, total_records, max_page_size)

    items = query.offset(calculate_skip(page_number, page_size)).limit(page_size).all()

    return _build_result(items, total_records, page_size, page_number, search_filter, primary, secondary)


def perform_search(
    source: Any,
    search_filter: SearchFilter,
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
    filter_type: Optional[type] = None,
) -> SearchResult:
    """
    Ordena y pagina una secuencia de registros según un filtro de búsqueda.

    Los campos de ordenación se resuelven contra el tipo de los datos de
    filtro y después contra el tipo de los registros: un campo que los
    registros no tienen usa su primer campo. Ni los registros ni el filtro
    de entrada se modifican.

    Args:
        source: Iterable de registros o ``Query`` ORM de SQLAlchemy
        search_filter: Parámetros de ordenación y paginación
        max_page_size: Tamaño de página máximo permitido
        filter_type: Tipo explícito de los datos de filtro; por defecto el
            tipo genérico del filtro, el de ``filter_data`` o el de los registros

    Returns:
        SearchResult con la página actual y la metadata de paginación

    Raises:
        TypeError: Si el tipo de filtro no expone ningún campo
    """
    if isinstance(source, Query):
        return _search_query(source, search_filter, max_page_size, filter_type)

    records = list(source)
    record_type = _infer_type(records)
    filter_type = filter_type or search_filter.filter_type or record_type

    primary: Optional[SortSpec] = None
    secondary: Optional[SortSpec] = None
    if filter_type is not None:
        primary, secondary = _resolve_on_records(record_type, *_resolve_sorts(filter_type, search_filter))
        # Los mappings se leen por clave con los nombres del tipo de filtro
        sort_type = filter_type if record_type is None or issubclass(record_type, Mapping) else record_type
        ordered = order_by(records, primary.field, primary.ascending, sort_type)
        if secondary is not None:
            ordered = ordered.then_by(secondary.field, secondary.ascending, sort_type)
    else:
        ordered = SortedRecords(records)

    total_records = len(ordered)
    page_size, page_number = _normalize_paging(search_filter, total_records, max_page_size)

    skip = calculate_skip(page_number, page_size)
    items = list(ordered[skip:skip + page_size])

    logger.debug(
        f"Búsqueda: {total_records} registros, página {page_number} "
        f"(tamaño {page_size}), orden {primary.field if primary else '-'}"
    )

    return _build_result(items, total_records, page_size, page_number, search_filter, primary, secondary)
