"""
Modelos de búsqueda: parámetros de filtrado/paginación y resultado paginado.
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

T = TypeVar('T')


class SortSpec(BaseModel):
    """Campo y dirección de una ordenación."""
    field: str = Field(..., description="Nombre del campo (tal como está declarado)")
    ascending: bool = Field(True, description="Orden ascendente")


class FilterBase(BaseModel):
    """Parámetros comunes de ordenación y paginación."""

    model_config = ConfigDict(validate_assignment=True, arbitrary_types_allowed=True)

    page_size: int = Field(100, ge=0, description="Items por página (0 = todos)")
    page_number: int = Field(1, description="Número de página (1-indexed; 0 o negativo se trata como 1)")
    sort_by: Optional[str] = Field(None, description="Campo de ordenación principal")
    ascending: bool = Field(True, description="Orden ascendente del campo principal")
    secondary_sort_by: Optional[str] = Field(None, description="Campo de ordenación secundario")
    secondary_ascending: bool = Field(True, description="Orden ascendente del campo secundario")

    @field_validator("page_number")
    @classmethod
    def normalize_page_number(cls, v: int) -> int:
        """Las páginas 0 o negativas se normalizan a la primera página."""
        return 1 if v <= 0 else v


class SearchFilter(FilterBase, Generic[T]):
    """
    Filtro de búsqueda genérico.

    ``T`` es el tipo de los datos de filtro; sus campos son los que se usan
    para resolver ``sort_by`` y ``secondary_sort_by``.
    """
    filter_data: Optional[T] = Field(None, description="Datos sobre los que se busca")

    @property
    def filter_type(self) -> Optional[type]:
        """Tipo de los datos de filtro (parámetro genérico o tipo de ``filter_data``)."""
        args = type(self).__pydantic_generic_metadata__["args"]
        if args and isinstance(args[0], type):
            return args[0]
        if self.filter_data is not None:
            return type(self.filter_data)
        return None


class SearchResult(FilterBase, Generic[T]):
    """Resultado paginado de una búsqueda, con la metadata de paginación."""
    items: List[T] = Field(default_factory=list, description="Items de la página actual")
    total_record_count: int = Field(0, ge=0, description="Total de registros antes de paginar")
    total_pages: int = Field(0, ge=0, description="Total de páginas")
    has_next_page: bool = Field(False, description="Indica si hay página siguiente")
    primary_sort: Optional[SortSpec] = Field(None, description="Ordenación principal aplicada")
    secondary_sort: Optional[SortSpec] = Field(None, description="Ordenación secundaria aplicada")

    @computed_field
    @property
    def page_records_from(self) -> int:
        """Número (1-indexed) del primer registro de la página."""
        if self.total_pages == 0:
            return 0
        if self.total_pages == 1:
            return 1
        return self.page_size * (self.page_number - 1) + 1

    @computed_field
    @property
    def page_records_to(self) -> int:
        """Número (1-indexed) del último registro de la página."""
        if self.total_pages == 1 or self.page_number == self.total_pages:
            return self.total_record_count
        return self.page_size * self.page_number
