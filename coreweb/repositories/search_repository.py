"""
Repositorio de búsqueda: ordena y pagina entidades ORM en la base de datos
a partir de un SearchFilter.
"""

import logging
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from coreweb.config import settings
from coreweb.core.exceptions import DatabaseException
from coreweb.core.search import perform_search
from coreweb.models.search import SearchFilter, SearchResult

logger = logging.getLogger(__name__)

T = TypeVar('T')


class SearchRepository(Generic[T]):
    """
    Repositorio genérico de búsqueda.

    La ordenación, el conteo y la paginación se ejecutan en la consulta SQL;
    los campos de ordenación se resuelven contra las columnas mapeadas de
    ``model_class`` (o contra el tipo de los datos de filtro).
    """

    def __init__(self, db: Session, model_class: Type[T]):
        """
        Inicializa el repositorio.

        Args:
            db: Sesión SQLAlchemy
            model_class: Clase del modelo ORM para este repositorio
        """
        self.db = db
        self.model_class = model_class

    def get_query(self, **filters: Any) -> Query:
        """
        Consulta base del repositorio.

        Args:
            **filters: Filtros de igualdad por columna; los valores None se ignoran
        """
        query = self.db.query(self.model_class)
        for field, value in filters.items():
            if hasattr(self.model_class, field) and value is not None:
                query = query.filter(getattr(self.model_class, field) == value)
        return query

    def search(
        self,
        search_filter: SearchFilter,
        max_page_size: Optional[int] = None,
        **filters: Any,
    ) -> SearchResult:
        """
        Busca entidades ordenadas y paginadas.

        Args:
            search_filter: Parámetros de ordenación y paginación
            max_page_size: Tamaño de página máximo (por defecto el de la configuración)
            **filters: Filtros de igualdad por columna

        Returns:
            SearchResult con las entidades de la página

        Raises:
            DatabaseException: Si la consulta falla
        """
        try:
            return perform_search(
                self.get_query(**filters),
                search_filter,
                max_page_size=max_page_size if max_page_size is not None else settings.max_page_size,
            )
        except SQLAlchemyError as e:
            logger.error(f"Error searching {self.model_class.__name__}: {e}")
            raise DatabaseException(f"Error al buscar {self.model_class.__name__}")
