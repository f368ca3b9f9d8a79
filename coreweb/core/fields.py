"""
Inventario y resolución de campos de un tipo de registro.

Permite ordenar por un nombre de campo recibido como texto (p. ej. desde el
query string) sin escribir código específico por tipo. Los campos privados
(con guion bajo) también se pueden resolver, ya que a menudo se ordena por
campos que no se exponen al cliente.
"""

import dataclasses
import inspect
from collections.abc import Mapping
from typing import Any, ClassVar, List, Optional, get_origin

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect


def _pydantic_fields(record_type: type) -> List[str]:
    names = list(record_type.model_fields)
    names.extend(record_type.model_computed_fields)
    names.extend(record_type.__private_attributes__)
    return names


def _mapped_columns(record_type: type) -> Optional[List[str]]:
    mapper = sa_inspect(record_type, raiseerr=False)
    if mapper is None or not hasattr(mapper, "column_attrs"):
        return None
    return [prop.key for prop in mapper.column_attrs]


def _class_members(record_type: type) -> List[str]:
    names: List[str] = []
    hierarchy = [k for k in reversed(record_type.__mro__) if k is not object]

    for klass in hierarchy:
        for name, annotation in inspect.get_annotations(klass).items():
            if name.startswith("__") or name in names:
                continue
            if annotation is ClassVar or get_origin(annotation) is ClassVar:
                continue
            names.append(name)

    for klass in hierarchy:
        for name, value in vars(klass).items():
            if isinstance(value, property) and not name.startswith("__") and name not in names:
                names.append(name)

    if not names:
        # Clases sin anotaciones: los parámetros del constructor son los campos
        try:
            signature = inspect.signature(record_type.__init__)
        except (TypeError, ValueError):
            return names
        for param in list(signature.parameters.values())[1:]:
            if param.kind in (param.POSITIONAL_OR_KEYWORD, param.KEYWORD_ONLY):
                names.append(param.name)

    return names


def get_field_names(record_type: type) -> List[str]:
    """
    Devuelve los campos legibles de un tipo en orden de declaración.

    Args:
        record_type: Modelo pydantic, dataclass, clase mapeada de SQLAlchemy
            o clase Python con anotaciones/propiedades

    Returns:
        Lista de nombres de campo (incluye campos privados)
    """
    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        return _pydantic_fields(record_type)
    if dataclasses.is_dataclass(record_type):
        return [f.name for f in dataclasses.fields(record_type)]

    columns = _mapped_columns(record_type)
    if columns:
        return columns

    return _class_members(record_type)


def resolve_field(record_type: type, name: Optional[str]) -> Optional[str]:
    """
    Busca un campo por nombre sin distinguir mayúsculas/minúsculas.

    Si no hay coincidencia exacta, ``"Number"`` también resuelve al campo
    privado ``_number``.

    Returns:
        El nombre tal como está declarado, o None si no hay coincidencia
    """
    if not name:
        return None
    wanted = name.lower()
    field_names = get_field_names(record_type)
    for field_name in field_names:
        if field_name.lower() == wanted:
            return field_name
    for field_name in field_names:
        if field_name.startswith("_") and field_name.lstrip("_").lower() == wanted:
            return field_name
    return None


def resolve_sort_field(record_type: type, name: Optional[str]) -> str:
    """
    Resuelve el campo de ordenación, usando el primer campo declarado como
    valor por defecto cuando el nombre está vacío o no existe.

    Raises:
        TypeError: Si el tipo no expone ningún campo
    """
    field_names = get_field_names(record_type)
    if not field_names:
        raise TypeError(f"{record_type.__name__} no expone campos para ordenar")

    return resolve_field(record_type, name) or field_names[0]


def read_field(record: Any, name: str) -> Any:
    """Lee el valor de un campo de un objeto o de un mapping."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name)
