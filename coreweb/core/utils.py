"""
Funciones de utilidad generales.
"""

from collections.abc import Iterable, Mapping
from typing import Any
from enum import Enum as PyEnum


def enum_to_value(value: Any) -> Any:
    """
    Convierte un Enum a su valor, o devuelve el valor sin cambios.

    Args:
        value: Valor a convertir

    Returns:
        Enum.value si value es un Enum, de lo contrario el valor sin cambios
    """
    if isinstance(value, PyEnum):
        return value.value
    return value


def is_collection_type(value_type: Any) -> bool:
    """
    Indica si un tipo es una colección de elementos (list, tuple, set, ...).

    Las cadenas, bytes y mappings no cuentan como colecciones de elementos.

    Raises:
        TypeError: Si value_type es None
    """
    if value_type is None:
        raise TypeError("El tipo es obligatorio")
    if not isinstance(value_type, type):
        return False
    if issubclass(value_type, (str, bytes, bytearray, Mapping)):
        return False
    return issubclass(value_type, Iterable)
