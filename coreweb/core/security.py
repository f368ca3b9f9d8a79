"""
Utilidades de seguridad para validación de roles a partir de los claims.
"""

from typing import Any, Iterable, List, Mapping

from coreweb.core.exceptions import ForbiddenException

ROLE_CLAIM_TYPES = (
    "roles",
    "role",
    "http://schemas.microsoft.com/ws/2008/06/identity/claims/role",
)


def get_user_roles(claims: Mapping[str, Any]) -> List[str]:
    """
    Obtiene los roles del usuario a partir de sus claims.

    Un claim de rol puede ser una cadena o una lista de cadenas.

    Args:
        claims: Claims del token (vacío si la petición es anónima)

    Returns:
        Lista de roles (sin duplicados, en orden de aparición)
    """
    roles: List[str] = []
    for claim_type in ROLE_CLAIM_TYPES:
        value = claims.get(claim_type)
        if value is None:
            continue
        values = [value] if isinstance(value, str) else list(value)
        for role in values:
            if role not in roles:
                roles.append(str(role))
    return roles


def user_has_role(claims: Mapping[str, Any], allowed_roles: Iterable[str]) -> bool:
    """True si el usuario tiene al menos uno de los roles permitidos."""
    user_roles = get_user_roles(claims)
    return any(role in user_roles for role in allowed_roles)


def require_role(claims: Mapping[str, Any], *allowed_roles: str) -> None:
    """
    Check if user has one of the allowed roles.

    Args:
        claims: Claims of the current user
        allowed_roles: Tuple of allowed roles

    Raises:
        ForbiddenException: If user has none of the allowed roles
    """
    if not user_has_role(claims, allowed_roles):
        raise ForbiddenException(
            message="Permisos insuficientes",
            details={
                "user_roles": get_user_roles(claims),
                "required_roles": list(allowed_roles)
            }
        )
