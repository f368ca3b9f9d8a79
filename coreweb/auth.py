import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError, ExpiredSignatureError
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from coreweb.config import settings
from coreweb.core.exceptions import UnauthorizedException
from coreweb.core.security import require_role

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token including standard claims (sub, iat, exp, iss, aud).

    `data` should include an identifier under the "sub" key. Issuer and audience
    are only added when configured.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_access_minutes))
    if "sub" not in to_encode:
        raise ValueError("`data` must include `sub` (subject / user id)")
    to_encode.update({"exp": expire, "iat": now})
    if settings.jwt_issuer:
        to_encode["iss"] = settings.jwt_issuer
    if settings.jwt_audience:
        to_encode["aud"] = settings.jwt_audience
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token.

    Validates signature and expiration, plus issuer and audience when they are
    configured. Raises UnauthorizedException for any invalid token state.
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except ExpiredSignatureError:
        logger.info("Token expirado")
        raise UnauthorizedException("Token expirado")
    except JWTError as e:
        logger.info(f"Token inválido o claim mismatch: {e}")
        raise UnauthorizedException("Token inválido o expirado")


async def get_current_claims(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    """Claims del usuario actual; vacío si la petición no trae token.

    Los claims se guardan en ``request.state.claims`` para reutilizarlos en
    otros componentes (auditoría, formateo de peticiones).
    """
    cached = getattr(request.state, "claims", None)
    if cached is not None:
        return cached

    claims = decode_token(credentials.credentials) if credentials else {}
    request.state.claims = claims
    return claims


class RoleRequirement:
    """Dependency that ensures the current user has at least one of the roles.

    When a feature flag service is registered on ``app.state.feature_flags``
    the check only runs while the roles feature flag is on.
    """

    def __init__(self, *roles: str):
        self.roles = roles

    def __call__(self, request: Request, claims: dict = Depends(get_current_claims)) -> dict:
        feature_flags = getattr(request.app.state, "feature_flags", None)
        if feature_flags is not None and not feature_flags.get_feature_flag(settings.roles_feature_flag):
            logger.debug(f"{settings.roles_feature_flag} desactivado, se omite la validación de roles")
            return claims

        require_role(claims, *self.roles)
        return claims


def require_roles(*allowed_roles):
    """Dependency factory for role checks.

    Usage in route: claims = require_roles('admin', 'editor')
    """
    return Depends(RoleRequirement(*allowed_roles))
