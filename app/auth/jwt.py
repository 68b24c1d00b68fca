"""
Gestión de JWT.
RS256 con claves asimétricas por defecto; HS256 con JWT_SECRET_KEY si se configura.
Access tokens (30 min) + Refresh tokens (7 días).
"""

from datetime import datetime, timedelta, timezone

import jwt

from app.config import get_settings

settings = get_settings()


class TokenType:
    ACCESS = "access"
    REFRESH = "refresh"


def _uses_shared_secret() -> bool:
    return settings.JWT_ALGORITHM.upper().startswith("HS")


def _signing_key() -> str:
    if _uses_shared_secret():
        return settings.JWT_SECRET_KEY
    return settings.jwt_private_key


def _verification_key() -> str:
    if _uses_shared_secret():
        return settings.JWT_SECRET_KEY
    return settings.jwt_public_key


def create_access_token(
    user_id: int,
    role_id: int,
    area_id: int,
    extra_claims: dict | None = None,
) -> str:
    """Crea un access token JWT (corta duración)."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role_id": role_id,
        "area_id": area_id,
        "type": TokenType.ACCESS,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    if extra_claims:
        payload.update(extra_claims)

    return jwt.encode(payload, _signing_key(), algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(user_id: int) -> str:
    """Crea un refresh token JWT (larga duración)."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "type": TokenType.REFRESH,
        "iat": now,
        "exp": now + timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS),
    }

    return jwt.encode(payload, _signing_key(), algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decodifica y verifica un token JWT.
    Lanza jwt.InvalidTokenError si el token es inválido o expirado.
    """
    return jwt.decode(
        token,
        _verification_key(),
        algorithms=[settings.JWT_ALGORITHM],
    )
