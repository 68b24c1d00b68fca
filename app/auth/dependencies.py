"""
Dependencies de FastAPI para autenticación y autorización por máscara de permisos.
"""

import logging

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import TokenType, decode_token
from app.auth.permissions import Permission, get_role_permissions, has_permission
from app.core.exceptions import CredentialsException, ForbiddenException
from app.core.logging import SECURITY_LOGGER
from app.database import get_db
from app.models.user import User

security_logger = logging.getLogger(SECURITY_LOGGER)

# ── Security scheme ──────────────────────────────────
security = HTTPBearer()


# ── Token payload tipado ─────────────────────────────
class TokenPayload:
    """Datos extraídos del token JWT decodificado."""

    def __init__(self, payload: dict):
        self.user_id: int = int(payload["sub"])
        self.role_id: int | None = payload.get("role_id")
        self.area_id: int | None = payload.get("area_id")
        self.token_type: str = payload.get("type", TokenType.ACCESS)


def get_client_ip(request: Request) -> str | None:
    """Obtiene la IP del cliente desde los headers o la conexión."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


# ── Obtener usuario actual ───────────────────────────
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency que:
    1. Decodifica el JWT del header Authorization
    2. Carga el usuario de la DB
    3. Rechaza usuarios bloqueados
    """
    try:
        payload = decode_token(credentials.credentials)
    except jwt.InvalidTokenError:
        raise CredentialsException("Token inválido o expirado")

    token_data = TokenPayload(payload)

    # Verificar que es un access token
    if token_data.token_type != TokenType.ACCESS:
        raise CredentialsException("Tipo de token inválido")

    result = await db.execute(select(User).where(User.id == token_data.user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise CredentialsException("Usuario no encontrado")

    if user.is_blocked:
        security_logger.warning(
            "Acceso con token de usuario bloqueado",
            extra={"user_id": user.id, "cip_code": user.cip_code},
        )
        raise CredentialsException("Usuario bloqueado")

    return user


# ── Verificación de permisos ─────────────────────────
def ensure_permission(user: User, *required: Permission, path: str | None = None) -> None:
    """
    Verifica que la máscara del rol del usuario tenga todos los bits indicados.
    La usan los servicios y `require_permission`.
    """
    mask = get_role_permissions(user.role_id)
    missing = [perm for perm in required if not has_permission(mask, perm)]
    if not missing:
        return

    security_logger.warning(
        "Permiso denegado",
        extra={
            "user_id": user.id,
            "role_id": user.role_id,
            "path": path,
            "missing": [perm.name for perm in missing],
        },
    )
    raise ForbiddenException(
        f"Se requiere el permiso: {', '.join(perm.name for perm in missing)}"
    )


# ── Factory de dependency con permisos ───────────────
def require_permission(*required: Permission):
    """
    Factory que crea un dependency que verifica la máscara del rol del usuario.
    Todos los bits indicados son obligatorios.

    Uso:
        @router.post("/{id}/derive")
        async def derive(user: User = Depends(require_permission(Permission.DERIVE))):
            ...
    """

    async def _check_permission(
        request: Request,
        user: User = Depends(get_current_user),
    ) -> User:
        ensure_permission(user, *required, path=request.url.path)
        return user

    return _check_permission
