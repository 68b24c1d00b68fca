"""
Servicio de autenticación: login por CIP, refresh y datos del usuario actual.

Los intentos fallidos se cuentan por usuario; al llegar a
MAX_FAILED_LOGIN_ATTEMPTS el usuario queda bloqueado y se registra una
intrusión BRUTE_FORCE.
"""

import logging
from datetime import datetime, timezone

import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import (
    TokenType,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from app.auth.permissions import get_role_permissions, permission_flags
from app.config import get_settings
from app.core.exceptions import CredentialsException
from app.core.logging import SECURITY_LOGGER
from app.core.security import verify_password
from app.models.logs import LogType
from app.models.user import User
from app.schemas.area import AreaEmbed
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    TokenData,
    TokenResponse,
    UserLoginData,
)
from app.schemas.user import UserMe
from app.services.audit_service import log_event

logger = logging.getLogger(__name__)
security_logger = logging.getLogger(SECURITY_LOGGER)
settings = get_settings()

INVALID_CREDENTIALS = "Código CIP o contraseña incorrectos"


async def _register_failed_login(
    db: AsyncSession,
    user: User,
    ip_address: str | None,
) -> None:
    """
    Incrementa los intentos fallidos y bloquea al llegar al máximo.
    Se confirma aquí porque la request termina con un 401 y get_db revierte.
    """
    user.failed_attempts = (user.failed_attempts or 0) + 1
    blocked_now = user.failed_attempts >= settings.MAX_FAILED_LOGIN_ATTEMPTS
    if blocked_now:
        user.is_blocked = True

    await log_event(
        db, LogType.USUARIO,
        event_type="LOGIN_FALLIDO",
        user_id=user.id,
        success=False,
        ip_address=ip_address,
        details={"cip_code": user.cip_code, "failed_attempts": user.failed_attempts},
    )

    if blocked_now:
        await log_event(
            db, LogType.INTRUSION,
            event_type="BRUTE_FORCE",
            user_id=user.id,
            success=False,
            ip_address=ip_address,
            details={
                "cip_code": user.cip_code,
                "failed_attempts": user.failed_attempts,
                "action": "USUARIO_BLOQUEADO",
            },
        )
        security_logger.warning(
            "Usuario bloqueado por intentos fallidos",
            extra={"user_id": user.id, "cip_code": user.cip_code, "ip": ip_address},
        )
    else:
        security_logger.warning(
            "Login fallido: contraseña incorrecta",
            extra={
                "user_id": user.id,
                "cip_code": user.cip_code,
                "failed_attempts": user.failed_attempts,
                "ip": ip_address,
            },
        )

    await db.commit()


async def login(
    db: AsyncSession,
    data: LoginRequest,
    ip_address: str | None = None,
) -> LoginResponse:
    """Autentica un usuario con código CIP y contraseña."""
    result = await db.execute(select(User).where(User.cip_code == data.cip_code))
    user = result.scalar_one_or_none()

    if not user:
        security_logger.warning(
            "Login fallido: CIP no registrado",
            extra={"cip_code": data.cip_code, "ip": ip_address},
        )
        raise CredentialsException(INVALID_CREDENTIALS)

    if user.is_blocked:
        security_logger.warning(
            "Login de usuario bloqueado",
            extra={"user_id": user.id, "cip_code": user.cip_code, "ip": ip_address},
        )
        raise CredentialsException("Usuario bloqueado")

    if not verify_password(data.password, user.hashed_password):
        await _register_failed_login(db, user, ip_address)
        raise CredentialsException(INVALID_CREDENTIALS)

    user.failed_attempts = 0
    user.last_access = datetime.now(timezone.utc)
    await db.flush()

    await log_event(
        db, LogType.USUARIO,
        event_type="LOGIN",
        user_id=user.id,
        ip_address=ip_address,
        details={"cip_code": user.cip_code},
    )
    logger.info("Login exitoso: user_id=%s", user.id)

    access_token = create_access_token(user.id, user.role_id, user.area_id)
    refresh_token = create_refresh_token(user.id)

    return LoginResponse(
        user=UserLoginData(
            id=user.id,
            cip_code=user.cip_code,
            full_name=user.full_name,
            role_id=user.role_id,
            area_id=user.area_id,
            permissions=get_role_permissions(user.role_id),
        ),
        tokens=TokenData(
            access_token=access_token,
            refresh_token=refresh_token,
        ),
    )


async def refresh_tokens(db: AsyncSession, refresh_token_str: str) -> TokenResponse:
    """Refresca un par de tokens usando el refresh token."""
    try:
        payload = decode_token(refresh_token_str)
    except jwt.InvalidTokenError:
        raise CredentialsException("Refresh token inválido o expirado")

    if payload.get("type") != TokenType.REFRESH:
        raise CredentialsException("Token no es un refresh token")

    result = await db.execute(select(User).where(User.id == int(payload["sub"])))
    user = result.scalar_one_or_none()
    if not user or user.is_blocked:
        raise CredentialsException("Usuario no encontrado o bloqueado")

    return TokenResponse(
        access_token=create_access_token(user.id, user.role_id, user.area_id),
        refresh_token=create_refresh_token(user.id),
    )


def get_me(user: User) -> UserMe:
    mask = get_role_permissions(user.role_id)
    return UserMe(
        id=user.id,
        cip_code=user.cip_code,
        full_name=user.full_name,
        rank=user.rank,
        role_id=user.role_id,
        role_name=user.role.name if user.role else None,
        area=AreaEmbed.model_validate(user.area) if user.area else None,
        permissions=mask,
        flags=permission_flags(mask),
    )
