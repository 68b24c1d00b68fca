"""
Endpoints de autenticación: login por CIP, refresh y usuario actual.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_client_ip, get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.auth import LoginRequest, LoginResponse, RefreshRequest, TokenResponse
from app.schemas.user import UserMe
from app.services import auth_service

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Autentica un usuario con código CIP y contraseña.
    Tras MAX_FAILED_LOGIN_ATTEMPTS intentos fallidos el usuario queda bloqueado.
    """
    return await auth_service.login(db, data, ip_address=get_client_ip(request))


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """Emite un nuevo par de tokens a partir de un refresh token válido."""
    return await auth_service.refresh_tokens(db, data.refresh_token)


@router.get("/me", response_model=UserMe)
async def me(user: User = Depends(get_current_user)):
    """Datos del usuario autenticado con su máscara de permisos."""
    return auth_service.get_me(user)
