"""
Endpoints de gestión de usuarios: alta, edición y bloqueo.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_client_ip, require_permission
from app.auth.permissions import Permission
from app.database import get_db
from app.models.user import User
from app.schemas.user import UserCreate, UserListResponse, UserResponse, UserUpdate
from app.services import user_service

router = APIRouter()


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    role_id: int | None = Query(None, description="Filtrar por rol"),
    area_id: int | None = Query(None, description="Filtrar por área"),
    is_blocked: bool | None = Query(None, description="Filtrar por bloqueo"),
    user: User = Depends(require_permission(Permission.VIEW)),
    db: AsyncSession = Depends(get_db),
):
    """Lista usuarios con filtros por rol, área y bloqueo."""
    return await user_service.list_users(
        db,
        page=page,
        size=size,
        role_id=role_id,
        area_id=area_id,
        is_blocked=is_blocked,
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    user: User = Depends(require_permission(Permission.VIEW)),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_user(db, user_id)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    data: UserCreate,
    request: Request,
    user: User = Depends(require_permission(Permission.CREATE)),
    db: AsyncSession = Depends(get_db),
):
    """Crea un usuario. El código CIP debe ser único."""
    return await user_service.create_user(
        db, user, data, ip_address=get_client_ip(request)
    )


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: UserUpdate,
    request: Request,
    user: User = Depends(require_permission(Permission.EDIT)),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_user(
        db, user_id, user, data, ip_address=get_client_ip(request)
    )


@router.patch("/{user_id}/block", response_model=UserResponse)
async def block_user(
    user_id: int,
    request: Request,
    user: User = Depends(require_permission(Permission.BLOCK)),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.set_user_blocked(
        db, user_id, user, blocked=True, ip_address=get_client_ip(request)
    )


@router.patch("/{user_id}/unblock", response_model=UserResponse)
async def unblock_user(
    user_id: int,
    request: Request,
    user: User = Depends(require_permission(Permission.BLOCK)),
    db: AsyncSession = Depends(get_db),
):
    """Desbloquea un usuario y reinicia sus intentos fallidos."""
    return await user_service.set_user_blocked(
        db, user_id, user, blocked=False, ip_address=get_client_ip(request)
    )
