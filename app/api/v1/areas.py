"""
Endpoints de áreas. Las áreas se desactivan, nunca se eliminan.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_client_ip, require_permission
from app.auth.permissions import Permission
from app.database import get_db
from app.models.user import User
from app.schemas.area import AreaCreate, AreaResponse, AreaUpdate
from app.services import area_service

router = APIRouter()


@router.get("", response_model=list[AreaResponse])
async def list_areas(
    is_active: bool | None = Query(None, description="Filtrar por estado"),
    user: User = Depends(require_permission(Permission.VIEW)),
    db: AsyncSession = Depends(get_db),
):
    return await area_service.list_areas(db, is_active=is_active)


@router.get("/{area_id}", response_model=AreaResponse)
async def get_area(
    area_id: int,
    user: User = Depends(require_permission(Permission.VIEW)),
    db: AsyncSession = Depends(get_db),
):
    return await area_service.get_area(db, area_id)


@router.post("", response_model=AreaResponse, status_code=201)
async def create_area(
    data: AreaCreate,
    request: Request,
    user: User = Depends(require_permission(Permission.CREATE)),
    db: AsyncSession = Depends(get_db),
):
    return await area_service.create_area(
        db, user, data, ip_address=get_client_ip(request)
    )


@router.put("/{area_id}", response_model=AreaResponse)
async def update_area(
    area_id: int,
    data: AreaUpdate,
    request: Request,
    user: User = Depends(require_permission(Permission.EDIT)),
    db: AsyncSession = Depends(get_db),
):
    return await area_service.update_area(
        db, area_id, user, data, ip_address=get_client_ip(request)
    )


@router.patch("/{area_id}/deactivate", response_model=AreaResponse)
async def deactivate_area(
    area_id: int,
    request: Request,
    user: User = Depends(require_permission(Permission.DELETE)),
    db: AsyncSession = Depends(get_db),
):
    """Desactiva un área: deja de aceptar derivaciones."""
    return await area_service.set_area_active(
        db, area_id, user, active=False, ip_address=get_client_ip(request)
    )


@router.patch("/{area_id}/activate", response_model=AreaResponse)
async def activate_area(
    area_id: int,
    request: Request,
    user: User = Depends(require_permission(Permission.DELETE)),
    db: AsyncSession = Depends(get_db),
):
    return await area_service.set_area_active(
        db, area_id, user, active=True, ip_address=get_client_ip(request)
    )
