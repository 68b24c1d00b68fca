"""
Endpoints del modelo de permisos: máscara del usuario, verificación
de un permiso puntual y catálogo de roles.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.permissions import (
    get_role_permissions,
    has_permission,
    parse_permission,
    permission_flags,
    visibility,
)
from app.core.exceptions import ValidationException
from app.database import get_db
from app.models.role import Role
from app.models.user import User
from app.schemas.permission import PermissionCheck, PermissionSummary, RoleResponse

router = APIRouter()
roles_router = APIRouter()


@router.get("/me", response_model=PermissionSummary)
async def my_permissions(user: User = Depends(get_current_user)):
    """Máscara del rol del usuario y banderas de visibilidad para la UI."""
    mask = get_role_permissions(user.role_id)
    return PermissionSummary(
        role_id=user.role_id,
        permissions=mask,
        flags=permission_flags(mask),
    )


@router.get("/check", response_model=PermissionCheck)
async def check_permission(
    permiso: str = Query(..., description="Nombre del permiso: crear, editar, derivar..."),
    user: User = Depends(get_current_user),
):
    permission = parse_permission(permiso)
    if permission is None:
        raise ValidationException(f"Permiso desconocido: '{permiso}'")

    mask = get_role_permissions(user.role_id)
    return PermissionCheck(
        permission=permission.name.lower(),
        bit=int(permission),
        granted=has_permission(mask, permission),
        visibility=visibility(mask, permission).value,
    )


@roles_router.get("", response_model=list[RoleResponse])
async def list_roles(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Roles sembrados con su máscara de permisos."""
    result = await db.execute(select(Role).order_by(Role.id))
    roles = []
    for role in result.scalars().all():
        mask = get_role_permissions(role.id)
        roles.append(RoleResponse(
            id=role.id,
            name=role.name,
            description=role.description,
            permissions=mask,
            flags=permission_flags(mask),
        ))
    return roles
