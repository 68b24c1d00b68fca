"""
Servicio de áreas: alta, edición y ciclo de vida suave (activar/desactivar).
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import ensure_permission
from app.auth.permissions import Permission
from app.core.exceptions import ConflictException, NotFoundException
from app.models.area import Area
from app.models.logs import LogType
from app.models.user import User
from app.schemas.area import AreaCreate, AreaResponse, AreaUpdate
from app.services.audit_service import log_event

logger = logging.getLogger(__name__)


async def _get_area(db: AsyncSession, area_id: int) -> Area:
    result = await db.execute(select(Area).where(Area.id == area_id))
    area = result.scalar_one_or_none()
    if not area:
        raise NotFoundException("Área", "Área no encontrada")
    return area


async def list_areas(
    db: AsyncSession,
    *,
    is_active: bool | None = None,
) -> list[AreaResponse]:
    query = select(Area).order_by(Area.name)
    if is_active is not None:
        query = query.where(Area.is_active.is_(is_active))
    result = await db.execute(query)
    return [AreaResponse.model_validate(a) for a in result.scalars().all()]


async def get_area(db: AsyncSession, area_id: int) -> AreaResponse:
    return AreaResponse.model_validate(await _get_area(db, area_id))


async def create_area(
    db: AsyncSession,
    user: User,
    data: AreaCreate,
    ip_address: str | None = None,
) -> AreaResponse:
    ensure_permission(user, Permission.CREATE)

    code = data.code.upper()
    existing = await db.execute(select(Area.id).where(Area.code == code))
    if existing.scalar_one_or_none() is not None:
        raise ConflictException(f"Ya existe un área con el código {code}")

    area = Area(
        name=data.name,
        code=code,
        area_type=data.area_type,
        description=data.description,
    )
    db.add(area)
    await db.flush()

    await log_event(
        db, LogType.AREA,
        event_type="CREAR",
        user_id=user.id,
        ip_address=ip_address,
        details={"area_id": area.id, "code": area.code, "name": area.name},
    )
    return AreaResponse.model_validate(area)


async def update_area(
    db: AsyncSession,
    area_id: int,
    user: User,
    data: AreaUpdate,
    ip_address: str | None = None,
) -> AreaResponse:
    ensure_permission(user, Permission.EDIT)
    area = await _get_area(db, area_id)

    update_fields = data.model_dump(exclude_unset=True)
    old_data = {field: getattr(area, field) for field in update_fields}
    for field, value in update_fields.items():
        if value is not None:
            setattr(area, field, value)
    await db.flush()

    await log_event(
        db, LogType.AREA,
        event_type="ACTUALIZAR",
        user_id=user.id,
        ip_address=ip_address,
        details={"area_id": area.id, "old": old_data, "new": update_fields},
    )
    return AreaResponse.model_validate(area)


async def set_area_active(
    db: AsyncSession,
    area_id: int,
    user: User,
    active: bool,
    ip_address: str | None = None,
) -> AreaResponse:
    """Activa o desactiva un área. Un área inactiva no recibe derivaciones."""
    ensure_permission(user, Permission.DELETE)
    area = await _get_area(db, area_id)

    if area.is_active == active:
        state = "activa" if active else "inactiva"
        raise ConflictException(f"El área ya está {state}")

    area.is_active = active
    await db.flush()

    await log_event(
        db, LogType.AREA,
        event_type="ACTIVAR" if active else "DESACTIVAR",
        user_id=user.id,
        ip_address=ip_address,
        details={"area_id": area.id, "code": area.code},
    )
    logger.info("Área %s %s por usuario %s", area.code, "activada" if active else "desactivada", user.id)
    return AreaResponse.model_validate(area)
