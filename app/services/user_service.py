"""
Servicio de usuarios: alta, consulta, edición y bloqueo.
Los usuarios nunca se eliminan; se bloquean.
"""

import logging
import math

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import ensure_permission
from app.auth.permissions import Permission
from app.core.exceptions import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from app.core.logging import SECURITY_LOGGER
from app.core.security import hash_password
from app.models.area import Area
from app.models.logs import LogType
from app.models.role import Role
from app.models.user import User
from app.schemas.user import (
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from app.services.audit_service import log_event

logger = logging.getLogger(__name__)
security_logger = logging.getLogger(SECURITY_LOGGER)


async def _get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundException("Usuario")
    return user


async def _validate_role_and_area(
    db: AsyncSession,
    role_id: int | None,
    area_id: int | None,
) -> None:
    if role_id is not None:
        role = await db.execute(select(Role.id).where(Role.id == role_id))
        if role.scalar_one_or_none() is None:
            raise ValidationException(f"El rol {role_id} no existe")
    if area_id is not None:
        area_result = await db.execute(select(Area).where(Area.id == area_id))
        area = area_result.scalar_one_or_none()
        if not area:
            raise ValidationException(f"El área {area_id} no existe")
        if not area.is_active:
            raise ValidationException(f"El área '{area.name}' está inactiva")


# ── Consulta ─────────────────────────────────────────

async def list_users(
    db: AsyncSession,
    *,
    page: int = 1,
    size: int = 20,
    role_id: int | None = None,
    area_id: int | None = None,
    is_blocked: bool | None = None,
) -> UserListResponse:
    query = select(User)
    if role_id is not None:
        query = query.where(User.role_id == role_id)
    if area_id is not None:
        query = query.where(User.area_id == area_id)
    if is_blocked is not None:
        query = query.where(User.is_blocked.is_(is_blocked))

    count_query = select(func.count()).select_from(
        query.with_only_columns(User.id).subquery()
    )
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(User.last_name, User.first_name, User.id)
    query = query.offset((page - 1) * size).limit(size)
    result = await db.execute(query)

    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in result.scalars().all()],
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 0,
    )


async def get_user(db: AsyncSession, user_id: int) -> UserResponse:
    return UserResponse.model_validate(await _get_user(db, user_id))


# ── Alta y edición ───────────────────────────────────

async def create_user(
    db: AsyncSession,
    actor: User,
    data: UserCreate,
    ip_address: str | None = None,
) -> UserResponse:
    ensure_permission(actor, Permission.CREATE)

    existing = await db.execute(select(User.id).where(User.cip_code == data.cip_code))
    if existing.scalar_one_or_none() is not None:
        raise ConflictException("Ya existe un usuario con ese código CIP")

    await _validate_role_and_area(db, data.role_id, data.area_id)

    new_user = User(
        cip_code=data.cip_code,
        hashed_password=hash_password(data.password),
        role_id=data.role_id,
        area_id=data.area_id,
        first_name=data.first_name,
        last_name=data.last_name,
        rank=data.rank,
    )
    db.add(new_user)
    await db.flush()

    await log_event(
        db, LogType.USUARIO,
        event_type="CREAR_USUARIO",
        user_id=actor.id,
        ip_address=ip_address,
        details={
            "target_user_id": new_user.id,
            "cip_code": new_user.cip_code,
            "role_id": new_user.role_id,
            "area_id": new_user.area_id,
        },
    )
    logger.info("Usuario %s creado por usuario %s", new_user.cip_code, actor.id)
    return UserResponse.model_validate(await _get_user(db, new_user.id))


async def update_user(
    db: AsyncSession,
    user_id: int,
    actor: User,
    data: UserUpdate,
    ip_address: str | None = None,
) -> UserResponse:
    ensure_permission(actor, Permission.EDIT)
    target = await _get_user(db, user_id)

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    await _validate_role_and_area(db, update_data.get("role_id"), update_data.get("area_id"))

    password = update_data.pop("password", None)
    old_data = {field: getattr(target, field) for field in update_data}
    for field, value in update_data.items():
        setattr(target, field, value)
    if password:
        target.hashed_password = hash_password(password)
    await db.flush()

    changed = dict(update_data)
    if password:
        changed["password"] = "***"
    await log_event(
        db, LogType.USUARIO,
        event_type="ACTUALIZAR_USUARIO",
        user_id=actor.id,
        ip_address=ip_address,
        details={"target_user_id": target.id, "old": old_data, "new": changed},
    )
    return UserResponse.model_validate(await _get_user(db, user_id))


# ── Bloqueo ──────────────────────────────────────────

async def set_user_blocked(
    db: AsyncSession,
    user_id: int,
    actor: User,
    blocked: bool,
    ip_address: str | None = None,
) -> UserResponse:
    """Bloquea o desbloquea un usuario. Desbloquear reinicia los intentos fallidos."""
    ensure_permission(actor, Permission.BLOCK)
    target = await _get_user(db, user_id)

    if target.id == actor.id and blocked:
        raise ConflictException("No puede bloquear su propia cuenta")
    if target.is_blocked == blocked:
        raise ConflictException(
            "El usuario ya está bloqueado" if blocked else "El usuario no está bloqueado"
        )

    target.is_blocked = blocked
    if not blocked:
        target.failed_attempts = 0
    await db.flush()

    await log_event(
        db, LogType.USUARIO,
        event_type="BLOQUEAR_USUARIO" if blocked else "DESBLOQUEAR_USUARIO",
        user_id=actor.id,
        ip_address=ip_address,
        details={"target_user_id": target.id, "cip_code": target.cip_code},
    )
    security_logger.warning(
        "Usuario %s", "bloqueado" if blocked else "desbloqueado",
        extra={"user_id": target.id, "cip_code": target.cip_code, "actor_id": actor.id},
    )
    return UserResponse.model_validate(await _get_user(db, user_id))
