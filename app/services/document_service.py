"""
Servicio de documentos: ingreso por Mesa de Partes, consulta, edición
y cambio de estado validado por la state machine.
Los documentos nunca se eliminan.
"""

import logging
import math

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import ensure_permission
from app.auth.permissions import Permission
from app.core.exceptions import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from app.database import unit_of_work
from app.models.area import Area
from app.models.document import (
    VALID_TRANSITIONS,
    Document,
    DocumentStatus,
    DocumentStatusChange,
    is_terminal,
    is_valid_transition,
)
from app.models.logs import LogType
from app.models.user import User
from app.schemas.document import (
    DocumentCreate,
    DocumentListResponse,
    DocumentResponse,
    DocumentStatusUpdate,
    DocumentUpdate,
)
from app.services.audit_service import log_event

logger = logging.getLogger(__name__)

# Estados a los que se puede mover un documento manualmente.
# EN_PROCESO solo se alcanza derivando.
MANUAL_STATUSES = frozenset({
    DocumentStatus.PENDIENTE,
    DocumentStatus.COMPLETADO,
    DocumentStatus.ARCHIVADO,
    DocumentStatus.RECHAZADO,
})


async def _load_document(db: AsyncSession, document_id: int, *, lock: bool = False) -> Document:
    query = select(Document).where(Document.id == document_id)
    if lock:
        query = query.with_for_update()
    else:
        query = query.execution_options(populate_existing=True)
    result = await db.execute(query)
    document = result.scalar_one_or_none()
    if not document:
        raise NotFoundException("Documento")
    return document


# ── Ingreso ──────────────────────────────────────────

async def create_document(
    db: AsyncSession,
    user: User,
    data: DocumentCreate,
    ip_address: str | None = None,
) -> DocumentResponse:
    """Registra un documento entrante en estado RECIBIDO."""
    ensure_permission(user, Permission.CREATE)

    existing = await db.execute(
        select(Document.id).where(Document.registry_number == data.registry_number)
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictException("Ya existe un documento con el mismo número de registro")

    area_id = data.area_id or user.area_id
    area_result = await db.execute(select(Area).where(Area.id == area_id))
    area = area_result.scalar_one_or_none()
    if not area:
        raise NotFoundException("Área", "Área no encontrada")
    if not area.is_active:
        raise ValidationException(f"El área '{area.name}' está inactiva")

    async with unit_of_work(db):
        document = Document(
            registry_number=data.registry_number,
            office_number=data.office_number,
            document_date=data.document_date,
            origin=data.origin,
            content=data.content,
            observations=data.observations,
            current_area_id=area.id,
            status=DocumentStatus.RECIBIDO,
            created_by=user.id,
        )
        db.add(document)
        await db.flush()

        db.add(DocumentStatusChange(
            document_id=document.id,
            previous_status=None,
            new_status=DocumentStatus.RECIBIDO,
            observation="Ingreso por Mesa de Partes",
            changed_by=user.id,
        ))

        details = {
            "document_id": document.id,
            "registry_number": document.registry_number,
            "origin": document.origin,
            "area_id": area.id,
        }
        await log_event(
            db, LogType.MESA_PARTES,
            event_type="REGISTRAR_DOCUMENTO",
            user_id=user.id,
            ip_address=ip_address,
            details=details,
        )
        await log_event(
            db, LogType.DOCUMENTO,
            event_type="CREAR",
            user_id=user.id,
            ip_address=ip_address,
            details=details,
        )
        document_id = document.id

    logger.info("Documento %s registrado por usuario %s", data.registry_number, user.id)
    return DocumentResponse.model_validate(await _load_document(db, document_id))


# ── Consulta ─────────────────────────────────────────

async def get_document(db: AsyncSession, document_id: int) -> DocumentResponse:
    return DocumentResponse.model_validate(await _load_document(db, document_id))


async def list_documents(
    db: AsyncSession,
    *,
    page: int = 1,
    size: int = 20,
    status: DocumentStatus | None = None,
    area_id: int | None = None,
    search: str | None = None,
) -> DocumentListResponse:
    """Lista documentos con paginación y filtros."""
    query = select(Document)

    if status:
        query = query.where(Document.status == status)
    if area_id:
        query = query.where(Document.current_area_id == area_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                Document.registry_number.ilike(pattern),
                Document.office_number.ilike(pattern),
                Document.origin.ilike(pattern),
                Document.content.ilike(pattern),
            )
        )

    count_query = select(func.count()).select_from(
        query.with_only_columns(Document.id).subquery()
    )
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    offset = (page - 1) * size
    query = query.order_by(Document.created_at.desc(), Document.id.desc())
    query = query.offset(offset).limit(size)

    result = await db.execute(query)
    documents = result.scalars().all()

    return DocumentListResponse(
        items=[DocumentResponse.model_validate(d) for d in documents],
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 0,
    )


# ── Edición ──────────────────────────────────────────

async def update_document(
    db: AsyncSession,
    document_id: int,
    user: User,
    data: DocumentUpdate,
    ip_address: str | None = None,
) -> DocumentResponse:
    """Actualiza los datos de un documento no terminal."""
    ensure_permission(user, Permission.EDIT)

    async with unit_of_work(db):
        document = await _load_document(db, document_id, lock=True)

        if is_terminal(document.status):
            raise ConflictException(
                f"No se puede actualizar un documento en estado '{document.status.value}'"
            )

        update_fields = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        old_data = {field: getattr(document, field) for field in update_fields}

        for field, value in update_fields.items():
            setattr(document, field, value)
        await db.flush()

        await log_event(
            db, LogType.DOCUMENTO,
            event_type="ACTUALIZAR",
            user_id=user.id,
            ip_address=ip_address,
            details={
                "document_id": document.id,
                "old": old_data,
                "new": update_fields,
            },
        )

    return DocumentResponse.model_validate(await _load_document(db, document_id))


async def change_status(
    db: AsyncSession,
    document_id: int,
    user: User,
    data: DocumentStatusUpdate,
    ip_address: str | None = None,
) -> DocumentResponse:
    """Cambia el estado del documento validando la transición."""
    ensure_permission(user, Permission.EDIT)

    if data.status not in MANUAL_STATUSES:
        raise ValidationException(
            f"El estado '{data.status.value}' no se puede asignar manualmente"
        )

    async with unit_of_work(db):
        document = await _load_document(db, document_id, lock=True)

        if not is_valid_transition(document.status, data.status):
            valid = VALID_TRANSITIONS.get(document.status, [])
            raise ConflictException(
                f"No se puede cambiar de '{document.status.value}' a '{data.status.value}'. "
                f"Transiciones válidas: {[s.value for s in valid]}"
            )

        previous_status = document.status
        document.status = data.status

        db.add(DocumentStatusChange(
            document_id=document.id,
            previous_status=previous_status,
            new_status=data.status,
            observation=data.observation,
            changed_by=user.id,
        ))
        await db.flush()

        await log_event(
            db, LogType.DOCUMENTO,
            event_type="CAMBIAR_ESTADO",
            user_id=user.id,
            ip_address=ip_address,
            details={
                "document_id": document.id,
                "previous_status": previous_status,
                "new_status": data.status,
                "observation": data.observation,
            },
        )

    logger.info(
        "Documento %s: %s → %s por usuario %s",
        document_id, previous_status.value, data.status.value, user.id,
    )
    return DocumentResponse.model_validate(await _load_document(db, document_id))
