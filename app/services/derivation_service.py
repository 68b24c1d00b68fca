"""
Servicio de derivaciones: ruteo de documentos entre áreas.

Una derivación es atómica: bloquea el documento, inserta la derivación,
mueve el documento al área destino, registra el cambio de estado y los logs.
Si cualquier paso falla no queda nada escrito.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
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
from app.models.derivation import Derivation, DerivationStatus
from app.models.document import (
    Document,
    DocumentStatus,
    DocumentStatusChange,
    is_terminal,
)
from app.models.logs import LogType
from app.models.user import User
from app.schemas.derivation import (
    DerivationResponse,
    DerivationResult,
    DocumentHistoryResponse,
)
from app.schemas.document import DocumentResponse, StatusChangeResponse
from app.services.audit_service import log_event

logger = logging.getLogger(__name__)


# ── Helpers ──────────────────────────────────────────

async def _lock_document(db: AsyncSession, document_id: int) -> Document:
    """SELECT ... FOR UPDATE del documento; serializa derivaciones concurrentes."""
    result = await db.execute(
        select(Document).where(Document.id == document_id).with_for_update()
    )
    document = result.scalar_one_or_none()
    if not document:
        raise NotFoundException("Documento")
    return document


async def _get_document(db: AsyncSession, document_id: int) -> Document:
    result = await db.execute(
        select(Document)
        .where(Document.id == document_id)
        .execution_options(populate_existing=True)
    )
    document = result.scalar_one_or_none()
    if not document:
        raise NotFoundException("Documento")
    return document


async def _get_derivation(db: AsyncSession, derivation_id: int) -> Derivation:
    result = await db.execute(
        select(Derivation)
        .where(Derivation.id == derivation_id)
        .execution_options(populate_existing=True)
    )
    derivation = result.scalar_one_or_none()
    if not derivation:
        raise NotFoundException("Derivación", "Derivación no encontrada")
    return derivation


async def _get_destination_area(db: AsyncSession, area_id: int) -> Area:
    result = await db.execute(select(Area).where(Area.id == area_id))
    area = result.scalar_one_or_none()
    if not area:
        raise NotFoundException("Área", "Área de destino no encontrada")
    if not area.is_active:
        raise ValidationException(f"El área de destino '{area.name}' está inactiva")
    return area


# ── Derivar ──────────────────────────────────────────

async def derive_document(
    db: AsyncSession,
    document_id: int,
    actor: User,
    *,
    destination_area_id: int,
    observation: str | None = None,
    urgent: bool = False,
    reason: str | None = None,
    ip_address: str | None = None,
) -> DerivationResult:
    """
    Deriva un documento a otra área.

    Errores:
        ForbiddenException    el rol del actor no tiene el bit DERIVE
        NotFoundException     documento o área destino inexistente
        ConflictException     el documento está en un estado terminal
        ValidationException   área destino inactiva o igual al área actual
    """
    ensure_permission(actor, Permission.DERIVE)

    async with unit_of_work(db):
        document = await _lock_document(db, document_id)

        if is_terminal(document.status):
            raise ConflictException(
                f"No se puede derivar un documento en estado '{document.status.value}'"
            )

        destination = await _get_destination_area(db, destination_area_id)
        if destination.id == document.current_area_id:
            raise ValidationException(
                "El área de destino debe ser diferente al área actual"
            )

        origin_area_id = document.current_area_id
        previous_status = document.status

        derivation = Derivation(
            document_id=document.id,
            origin_area_id=origin_area_id,
            destination_area_id=destination.id,
            derived_by=actor.id,
            derived_at=datetime.now(timezone.utc),
            status=DerivationStatus.PENDIENTE,
            observation=observation,
            reason=reason,
            urgent=urgent,
        )
        db.add(derivation)

        document.current_area_id = destination.id
        document.status = DocumentStatus.EN_PROCESO

        db.add(DocumentStatusChange(
            document_id=document.id,
            previous_status=previous_status,
            new_status=DocumentStatus.EN_PROCESO,
            observation=observation or f"Derivado a {destination.name}",
            changed_by=actor.id,
        ))
        await db.flush()

        details = {
            "document_id": document.id,
            "registry_number": document.registry_number,
            "derivation_id": derivation.id,
            "origin_area_id": origin_area_id,
            "destination_area_id": destination.id,
            "urgent": urgent,
        }
        await log_event(
            db, LogType.DERIVACION,
            event_type="DERIVAR_DOCUMENTO",
            user_id=actor.id,
            ip_address=ip_address,
            details=details,
        )
        await log_event(
            db, LogType.DOCUMENTO,
            event_type="DERIVAR",
            user_id=actor.id,
            ip_address=ip_address,
            details={
                **details,
                "previous_status": previous_status,
                "new_status": DocumentStatus.EN_PROCESO,
            },
        )
        derivation_id = derivation.id

    logger.info(
        "Documento %s derivado: área %s → %s por usuario %s",
        document_id, origin_area_id, destination_area_id, actor.id,
    )

    # Recargar con relaciones actualizadas
    derivation = await _get_derivation(db, derivation_id)
    document = await _get_document(db, document_id)
    return DerivationResult(
        derivation=DerivationResponse.model_validate(derivation),
        document=DocumentResponse.model_validate(document),
    )


# ── Historial ────────────────────────────────────────

async def get_document_history(
    db: AsyncSession,
    document_id: int,
) -> list[DerivationResponse]:
    """Derivaciones del documento, de la más antigua a la más reciente."""
    document_exists = await db.execute(
        select(Document.id).where(Document.id == document_id)
    )
    if document_exists.scalar_one_or_none() is None:
        raise NotFoundException("Documento")

    result = await db.execute(
        select(Derivation)
        .where(Derivation.document_id == document_id)
        .order_by(Derivation.derived_at.asc(), Derivation.id.asc())
    )
    return [DerivationResponse.model_validate(d) for d in result.scalars().all()]


async def get_document_timeline(
    db: AsyncSession,
    document_id: int,
) -> DocumentHistoryResponse:
    """Historial completo: derivaciones y cambios de estado."""
    document = await _get_document(db, document_id)
    derivations = await get_document_history(db, document_id)

    changes_result = await db.execute(
        select(DocumentStatusChange)
        .where(DocumentStatusChange.document_id == document_id)
        .order_by(DocumentStatusChange.changed_at.asc(), DocumentStatusChange.id.asc())
    )

    return DocumentHistoryResponse(
        document_id=document.id,
        registry_number=document.registry_number,
        current_area_id=document.current_area_id,
        status=document.status.value,
        derivations=derivations,
        status_changes=[
            StatusChangeResponse.model_validate(change)
            for change in changes_result.scalars().all()
        ],
    )


# ── Recepción ────────────────────────────────────────

async def receive_derivation(
    db: AsyncSession,
    derivation_id: int,
    receiving_user: User,
    ip_address: str | None = None,
) -> DerivationResponse:
    """Marca una derivación como recibida por el área destino."""
    ensure_permission(receiving_user, Permission.DERIVE)

    async with unit_of_work(db):
        result = await db.execute(
            select(Derivation).where(Derivation.id == derivation_id).with_for_update()
        )
        derivation = result.scalar_one_or_none()
        if not derivation:
            raise NotFoundException("Derivación", "Derivación no encontrada")

        if derivation.is_received:
            raise ConflictException("La derivación ya fue recibida")

        derivation.received_by = receiving_user.id
        derivation.received_at = datetime.now(timezone.utc)
        derivation.status = DerivationStatus.COMPLETADO
        await db.flush()

        await log_event(
            db, LogType.DERIVACION,
            event_type="RECIBIR_DERIVACION",
            user_id=receiving_user.id,
            ip_address=ip_address,
            details={
                "derivation_id": derivation.id,
                "document_id": derivation.document_id,
                "destination_area_id": derivation.destination_area_id,
            },
        )

    logger.info("Derivación %s recibida por usuario %s", derivation_id, receiving_user.id)

    derivation = await _get_derivation(db, derivation_id)
    return DerivationResponse.model_validate(derivation)
