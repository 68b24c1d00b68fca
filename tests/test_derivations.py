"""
Tests del servicio de derivaciones: atomicidad, historial y recepción.
"""

from datetime import date

import pytest
from sqlalchemy import func, select

from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from app.models.derivation import Derivation, DerivationStatus
from app.models.document import Document, DocumentStatus, DocumentStatusChange
from app.models.logs import DerivationLog, DocumentLog
from app.schemas.document import DocumentCreate
from app.services import derivation_service, document_service


async def _create_document(db, user, registry_number="REG-001", area_id=None):
    return await document_service.create_document(
        db,
        user,
        DocumentCreate(
            registry_number=registry_number,
            office_number="OF-123-2026",
            document_date=date(2026, 3, 1),
            origin="Comisaría Central",
            content="Muestras para análisis",
            area_id=area_id,
        ),
    )


async def _count(db, model, **filters) -> int:
    query = select(func.count()).select_from(model)
    for field, value in filters.items():
        query = query.where(getattr(model, field) == value)
    result = await db.execute(query)
    return result.scalar()


async def test_derive_moves_document_and_writes_everything(
    db_session, admin_user, mesa_area, chem_area
):
    doc = await _create_document(db_session, admin_user)

    result = await derivation_service.derive_document(
        db_session,
        doc.id,
        admin_user,
        destination_area_id=chem_area.id,
        observation="Para peritaje",
        urgent=True,
        reason="Análisis toxicológico",
    )

    assert result.derivation.origin_area_id == mesa_area.id
    assert result.derivation.destination_area_id == chem_area.id
    assert result.derivation.status == DerivationStatus.PENDIENTE
    assert result.derivation.urgent is True
    assert result.document.current_area_id == chem_area.id
    assert result.document.status == DocumentStatus.EN_PROCESO
    assert result.document.current_area.code == "QUIM"

    assert await _count(db_session, Derivation, document_id=doc.id) == 1
    assert await _count(db_session, DerivationLog, event_type="DERIVAR_DOCUMENTO") == 1
    assert await _count(db_session, DocumentLog, event_type="DERIVAR") == 1
    assert await _count(
        db_session, DocumentStatusChange,
        document_id=doc.id, new_status=DocumentStatus.EN_PROCESO,
    ) == 1


async def test_derive_terminal_document_conflicts_without_changes(
    db_session, admin_user, mesa_area, chem_area
):
    doc = await _create_document(db_session, admin_user)
    stored = await db_session.get(Document, doc.id)
    stored.status = DocumentStatus.ARCHIVADO
    await db_session.commit()
    admin_id = admin_user.id
    mesa_area_id = mesa_area.id

    with pytest.raises(ConflictException):
        await derivation_service.derive_document(
            db_session, doc.id, admin_user, destination_area_id=chem_area.id
        )

    await db_session.refresh(stored)
    assert stored.current_area_id == mesa_area_id
    assert stored.status == DocumentStatus.ARCHIVADO
    assert await _count(db_session, Derivation, document_id=doc.id) == 0
    assert await _count(db_session, DerivationLog, user_id=admin_id) == 0


async def test_repeated_derivations_build_ordered_history(
    db_session, admin_user, mesa_area, chem_area, ballistics_area
):
    doc = await _create_document(db_session, admin_user)
    route = [chem_area.id, ballistics_area.id, chem_area.id, mesa_area.id]

    for destination in route:
        await derivation_service.derive_document(
            db_session, doc.id, admin_user, destination_area_id=destination
        )

    history = await derivation_service.get_document_history(db_session, doc.id)
    assert len(history) == len(route)
    assert [d.destination_area_id for d in history] == route
    assert [d.derived_at for d in history] == sorted(d.derived_at for d in history)

    current = await document_service.get_document(db_session, doc.id)
    assert history[-1].destination_area_id == current.current_area_id
    # Cada derivación parte del destino de la anterior
    for previous, following in zip(history, history[1:]):
        assert following.origin_area_id == previous.destination_area_id


async def test_history_of_document_without_derivations_is_empty(db_session, admin_user):
    doc = await _create_document(db_session, admin_user)
    assert await derivation_service.get_document_history(db_session, doc.id) == []


async def test_history_of_missing_document(db_session, admin_user):
    with pytest.raises(NotFoundException):
        await derivation_service.get_document_history(db_session, 9999)


async def test_derive_to_inactive_area_is_rejected(
    db_session, admin_user, inactive_area
):
    doc = await _create_document(db_session, admin_user)
    with pytest.raises(ValidationException):
        await derivation_service.derive_document(
            db_session, doc.id, admin_user, destination_area_id=inactive_area.id
        )


async def test_derive_to_missing_area(db_session, admin_user):
    doc = await _create_document(db_session, admin_user)
    with pytest.raises(NotFoundException):
        await derivation_service.derive_document(
            db_session, doc.id, admin_user, destination_area_id=9999
        )


async def test_derive_to_current_area_is_rejected(db_session, admin_user, mesa_area):
    doc = await _create_document(db_session, admin_user)
    with pytest.raises(ValidationException):
        await derivation_service.derive_document(
            db_session, doc.id, admin_user, destination_area_id=mesa_area.id
        )


async def test_derive_missing_document(db_session, admin_user, chem_area):
    with pytest.raises(NotFoundException):
        await derivation_service.derive_document(
            db_session, 9999, admin_user, destination_area_id=chem_area.id
        )


async def test_derive_requires_derive_bit(
    db_session, admin_user, unknown_role_user, chem_area
):
    doc = await _create_document(db_session, admin_user)
    with pytest.raises(ForbiddenException):
        await derivation_service.derive_document(
            db_session, doc.id, unknown_role_user, destination_area_id=chem_area.id
        )


async def test_receive_derivation_once(db_session, admin_user, mesa_user, chem_area):
    doc = await _create_document(db_session, admin_user)
    result = await derivation_service.derive_document(
        db_session, doc.id, admin_user, destination_area_id=chem_area.id
    )
    derivation_id = result.derivation.id
    mesa_id = mesa_user.id

    received = await derivation_service.receive_derivation(
        db_session, derivation_id, mesa_user
    )
    assert received.status == DerivationStatus.COMPLETADO
    assert received.received_by == mesa_id
    assert received.received_at is not None

    with pytest.raises(ConflictException):
        await derivation_service.receive_derivation(db_session, derivation_id, mesa_user)

    assert await _count(db_session, DerivationLog, event_type="RECIBIR_DERIVACION") == 1


async def test_receive_missing_derivation(db_session, admin_user):
    with pytest.raises(NotFoundException):
        await derivation_service.receive_derivation(db_session, 9999, admin_user)


# ── API ──────────────────────────────────────────────

async def test_derive_endpoint_and_history(
    client, db_session, mesa_user, mesa_headers, chem_area
):
    doc = await _create_document(db_session, mesa_user)

    response = await client.post(
        f"/api/v1/documents/{doc.id}/derive",
        json={"destination_area_id": chem_area.id, "observation": "Urgente"},
        headers=mesa_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["document"]["current_area_id"] == chem_area.id
    assert body["document"]["status"] == "EN_PROCESO"

    history = await client.get(
        f"/api/v1/documents/{doc.id}/history", headers=mesa_headers
    )
    assert history.status_code == 200
    data = history.json()
    assert len(data["derivations"]) == 1
    assert [c["new_status"] for c in data["status_changes"]] == ["RECIBIDO", "EN_PROCESO"]


async def test_derive_endpoint_forbidden_without_derive_bit(
    client, db_session, admin_user, unknown_role_user, chem_area, headers_for
):
    doc = await _create_document(db_session, admin_user)
    response = await client.post(
        f"/api/v1/documents/{doc.id}/derive",
        json={"destination_area_id": chem_area.id},
        headers=headers_for(unknown_role_user),
    )
    assert response.status_code == 403


async def test_derive_endpoint_terminal_document_returns_409(
    client, db_session, admin_user, admin_headers, chem_area
):
    doc = await _create_document(db_session, admin_user)
    await client.patch(
        f"/api/v1/documents/{doc.id}/status",
        json={"status": "RECHAZADO", "observation": "Sin firma"},
        headers=admin_headers,
    )

    response = await client.post(
        f"/api/v1/documents/{doc.id}/derive",
        json={"destination_area_id": chem_area.id},
        headers=admin_headers,
    )
    assert response.status_code == 409
