"""
Tests de documentos: ingreso, listado, edición y state machine de estados.
"""

from datetime import date

import pytest
from sqlalchemy import func, select

from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    ValidationException,
)
from app.models.document import DocumentStatus, DocumentStatusChange
from app.models.logs import DocumentLog, MesaPartesLog
from app.schemas.document import DocumentCreate, DocumentStatusUpdate, DocumentUpdate
from app.services import derivation_service, document_service


def _payload(registry_number="REG-100", **overrides) -> DocumentCreate:
    data = {
        "registry_number": registry_number,
        "office_number": "OF-045-2026-DIRCRI",
        "document_date": date(2026, 2, 20),
        "origin": "Fiscalía Provincial",
        "content": "Solicitud de pericia balística",
    }
    data.update(overrides)
    return DocumentCreate(**data)


async def _count(db, model, **filters) -> int:
    query = select(func.count()).select_from(model)
    for field, value in filters.items():
        query = query.where(getattr(model, field) == value)
    result = await db.execute(query)
    return result.scalar()


# ── Ingreso ──────────────────────────────────────────

async def test_create_document_starts_received_in_user_area(
    db_session, mesa_user, mesa_area
):
    doc = await document_service.create_document(db_session, mesa_user, _payload())

    assert doc.status == DocumentStatus.RECIBIDO
    assert doc.current_area_id == mesa_area.id
    assert doc.current_area.code == "MDP"
    assert doc.created_by == mesa_user.id
    assert await _count(db_session, MesaPartesLog, event_type="REGISTRAR_DOCUMENTO") == 1
    assert await _count(db_session, DocumentLog, event_type="CREAR") == 1
    assert await _count(
        db_session, DocumentStatusChange, document_id=doc.id, new_status=DocumentStatus.RECIBIDO
    ) == 1


async def test_create_document_in_explicit_area(db_session, mesa_user, chem_area):
    doc = await document_service.create_document(
        db_session, mesa_user, _payload(area_id=chem_area.id)
    )
    assert doc.current_area_id == chem_area.id


async def test_duplicate_registry_number(db_session, mesa_user):
    await document_service.create_document(db_session, mesa_user, _payload())
    with pytest.raises(ConflictException):
        await document_service.create_document(db_session, mesa_user, _payload())


async def test_create_in_inactive_area(db_session, mesa_user, inactive_area):
    with pytest.raises(ValidationException):
        await document_service.create_document(
            db_session, mesa_user, _payload(area_id=inactive_area.id)
        )


async def test_create_requires_create_bit(db_session, unknown_role_user):
    with pytest.raises(ForbiddenException):
        await document_service.create_document(db_session, unknown_role_user, _payload())


# ── Listado ──────────────────────────────────────────

async def test_list_documents_filters(db_session, admin_user, chem_area):
    await document_service.create_document(db_session, admin_user, _payload("REG-1"))
    await document_service.create_document(
        db_session, admin_user, _payload("REG-2", origin="Comisaría de Miraflores")
    )
    await document_service.create_document(
        db_session, admin_user, _payload("REG-3", area_id=chem_area.id)
    )

    everything = await document_service.list_documents(db_session, size=2)
    assert everything.total == 3
    assert everything.pages == 2
    assert len(everything.items) == 2

    in_chem = await document_service.list_documents(db_session, area_id=chem_area.id)
    assert [d.registry_number for d in in_chem.items] == ["REG-3"]

    searched = await document_service.list_documents(db_session, search="miraflores")
    assert [d.registry_number for d in searched.items] == ["REG-2"]

    received = await document_service.list_documents(
        db_session, status=DocumentStatus.RECIBIDO
    )
    assert received.total == 3


# ── Edición y estados ────────────────────────────────

async def test_update_document_skips_missing_fields(db_session, admin_user):
    doc = await document_service.create_document(db_session, admin_user, _payload())

    updated = await document_service.update_document(
        db_session, doc.id, admin_user, DocumentUpdate(content="Contenido corregido")
    )

    assert updated.content == "Contenido corregido"
    assert updated.origin == "Fiscalía Provincial"
    assert await _count(db_session, DocumentLog, event_type="ACTUALIZAR") == 1


async def test_update_terminal_document_conflicts(db_session, admin_user):
    doc = await document_service.create_document(db_session, admin_user, _payload())
    await document_service.change_status(
        db_session, doc.id, admin_user, DocumentStatusUpdate(status=DocumentStatus.ARCHIVADO)
    )

    with pytest.raises(ConflictException):
        await document_service.update_document(
            db_session, doc.id, admin_user, DocumentUpdate(content="Tarde")
        )


async def test_change_status_records_history(db_session, admin_user):
    doc = await document_service.create_document(db_session, admin_user, _payload())

    result = await document_service.change_status(
        db_session,
        doc.id,
        admin_user,
        DocumentStatusUpdate(status=DocumentStatus.PENDIENTE, observation="Falta oficio"),
    )

    assert result.status == DocumentStatus.PENDIENTE
    assert await _count(
        db_session, DocumentStatusChange,
        document_id=doc.id, previous_status=DocumentStatus.RECIBIDO,
    ) == 1
    assert await _count(db_session, DocumentLog, event_type="CAMBIAR_ESTADO") == 1


async def test_in_process_is_only_reached_by_deriving(db_session, admin_user):
    doc = await document_service.create_document(db_session, admin_user, _payload())
    with pytest.raises(ValidationException):
        await document_service.change_status(
            db_session, doc.id, admin_user,
            DocumentStatusUpdate(status=DocumentStatus.EN_PROCESO),
        )


async def test_invalid_transition_conflicts(db_session, admin_user):
    doc = await document_service.create_document(db_session, admin_user, _payload())
    with pytest.raises(ConflictException):
        await document_service.change_status(
            db_session, doc.id, admin_user,
            DocumentStatusUpdate(status=DocumentStatus.COMPLETADO),
        )


async def test_complete_after_derivation(db_session, admin_user, chem_area):
    doc = await document_service.create_document(db_session, admin_user, _payload())
    await derivation_service.derive_document(
        db_session, doc.id, admin_user, destination_area_id=chem_area.id
    )

    result = await document_service.change_status(
        db_session, doc.id, admin_user,
        DocumentStatusUpdate(status=DocumentStatus.COMPLETADO),
    )
    assert result.status == DocumentStatus.COMPLETADO


# ── API ──────────────────────────────────────────────

async def test_create_and_get_document_endpoint(client, mesa_headers, mesa_area):
    response = await client.post(
        "/api/v1/documents",
        json={
            "registry_number": "REG-API-1",
            "document_date": "2026-03-05",
            "origin": "Juzgado Penal",
        },
        headers=mesa_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "RECIBIDO"
    assert body["current_area"]["code"] == "MDP"

    fetched = await client.get(f"/api/v1/documents/{body['id']}", headers=mesa_headers)
    assert fetched.status_code == 200
    assert fetched.json()["registry_number"] == "REG-API-1"


async def test_get_missing_document_endpoint(client, mesa_headers):
    response = await client.get("/api/v1/documents/9999", headers=mesa_headers)
    assert response.status_code == 404


async def test_documents_require_authentication(client):
    response = await client.get("/api/v1/documents")
    assert response.status_code in (401, 403)
