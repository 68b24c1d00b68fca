"""
Endpoints de documentos: ingreso, consulta, edición, cambio de estado,
derivación entre áreas, recepción e historial.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_client_ip, require_permission
from app.auth.permissions import Permission
from app.database import get_db
from app.models.document import DocumentStatus
from app.models.user import User
from app.schemas.derivation import (
    DerivationCreate,
    DerivationResponse,
    DerivationResult,
    DocumentHistoryResponse,
)
from app.schemas.document import (
    DocumentCreate,
    DocumentListResponse,
    DocumentResponse,
    DocumentStatusUpdate,
    DocumentUpdate,
)
from app.services import derivation_service, document_service

router = APIRouter()


# ── Documentos ───────────────────────────────────────

@router.get("", response_model=DocumentListResponse)
async def list_documents(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: DocumentStatus | None = Query(None, description="Filtrar por estado"),
    area_id: int | None = Query(None, description="Filtrar por área actual"),
    search: str | None = Query(None, max_length=100, description="Registro, oficio, origen o contenido"),
    user: User = Depends(require_permission(Permission.VIEW)),
    db: AsyncSession = Depends(get_db),
):
    return await document_service.list_documents(
        db,
        page=page,
        size=size,
        status=status,
        area_id=area_id,
        search=search,
    )


@router.post("", response_model=DocumentResponse, status_code=201)
async def create_document(
    data: DocumentCreate,
    request: Request,
    user: User = Depends(require_permission(Permission.CREATE)),
    db: AsyncSession = Depends(get_db),
):
    """Registra un documento entrante (Mesa de Partes)."""
    return await document_service.create_document(
        db, user, data, ip_address=get_client_ip(request)
    )


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: int,
    user: User = Depends(require_permission(Permission.VIEW)),
    db: AsyncSession = Depends(get_db),
):
    return await document_service.get_document(db, document_id)


@router.put("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: int,
    data: DocumentUpdate,
    request: Request,
    user: User = Depends(require_permission(Permission.EDIT)),
    db: AsyncSession = Depends(get_db),
):
    return await document_service.update_document(
        db, document_id, user, data, ip_address=get_client_ip(request)
    )


@router.patch("/{document_id}/status", response_model=DocumentResponse)
async def change_document_status(
    document_id: int,
    data: DocumentStatusUpdate,
    request: Request,
    user: User = Depends(require_permission(Permission.EDIT)),
    db: AsyncSession = Depends(get_db),
):
    """
    Cambia el estado de un documento.
    Transiciones válidas definidas en la state machine del modelo.
    """
    return await document_service.change_status(
        db, document_id, user, data, ip_address=get_client_ip(request)
    )


# ── Derivaciones ─────────────────────────────────────

@router.post("/{document_id}/derive", response_model=DerivationResult, status_code=201)
async def derive_document(
    document_id: int,
    data: DerivationCreate,
    request: Request,
    user: User = Depends(require_permission(Permission.DERIVE)),
    db: AsyncSession = Depends(get_db),
):
    """
    Deriva el documento a otra área. El documento pasa a EN_PROCESO y su
    área actual pasa a ser el área destino.
    """
    return await derivation_service.derive_document(
        db,
        document_id,
        user,
        destination_area_id=data.destination_area_id,
        observation=data.observation,
        urgent=data.urgent,
        reason=data.reason,
        ip_address=get_client_ip(request),
    )


@router.get("/{document_id}/history", response_model=DocumentHistoryResponse)
async def document_history(
    document_id: int,
    user: User = Depends(require_permission(Permission.VIEW)),
    db: AsyncSession = Depends(get_db),
):
    """Derivaciones (más antigua primero) y cambios de estado del documento."""
    return await derivation_service.get_document_timeline(db, document_id)


@router.post("/derivations/{derivation_id}/receive", response_model=DerivationResponse)
async def receive_derivation(
    derivation_id: int,
    request: Request,
    user: User = Depends(require_permission(Permission.DERIVE)),
    db: AsyncSession = Depends(get_db),
):
    """Confirma la recepción de una derivación en el área destino."""
    return await derivation_service.receive_derivation(
        db, derivation_id, user, ip_address=get_client_ip(request)
    )
