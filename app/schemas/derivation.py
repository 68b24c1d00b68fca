"""
Schemas para derivaciones de documentos entre áreas.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.derivation import DerivationStatus
from app.schemas.area import AreaEmbed
from app.schemas.document import DocumentResponse, StatusChangeResponse


class DerivationCreate(BaseModel):
    destination_area_id: int
    observation: str | None = Field(None, max_length=2000)
    reason: str | None = Field(None, max_length=255)
    urgent: bool = False


class DerivationResponse(BaseModel):
    id: int
    document_id: int
    origin_area_id: int
    destination_area_id: int
    origin_area: AreaEmbed | None = None
    destination_area: AreaEmbed | None = None
    derived_by: int
    derived_at: datetime
    received_by: int | None = None
    received_at: datetime | None = None
    status: DerivationStatus
    observation: str | None = None
    reason: str | None = None
    urgent: bool

    model_config = {"from_attributes": True}


class DerivationResult(BaseModel):
    """Resultado de derivar: la derivación creada y el documento actualizado."""
    derivation: DerivationResponse
    document: DocumentResponse


class DocumentHistoryResponse(BaseModel):
    document_id: int
    registry_number: str
    current_area_id: int
    status: str
    derivations: list[DerivationResponse]
    status_changes: list[StatusChangeResponse]
