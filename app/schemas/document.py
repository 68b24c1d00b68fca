"""
Schemas para Document — ingreso por Mesa de Partes, edición y cambio de estado.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.models.document import DocumentStatus
from app.schemas.area import AreaEmbed


class DocumentCreate(BaseModel):
    registry_number: str = Field(..., min_length=1, max_length=50)
    office_number: str | None = Field(None, max_length=100)
    document_date: date
    origin: str = Field(..., min_length=2, max_length=150)
    content: str | None = Field(None, max_length=5000)
    observations: str | None = Field(None, max_length=2000)
    area_id: int | None = Field(
        None,
        description="Área inicial. Si no se envía, se usa el área del usuario que registra.",
    )


class DocumentUpdate(BaseModel):
    office_number: str | None = Field(None, max_length=100)
    document_date: date | None = None
    origin: str | None = Field(None, min_length=2, max_length=150)
    content: str | None = Field(None, max_length=5000)
    observations: str | None = Field(None, max_length=2000)


class DocumentStatusUpdate(BaseModel):
    """Schema para cambiar el estado de un documento."""
    status: DocumentStatus
    observation: str | None = Field(None, max_length=1000)


class DocumentResponse(BaseModel):
    id: int
    registry_number: str
    office_number: str | None = None
    document_date: date
    origin: str
    content: str | None = None
    observations: str | None = None
    current_area_id: int
    current_area: AreaEmbed | None = None
    status: DocumentStatus
    created_by: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DocumentListResponse(BaseModel):
    items: list[DocumentResponse]
    total: int
    page: int
    size: int
    pages: int


class StatusChangeResponse(BaseModel):
    id: int
    previous_status: DocumentStatus | None = None
    new_status: DocumentStatus
    observation: str | None = None
    changed_by: int
    changed_at: datetime

    model_config = {"from_attributes": True}
