"""
Schemas para Area.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class AreaCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=150)
    code: str = Field(..., min_length=2, max_length=20, pattern=r"^[A-Za-z0-9_-]+$")
    area_type: str = Field("ESPECIALIZADA", max_length=30)
    description: str | None = Field(None, max_length=255)


class AreaUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=150)
    area_type: str | None = Field(None, max_length=30)
    description: str | None = Field(None, max_length=255)


class AreaResponse(BaseModel):
    id: int
    name: str
    code: str
    area_type: str
    description: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AreaEmbed(BaseModel):
    """Datos mínimos del área embebidos en otras respuestas."""
    id: int
    name: str
    code: str

    model_config = {"from_attributes": True}
