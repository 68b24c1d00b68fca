"""
Schemas para User.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.area import AreaEmbed


class UserBase(BaseModel):
    cip_code: str = Field(..., min_length=4, max_length=20, pattern=r"^\d+$")
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    rank: str | None = Field(None, max_length=50)
    role_id: int
    area_id: int


class UserCreate(UserBase):
    password: str = Field(..., min_length=8, max_length=128)


class UserUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=2, max_length=100)
    last_name: str | None = Field(None, min_length=2, max_length=100)
    rank: str | None = Field(None, max_length=50)
    role_id: int | None = None
    area_id: int | None = None
    password: str | None = Field(None, min_length=8, max_length=128)


class UserResponse(BaseModel):
    id: int
    cip_code: str
    first_name: str
    last_name: str
    full_name: str
    rank: str | None = None
    role_id: int
    area_id: int
    area: AreaEmbed | None = None
    is_blocked: bool
    failed_attempts: int
    last_access: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int
    page: int
    size: int
    pages: int


class UserMe(BaseModel):
    """Respuesta de /auth/me: datos del usuario con su máscara de permisos."""
    id: int
    cip_code: str
    full_name: str
    rank: str | None = None
    role_id: int
    role_name: str | None = None
    area: AreaEmbed | None = None
    permissions: int
    flags: dict[str, bool]
