"""
Schemas de permisos y roles.
"""

from pydantic import BaseModel


class PermissionSummary(BaseModel):
    """Máscara del usuario y banderas de visibilidad derivadas."""
    role_id: int
    permissions: int
    flags: dict[str, bool]


class PermissionCheck(BaseModel):
    permission: str
    bit: int
    granted: bool
    visibility: str


class RoleResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    permissions: int
    flags: dict[str, bool]
