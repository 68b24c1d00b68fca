"""
Modelo Role — Roles fijos del sistema.
Se siembran una sola vez y no se modifican; la máscara de permisos de cada
rol vive en `app.auth.permissions.ROLE_PERMISSIONS`.
"""

import enum

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class RoleId(enum.IntEnum):
    """Identificadores de los roles sembrados."""
    ADMIN = 1
    MESA_PARTES = 2
    AREA_RESPONSABLE = 3


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"<Role {self.id} {self.name}>"
