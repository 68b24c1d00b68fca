"""
Modelo Area — Áreas especializadas de la oficina.
Ciclo de vida suave: se desactivan, nunca se eliminan.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, utcnow


class Area(Base):
    __tablename__ = "areas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    code: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True,
        comment="Código corto del área, ej: QUIM, BALI, MDP"
    )
    area_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default="ESPECIALIZADA",
        comment="ESPECIALIZADA, MESA_PARTES, ADMINISTRATIVA"
    )
    description: Mapped[str | None] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<Area {self.code} ({'activa' if self.is_active else 'inactiva'})>"
