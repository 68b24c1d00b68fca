"""
Modelo User — Usuarios identificados por su código CIP.
Nunca se eliminan: se bloquean.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # ── Datos de acceso ──────────────────────────────
    cip_code: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True,
        comment="Carné de Identidad Policial"
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("roles.id"), nullable=False, index=True
    )
    area_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("areas.id"), nullable=False, index=True
    )

    # ── Datos personales ─────────────────────────────
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    rank: Mapped[str | None] = mapped_column(String(50), comment="Grado policial")

    # ── Estado ───────────────────────────────────────
    is_blocked: Mapped[bool] = mapped_column(default=False)
    failed_attempts: Mapped[int] = mapped_column(Integer, default=0)
    last_access: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # ── Relaciones ───────────────────────────────────
    role: Mapped["Role"] = relationship("Role", lazy="selectin")  # noqa: F821
    area: Mapped["Area"] = relationship("Area", lazy="selectin")  # noqa: F821

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User {self.cip_code} (rol {self.role_id})>"
