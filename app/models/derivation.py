"""
Modelo Derivation — Historial de ruteo de un documento entre áreas.
Append-only por documento; el orden por `derived_at` define la línea de tiempo.
Invariante: el destino de la derivación más reciente es el área actual del documento.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, utcnow


class DerivationStatus(str, enum.Enum):
    PENDIENTE = "PENDIENTE"
    COMPLETADO = "COMPLETADO"


class Derivation(Base):
    __tablename__ = "derivations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("documents.id"), nullable=False
    )
    origin_area_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("areas.id"), nullable=False
    )
    destination_area_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("areas.id"), nullable=False
    )

    # ── Envío ────────────────────────────────────────
    derived_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    derived_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # ── Recepción ────────────────────────────────────
    received_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id")
    )
    received_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    status: Mapped[DerivationStatus] = mapped_column(
        Enum(DerivationStatus), nullable=False, default=DerivationStatus.PENDIENTE
    )
    observation: Mapped[str | None] = mapped_column(Text)
    reason: Mapped[str | None] = mapped_column(String(255), comment="Motivo")
    urgent: Mapped[bool] = mapped_column(default=False)

    # ── Relaciones ───────────────────────────────────
    origin_area: Mapped["Area"] = relationship(  # noqa: F821
        "Area", foreign_keys=[origin_area_id], lazy="selectin"
    )
    destination_area: Mapped["Area"] = relationship(  # noqa: F821
        "Area", foreign_keys=[destination_area_id], lazy="selectin"
    )

    __table_args__ = (
        Index("idx_derivations_document_time", "document_id", "derived_at"),
    )

    @property
    def is_received(self) -> bool:
        return self.received_at is not None or self.status == DerivationStatus.COMPLETADO

    def __repr__(self) -> str:
        return (
            f"<Derivation doc={self.document_id} "
            f"{self.origin_area_id}→{self.destination_area_id} ({self.status.value})>"
        )
