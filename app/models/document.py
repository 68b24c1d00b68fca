"""
Modelo Document — Documentos ingresados por Mesa de Partes, con state machine.

Estados válidos y transiciones:
    recibido → en_proceso → (derivaciones repetidas) → completado
    recibido → pendiente → en_proceso
    cualquier estado no terminal → archivado | rechazado

Estados terminales: completado, archivado, rechazado.
Los documentos nunca se eliminan físicamente.
"""

import enum
from datetime import date, datetime

from sqlalchemy import (
    Date,
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


class DocumentStatus(str, enum.Enum):
    """Estados de un documento."""
    RECIBIDO = "RECIBIDO"
    PENDIENTE = "PENDIENTE"
    EN_PROCESO = "EN_PROCESO"
    COMPLETADO = "COMPLETADO"
    ARCHIVADO = "ARCHIVADO"
    RECHAZADO = "RECHAZADO"


TERMINAL_STATUSES: frozenset[DocumentStatus] = frozenset({
    DocumentStatus.COMPLETADO,
    DocumentStatus.ARCHIVADO,
    DocumentStatus.RECHAZADO,
})


# ── Transiciones válidas de la state machine ─────────
VALID_TRANSITIONS: dict[DocumentStatus, list[DocumentStatus]] = {
    DocumentStatus.RECIBIDO: [
        DocumentStatus.EN_PROCESO,
        DocumentStatus.PENDIENTE,
        DocumentStatus.ARCHIVADO,
        DocumentStatus.RECHAZADO,
    ],
    DocumentStatus.PENDIENTE: [
        DocumentStatus.EN_PROCESO,
        DocumentStatus.ARCHIVADO,
        DocumentStatus.RECHAZADO,
    ],
    DocumentStatus.EN_PROCESO: [
        # Una nueva derivación mantiene el documento en proceso
        DocumentStatus.EN_PROCESO,
        DocumentStatus.PENDIENTE,
        DocumentStatus.COMPLETADO,
        DocumentStatus.ARCHIVADO,
        DocumentStatus.RECHAZADO,
    ],
    # Estados terminales: no tienen transiciones
    DocumentStatus.COMPLETADO: [],
    DocumentStatus.ARCHIVADO: [],
    DocumentStatus.RECHAZADO: [],
}


def is_valid_transition(current: DocumentStatus, new: DocumentStatus) -> bool:
    """Verifica si una transición de estado es válida."""
    return new in VALID_TRANSITIONS.get(current, [])


def is_terminal(status: DocumentStatus) -> bool:
    return status in TERMINAL_STATUSES


class Document(Base):
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # ── Datos de registro ────────────────────────────
    registry_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True,
        comment="Número de registro asignado por Mesa de Partes"
    )
    office_number: Mapped[str | None] = mapped_column(
        String(100), comment="Número de oficio del documento"
    )
    document_date: Mapped[date] = mapped_column(Date, nullable=False)
    origin: Mapped[str] = mapped_column(
        String(150), nullable=False, comment="Entidad o dependencia de origen"
    )
    content: Mapped[str | None] = mapped_column(Text)
    observations: Mapped[str | None] = mapped_column(Text)

    # ── Ruteo y estado ───────────────────────────────
    current_area_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("areas.id"), nullable=False
    )
    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus), nullable=False, default=DocumentStatus.RECIBIDO
    )
    created_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # ── Relaciones ───────────────────────────────────
    current_area: Mapped["Area"] = relationship(  # noqa: F821
        "Area", lazy="selectin"
    )

    __table_args__ = (
        Index("idx_documents_area_status", "current_area_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Document {self.registry_number} ({self.status.value})>"


class DocumentStatusChange(Base):
    """Historial de cambios de estado de un documento (append-only)."""

    __tablename__ = "document_status_changes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("documents.id"), nullable=False, index=True
    )
    previous_status: Mapped[DocumentStatus | None] = mapped_column(
        Enum(DocumentStatus)
    )
    new_status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus), nullable=False
    )
    observation: Mapped[str | None] = mapped_column(Text)
    changed_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<DocumentStatusChange {self.document_id}: {self.previous_status} → {self.new_status}>"
