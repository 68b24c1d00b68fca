"""
Modelos de logs de auditoría — una tabla por tipo de entidad.
INSERT-only: ningún servicio los actualiza ni elimina (solo consulta y exportación).
"""

import enum
from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, utcnow


class LogType(str, enum.Enum):
    """Tipos de log consultables (valor = parámetro `tipo` de la API)."""
    USUARIO = "usuario"
    DOCUMENTO = "documento"
    AREA = "area"
    ROL = "rol"
    PERMISO = "permiso"
    MESA_PARTES = "mesapartes"
    DERIVACION = "derivacion"
    REQUEST = "request"
    INTRUSION = "intrusion"
    EXPORTACION = "exportacion"
    BACKUP = "backup"


class LogMixin:
    """Columnas comunes a todas las tablas de log."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True,
        comment="LOGIN, CREAR, EDITAR, DERIVAR, BLOQUEAR, ..."
    )
    event_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer, index=True, comment="Usuario que originó el evento"
    )
    success: Mapped[bool | None] = mapped_column(default=True)
    ip_address: Mapped[str | None] = mapped_column(String(45))
    details: Mapped[dict | None] = mapped_column(JSON)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.event_type} @ {self.event_at}>"


class UserLog(LogMixin, Base):
    __tablename__ = "user_logs"


class DocumentLog(LogMixin, Base):
    __tablename__ = "document_logs"


class AreaLog(LogMixin, Base):
    __tablename__ = "area_logs"


class RoleLog(LogMixin, Base):
    __tablename__ = "role_logs"


class PermissionLog(LogMixin, Base):
    __tablename__ = "permission_logs"


class MesaPartesLog(LogMixin, Base):
    __tablename__ = "mesa_partes_logs"


class DerivationLog(LogMixin, Base):
    __tablename__ = "derivation_logs"


class RequestLog(LogMixin, Base):
    __tablename__ = "request_logs"


class IntrusionDetectionLog(LogMixin, Base):
    __tablename__ = "intrusion_detection_logs"


class ExportLog(LogMixin, Base):
    __tablename__ = "export_logs"

    exported_data_type: Mapped[str] = mapped_column(String(50), nullable=False)
    date_from: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    date_to: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)


class BackupLog(LogMixin, Base):
    __tablename__ = "backup_logs"


LOG_MODELS: dict[LogType, type[LogMixin]] = {
    LogType.USUARIO: UserLog,
    LogType.DOCUMENTO: DocumentLog,
    LogType.AREA: AreaLog,
    LogType.ROL: RoleLog,
    LogType.PERMISO: PermissionLog,
    LogType.MESA_PARTES: MesaPartesLog,
    LogType.DERIVACION: DerivationLog,
    LogType.REQUEST: RequestLog,
    LogType.INTRUSION: IntrusionDetectionLog,
    LogType.EXPORTACION: ExportLog,
    LogType.BACKUP: BackupLog,
}
