"""
Servicio de auditoría — registra las operaciones en la tabla de log de su entidad.
INSERT-only, nunca se modifica ni elimina.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.logs import LOG_MODELS, ExportLog, LogMixin, LogType


def sanitize_for_json(data: dict | None) -> dict | None:
    """Convierte tipos no serializables (date, datetime, Decimal, Enum) a valores JSON."""
    if data is None:
        return None
    sanitized = {}
    for key, value in data.items():
        sanitized[key] = _sanitize_value(value)
    return sanitized


def _sanitize_value(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return sanitize_for_json(value)
    if isinstance(value, (list, tuple)):
        return [_sanitize_value(item) for item in value]
    return value


async def log_event(
    db: AsyncSession,
    log_type: LogType,
    *,
    event_type: str,
    user_id: int | None,
    success: bool = True,
    ip_address: str | None = None,
    details: dict | None = None,
) -> LogMixin:
    """Inserta un registro inmutable en la tabla del tipo de log."""
    model = LOG_MODELS[log_type]
    entry = model(
        event_type=event_type,
        user_id=user_id,
        success=success,
        ip_address=ip_address,
        details=sanitize_for_json(details),
    )
    db.add(entry)
    await db.flush()
    return entry


async def record_export(
    db: AsyncSession,
    *,
    user_id: int | None,
    log_type: LogType,
    date_from: datetime | None,
    date_to: datetime | None,
    file_name: str,
    record_count: int,
) -> ExportLog:
    """Registra una exportación de logs completada."""
    entry = ExportLog(
        event_type="EXPORTAR_LOGS",
        user_id=user_id,
        success=True,
        exported_data_type=f"Logs_{log_type.value}",
        date_from=date_from,
        date_to=date_to,
        file_name=file_name,
        details={"record_count": record_count},
    )
    db.add(entry)
    await db.flush()
    return entry
