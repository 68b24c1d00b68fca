"""
Servicio de consulta de logs (ISO/IEC 27001 A.12.4).

- Logs de tablas: filtrado por rango de fechas, paginado, siempre del más
  reciente al más antiguo.
- Logs de archivo: JSON por líneas escritos por `app.core.logging`.
- Estadísticas de seguridad sobre todas las tablas de log.
"""

import asyncio
import enum
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from math import ceil
from pathlib import Path

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.exceptions import QueryException, ValidationException
from app.models.logs import LOG_MODELS, IntrusionDetectionLog, LogMixin, LogType
from app.schemas.logs import (
    IntrusionTypeCount,
    LogPage,
    LogTableCount,
    Pagination,
    SecurityStats,
)
from app.services.audit_service import sanitize_for_json

logger = logging.getLogger(__name__)
settings = get_settings()


# ── Estrategia de acceso por tabla ───────────────────

@dataclass(frozen=True)
class LogTable:
    """Acceso a una tabla de log: construye las consultas filtradas."""

    log_type: LogType
    model: type[LogMixin]

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    def apply_date_filter(self, query: Select, date_from: datetime | None, date_to: datetime | None) -> Select:
        if date_from is not None:
            query = query.where(self.model.event_at >= date_from)
        if date_to is not None:
            query = query.where(self.model.event_at <= date_to)
        return query

    def page_query(
        self,
        date_from: datetime | None,
        date_to: datetime | None,
        limit: int,
        offset: int,
    ) -> Select:
        query = self.apply_date_filter(select(self.model), date_from, date_to)
        return (
            query.order_by(self.model.event_at.desc(), self.model.id.desc())
            .limit(limit)
            .offset(offset)
        )

    def count_query(self, date_from: datetime | None, date_to: datetime | None) -> Select:
        return self.apply_date_filter(
            select(func.count()).select_from(self.model), date_from, date_to
        )

    def to_row(self, entry: LogMixin) -> dict:
        """Fila como dict plano con valores serializables a JSON."""
        return sanitize_for_json({
            column.key: getattr(entry, column.key)
            for column in self.model.__mapper__.column_attrs
        })


LOG_TABLES: dict[LogType, LogTable] = {
    log_type: LogTable(log_type=log_type, model=model)
    for log_type, model in LOG_MODELS.items()
}


def resolve_log_type(value: str | LogType | None) -> LogType:
    """
    Convierte el parámetro `tipo` en un LogType.
    Sin valor se usan los logs de usuario; un valor desconocido se rechaza.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return LogType.USUARIO
    if isinstance(value, LogType):
        return value
    try:
        return LogType(value.strip().lower())
    except ValueError:
        valid = ", ".join(t.value for t in LogType)
        raise ValidationException(f"Tipo de log desconocido: '{value}'. Valores válidos: {valid}")


def _as_utc(value: datetime | None) -> datetime | None:
    """Fechas sin zona horaria se interpretan como UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_range(
    date_from: datetime | None, date_to: datetime | None
) -> tuple[datetime | None, datetime | None]:
    """Lleva el rango a UTC y valida que el inicio no sea posterior al fin."""
    date_from, date_to = _as_utc(date_from), _as_utc(date_to)
    if date_from is not None and date_to is not None and date_from > date_to:
        raise ValidationException("La fecha de inicio no puede ser posterior a la fecha de fin")
    return date_from, date_to


def _pages(total: int, limit: int) -> int:
    return ceil(total / limit) if limit > 0 else 0


# ── Logs de tablas ───────────────────────────────────

async def get_logs(
    db: AsyncSession,
    *,
    log_type: str | LogType | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int = 100,
    offset: int = 0,
) -> LogPage:
    """Consulta paginada de una tabla de log, del más reciente al más antiguo."""
    table = LOG_TABLES[resolve_log_type(log_type)]
    date_from, date_to = normalize_range(date_from, date_to)
    if limit < 1:
        raise ValidationException("El límite debe ser mayor a cero")
    offset = max(offset, 0)

    try:
        result = await db.execute(table.page_query(date_from, date_to, limit, offset))
        entries = result.scalars().all()

        total_result = await db.execute(table.count_query(date_from, date_to))
        total = total_result.scalar() or 0
    except SQLAlchemyError as exc:
        logger.error(
            "Error al obtener logs de %s", table.table_name, exc_info=exc
        )
        raise QueryException(f"Error al obtener logs de {table.table_name}") from exc

    return LogPage(
        logs=[table.to_row(entry) for entry in entries],
        pagination=Pagination(
            total=total,
            limit=limit,
            offset=offset,
            pages=_pages(total, limit),
        ),
    )


# ── Logs de archivo ──────────────────────────────────

class FileLogCategory(str, enum.Enum):
    APP = "app"
    ERROR = "error"
    SECURITY = "security"
    EXCEPTIONS = "exceptions"
    REJECTIONS = "rejections"

    @property
    def file_name(self) -> str:
        return f"{self.value}.log"


def resolve_file_category(value: str | FileLogCategory | None) -> FileLogCategory:
    if value is None or (isinstance(value, str) and not value.strip()):
        return FileLogCategory.APP
    if isinstance(value, FileLogCategory):
        return value
    try:
        return FileLogCategory(value.strip().lower())
    except ValueError:
        valid = ", ".join(c.value for c in FileLogCategory)
        raise ValidationException(f"Categoría de log desconocida: '{value}'. Valores válidos: {valid}")


def parse_log_line(line: str) -> dict:
    """Una línea JSON válida se devuelve tal cual; cualquier otra como {'raw': línea}."""
    try:
        parsed = json.loads(line)
    except json.JSONDecodeError:
        return {"raw": line}
    if not isinstance(parsed, dict):
        return {"raw": line}
    return parsed


async def get_file_system_logs(
    *,
    category: str | FileLogCategory | None = None,
    limit: int = 1000,
    offset: int = 0,
    log_dir: Path | None = None,
) -> LogPage:
    """
    Lee un archivo de log JSON por líneas completo y devuelve la página pedida.
    Si el archivo no existe se devuelve un resultado vacío.
    """
    category = resolve_file_category(category)
    log_dir = log_dir or settings.log_path
    safe_limit = max(1, min(limit, settings.FILE_LOG_MAX_LINES))
    file_path = log_dir / category.file_name

    if not file_path.exists():
        return LogPage(
            logs=[],
            pagination=Pagination(total=0, limit=safe_limit, offset=max(offset, 0), pages=0),
        )

    try:
        content = await asyncio.to_thread(
            file_path.read_text, encoding="utf-8", errors="replace"
        )
    except OSError as exc:
        logger.error("Error al leer %s", file_path, exc_info=exc)
        raise QueryException(f"Error al leer el archivo de log {category.file_name}") from exc

    lines = [line for line in content.splitlines() if line.strip()]
    total = len(lines)
    safe_offset = min(max(offset, 0), total)

    selected = lines[safe_offset:safe_offset + safe_limit]
    return LogPage(
        logs=[parse_log_line(line) for line in selected],
        pagination=Pagination(
            total=total,
            limit=safe_limit,
            offset=safe_offset,
            pages=_pages(total, safe_limit),
        ),
    )


# ── Estadísticas de seguridad ────────────────────────

async def get_security_stats(
    db: AsyncSession,
    *,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> SecurityStats:
    """Intrusiones agrupadas por tipo + conteo de cada tabla de log."""
    date_from, date_to = normalize_range(date_from, date_to)
    intrusions = LOG_TABLES[LogType.INTRUSION]

    try:
        intrusion_query = intrusions.apply_date_filter(
            select(
                IntrusionDetectionLog.event_type,
                func.count().label("total"),
            ),
            date_from,
            date_to,
        ).group_by(IntrusionDetectionLog.event_type).order_by(func.count().desc())
        intrusion_result = await db.execute(intrusion_query)
        intrusions_by_type = [
            IntrusionTypeCount(event_type=row.event_type, total=row.total)
            for row in intrusion_result.all()
        ]

        # Una consulta por tabla: son pocas y esto no está en un camino caliente
        table_counts = []
        for table in LOG_TABLES.values():
            count_result = await db.execute(table.count_query(date_from, date_to))
            table_counts.append(
                LogTableCount(table=table.table_name, count=count_result.scalar() or 0)
            )
    except SQLAlchemyError as exc:
        logger.error("Error al obtener estadísticas de seguridad", exc_info=exc)
        raise QueryException("Error al obtener estadísticas de seguridad") from exc

    return SecurityStats(
        intrusions_by_type=intrusions_by_type,
        log_table_counts=table_counts,
        total_logs=sum(item.count for item in table_counts),
    )
