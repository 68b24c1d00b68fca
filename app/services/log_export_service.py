"""
Exportación de logs a archivos comprimidos descargables.

Flujo: consulta (máx. LOG_EXPORT_MAX_ROWS filas) → serialización JSON/CSV en un
archivo intermedio → gzip a `<nombre>.gz.part` → ExportLog → rename atómico a
`<nombre>.gz`.
El endpoint de descarga nunca ve un artefacto parcial.
"""

import asyncio
import enum
import gzip
import json
import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.exceptions import ExportException, NotFoundException, ValidationException
from app.models.logs import LogType
from app.schemas.logs import DownloadableFile, ExportInfo
from app.services import audit_service
from app.services.logs_service import get_logs, normalize_range, resolve_log_type

logger = logging.getLogger(__name__)
settings = get_settings()

EMPTY_EXPORT_PLACEHOLDER = "No hay registros para exportar"
PARTIAL_SUFFIX = ".part"

CONTENT_TYPES: dict[str, str] = {
    ".gz": "application/gzip",
    ".json": "application/json",
    ".csv": "text/csv",
}


class ExportFormat(str, enum.Enum):
    JSON = "json"
    CSV = "csv"


def resolve_export_format(value: str | ExportFormat | None) -> ExportFormat:
    if value is None:
        return ExportFormat.JSON
    if isinstance(value, ExportFormat):
        return value
    try:
        return ExportFormat(value.strip().lower())
    except ValueError:
        raise ValidationException(f"Formato de exportación no soportado: '{value}'. Use json o csv")


# ── Serialización ────────────────────────────────────

def csv_value(value) -> str:
    """
    Cadenas entre comillas dobles con las comillas internas duplicadas;
    el resto se escribe literal (None vacío, booleanos en minúscula).
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        value = json.dumps(value, ensure_ascii=False)
    if isinstance(value, datetime):
        value = value.isoformat()
    if isinstance(value, str):
        return '"' + value.replace('"', '""') + '"'
    return str(value)


def serialize_csv(rows: list[dict]) -> str:
    if not rows:
        return EMPTY_EXPORT_PLACEHOLDER
    headers = list(rows[0].keys())
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(csv_value(row.get(key)) for key in headers))
    return "\n".join(lines)


def serialize_json(rows: list[dict]) -> str:
    return json.dumps(rows, indent=2, ensure_ascii=False, default=str)


def build_export_file_name(log_type: LogType, export_format: ExportFormat, now: datetime | None = None) -> str:
    """logs_<tipo>_<timestamp ISO con ':' y '.' reemplazados>.<formato>"""
    now = now or datetime.now(timezone.utc)
    timestamp = now.isoformat().replace(":", "-").replace(".", "-").replace("+", "_")
    return f"logs_{log_type.value}_{timestamp}.{export_format.value}"


# ── Escritura de archivos ────────────────────────────

def _write_compressed(content: str, export_dir: Path, file_name: str) -> Path:
    """
    Escribe el intermedio y lo comprime a `<file_name>.gz.part`.
    Limpia los temporales si algo falla. Publicar es un paso aparte.
    """
    export_dir.mkdir(parents=True, exist_ok=True)
    intermediate = export_dir / f".{file_name}{PARTIAL_SUFFIX}"
    partial_gz = export_dir / f"{file_name}.gz{PARTIAL_SUFFIX}"

    try:
        intermediate.write_text(content, encoding="utf-8")
        with intermediate.open("rb") as source, gzip.open(partial_gz, "wb") as destination:
            shutil.copyfileobj(source, destination)
    except Exception:
        partial_gz.unlink(missing_ok=True)
        raise
    finally:
        intermediate.unlink(missing_ok=True)

    return partial_gz


def _final_path(partial_gz: Path) -> Path:
    return partial_gz.with_name(partial_gz.name.removesuffix(PARTIAL_SUFFIX))


# ── Exportación ──────────────────────────────────────

async def export_logs(
    db: AsyncSession,
    *,
    log_type: str | LogType | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    export_format: str | ExportFormat | None = ExportFormat.JSON,
    requested_by: int | None,
    export_dir: Path | None = None,
) -> ExportInfo:
    """Exporta logs filtrados a un archivo .gz y registra la exportación."""
    resolved_type = resolve_log_type(log_type)
    resolved_format = resolve_export_format(export_format)
    export_dir = export_dir or settings.export_path
    date_from, date_to = normalize_range(date_from, date_to)

    page = await get_logs(
        db,
        log_type=resolved_type,
        date_from=date_from,
        date_to=date_to,
        limit=settings.LOG_EXPORT_MAX_ROWS,
        offset=0,
    )
    rows = page.logs
    truncated = page.pagination.total > len(rows)

    if resolved_format == ExportFormat.CSV:
        content = serialize_csv(rows)
    else:
        content = serialize_json(rows)

    file_name = build_export_file_name(resolved_type, resolved_format)
    try:
        partial_gz = await asyncio.to_thread(_write_compressed, content, export_dir, file_name)
        file_size = partial_gz.stat().st_size
    except (OSError, EOFError, ValueError) as exc:
        logger.error("Error al exportar logs de %s", resolved_type.value, exc_info=exc)
        raise ExportException(f"Error al exportar logs: {exc}") from exc

    # El artefacto solo se publica con su ExportLog ya escrito
    final_path = _final_path(partial_gz)
    try:
        await audit_service.record_export(
            db,
            user_id=requested_by,
            log_type=resolved_type,
            date_from=date_from,
            date_to=date_to,
            file_name=final_path.name,
            record_count=len(rows),
        )
        os.replace(partial_gz, final_path)
    except OSError as exc:
        partial_gz.unlink(missing_ok=True)
        logger.error("Error al publicar %s", final_path.name, exc_info=exc)
        raise ExportException(f"Error al exportar logs: {exc}") from exc
    except Exception:
        partial_gz.unlink(missing_ok=True)
        raise

    if truncated:
        logger.warning(
            "Exportación truncada: %s de %s registros (%s)",
            len(rows), page.pagination.total, final_path.name,
        )
    logger.info(
        "Logs exportados: %s (%s registros) por usuario %s",
        final_path.name, len(rows), requested_by,
    )

    return ExportInfo(
        file_name=final_path.name,
        file_path=final_path,
        file_size=file_size,
        record_count=len(rows),
        truncated=truncated,
        requested_by=requested_by,
        log_type=resolved_type.value,
        export_format=resolved_format.value,
    )


def content_type_for(file_name: str) -> str:
    return CONTENT_TYPES.get(Path(file_name).suffix.lower(), "text/csv")


def download_exported_log(file_name: str, export_dir: Path | None = None) -> DownloadableFile:
    """
    Resuelve un archivo exportado para descarga.
    Solo se usa el nombre base (sin rutas) y nunca se sirven temporales.
    """
    export_dir = export_dir or settings.export_path
    safe_name = Path(file_name.replace("\\", "/")).name

    if not safe_name or safe_name.startswith(".") or safe_name.endswith(PARTIAL_SUFFIX):
        raise NotFoundException("Archivo de exportación")

    file_path = export_dir / safe_name
    if not file_path.is_file():
        raise NotFoundException("Archivo de exportación")

    return DownloadableFile(
        file_name=safe_name,
        path=file_path,
        size=file_path.stat().st_size,
        content_type=content_type_for(safe_name),
    )
