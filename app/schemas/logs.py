"""
Schemas para consulta, exportación y estadísticas de logs.
Las claves JSON van en camelCase (`exportInfo`, `totalLogs`, ...).
"""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── Consulta paginada ────────────────────────────────

class Pagination(CamelModel):
    total: int
    limit: int
    offset: int
    pages: int


class LogPage(CamelModel):
    """Página de registros de log (tabla o archivo)."""
    logs: list[dict]
    pagination: Pagination


# ── Exportación ──────────────────────────────────────

class ExportRequest(BaseModel):
    """Body de POST /logs/export (nombres de campo en español, como el cliente)."""
    model_config = ConfigDict(populate_by_name=True)

    log_type: str | None = Field(None, alias="tipo")
    date_from: datetime | None = Field(None, alias="fechaInicio")
    date_to: datetime | None = Field(None, alias="fechaFin")
    export_format: str = Field("json", alias="formato")


class ExportInfo(CamelModel):
    """Artefacto comprimido generado por una exportación."""
    file_name: str
    file_path: Path | None = Field(None, exclude=True)
    file_size: int
    record_count: int
    truncated: bool = Field(
        False, description="True si el resultado superó el máximo exportable"
    )
    requested_by: int | None = None
    log_type: str
    export_format: str


class ExportResponse(CamelModel):
    message: str
    export_info: ExportInfo


class ExportTaskResponse(CamelModel):
    task_id: str
    status: str


class ExportTaskStatus(CamelModel):
    task_id: str
    status: str
    export_info: dict | None = None
    error: str | None = None


class DownloadableFile(BaseModel):
    file_name: str
    path: Path
    size: int
    content_type: str


# ── Estadísticas de seguridad ────────────────────────

class IntrusionTypeCount(CamelModel):
    event_type: str
    total: int


class LogTableCount(CamelModel):
    table: str
    count: int


class SecurityStats(CamelModel):
    intrusions_by_type: list[IntrusionTypeCount]
    log_table_counts: list[LogTableCount]
    total_logs: int
