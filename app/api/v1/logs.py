"""
Endpoints de logs: consulta de tablas y archivos, exportación comprimida,
descarga y estadísticas de seguridad.
"""

from datetime import datetime

from celery.result import AsyncResult
from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import require_permission
from app.auth.permissions import Permission
from app.config import get_settings
from app.database import get_db
from app.models.user import User
from app.schemas.logs import (
    ExportRequest,
    ExportResponse,
    ExportTaskResponse,
    ExportTaskStatus,
    LogPage,
    SecurityStats,
)
from app.services import log_export_service, logs_service
from app.services.log_export_service import resolve_export_format
from app.tasks.celery_app import celery_app
from app.tasks.export_tasks import export_logs_task

router = APIRouter()
settings = get_settings()


@router.get("", response_model=LogPage)
async def get_logs(
    tipo: str | None = Query(None, description="usuario, documento, area, rol, permiso, mesapartes, derivacion, request, intrusion, exportacion, backup"),
    fecha_inicio: datetime | None = Query(None, alias="fechaInicio"),
    fecha_fin: datetime | None = Query(None, alias="fechaFin"),
    limit: int = Query(settings.DEFAULT_LOG_PAGE_SIZE, ge=1, le=settings.LOG_EXPORT_MAX_ROWS),
    offset: int = Query(0, ge=0),
    user: User = Depends(require_permission(Permission.AUDIT)),
    db: AsyncSession = Depends(get_db),
):
    """Logs de una tabla, del más reciente al más antiguo. Sin `tipo` se usan los de usuario."""
    return await logs_service.get_logs(
        db,
        log_type=tipo,
        date_from=fecha_inicio,
        date_to=fecha_fin,
        limit=limit,
        offset=offset,
    )


@router.get("/filesystem", response_model=LogPage)
async def get_file_system_logs(
    tipo: str | None = Query(None, description="app, error, security, exceptions, rejections"),
    limit: int = Query(settings.FILE_LOG_MAX_LINES, ge=1),
    offset: int = Query(0, ge=0),
    user: User = Depends(require_permission(Permission.AUDIT)),
):
    """Líneas de los archivos de log de la aplicación."""
    return await logs_service.get_file_system_logs(
        category=tipo, limit=limit, offset=offset
    )


@router.get("/security-stats", response_model=SecurityStats)
async def get_security_stats(
    fecha_inicio: datetime | None = Query(None, alias="fechaInicio"),
    fecha_fin: datetime | None = Query(None, alias="fechaFin"),
    user: User = Depends(require_permission(Permission.AUDIT)),
    db: AsyncSession = Depends(get_db),
):
    """Intrusiones por tipo y conteo de registros por tabla de log."""
    return await logs_service.get_security_stats(
        db, date_from=fecha_inicio, date_to=fecha_fin
    )


# ── Exportación ──────────────────────────────────────

@router.post("/export", response_model=ExportResponse)
async def export_logs(
    data: ExportRequest,
    user: User = Depends(require_permission(Permission.EXPORT)),
    db: AsyncSession = Depends(get_db),
):
    """
    Exporta logs a un archivo .gz (JSON o CSV) y devuelve sus datos.
    Como máximo LOG_EXPORT_MAX_ROWS registros; `truncated` indica si hubo más.
    """
    info = await log_export_service.export_logs(
        db,
        log_type=data.log_type,
        date_from=data.date_from,
        date_to=data.date_to,
        export_format=data.export_format,
        requested_by=user.id,
    )
    return ExportResponse(message="Logs exportados correctamente", export_info=info)


@router.post("/export/background", response_model=ExportTaskResponse, status_code=202)
async def export_logs_background(
    data: ExportRequest,
    user: User = Depends(require_permission(Permission.EXPORT)),
):
    """Encola la exportación en Celery para volúmenes grandes."""
    # Validar antes de encolar para responder 422 de inmediato
    logs_service.resolve_log_type(data.log_type)
    resolve_export_format(data.export_format)

    task = export_logs_task.delay(
        requested_by=user.id,
        log_type=data.log_type,
        date_from=data.date_from.isoformat() if data.date_from else None,
        date_to=data.date_to.isoformat() if data.date_to else None,
        export_format=data.export_format,
    )
    return ExportTaskResponse(task_id=task.id, status="PENDING")


@router.get("/export/tasks/{task_id}", response_model=ExportTaskStatus)
async def export_task_status(
    task_id: str,
    user: User = Depends(require_permission(Permission.EXPORT)),
):
    result = AsyncResult(task_id, app=celery_app)
    status = ExportTaskStatus(task_id=task_id, status=result.state)
    if result.successful():
        status.export_info = result.result
    elif result.failed():
        status.error = "La exportación falló"
    return status


@router.get("/export/{file_name}")
async def download_export(
    file_name: str,
    user: User = Depends(require_permission(Permission.EXPORT)),
):
    """Descarga un archivo exportado (.gz, .json o .csv)."""
    exported = log_export_service.download_exported_log(file_name)
    return FileResponse(
        path=exported.path,
        media_type=exported.content_type,
        filename=exported.file_name,
    )
