"""
Tareas Celery para exportación de logs fuera de la request.
"""

import asyncio
import logging
from datetime import datetime

from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="logs.export")
def export_logs_task(
    requested_by: int,
    log_type: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    export_format: str = "json",
):
    """
    Ejecuta `export_logs` con su propia sesión y confirma el ExportLog.
    Las fechas llegan como ISO 8601 (el broker serializa en JSON).
    """

    async def _export():
        from app.database import async_session_factory, unit_of_work
        from app.services.log_export_service import export_logs

        async with async_session_factory() as db:
            async with unit_of_work(db):
                info = await export_logs(
                    db,
                    log_type=log_type,
                    date_from=datetime.fromisoformat(date_from) if date_from else None,
                    date_to=datetime.fromisoformat(date_to) if date_to else None,
                    export_format=export_format,
                    requested_by=requested_by,
                )

        logger.info(
            "Exportación en segundo plano completada: %s (%s registros)",
            info.file_name, info.record_count,
        )
        return info.model_dump(mode="json", by_alias=True)

    return asyncio.run(_export())
