"""
Configuración de Celery para tareas en segundo plano (exportaciones grandes).
"""

from celery import Celery

from app.config import get_settings

settings = get_settings()

celery_app = Celery(
    "oficri",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.tasks.export_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="America/Lima",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    result_expires=60 * 60 * 24,
    # Worker: celery -A app.tasks.celery_app worker -Q exports
    task_routes={"logs.export": {"queue": "exports"}},
    task_time_limit=settings.LOG_EXPORT_TASK_TIME_LIMIT,
)
