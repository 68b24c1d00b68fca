"""
Estadísticas del dashboard con caché explícita.

La caché es un objeto inyectado (uno por aplicación, en `app.state`), con TTL
y reloj configurables. No hay estado global de módulo.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.area import Area
from app.models.derivation import Derivation, DerivationStatus
from app.models.document import Document, DocumentStatus
from app.models.user import User
from app.schemas.dashboard import DashboardStats

logger = logging.getLogger(__name__)


@dataclass
class _CacheEntry:
    value: DashboardStats
    fetched_at: float


class StatsCache:
    """Caché de un solo valor con expiración por TTL."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: _CacheEntry | None = None
        self._lock = asyncio.Lock()

    def get(self) -> DashboardStats | None:
        """Valor vigente o None si no hay o ya expiró."""
        if self._entry is None:
            return None
        if self._clock() - self._entry.fetched_at >= self.ttl_seconds:
            return None
        return self._entry.value

    def set(self, value: DashboardStats) -> None:
        self._entry = _CacheEntry(value=value, fetched_at=self._clock())

    def invalidate(self) -> None:
        self._entry = None

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock


async def compute_dashboard_stats(db: AsyncSession) -> DashboardStats:
    """Consulta los conteos directamente de la base de datos."""
    status_result = await db.execute(
        select(Document.status, func.count()).group_by(Document.status)
    )
    documents_by_status = {status.value: 0 for status in DocumentStatus}
    for status, total in status_result.all():
        documents_by_status[DocumentStatus(status).value] = total

    active_users = await db.execute(
        select(func.count()).select_from(User).where(User.is_blocked.is_(False))
    )
    blocked_users = await db.execute(
        select(func.count()).select_from(User).where(User.is_blocked.is_(True))
    )
    active_areas = await db.execute(
        select(func.count()).select_from(Area).where(Area.is_active.is_(True))
    )
    pending_derivations = await db.execute(
        select(func.count())
        .select_from(Derivation)
        .where(Derivation.status == DerivationStatus.PENDIENTE)
    )

    return DashboardStats(
        documents_by_status=documents_by_status,
        total_documents=sum(documents_by_status.values()),
        active_users=active_users.scalar() or 0,
        blocked_users=blocked_users.scalar() or 0,
        active_areas=active_areas.scalar() or 0,
        pending_derivations=pending_derivations.scalar() or 0,
        generated_at=datetime.now(timezone.utc),
    )


async def get_dashboard_stats(
    db: AsyncSession,
    cache: StatsCache,
    refresh: bool = False,
) -> DashboardStats:
    """Sirve desde la caché hasta que expire el TTL; `refresh` fuerza el recálculo."""
    if not refresh:
        cached = cache.get()
        if cached is not None:
            return cached.model_copy(update={"cached": True})

    async with cache.lock:
        # Otra corrutina pudo haber recalculado mientras se esperaba el lock
        if not refresh:
            cached = cache.get()
            if cached is not None:
                return cached.model_copy(update={"cached": True})

        stats = await compute_dashboard_stats(db)
        cache.set(stats)
        logger.debug("Estadísticas del dashboard recalculadas")
        return stats
