"""
Endpoint de estadísticas del dashboard.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import require_permission
from app.auth.permissions import Permission
from app.database import get_db
from app.models.user import User
from app.schemas.dashboard import DashboardStats
from app.services.dashboard_service import StatsCache, get_dashboard_stats

router = APIRouter()


def get_stats_cache(request: Request) -> StatsCache:
    """La caché vive en `app.state`, una por aplicación."""
    return request.app.state.stats_cache


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    refresh: bool = Query(False, description="Ignorar la caché y recalcular"),
    user: User = Depends(require_permission(Permission.VIEW)),
    cache: StatsCache = Depends(get_stats_cache),
    db: AsyncSession = Depends(get_db),
):
    return await get_dashboard_stats(db, cache, refresh=refresh)
