"""
Tests de estadísticas del dashboard y su caché con TTL.
"""

from datetime import date, datetime, timezone

from app.schemas.dashboard import DashboardStats
from app.schemas.document import DocumentCreate
from app.services import derivation_service, document_service
from app.services.dashboard_service import StatsCache, get_dashboard_stats


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _stats(total: int = 0) -> DashboardStats:
    return DashboardStats(
        documents_by_status={},
        total_documents=total,
        active_users=0,
        blocked_users=0,
        active_areas=0,
        pending_derivations=0,
        generated_at=datetime.now(timezone.utc),
    )


async def _create_document(db, user, registry_number):
    return await document_service.create_document(
        db,
        user,
        DocumentCreate(
            registry_number=registry_number,
            document_date=date(2026, 3, 1),
            origin="Comisaría Central",
        ),
    )


# ── Caché ────────────────────────────────────────────

def test_cache_expires_after_ttl():
    clock = FakeClock()
    cache = StatsCache(ttl_seconds=60, clock=clock)
    assert cache.get() is None

    cache.set(_stats(7))
    clock.now += 59
    assert cache.get().total_documents == 7

    clock.now += 1
    assert cache.get() is None


def test_cache_invalidate():
    cache = StatsCache(ttl_seconds=60, clock=FakeClock())
    cache.set(_stats())
    cache.invalidate()
    assert cache.get() is None


async def test_stats_served_from_cache_until_refresh(db_session, admin_user, chem_area):
    clock = FakeClock()
    cache = StatsCache(ttl_seconds=60, clock=clock)
    doc = await _create_document(db_session, admin_user, "REG-D1")

    first = await get_dashboard_stats(db_session, cache)
    assert first.cached is False
    assert first.total_documents == 1
    assert first.documents_by_status["RECIBIDO"] == 1

    await derivation_service.derive_document(
        db_session, doc.id, admin_user, destination_area_id=chem_area.id
    )

    cached = await get_dashboard_stats(db_session, cache)
    assert cached.cached is True
    assert cached.pending_derivations == 0

    fresh = await get_dashboard_stats(db_session, cache, refresh=True)
    assert fresh.cached is False
    assert fresh.pending_derivations == 1
    assert fresh.documents_by_status["EN_PROCESO"] == 1

    clock.now += 61
    expired = await get_dashboard_stats(db_session, cache)
    assert expired.cached is False


async def test_stats_counts_users_and_areas(
    db_session, admin_user, mesa_user, mesa_area, chem_area, inactive_area
):
    mesa_user.is_blocked = True
    await db_session.commit()

    stats = await get_dashboard_stats(db_session, StatsCache(ttl_seconds=60))

    assert stats.active_users == 1
    assert stats.blocked_users == 1
    assert stats.active_areas == 2
    assert set(stats.documents_by_status) == {
        "RECIBIDO", "PENDIENTE", "EN_PROCESO", "COMPLETADO", "ARCHIVADO", "RECHAZADO",
    }


# ── API ──────────────────────────────────────────────

async def test_dashboard_endpoint_uses_app_cache(client, admin_headers):
    first = await client.get("/api/v1/dashboard/stats", headers=admin_headers)
    assert first.status_code == 200
    assert first.json()["cached"] is False

    second = await client.get("/api/v1/dashboard/stats", headers=admin_headers)
    assert second.json()["cached"] is True

    refreshed = await client.get(
        "/api/v1/dashboard/stats", params={"refresh": "true"}, headers=admin_headers
    )
    assert refreshed.json()["cached"] is False
