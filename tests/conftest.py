"""
Fixtures compartidas para Pytest.
Configura base de datos de test, clientes HTTP, roles, áreas y usuarios.
"""

import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path

# El entorno de test se define antes de importar la app (get_settings está cacheado)
_TEST_DIR = Path(tempfile.mkdtemp(prefix="oficri-test-"))
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-que-no-se-usa-en-produccion")
os.environ.setdefault("LOG_DIR", str(_TEST_DIR / "logs"))
os.environ.setdefault("EXPORT_DIR", str(_TEST_DIR / "exports"))
os.environ.setdefault("DEBUG", "false")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from app.auth.jwt import create_access_token  # noqa: E402
from app.config import get_settings  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.area import Area  # noqa: E402
from app.models.role import Role, RoleId  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.dashboard_service import StatsCache  # noqa: E402

settings = get_settings()

TEST_PASSWORD = "TestPass123"

# ── Engine de test (SQLite async) ────────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    """Crea y destruye las tablas para cada test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provee una sesión de DB de test."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP de test que usa la DB de test y una caché de dashboard nueva."""

    async def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db
    app.state.stats_cache = StatsCache(ttl_seconds=settings.STATS_CACHE_TTL_SECONDS)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Datos base ───────────────────────────────────────

@pytest_asyncio.fixture
async def roles(db_session: AsyncSession) -> list[Role]:
    """Siembra los tres roles fijos."""
    seeded = [
        Role(id=int(RoleId.ADMIN), name="Administrador"),
        Role(id=int(RoleId.MESA_PARTES), name="Mesa de Partes"),
        Role(id=int(RoleId.AREA_RESPONSABLE), name="Responsable de Área"),
    ]
    db_session.add_all(seeded)
    await db_session.commit()
    return seeded


@pytest_asyncio.fixture
async def mesa_area(db_session: AsyncSession) -> Area:
    area = Area(name="Mesa de Partes", code="MDP", area_type="MESA_PARTES")
    db_session.add(area)
    await db_session.commit()
    await db_session.refresh(area)
    return area


@pytest_asyncio.fixture
async def chem_area(db_session: AsyncSession) -> Area:
    area = Area(name="Química y Toxicología", code="QUIM")
    db_session.add(area)
    await db_session.commit()
    await db_session.refresh(area)
    return area


@pytest_asyncio.fixture
async def ballistics_area(db_session: AsyncSession) -> Area:
    area = Area(name="Balística", code="BALI")
    db_session.add(area)
    await db_session.commit()
    await db_session.refresh(area)
    return area


@pytest_asyncio.fixture
async def inactive_area(db_session: AsyncSession) -> Area:
    area = Area(name="Área Cerrada", code="CERR", is_active=False)
    db_session.add(area)
    await db_session.commit()
    await db_session.refresh(area)
    return area


async def _make_user(
    db: AsyncSession,
    *,
    cip_code: str,
    role_id: int,
    area_id: int,
    first_name: str,
) -> User:
    user = User(
        cip_code=cip_code,
        hashed_password=hash_password(TEST_PASSWORD),
        role_id=role_id,
        area_id=area_id,
        first_name=first_name,
        last_name="Test",
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession, roles, mesa_area: Area) -> User:
    """Usuario administrador (máscara 255)."""
    return await _make_user(
        db_session,
        cip_code="10000001",
        role_id=int(RoleId.ADMIN),
        area_id=mesa_area.id,
        first_name="Admin",
    )


@pytest_asyncio.fixture
async def mesa_user(db_session: AsyncSession, roles, mesa_area: Area) -> User:
    """Usuario de Mesa de Partes (máscara 91: sin DELETE, AUDIT ni BLOCK)."""
    return await _make_user(
        db_session,
        cip_code="20000002",
        role_id=int(RoleId.MESA_PARTES),
        area_id=mesa_area.id,
        first_name="Mesa",
    )


@pytest_asyncio.fixture
async def unknown_role_user(db_session: AsyncSession, roles, mesa_area: Area) -> User:
    """Usuario con un rol fuera de la tabla estática (máscara 0)."""
    db_session.add(Role(id=99, name="Invitado"))
    await db_session.commit()
    return await _make_user(
        db_session,
        cip_code="99000009",
        role_id=99,
        area_id=mesa_area.id,
        first_name="Invitado",
    )


def auth_headers_for(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.role_id, user.area_id)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers_for(admin_user)


@pytest_asyncio.fixture
async def mesa_headers(mesa_user: User) -> dict[str, str]:
    return auth_headers_for(mesa_user)


@pytest_asyncio.fixture
async def headers_for():
    """Construye headers de autorización para cualquier usuario."""
    return auth_headers_for
