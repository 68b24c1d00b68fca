"""
Configuración de base de datos con SQLAlchemy 2.0 async.
Incluye el unit of work usado por las escrituras multi-tabla.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings

settings = get_settings()

# ── Engine async ─────────────────────────────────────
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
)

# ── Session factory ──────────────────────────────────
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base declarativa ─────────────────────────────────
class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Timestamp de aplicación (UTC) para defaults de columnas."""
    return datetime.now(timezone.utc)


# ── Unit of work ─────────────────────────────────────
@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Límite transaccional explícito: todas las escrituras dentro del bloque
    se confirman juntas o se revierten juntas.
    """
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise


# ── Dependency: sesión de DB ─────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency de FastAPI que provee una sesión de base de datos.
    Confirma al final de la request o revierte si hubo error.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
