"""
Router principal de la API v1.
Agrupa todos los sub-routers de la versión 1.
"""

from fastapi import APIRouter

from app.api.v1.areas import router as areas_router
from app.api.v1.auth import router as auth_router
from app.api.v1.dashboard import router as dashboard_router
from app.api.v1.documents import router as documents_router
from app.api.v1.logs import router as logs_router
from app.api.v1.permissions import roles_router
from app.api.v1.permissions import router as permissions_router
from app.api.v1.users import router as users_router

api_v1_router = APIRouter()

api_v1_router.include_router(
    auth_router,
    prefix="/auth",
    tags=["Autenticación"],
)

api_v1_router.include_router(
    users_router,
    prefix="/users",
    tags=["Usuarios"],
)

api_v1_router.include_router(
    areas_router,
    prefix="/areas",
    tags=["Áreas"],
)

api_v1_router.include_router(
    roles_router,
    prefix="/roles",
    tags=["Roles"],
)

api_v1_router.include_router(
    permissions_router,
    prefix="/permissions",
    tags=["Permisos"],
)

api_v1_router.include_router(
    documents_router,
    prefix="/documents",
    tags=["Documentos y Derivaciones"],
)

api_v1_router.include_router(
    logs_router,
    prefix="/logs",
    tags=["Logs y Auditoría"],
)

api_v1_router.include_router(
    dashboard_router,
    prefix="/dashboard",
    tags=["Dashboard"],
)
