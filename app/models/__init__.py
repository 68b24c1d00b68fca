"""
Modelos SQLAlchemy — exportar todos para que Alembic los detecte.
"""

from app.models.role import Role, RoleId
from app.models.area import Area
from app.models.user import User
from app.models.document import Document, DocumentStatus, DocumentStatusChange
from app.models.derivation import Derivation, DerivationStatus
from app.models.logs import (
    LOG_MODELS,
    AreaLog,
    BackupLog,
    DerivationLog,
    DocumentLog,
    ExportLog,
    IntrusionDetectionLog,
    LogType,
    MesaPartesLog,
    PermissionLog,
    RequestLog,
    RoleLog,
    UserLog,
)

__all__ = [
    "Role",
    "RoleId",
    "Area",
    "User",
    "Document",
    "DocumentStatus",
    "DocumentStatusChange",
    "Derivation",
    "DerivationStatus",
    "LogType",
    "LOG_MODELS",
    "UserLog",
    "DocumentLog",
    "AreaLog",
    "RoleLog",
    "PermissionLog",
    "MesaPartesLog",
    "DerivationLog",
    "RequestLog",
    "IntrusionDetectionLog",
    "ExportLog",
    "BackupLog",
]
