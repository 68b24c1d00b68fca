"""
Modelo de permisos por máscara de bits.

Cada rol tiene una máscara entera; el bit i indica que el rol puede realizar
la operación i. Solo los 8 bits definidos en `Permission` tienen significado.
Todo en este módulo es puro (sin I/O).
"""

import enum

from app.models.role import RoleId


class Permission(enum.IntFlag):
    """Operaciones autorizables (un bit cada una)."""
    CREATE = 1      # Crear
    EDIT = 2        # Editar
    DELETE = 4      # Eliminar
    VIEW = 8        # Ver
    DERIVE = 16     # Derivar
    AUDIT = 32      # Auditar
    EXPORT = 64     # Exportar
    BLOCK = 128     # Bloquear


PERMISSION_MASK_BITS = 0xFF

# ── Máscaras por rol ─────────────────────────────────
ROLE_PERMISSIONS: dict[int, int] = {
    RoleId.ADMIN: 255,
    # Crear, Editar, Ver, Derivar, Exportar
    RoleId.MESA_PARTES: (
        Permission.CREATE | Permission.EDIT | Permission.VIEW
        | Permission.DERIVE | Permission.EXPORT
    ),
    RoleId.AREA_RESPONSABLE: (
        Permission.CREATE | Permission.EDIT | Permission.VIEW
        | Permission.DERIVE | Permission.EXPORT
    ),
}

# Nombres usados en la API y en la UI (`?permiso=derivar`)
PERMISSION_NAMES: dict[str, Permission] = {
    "create": Permission.CREATE,
    "edit": Permission.EDIT,
    "delete": Permission.DELETE,
    "view": Permission.VIEW,
    "derive": Permission.DERIVE,
    "audit": Permission.AUDIT,
    "export": Permission.EXPORT,
    "block": Permission.BLOCK,
}

PERMISSION_ALIASES: dict[str, Permission] = {
    "crear": Permission.CREATE,
    "editar": Permission.EDIT,
    "eliminar": Permission.DELETE,
    "ver": Permission.VIEW,
    "derivar": Permission.DERIVE,
    "auditar": Permission.AUDIT,
    "exportar": Permission.EXPORT,
    "bloquear": Permission.BLOCK,
}


class Visibility(str, enum.Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"


def has_permission(mask: int, permission: int) -> bool:
    """True si la máscara tiene el bit del permiso. Bits superiores se ignoran."""
    return (mask & permission & PERMISSION_MASK_BITS) != 0


def get_role_permissions(role_id: int) -> int:
    """Máscara estática del rol; un rol desconocido no tiene permisos."""
    return int(ROLE_PERMISSIONS.get(role_id, 0))


def parse_permission(name: str) -> Permission | None:
    key = name.strip().lower()
    return PERMISSION_NAMES.get(key) or PERMISSION_ALIASES.get(key)


def can_create(mask: int) -> bool:
    return has_permission(mask, Permission.CREATE)


def can_edit(mask: int) -> bool:
    return has_permission(mask, Permission.EDIT)


def can_delete(mask: int) -> bool:
    return has_permission(mask, Permission.DELETE)


def can_view(mask: int) -> bool:
    return has_permission(mask, Permission.VIEW)


def can_derive(mask: int) -> bool:
    return has_permission(mask, Permission.DERIVE)


def can_audit(mask: int) -> bool:
    return has_permission(mask, Permission.AUDIT)


def can_export(mask: int) -> bool:
    return has_permission(mask, Permission.EXPORT)


def can_block(mask: int) -> bool:
    return has_permission(mask, Permission.BLOCK)


def visibility(mask: int, permission: int) -> Visibility:
    """Única regla de visibilidad de elementos de UI."""
    return Visibility.VISIBLE if has_permission(mask, permission) else Visibility.HIDDEN


def permission_flags(mask: int) -> dict[str, bool]:
    """{create: bool, edit: bool, ...} para los 8 permisos."""
    return {
        name: visibility(mask, perm) is Visibility.VISIBLE
        for name, perm in PERMISSION_NAMES.items()
    }
