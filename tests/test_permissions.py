"""
Tests del modelo de permisos por máscara de bits.
"""

import pytest

from app.auth.permissions import (
    Permission,
    Visibility,
    can_audit,
    can_block,
    can_create,
    can_delete,
    can_derive,
    can_edit,
    can_export,
    can_view,
    get_role_permissions,
    has_permission,
    parse_permission,
    permission_flags,
    visibility,
)
from app.models.role import RoleId


def test_bit_values():
    assert [int(p) for p in Permission] == [1, 2, 4, 8, 16, 32, 64, 128]


def test_role_masks():
    assert get_role_permissions(RoleId.ADMIN) == 255
    assert get_role_permissions(RoleId.MESA_PARTES) == 91
    assert get_role_permissions(RoleId.AREA_RESPONSABLE) == 91


def test_unknown_role_has_no_permissions():
    assert get_role_permissions(42) == 0
    assert not any(permission_flags(get_role_permissions(42)).values())


def test_mesa_partes_mask_91():
    mask = 91
    assert can_create(mask)
    assert can_edit(mask)
    assert not can_delete(mask)
    assert can_view(mask)
    assert can_derive(mask)
    assert not can_audit(mask)
    assert can_export(mask)
    assert not can_block(mask)


def test_admin_has_every_permission():
    assert all(has_permission(255, p) for p in Permission)


def test_bits_above_0xff_are_ignored():
    assert not has_permission(256, Permission.CREATE)
    assert has_permission(256 | 8, Permission.VIEW)
    assert not has_permission(0x100, 0x100)


@pytest.mark.parametrize("mask", [0, 1, 91, 128, 255])
def test_visibility_matches_has_permission(mask):
    for perm in Permission:
        expected = Visibility.VISIBLE if has_permission(mask, perm) else Visibility.HIDDEN
        assert visibility(mask, perm) is expected


def test_permission_flags_for_mesa_partes():
    assert permission_flags(91) == {
        "create": True,
        "edit": True,
        "delete": False,
        "view": True,
        "derive": True,
        "audit": False,
        "export": True,
        "block": False,
    }


def test_parse_permission_accepts_spanish_and_english_names():
    assert parse_permission("derivar") is Permission.DERIVE
    assert parse_permission("EXPORT") is Permission.EXPORT
    assert parse_permission(" bloquear ") is Permission.BLOCK
    assert parse_permission("volar") is None
