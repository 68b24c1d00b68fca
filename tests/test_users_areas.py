"""
Tests de administración: usuarios, áreas, roles y consulta de permisos.
"""

import pytest

from app.core.exceptions import ConflictException, ForbiddenException
from app.schemas.area import AreaCreate
from app.services import area_service, user_service

NEW_USER = {
    "cip_code": "30000003",
    "first_name": "Rosa",
    "last_name": "Quispe",
    "rank": "SO1",
    "role_id": 3,
    "password": "Segura123!",
}


# ── Usuarios ─────────────────────────────────────────

async def test_create_user_endpoint(client, admin_headers, chem_area):
    response = await client.post(
        "/api/v1/users",
        json={**NEW_USER, "area_id": chem_area.id},
        headers=admin_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["full_name"] == "Rosa Quispe"
    assert body["area"]["code"] == "QUIM"
    assert "hashed_password" not in body


async def test_create_user_duplicate_cip(client, admin_headers, chem_area):
    payload = {**NEW_USER, "area_id": chem_area.id}
    await client.post("/api/v1/users", json=payload, headers=admin_headers)

    response = await client.post("/api/v1/users", json=payload, headers=admin_headers)
    assert response.status_code == 409


async def test_create_user_with_unknown_role(client, admin_headers, chem_area):
    response = await client.post(
        "/api/v1/users",
        json={**NEW_USER, "role_id": 42, "area_id": chem_area.id},
        headers=admin_headers,
    )
    assert response.status_code == 422


async def test_block_and_unblock_resets_attempts(db_session, admin_user, mesa_user):
    mesa_user.failed_attempts = 3
    await db_session.commit()

    blocked = await user_service.set_user_blocked(
        db_session, mesa_user.id, admin_user, blocked=True
    )
    assert blocked.is_blocked is True

    unblocked = await user_service.set_user_blocked(
        db_session, mesa_user.id, admin_user, blocked=False
    )
    assert unblocked.is_blocked is False
    assert unblocked.failed_attempts == 0


async def test_cannot_block_self(db_session, admin_user):
    with pytest.raises(ConflictException):
        await user_service.set_user_blocked(
            db_session, admin_user.id, admin_user, blocked=True
        )


async def test_mesa_partes_cannot_block(db_session, admin_user, mesa_user):
    with pytest.raises(ForbiddenException):
        await user_service.set_user_blocked(
            db_session, admin_user.id, mesa_user, blocked=True
        )


async def test_block_endpoint_forbidden_for_mesa(client, admin_user, mesa_headers):
    response = await client.patch(
        f"/api/v1/users/{admin_user.id}/block", headers=mesa_headers
    )
    assert response.status_code == 403


async def test_blocked_user_token_is_rejected(client, admin_headers, mesa_user, mesa_headers):
    response = await client.patch(
        f"/api/v1/users/{mesa_user.id}/block", headers=admin_headers
    )
    assert response.status_code == 200

    response = await client.get("/api/v1/auth/me", headers=mesa_headers)
    assert response.status_code == 401


async def test_update_user_password_is_rehashed(client, db_session, admin_headers, mesa_user):
    old_hash = mesa_user.hashed_password

    response = await client.put(
        f"/api/v1/users/{mesa_user.id}",
        json={"rank": "SOT2", "password": "OtraClave456"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["rank"] == "SOT2"
    await db_session.refresh(mesa_user)
    assert mesa_user.hashed_password != old_hash


# ── Áreas ────────────────────────────────────────────

async def test_create_area_uppercases_code(db_session, admin_user):
    area = await area_service.create_area(
        db_session, admin_user, AreaCreate(name="Grafotecnia", code="graf")
    )
    assert area.code == "GRAF"

    with pytest.raises(ConflictException):
        await area_service.create_area(
            db_session, admin_user, AreaCreate(name="Otra", code="GRAF")
        )


async def test_deactivate_and_activate_area(client, admin_headers, chem_area):
    response = await client.patch(
        f"/api/v1/areas/{chem_area.id}/deactivate", headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    again = await client.patch(
        f"/api/v1/areas/{chem_area.id}/deactivate", headers=admin_headers
    )
    assert again.status_code == 409

    response = await client.patch(
        f"/api/v1/areas/{chem_area.id}/activate", headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is True


async def test_mesa_partes_cannot_deactivate_area(client, mesa_headers, chem_area):
    response = await client.patch(
        f"/api/v1/areas/{chem_area.id}/deactivate", headers=mesa_headers
    )
    assert response.status_code == 403


async def test_list_areas_filters_active(client, mesa_headers, mesa_area, inactive_area):
    response = await client.get(
        "/api/v1/areas", params={"is_active": "true"}, headers=mesa_headers
    )
    assert response.status_code == 200
    assert [a["code"] for a in response.json()] == ["MDP"]


# ── Roles y permisos ─────────────────────────────────

async def test_roles_endpoint(client, mesa_headers):
    response = await client.get("/api/v1/roles", headers=mesa_headers)

    assert response.status_code == 200
    masks = {role["id"]: role["permissions"] for role in response.json()}
    assert masks == {1: 255, 2: 91, 3: 91}


async def test_my_permissions(client, mesa_headers):
    response = await client.get("/api/v1/permissions/me", headers=mesa_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["permissions"] == 91
    assert body["flags"]["block"] is False


@pytest.mark.parametrize(
    "permiso,granted,visibility",
    [("derivar", True, "visible"), ("auditar", False, "hidden"), ("EXPORT", True, "visible")],
)
async def test_check_permission(client, mesa_headers, permiso, granted, visibility):
    response = await client.get(
        "/api/v1/permissions/check", params={"permiso": permiso}, headers=mesa_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["granted"] is granted
    assert body["visibility"] == visibility


async def test_check_unknown_permission(client, mesa_headers):
    response = await client.get(
        "/api/v1/permissions/check", params={"permiso": "volar"}, headers=mesa_headers
    )
    assert response.status_code == 422
