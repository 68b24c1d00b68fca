"""
Siembra los datos iniciales: los tres roles, el área de administración
y un usuario administrador.

Uso:
    python scripts/seed_initial_data.py --cip 12345678 --password <clave> \
        --first-name Admin --last-name Sistema

Es idempotente: lo que ya existe no se modifica.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

# Agregar el directorio raíz al path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.security import hash_password  # noqa: E402
from app.database import async_session_factory  # noqa: E402
from app.models.area import Area  # noqa: E402
from app.models.role import Role, RoleId  # noqa: E402
from app.models.user import User  # noqa: E402

ROLES = [
    (RoleId.ADMIN, "Administrador", "Acceso total al sistema"),
    (RoleId.MESA_PARTES, "Mesa de Partes", "Registro y derivación de documentos"),
    (RoleId.AREA_RESPONSABLE, "Responsable de Área", "Gestión de documentos del área"),
]

ADMIN_AREA_CODE = "ADM"


async def seed_roles(db: AsyncSession) -> int:
    created = 0
    for role_id, name, description in ROLES:
        existing = await db.get(Role, int(role_id))
        if existing:
            continue
        db.add(Role(id=int(role_id), name=name, description=description))
        created += 1
    await db.flush()
    return created


async def seed_admin_area(db: AsyncSession) -> Area:
    result = await db.execute(select(Area).where(Area.code == ADMIN_AREA_CODE))
    area = result.scalar_one_or_none()
    if area:
        return area
    area = Area(
        name="Administración",
        code=ADMIN_AREA_CODE,
        area_type="ADMINISTRATIVA",
        description="Área de administración del sistema",
    )
    db.add(area)
    await db.flush()
    return area


async def seed_admin_user(
    db: AsyncSession,
    area: Area,
    cip_code: str,
    password: str,
    first_name: str,
    last_name: str,
) -> bool:
    result = await db.execute(select(User).where(User.cip_code == cip_code))
    if result.scalar_one_or_none():
        return False
    db.add(User(
        cip_code=cip_code,
        hashed_password=hash_password(password),
        role_id=int(RoleId.ADMIN),
        area_id=area.id,
        first_name=first_name,
        last_name=last_name,
    ))
    await db.flush()
    return True


async def seed(args: argparse.Namespace) -> None:
    async with async_session_factory() as db:
        roles_created = await seed_roles(db)
        area = await seed_admin_area(db)
        admin_created = await seed_admin_user(
            db, area, args.cip, args.password, args.first_name, args.last_name
        )
        await db.commit()

    print(f"Roles creados: {roles_created}")
    print(f"Área de administración: {area.code} (id={area.id})")
    print("Administrador creado" if admin_created else f"El usuario {args.cip} ya existía")


def main() -> None:
    parser = argparse.ArgumentParser(description="Datos iniciales de OFICRI")
    parser.add_argument("--cip", required=True, help="Código CIP del administrador")
    parser.add_argument("--password", required=True)
    parser.add_argument("--first-name", default="Administrador")
    parser.add_argument("--last-name", default="Sistema")
    asyncio.run(seed(parser.parse_args()))


if __name__ == "__main__":
    main()
