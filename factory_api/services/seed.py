# factory_api/services/seed.py
"""Datos iniciales: catálogo de permisos, roles base y superusuario de arranque."""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from factory_api.core.logging import get_logger
from factory_api.core.security import get_password_hash
from factory_api.database import atomic
from factory_api.models.auth import Permission, Role, RolePermission, SUPERUSER_ROLE, User

logger = get_logger(__name__)

DEFAULT_PERMISSIONS = {
    "productos.ver": "Consultar productos e inventario de administración",
    "productos.crear": "Dar de alta productos",
    "productos.editar": "Editar productos y existencias por sucursal",
    "reportes.ver": "Consultar reportes de caja",
    "usuarios.ver": "Consultar usuarios",
    "usuarios.administrar": "Crear, editar y eliminar usuarios y sus excepciones",
    "roles.administrar": "Editar plantillas de permisos de los roles",
}

DEFAULT_ROLES = {
    SUPERUSER_ROLE: list(DEFAULT_PERMISSIONS),
    "Administrador": [
        "productos.ver", "productos.crear", "productos.editar", "reportes.ver", "usuarios.ver",
    ],
    "Cajero": ["productos.ver"],
}


def seed_defaults(
    db: Session,
    superuser_name: Optional[str] = None,
    superuser_password: Optional[str] = None,
) -> None:
    """Idempotente: solo crea lo que falta."""
    with atomic(db):
        permissions = {p.slug: p for p in db.execute(select(Permission)).scalars().all()}
        for slug, description in DEFAULT_PERMISSIONS.items():
            if slug not in permissions:
                permissions[slug] = Permission(slug=slug, description=description, is_active=True)
                db.add(permissions[slug])
        db.flush()

        for role_name, slugs in DEFAULT_ROLES.items():
            role = db.execute(select(Role).where(Role.name == role_name)).scalars().first()
            if role is not None:
                continue
            role = Role(name=role_name)
            db.add(role)
            db.flush()
            for slug in slugs:
                db.add(RolePermission(role_id=role.id, permission_id=permissions[slug].id))
            logger.info("Rol %s creado con %d permisos", role_name, len(slugs))

        if superuser_name and superuser_password:
            superuser_role = db.execute(select(Role).where(Role.name == SUPERUSER_ROLE)).scalars().one()
            count = db.execute(
                select(func.count(User.id)).where(User.role_id == superuser_role.id)
            ).scalar_one()
            if count == 0:
                db.add(
                    User(
                        username=superuser_name,
                        password_hash=get_password_hash(superuser_password),
                        role_id=superuser_role.id,
                        is_active=True,
                    )
                )
                logger.info("Superusuario de arranque %s creado", superuser_name)
