# factory_api/services/permissions.py
"""
Permission Resolution.

El conjunto efectivo de un usuario parte de los permisos activos de su rol y
se corrige con las excepciones del usuario: value=1 agrega, value=0 quita,
sin excepción manda el rol. Las excepciones siempre ganan.
"""

from typing import Dict, Optional, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from factory_api.core.errors import ConflictError, NotFoundError, ValidationFailed
from factory_api.core.logging import get_logger
from factory_api.database import atomic
from factory_api.models.auth import (
    Permission, Role, RolePermission, SUPERUSER_ROLE, User, UserPermissionOverride,
)

logger = get_logger(__name__)


class PermissionService:
    # ----------------------------------------------------------------
    # Lectura
    # ----------------------------------------------------------------
    def role_template(self, db: Session, role_id: int) -> Set[str]:
        if db.get(Role, role_id) is None:
            raise NotFoundError("Rol", role_id)
        rows = db.execute(
            select(Permission.slug)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id, Permission.is_active.is_(True))
        ).scalars().all()
        return set(rows)

    def user_overrides(self, db: Session, user_id: int) -> Dict[str, int]:
        rows = db.execute(
            select(Permission.slug, UserPermissionOverride.value)
            .join(UserPermissionOverride, UserPermissionOverride.permission_id == Permission.id)
            .where(UserPermissionOverride.user_id == user_id, Permission.is_active.is_(True))
        ).all()
        return {slug: value for slug, value in rows}

    def effective_permissions(self, db: Session, user_id: int) -> Set[str]:
        user = db.get(User, user_id)
        if user is None:
            raise NotFoundError("Usuario", user_id)

        effective = self.role_template(db, user.role_id)
        for slug, value in self.user_overrides(db, user_id).items():
            if value == 1:
                effective.add(slug)
            else:
                effective.discard(slug)
        return effective

    def has_permission(self, db: Session, user_id: int, slug: str) -> bool:
        return slug in self.effective_permissions(db, user_id)

    # ----------------------------------------------------------------
    # Mutaciones de plantillas y excepciones
    # ----------------------------------------------------------------
    def _permission(self, db: Session, slug: str) -> Permission:
        permission = db.execute(select(Permission).where(Permission.slug == slug)).scalars().first()
        if permission is None:
            raise NotFoundError("Permiso", slug)
        return permission

    def set_role_permission(self, db: Session, role_id: int, slug: str, granted: bool) -> None:
        with atomic(db):
            if db.get(Role, role_id) is None:
                raise NotFoundError("Rol", role_id)
            permission = self._permission(db, slug)
            grant = db.get(RolePermission, (role_id, permission.id))
            if granted and grant is None:
                db.add(RolePermission(role_id=role_id, permission_id=permission.id))
            elif not granted and grant is not None:
                db.delete(grant)
        logger.info("Rol %s: permiso %s -> %s", role_id, slug, granted)

    def set_user_override(self, db: Session, user_id: int, slug: str, value: Optional[int]) -> None:
        """value: 1 concede, 0 revoca, None elimina la excepción (vuelve al rol)."""
        if value not in (0, 1, None):
            raise ValidationFailed("INVALID_OVERRIDE", "El valor de la excepción debe ser 1, 0 o null.")
        with atomic(db):
            if db.get(User, user_id) is None:
                raise NotFoundError("Usuario", user_id)
            permission = self._permission(db, slug)
            override = db.get(UserPermissionOverride, (user_id, permission.id))
            if value is None:
                if override is not None:
                    db.delete(override)
            elif override is None:
                db.add(UserPermissionOverride(user_id=user_id, permission_id=permission.id, value=value))
            else:
                override.value = value
        logger.info("Usuario %s: excepción %s -> %s", user_id, slug, value)

    # ----------------------------------------------------------------
    # Protección del último Superusuario
    # ----------------------------------------------------------------
    def _guard_last_superuser(self, db: Session, user: User, keeps_superuser: bool) -> None:
        """
        Falla si la operación deja sin ningún Superusuario activo. Bloquea las
        filas de los superusuarios para que dos bajas concurrentes no pasen
        ambas la validación.
        """
        if user.role is None or user.role.name != SUPERUSER_ROLE or keeps_superuser:
            return
        superuser_ids = db.execute(
            select(User.id)
            .join(Role, User.role_id == Role.id)
            .where(Role.name == SUPERUSER_ROLE, User.is_active.is_(True))
            .with_for_update(of=User)
        ).scalars().all()
        if not [uid for uid in superuser_ids if uid != user.id]:
            logger.warning("Operación bloqueada: %s es el último %s", user.username, SUPERUSER_ROLE)
            raise ConflictError(
                "LAST_SUPERUSER_PROTECTED",
                f"No se puede eliminar ni degradar al último usuario {SUPERUSER_ROLE}.",
                {"user_id": user.id},
            )

    def update_user(
        self,
        db: Session,
        user_id: int,
        username: Optional[str] = None,
        password_hash: Optional[str] = None,
        role_id: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> User:
        """Actualiza un usuario en una sola transacción; valida todo antes de escribir."""
        with atomic(db):
            user = db.get(User, user_id)
            if user is None:
                raise NotFoundError("Usuario", user_id)

            role = None
            if role_id is not None and role_id != user.role_id:
                role = db.get(Role, role_id)
                if role is None:
                    raise NotFoundError("Rol", role_id)

            if username is not None and username != user.username:
                taken = db.execute(select(User.id).where(User.username == username)).first()
                if taken:
                    raise ConflictError("DUPLICATE_USERNAME", "El nombre de usuario ya existe.")

            keeps_role = role is None or role.name == SUPERUSER_ROLE
            keeps_active = is_active is None or is_active
            self._guard_last_superuser(db, user, keeps_superuser=keeps_role and keeps_active)

            if role is not None:
                user.role_id = role.id
                user.role = role
            if is_active is not None:
                user.is_active = is_active
            if username is not None:
                user.username = username
            if password_hash is not None:
                user.password_hash = password_hash
            db.add(user)
        db.refresh(user)
        return user

    def change_user_role(self, db: Session, user_id: int, role_id: int) -> User:
        return self.update_user(db, user_id, role_id=role_id)

    def delete_user(self, db: Session, user_id: int) -> None:
        with atomic(db):
            user = db.get(User, user_id)
            if user is None:
                raise NotFoundError("Usuario", user_id)
            self._guard_last_superuser(db, user, keeps_superuser=False)
            # Las excepciones del usuario se borran en cascada
            db.delete(user)
        logger.info("Usuario %s eliminado", user_id)


permission_service = PermissionService()
