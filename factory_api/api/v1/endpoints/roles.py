# factory_api/api/v1/endpoints/roles.py
# type: ignore

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from factory_api.api.deps import get_permission_service
from factory_api.api.v1.endpoints.auth import get_current_user, require_permission
from factory_api.core.errors import ConflictError
from factory_api.database import atomic, get_db
from factory_api.models.auth import Permission, Role, User
from factory_api.schemas.auth import (
    PermissionInDB, RoleCreate, RoleInDB, RoleList, RolePermissions, RolePermissionUpdate,
)
from factory_api.services.permissions import PermissionService

router = APIRouter()


# ***************************************************************
# 1. Listar todos los Roles (ACCESO AUTENTICADO)
# ***************************************************************
@router.get("/", response_model=RoleList, tags=["Roles"])
def get_all_roles(
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Lista todos los roles disponibles. Requiere autenticación."""
    roles_from_db = db.execute(select(Role).order_by(Role.id)).scalars().all()
    return {"roles": [RoleInDB.model_validate(r) for r in roles_from_db]}


# ***************************************************************
# 2. Crear Rol (sin permisos; la plantilla se arma después)
# ***************************************************************
@router.post("/", response_model=RoleInDB, status_code=status.HTTP_201_CREATED, tags=["Roles"])
def create_role(
    role_in: RoleCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("roles.administrar")),
):
    name = role_in.name.strip()
    with atomic(db):
        if db.execute(select(Role.id).where(Role.name == name)).first():
            raise ConflictError("DUPLICATE_ROLE", f"El rol '{name}' ya existe.")
        role = Role(name=name, description=role_in.description)
        db.add(role)
    db.refresh(role)
    return role


# ***************************************************************
# 3. Catálogo de permisos
# ***************************************************************
@router.get("/permissions", response_model=List[PermissionInDB], tags=["Roles"])
def list_permissions(
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return db.execute(select(Permission).order_by(Permission.slug)).scalars().all()


# ***************************************************************
# 4. Plantilla de permisos de un rol
# ***************************************************************
@router.get("/{role_id}/permissions", response_model=RolePermissions, tags=["Roles"])
def read_role_permissions(
    role_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    permissions: PermissionService = Depends(get_permission_service),
):
    return RolePermissions(
        role_id=role_id,
        permissions=sorted(permissions.role_template(db, role_id)),
    )


@router.put("/{role_id}/permissions/{slug}", response_model=RolePermissions, tags=["Roles"])
def set_role_permission(
    role_id: int,
    slug: str,
    grant_in: RolePermissionUpdate,
    _: User = Depends(require_permission("roles.administrar")),
    db: Session = Depends(get_db),
    permissions: PermissionService = Depends(get_permission_service),
):
    """Concede o retira un permiso de la plantilla; aplica a todos los usuarios del rol."""
    permissions.set_role_permission(db, role_id, slug, grant_in.granted)
    return RolePermissions(
        role_id=role_id,
        permissions=sorted(permissions.role_template(db, role_id)),
    )
