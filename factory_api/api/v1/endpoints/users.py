# factory_api/api/v1/endpoints/users.py
# type: ignore

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from factory_api.api.deps import get_permission_service
from factory_api.api.v1.endpoints.auth import get_current_user, require_permission
from factory_api.core.errors import ConflictError, NotFoundError
from factory_api.core.logging import get_logger
from factory_api.core.security import get_password_hash
from factory_api.database import atomic, get_db
from factory_api.models.auth import Role, User
from factory_api.schemas.auth import (
    UserCreate, UserInDB, UserOverrideUpdate, UserPermissions, UserUpdate,
)
from factory_api.services.permissions import PermissionService

logger = get_logger(__name__)

router = APIRouter()


def _to_user_out(user: User) -> UserInDB:
    return UserInDB(
        id=user.id,
        username=user.username,
        is_active=user.is_active,
        role_id=user.role_id,
        role_name=user.role.name,
        created_at=user.created_at,
    )


def _get_user_and_check_access(
    user_id: int,
    db: Session,
    current_user: User,
    permissions: PermissionService,
    required: str,
) -> User:
    """
    Busca un usuario por ID. Cada usuario puede verse a sí mismo; para ver o
    modificar a otros se requiere el permiso indicado.
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("Usuario", user_id)

    if user.id == current_user.id:
        return user

    if not permissions.has_permission(db, current_user.id, required):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acceso denegado. No tienes permisos para acceder a otros usuarios.",
        )
    return user


# ***************************************************************
# 1. Listar Usuarios (GET /api/v1/users/)
# ***************************************************************
@router.get("/", response_model=List[UserInDB], tags=["Users"])
def read_users(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("usuarios.ver")),
    role_id: Optional[int] = Query(None, description="Filtrar por rol"),
    active_only: bool = Query(False, description="Solo usuarios activos"),
):
    stmt = select(User).order_by(User.id)
    if role_id is not None:
        stmt = stmt.where(User.role_id == role_id)
    if active_only:
        stmt = stmt.where(User.is_active.is_(True))
    return [_to_user_out(user) for user in db.execute(stmt).scalars().all()]


# ***************************************************************
# 2. Crear Usuario (POST /api/v1/users/)
# ***************************************************************
@router.post("/", response_model=UserInDB, status_code=status.HTTP_201_CREATED, tags=["Users"])
def create_user(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_permission("usuarios.administrar")),
):
    username = user_in.username.strip()
    with atomic(db):
        if db.execute(select(User.id).where(User.username == username)).first():
            raise ConflictError("DUPLICATE_USERNAME", "El nombre de usuario ya existe.")

        if db.get(Role, user_in.role_id) is None:
            raise NotFoundError("Rol", user_in.role_id)

        db_user = User(
            username=username,
            password_hash=get_password_hash(user_in.password),
            role_id=user_in.role_id,
            is_active=user_in.is_active,
        )
        db.add(db_user)

    db.refresh(db_user)
    logger.info("Usuario %s creado por %s", db_user.username, admin.username)
    return _to_user_out(db_user)


# ***************************************************************
# 3. Buscar Usuario por ID (GET /api/v1/users/{user_id})
# ***************************************************************
@router.get("/{user_id}", response_model=UserInDB, tags=["Users"])
def read_user(
    user_id: int,
    db: Session = Depends(get_db),
    # get_current_user: un cajero puede leer su propio perfil
    current_user: User = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
):
    db_user = _get_user_and_check_access(user_id, db, current_user, permissions, "usuarios.ver")
    return _to_user_out(db_user)


# ***************************************************************
# 4. Actualizar Usuario (PATCH /api/v1/users/{user_id})
# ***************************************************************
@router.patch("/{user_id}", response_model=UserInDB, tags=["Users"])
def update_user(
    user_id: int,
    user_in: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
):
    """
    Actualiza campos de un usuario. Cambiar rol o estado activo siempre
    requiere 'usuarios.administrar', incluso sobre la propia cuenta.
    """
    _get_user_and_check_access(user_id, db, current_user, permissions, "usuarios.administrar")

    update_data = user_in.model_dump(exclude_unset=True)
    sensitive = {"role_id", "is_active"} & update_data.keys()
    if sensitive and not permissions.has_permission(db, current_user.id, "usuarios.administrar"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Solo un administrador de usuarios puede cambiar el rol o el estado.",
        )

    password = update_data.get("password")
    username = update_data.get("username")
    db_user = permissions.update_user(
        db,
        user_id,
        username=username.strip() if username else None,
        password_hash=get_password_hash(password) if password else None,
        role_id=update_data.get("role_id"),
        is_active=update_data.get("is_active"),
    )
    return _to_user_out(db_user)


# ***************************************************************
# 5. Eliminar Usuario (DELETE /api/v1/users/{user_id})
# ***************************************************************
@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Users"])
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_permission("usuarios.administrar")),
    permissions: PermissionService = Depends(get_permission_service),
):
    # No permitir auto-eliminación
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No puedes eliminar tu propia cuenta.",
        )

    permissions.delete_user(db, user_id)
    return


# ***************************************************************
# 6. Permisos efectivos y excepciones por usuario
# ***************************************************************
@router.get("/{user_id}/permissions", response_model=UserPermissions, tags=["Users"])
def read_user_permissions(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
):
    db_user = _get_user_and_check_access(user_id, db, current_user, permissions, "usuarios.ver")
    return UserPermissions(
        user_id=db_user.id,
        role_id=db_user.role_id,
        effective=sorted(permissions.effective_permissions(db, db_user.id)),
        overrides=permissions.user_overrides(db, db_user.id),
    )


@router.put("/{user_id}/permissions/{slug}", response_model=UserPermissions, tags=["Users"])
def set_user_permission_override(
    user_id: int,
    slug: str,
    override_in: UserOverrideUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_permission("usuarios.administrar")),
    permissions: PermissionService = Depends(get_permission_service),
):
    """value=1 concede, value=0 revoca, value=null vuelve a la plantilla del rol."""
    permissions.set_user_override(db, user_id, slug, override_in.value)
    db_user = db.get(User, user_id)
    return UserPermissions(
        user_id=db_user.id,
        role_id=db_user.role_id,
        effective=sorted(permissions.effective_permissions(db, db_user.id)),
        overrides=permissions.user_overrides(db, db_user.id),
    )
