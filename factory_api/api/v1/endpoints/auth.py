# factory_api/api/v1/endpoints/auth.py
# type: ignore

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from factory_api.api.deps import get_permission_service
from factory_api.core.logging import get_logger
from factory_api.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    reusable_oauth2,
    verify_password,
)
from factory_api.database import get_db
from factory_api.models.auth import User
from factory_api.schemas.auth import Token, UserLogin, UserMe
from factory_api.services.permissions import PermissionService

logger = get_logger(__name__)

router = APIRouter()

# ***************************************************************
# Dependencia para obtener el usuario autenticado
# ***************************************************************
def _load_active_user(db: Session, token: str, token_type: str) -> User:
    token_data = decode_token(token, expected_type=token_type)
    if token_data.sub is None or not token_data.sub.isdigit():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token no contiene ID de usuario.")

    user = db.get(User, int(token_data.sub))
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Usuario no encontrado o inactivo.")
    return user


def get_current_user(
    db: Session = Depends(get_db), token: str = Depends(reusable_oauth2)
) -> User:
    """Decodifica el ACCESS token y busca al usuario en la DB."""
    return _load_active_user(db, token, "access")


def require_permission(slug: str):
    """
    Dependencia que exige un permiso efectivo. Se resuelve en cada request,
    así que un cambio de rol o de excepción aplica de inmediato.
    """
    def _checker(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        permissions: PermissionService = Depends(get_permission_service),
    ) -> User:
        if not permissions.has_permission(db, current_user.id, slug):
            logger.info("Acceso denegado a %s: falta permiso %s", current_user.username, slug)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Acceso denegado. Se requiere el permiso '{slug}'.",
            )
        return current_user

    return _checker


def _issue_tokens(db: Session, user: User, permissions: PermissionService) -> dict:
    return {
        "access_token": create_access_token(subject=user.id),
        "refresh_token": create_refresh_token(subject=user.id),
        "token_type": "bearer",
        "role": user.role.name,
        "permissions": sorted(permissions.effective_permissions(db, user.id)),
    }

# ***************************************************************
# 1. Login
# ***************************************************************
@router.post("/login", response_model=Token)
def login_for_access_token(
    user_in: UserLogin,
    db: Session = Depends(get_db),
    permissions: PermissionService = Depends(get_permission_service),
):
    """Autentica un usuario y devuelve access token, refresh token y permisos efectivos."""
    user = db.execute(
        select(User).where(User.username == user_in.username.strip())
    ).scalars().first()

    if not user or not verify_password(user_in.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Nombre de usuario o contraseña incorrectos.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="La cuenta de usuario está inactiva.",
        )

    logger.info("Login de %s (%s)", user.username, user.role.name)
    return _issue_tokens(db, user, permissions)

# ***************************************************************
# 2. Refresh (con rotación de tokens)
# ***************************************************************
@router.post("/refresh", response_model=Token)
def refresh_access_token(
    refresh_token: str = Depends(reusable_oauth2),
    db: Session = Depends(get_db),
    permissions: PermissionService = Depends(get_permission_service),
):
    """Devuelve un nuevo access token y un nuevo refresh token."""
    current_user = _load_active_user(db, refresh_token, "refresh")
    return _issue_tokens(db, current_user, permissions)

# ***************************************************************
# 3. Usuario autenticado
# ***************************************************************
@router.get("/me", response_model=UserMe)
def read_users_me(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    permissions: PermissionService = Depends(get_permission_service),
):
    return UserMe(
        id=current_user.id,
        username=current_user.username,
        is_active=current_user.is_active,
        role_id=current_user.role_id,
        role_name=current_user.role.name,
        created_at=current_user.created_at,
        permissions=sorted(permissions.effective_permissions(db, current_user.id)),
    )
