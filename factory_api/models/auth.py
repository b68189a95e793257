# factory_api/models/auth.py
# type: ignore

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, TIMESTAMP, func
from sqlalchemy.orm import relationship

from factory_api.database import Base

# Rol administrativo superior: siempre debe existir al menos un usuario con él
SUPERUSER_ROLE = "Superusuario"


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), index=True, unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    users = relationship("User", back_populates="role")
    grants = relationship("RolePermission", back_populates="role", cascade="all, delete-orphan")


class Permission(Base):
    """Permiso identificado por un slug (ej. 'productos.crear')."""
    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(80), unique=True, index=True, nullable=False)
    description = Column(String(255), nullable=True)
    # Solo los permisos activos cuentan al resolver el conjunto efectivo
    is_active = Column(Boolean, default=True, nullable=False)


class RolePermission(Base):
    """Concesión de un permiso a un rol (plantilla del rol)."""
    __tablename__ = "role_permissions"

    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    permission_id = Column(Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True)

    role = relationship("Role", back_populates="grants")
    permission = relationship("Permission", lazy="joined")


class User(Base):
    __tablename__ = "usuarios"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP, default=func.now())

    role = relationship("Role", back_populates="users", lazy="joined")
    overrides = relationship(
        "UserPermissionOverride", back_populates="user", cascade="all, delete-orphan"
    )


class UserPermissionOverride(Base):
    """
    Excepción por usuario sobre la plantilla de su rol.
    value=1 concede el permiso, value=0 lo revoca. Sin fila: aplica el rol.
    """
    __tablename__ = "user_permissions"

    user_id = Column(Integer, ForeignKey("usuarios.id", ondelete="CASCADE"), primary_key=True)
    permission_id = Column(Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True)
    value = Column(Integer, nullable=False)

    user = relationship("User", back_populates="overrides")
    permission = relationship("Permission", lazy="joined")
