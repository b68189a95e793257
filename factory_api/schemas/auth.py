# factory_api/schemas/auth.py
#type: ignore

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

# ***************************************************************
# 1. Schemas de Autenticación (JWT)
# ***************************************************************
class Token(BaseModel):
    """Respuesta de login/refresh."""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    role: str
    permissions: List[str] = []

class TokenPayload(BaseModel):
    """Carga útil (payload) del JWT."""
    sub: Optional[str] = None
    exp: Optional[int] = None
    type: str = "access"

# ***************************************************************
# 2. Schemas de Usuario (Request/Response)
# ***************************************************************
class UserBase(BaseModel):
    username: str = Field(..., max_length=50)
    is_active: bool = True
    role_id: int

    model_config = {
        "from_attributes": True,
    }


class UserCreate(UserBase):
    """Creación de usuario (incluye password)."""
    password: str = Field(..., min_length=6)

class UserUpdate(BaseModel):
    """Actualización parcial de usuario."""
    username: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None
    role_id: Optional[int] = None
    password: Optional[str] = Field(None, min_length=6)

class UserInDB(UserBase):
    """Representación del usuario (sin hash)."""
    id: int
    role_name: str
    created_at: Optional[datetime] = None

    @field_serializer('created_at', when_used='always')
    def serialize_datetime(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

class UserMe(UserInDB):
    permissions: List[str] = []

class UserLogin(BaseModel):
    username: str
    password: str

# ***************************************************************
# 3. Roles y permisos
# ***************************************************************
class RoleBase(BaseModel):
    name: str = Field(..., max_length=50)
    description: Optional[str] = None

class RoleCreate(RoleBase):
    pass

class RoleInDB(RoleBase):
    id: int

    model_config = ConfigDict(from_attributes=True)

class RoleList(BaseModel):
    roles: list[RoleInDB]

class PermissionInDB(BaseModel):
    id: int
    slug: str
    description: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)

class RolePermissions(BaseModel):
    """Plantilla de permisos de un rol."""
    role_id: int
    permissions: List[str]

class RolePermissionUpdate(BaseModel):
    granted: bool

class UserPermissions(BaseModel):
    user_id: int
    role_id: int
    effective: List[str]
    # slug -> 1 (concedido) / 0 (revocado)
    overrides: Dict[str, int]

class UserOverrideUpdate(BaseModel):
    """value=null elimina la excepción y el usuario vuelve a la plantilla del rol."""
    value: Optional[Literal[0, 1]] = None
