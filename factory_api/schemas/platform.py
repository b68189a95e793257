# factory_api/schemas/platform.py
# type: ignore
from typing import Optional

from pydantic import BaseModel


class BranchInDB(BaseModel):
    """Sucursal tal como la ven la app y la administración."""
    id: int
    name: str
    shipping_info: Optional[str] = None
    app_visible: bool

    class Config:
        from_attributes = True


class BranchContact(BaseModel):
    branch_id: int
    whatsapp_phone: str
