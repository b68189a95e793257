# factory_api/schemas/sales.py
# type: ignore

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

# -------------------------------------------------------------------
# Carrito
# -------------------------------------------------------------------

class CartItemAdd(BaseModel):
    # Identidad del cliente anónimo; si no viene se usa la IP de origen
    client_id: Optional[str] = Field(None, max_length=100)
    product_id: int
    branch_id: int = Field(..., ge=1)
    qty: int
    price: Optional[Decimal] = Field(None, ge=0, description="Precio unitario congelado")
    is_increment: bool = False

class CartItemRemove(BaseModel):
    client_id: Optional[str] = Field(None, max_length=100)
    product_id: int

class CartClear(BaseModel):
    client_id: Optional[str] = Field(None, max_length=100)

class CartItemOut(BaseModel):
    product_id: int
    code: str
    description: str
    photo: Optional[str] = None
    qty: int
    unit_price: Decimal
    branch_id: int
    branch_name: str
    available: int
    price1: Decimal
    price2: Decimal
    price3: Decimal
    min2: int
    min3: int

    model_config = {"from_attributes": True}

    @field_serializer('unit_price', 'price1', 'price2', 'price3')
    def serialize_decimal(self, value: Decimal) -> float:
        return float(value or 0)

class CartCount(BaseModel):
    total: int

class ActionResult(BaseModel):
    success: bool = True
    message: Optional[str] = None

# -------------------------------------------------------------------
# Pedido
# -------------------------------------------------------------------

class CheckoutRequest(BaseModel):
    client_id: Optional[str] = Field(None, max_length=100)
    customer_id: Optional[int] = None
    branch_id: int = Field(..., ge=1)

class CheckoutResponse(BaseModel):
    success: bool = True
    message: str
    invoice_no: int
    whatsapp_phone: str
    total_qty: int
    total_amount: float
    lines: int

# -------------------------------------------------------------------
# Clientes
# -------------------------------------------------------------------

class CustomerRegister(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=150)
    phone: str = Field(..., min_length=1, max_length=30)
    password: str = Field(..., min_length=1)
    email: str = ""
    address: str = ""
    neighborhood: str = ""
    postal_code: str = ""
    city: str = ""
    state: str = ""

class CustomerLogin(BaseModel):
    phone: str
    password: str

class CustomerOut(BaseModel):
    id: int
    short_key: str
    full_name: str
    email: Optional[str] = None
    phone: str

    model_config = {"from_attributes": True}

class CustomerLoginResponse(BaseModel):
    success: bool = True
    customer: CustomerOut

class CustomerRegisterResponse(BaseModel):
    success: bool = True
    customer_id: int
