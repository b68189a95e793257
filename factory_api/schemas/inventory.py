# factory_api/schemas/inventory.py
# type: ignore

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer

# -------------------------------------------------------------------
# Base Schemas
# -------------------------------------------------------------------

class ProductBase(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    barcode: str = Field("", max_length=50)
    supplier_code: str = Field("", max_length=50)
    cost: Decimal = Field(Decimal("0"), ge=0, description="Costo de compra")
    units_per_case: int = Field(1, ge=1, description="Piezas por caja")
    type: Optional[str] = Field(None, max_length=100)
    price1: Decimal = Field(Decimal("0"), ge=0)
    price2: Decimal = Field(Decimal("0"), ge=0)
    price3: Decimal = Field(Decimal("0"), ge=0)
    min1: int = Field(0, ge=0)
    min2: int = Field(0, ge=0)
    min3: int = Field(0, ge=0)

    model_config = {
        "from_attributes": True,
    }

    # Decimal -> float en la salida JSON
    @field_serializer('cost', 'price1', 'price2', 'price3')
    def serialize_decimal(self, value: Decimal) -> float:
        return float(value or 0)

# -------------------------------------------------------------------
# Input Schemas
# -------------------------------------------------------------------

class ProductCreate(ProductBase):
    code: str = Field(..., min_length=1, max_length=30, description="Clave única del producto")

class StockEdit(BaseModel):
    """Existencias de una sucursal editadas desde administración."""
    sellable: int = Field(0, ge=0)
    warehouse: int = Field(0, ge=0)
    is_active: bool = False

class ProductUpdate(BaseModel):
    # La clave no se puede cambiar
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    barcode: Optional[str] = Field(None, max_length=50)
    supplier_code: Optional[str] = Field(None, max_length=50)
    cost: Optional[Decimal] = Field(None, ge=0)
    units_per_case: Optional[int] = Field(None, ge=1)
    type: Optional[str] = Field(None, max_length=100)
    price1: Optional[Decimal] = Field(None, ge=0)
    price2: Optional[Decimal] = Field(None, ge=0)
    price3: Optional[Decimal] = Field(None, ge=0)
    min1: Optional[int] = Field(None, ge=0)
    min2: Optional[int] = Field(None, ge=0)
    min3: Optional[int] = Field(None, ge=0)
    # branch_id -> existencias
    stocks: Optional[Dict[int, StockEdit]] = None

# -------------------------------------------------------------------
# Output Schemas
# -------------------------------------------------------------------

class ProductInDB(ProductBase):
    id: int
    code: str
    profit1: Decimal = Decimal("0")
    profit2: Decimal = Decimal("0")
    profit3: Decimal = Decimal("0")
    profit_pct1: Decimal = Decimal("0")
    profit_pct2: Decimal = Decimal("0")
    profit_pct3: Decimal = Decimal("0")
    status: int
    is_active: bool
    photo: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_serializer('profit1', 'profit2', 'profit3', 'profit_pct1', 'profit_pct2', 'profit_pct3')
    def serialize_profit(self, value: Decimal) -> float:
        return float(value or 0)

class BranchStockOut(BaseModel):
    branch_id: int
    sellable: int
    warehouse: int
    is_active: bool

class ProductDetail(ProductInDB):
    stocks: List[BranchStockOut] = []

class ProductTypeOut(BaseModel):
    description: str
    letter: Optional[str] = None
    sequence: int

    model_config = {"from_attributes": True}

class StoreItem(BaseModel):
    """Producto visible en la tienda con su existencia vendible."""
    id: int
    code: str
    description: str
    price1: float
    price2: float
    price3: float
    min1: int
    min2: int
    min3: int
    photo: Optional[str] = None
    type: Optional[str] = None
    available: int

class AdminInventoryItem(BaseModel):
    id: int
    code: str
    description: str
    units_per_case: int
    price1: float
    price2: float
    price3: float
    barcode: Optional[str] = None
    supplier_code: Optional[str] = None
    type: Optional[str] = None
    status: int
    is_active: bool
    # branch_id -> piezas + cajas * PzasxCaja
    stock: Dict[int, int]
