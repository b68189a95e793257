# factory_api/models/inventory.py
# type: ignore

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Integer, Numeric, String, TIMESTAMP, column, func,
)
from sqlalchemy.orm import declared_attr

from factory_api.core.config import settings
from factory_api.database import Base


class ProductType(Base):
    """Catálogo de tipos de producto (CATTIPOPROD)."""
    __tablename__ = "CATTIPOPROD"

    description = Column("Descripcion", String(100), primary_key=True)
    letter = Column("Letra", String(5), nullable=True)
    # Se incrementa cada vez que se da de alta un producto de este tipo
    sequence = Column("Consecutivo", Integer, default=0, nullable=False)


class BarcodeConfig(Base):
    """Fila única con el siguiente código de barras sugerido."""
    __tablename__ = "config"

    id = Column(Integer, primary_key=True)
    next_barcode = Column("CB", String(50), nullable=False, default="1")


class Product(Base):
    """Producto. La Clave es independiente de la sucursal e inmutable."""
    __tablename__ = "productos"

    id = Column("Id", Integer, primary_key=True, autoincrement=True)
    code = Column("Clave", String(30), unique=True, index=True, nullable=False)
    description = Column("Descripcion", String(255), nullable=False)
    barcode = Column("CB", String(50), default="")
    supplier_code = Column("ClavePro", String(50), default="")

    # NUMERIC(12,2) para precisión financiera
    cost = Column("PCosto", Numeric(12, 2), default=0, nullable=False)
    cost_with_tax = Column("PCostoImp", Numeric(12, 2), default=0, nullable=False)
    units_per_case = Column("PzasxCaja", Integer, default=1, nullable=False)
    type = Column("Tipo", String(100), nullable=True)

    # Tres niveles de precio con su cantidad mínima de compra
    price1 = Column("Precio1", Numeric(12, 2), default=0, nullable=False)
    price2 = Column("Precio2", Numeric(12, 2), default=0, nullable=False)
    price3 = Column("Precio3", Numeric(12, 2), default=0, nullable=False)
    min1 = Column("Min1", Integer, default=0, nullable=False)
    min2 = Column("Min2", Integer, default=0, nullable=False)
    min3 = Column("Min3", Integer, default=0, nullable=False)

    # Utilidad y % de utilidad por nivel (derivados de precio y costo)
    profit1 = Column("Util1", Numeric(12, 2), default=0)
    profit2 = Column("Util2", Numeric(12, 2), default=0)
    profit3 = Column("Util3", Numeric(12, 2), default=0)
    profit_pct1 = Column("PorUtil1", Numeric(12, 2), default=0)
    profit_pct2 = Column("PorUtil2", Numeric(12, 2), default=0)
    profit_pct3 = Column("PorUtil3", Numeric(12, 2), default=0)

    created_at = Column("FIngreso", TIMESTAMP, default=func.now())
    is_active = Column("Activo", Boolean, default=True, nullable=False)
    status = Column("status", Integer, default=1, nullable=False)
    photo = Column("Foto", String(255), nullable=True)

    def price_tiers(self):
        """Pares (mínimo, precio) de los niveles con precio definido."""
        tiers = [
            (self.min1 or 0, self.price1),
            (self.min2 or 0, self.price2),
            (self.min3 or 0, self.price3),
        ]
        return [(minimum, price) for minimum, price in tiers if price]


class ExtraBarcode(Base):
    """Códigos de barras adicionales de un producto (codad)."""
    __tablename__ = "codad"

    code = Column("Clave", String(30), primary_key=True)
    barcode = Column("CB", String(50), primary_key=True)


# ***************************************************************
# Existencias por sucursal: una tabla almN por sucursal, misma forma
# ***************************************************************
class BranchStockMixin:
    code = Column("Clave", String(30), primary_key=True)
    # Piso de venta: lo único vendible directamente
    sellable = Column("ExisPVentas", Integer, default=0, nullable=False)
    # Bodega, en cajas (se multiplica por PzasxCaja en vistas de admin)
    warehouse = Column("ExisBodega", Integer, default=0, nullable=False)
    is_active = Column("ACTIVO", Boolean, default=False, nullable=False)

    @declared_attr
    def __table_args__(cls):
        return (
            CheckConstraint(column("ExisPVentas") >= 0, name=f"ck_{cls.__tablename__}_sellable"),
        )


def build_branch_stock_models(branch_count: int) -> dict:
    """Declara alm1..almN y devuelve el mapa explícito {branch_id: modelo}."""
    if branch_count < 1:
        raise ValueError("BRANCH_COUNT debe ser al menos 1")
    models = {}
    for branch_id in range(1, branch_count + 1):
        models[branch_id] = type(
            f"BranchStock{branch_id}",
            (BranchStockMixin, Base),
            {"__tablename__": f"alm{branch_id}", "branch_id": branch_id},
        )
    return models


BRANCH_STOCK_MODELS = build_branch_stock_models(settings.branch_count)
