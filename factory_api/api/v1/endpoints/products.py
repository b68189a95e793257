# factory_api/api/v1/endpoints/products.py
# type: ignore

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from factory_api.api.deps import get_catalog_service
from factory_api.api.v1.endpoints.auth import require_permission
from factory_api.database import get_db
from factory_api.models.auth import User
from factory_api.models.inventory import Product
from factory_api.schemas.inventory import (
    BranchStockOut, ProductCreate, ProductDetail, ProductInDB, ProductTypeOut, ProductUpdate,
)
from factory_api.services.catalog import CatalogService

router = APIRouter()


def _to_detail(product: Product, stocks: dict) -> ProductDetail:
    detail = ProductDetail.model_validate(product)
    detail.stocks = [
        BranchStockOut(
            branch_id=branch_id,
            sellable=record.sellable if record else 0,
            warehouse=record.warehouse if record else 0,
            is_active=bool(record.is_active) if record else False,
        )
        for branch_id, record in stocks.items()
    ]
    return detail


# ***************************************************************
# 1. Catálogos auxiliares para el alta
# ***************************************************************
@router.get("/types", response_model=List[ProductTypeOut], tags=["Products"])
def read_product_types(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("productos.ver")),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.list_types(db)


@router.get("/next-code", tags=["Products"])
def read_next_code(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("productos.crear")),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Siguiente clave numérica sugerida."""
    return {"next_code": catalog.next_code(db)}


@router.get("/next-barcode", tags=["Products"])
def read_next_barcode(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("productos.crear")),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return {"next_barcode": catalog.next_barcode(db)}


# ***************************************************************
# 2. Consultar Producto por Clave (GET /{code})
# ***************************************************************
@router.get("/{code}", response_model=ProductDetail, tags=["Products"])
def read_product(
    code: str,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("productos.ver")),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Producto con sus existencias en cada sucursal."""
    product, stocks = catalog.get_product_with_stock(db, code)
    return _to_detail(product, stocks)


# ***************************************************************
# 3. Crear Producto (POST /)
# ***************************************************************
@router.post("/", response_model=ProductInDB, status_code=status.HTTP_201_CREATED, tags=["Products"])
def create_product(
    product_in: ProductCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("productos.crear")),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """
    Da de alta el producto y su registro de existencias (inactivo, en cero)
    en todas las sucursales. La clave debe ser única.
    """
    return catalog.create_product(db, product_in)


# ***************************************************************
# 4. Actualizar Producto (PUT /{code})
# ***************************************************************
@router.put("/{code}", response_model=ProductDetail, tags=["Products"])
def update_product(
    code: str,
    product_in: ProductUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("productos.editar")),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Actualiza datos, precios y (opcional) existencias por sucursal. La clave no cambia."""
    catalog.update_product(db, code, product_in)
    product, stocks = catalog.get_product_with_stock(db, code)
    return _to_detail(product, stocks)
