# factory_api/api/v1/endpoints/inventory.py
# type: ignore

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from factory_api.api.deps import get_catalog_service
from factory_api.api.v1.endpoints.auth import require_permission
from factory_api.database import get_db
from factory_api.models.auth import User
from factory_api.schemas.inventory import AdminInventoryItem, StoreItem
from factory_api.services.catalog import CatalogService

router = APIRouter()


# ***************************************************************
# 1. Inventario de la tienda (público, por sucursal)
# ***************************************************************
@router.get("/", response_model=List[StoreItem], tags=["Inventory"])
def read_store_inventory(
    branch_id: int = Query(1, ge=1, description="Sucursal"),
    q: Optional[str] = Query(None, description="Busca en clave, descripción y tipo"),
    page: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Solo productos activos con existencia vendible en la sucursal."""
    return [
        StoreItem(
            id=product.id,
            code=product.code,
            description=product.description,
            price1=float(product.price1 or 0),
            price2=float(product.price2 or 0),
            price3=float(product.price3 or 0),
            min1=product.min1 or 0,
            min2=product.min2 or 0,
            min3=product.min3 or 0,
            photo=product.photo,
            type=product.type,
            available=available,
        )
        for product, available in catalog.store_inventory(db, branch_id, q, page)
    ]


# ***************************************************************
# 2. Inventario de administración (todas las sucursales)
# ***************************************************************
@router.get("/admin", response_model=List[AdminInventoryItem], tags=["Inventory"])
def read_admin_inventory(
    q: Optional[str] = Query(None, description="Busca en clave, descripción, código de barras y clave de proveedor"),
    page: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("productos.ver")),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return [
        AdminInventoryItem(
            id=product.id,
            code=product.code,
            description=product.description,
            units_per_case=product.units_per_case or 1,
            price1=float(product.price1 or 0),
            price2=float(product.price2 or 0),
            price3=float(product.price3 or 0),
            barcode=product.barcode,
            supplier_code=product.supplier_code,
            type=product.type,
            status=product.status,
            is_active=product.is_active,
            stock=stock,
        )
        for product, stock in catalog.admin_inventory(db, q, page)
    ]
