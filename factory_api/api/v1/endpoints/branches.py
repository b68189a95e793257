# factory_api/api/v1/endpoints/branches.py
# type: ignore
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from factory_api.api.deps import get_catalog_service
from factory_api.database import get_db
from factory_api.schemas.platform import BranchContact, BranchInDB
from factory_api.services.catalog import CatalogService

router = APIRouter()


# ***************************************************************
# Sucursales (lectura pública)
# ***************************************************************
@router.get("/", response_model=List[BranchInDB], tags=["Branches"])
def read_branches(
    app_only: bool = Query(False, description="Solo sucursales visibles en la app"),
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.list_branches(db, app_only=app_only)


@router.get("/{branch_id}/contact", response_model=BranchContact, tags=["Branches"])
def read_branch_contact(
    branch_id: int,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Teléfono de WhatsApp al que se avisan los pedidos de la sucursal."""
    return BranchContact(branch_id=branch_id, whatsapp_phone=catalog.branch_contact(db, branch_id))
