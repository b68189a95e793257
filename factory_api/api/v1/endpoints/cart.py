# factory_api/api/v1/endpoints/cart.py
# type: ignore

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from factory_api.api.deps import get_cart_service, resolve_client_id
from factory_api.database import get_db
from factory_api.schemas.sales import (
    ActionResult, CartClear, CartCount, CartItemAdd, CartItemOut, CartItemRemove,
)
from factory_api.services.cart import CartService

router = APIRouter()


# ***************************************************************
# 1. Consultar el carrito
# ***************************************************************
@router.get("/", response_model=List[CartItemOut], tags=["Cart"])
def read_cart(
    request: Request,
    client_id: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
    cart: CartService = Depends(get_cart_service),
):
    """Renglones del carrito con la existencia vendible actual de su sucursal."""
    return cart.list_items(db, resolve_client_id(request, client_id))


@router.get("/count", response_model=CartCount, tags=["Cart"])
def read_cart_count(
    request: Request,
    client_id: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
    cart: CartService = Depends(get_cart_service),
):
    return CartCount(total=cart.count(db, resolve_client_id(request, client_id)))


# ***************************************************************
# 2. Agregar / incrementar
# ***************************************************************
@router.post("/items", response_model=ActionResult, tags=["Cart"])
def add_cart_item(
    request: Request,
    item_in: CartItemAdd,
    db: Session = Depends(get_db),
    cart: CartService = Depends(get_cart_service),
):
    """
    Con is_increment=true la cantidad se suma a la existente; si no, la
    reemplaza. La cantidad final se valida contra la existencia vendible.
    """
    line = cart.add_or_increment(
        db,
        resolve_client_id(request, item_in.client_id),
        item_in.product_id,
        item_in.branch_id,
        item_in.qty,
        price_snapshot=item_in.price,
        is_increment=item_in.is_increment,
    )
    return ActionResult(message=f"Carrito actualizado: {line.qty} pieza(s).")


# ***************************************************************
# 3. Quitar renglón / vaciar
# ***************************************************************
@router.post("/remove", response_model=ActionResult, tags=["Cart"])
def remove_cart_item(
    request: Request,
    item_in: CartItemRemove,
    db: Session = Depends(get_db),
    cart: CartService = Depends(get_cart_service),
):
    cart.remove(db, resolve_client_id(request, item_in.client_id), item_in.product_id)
    return ActionResult(message="Producto eliminado del carrito.")


@router.post("/clear", response_model=ActionResult, tags=["Cart"])
def clear_cart(
    request: Request,
    clear_in: CartClear,
    db: Session = Depends(get_db),
    cart: CartService = Depends(get_cart_service),
):
    cart.clear(db, resolve_client_id(request, clear_in.client_id))
    return ActionResult(message="Carrito vaciado.")
