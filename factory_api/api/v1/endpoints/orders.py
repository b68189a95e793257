# factory_api/api/v1/endpoints/orders.py
# type: ignore

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from factory_api.api.deps import get_order_service, resolve_client_id
from factory_api.database import get_db
from factory_api.schemas.sales import CheckoutRequest, CheckoutResponse
from factory_api.services.orders import OrderService

router = APIRouter()


# ***************************************************************
# Finalizar pedido (POST /checkout)
# ***************************************************************
@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Orders"],
)
def checkout(
    request: Request,
    checkout_in: CheckoutRequest,
    db: Session = Depends(get_db),
    orders: OrderService = Depends(get_order_service),
):
    """
    Convierte el carrito en un pedido PENDIENTE. Si algún renglón no tiene
    existencia suficiente no se guarda nada y el carrito queda intacto.
    """
    result = orders.place_order(
        db,
        resolve_client_id(request, checkout_in.client_id),
        checkout_in.customer_id,
        checkout_in.branch_id,
    )
    return CheckoutResponse(
        message="Pedido realizado con éxito",
        invoice_no=result.invoice_no,
        whatsapp_phone=result.whatsapp_phone,
        total_qty=result.total_qty,
        total_amount=float(result.total_amount),
        lines=result.line_count,
    )
