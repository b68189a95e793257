# factory_api/services/orders.py
"""
Order Placement Workflow.

Convierte el carrito de un cliente en un pedido PENDIENTE dentro de una sola
transacción: o se guarda todo (encabezado, renglones, carrito vacío y, si
está habilitado, existencias descontadas) o no se guarda nada.
"""

import secrets
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from factory_api.core.errors import StockError, ValidationFailed
from factory_api.core.logging import get_logger
from factory_api.database import atomic
from factory_api.models.platform import Branch
from factory_api.models.sales import CartLine, ORDER_STATUS_PENDING, Order, OrderLine
from factory_api.services.inventory import BranchInventoryStore

logger = get_logger(__name__)


def generate_invoice_no() -> int:
    """
    Folio derivado del reloj en milisegundos más dos dígitos aleatorios.
    Es único en la práctica, no garantizado: una colisión choca con el
    índice único de orders.invoice_no y el pedido se revierte.
    """
    return int(time.time() * 1000) * 100 + secrets.randbelow(100)


@dataclass
class OrderPlacementResult:
    invoice_no: int
    order_id: int
    total_qty: int
    total_amount: Decimal
    line_count: int
    # Canal de aviso de la sucursal; informativo, no altera estado
    whatsapp_phone: str = ""
    lines: List[dict] = field(default_factory=list)


class OrderService:
    def __init__(
        self,
        inventory: BranchInventoryStore,
        decrement_stock: bool = True,
        invoice_factory: Callable[[], int] = generate_invoice_no,
    ):
        self.inventory = inventory
        self.decrement_stock = decrement_stock
        self.invoice_factory = invoice_factory

    def place_order(
        self,
        db: Session,
        client_id: str,
        customer_id: Optional[int],
        branch_id: int,
    ) -> OrderPlacementResult:
        self.inventory.model_for(branch_id)

        with atomic(db):
            # 1. Renglones del carrito (bloqueados para este cliente)
            cart_lines = list(
                db.execute(
                    select(CartLine)
                    .where(CartLine.client_id == client_id)
                    .order_by(CartLine.id)
                    .with_for_update()
                ).scalars().all()
            )
            if not cart_lines:
                raise ValidationFailed("EMPTY_CART", "El carrito está vacío.")

            foreign = sorted({line.branch_id for line in cart_lines if line.branch_id != branch_id})
            if foreign:
                raise ValidationFailed(
                    "DIFFERENT_BRANCH",
                    "El carrito pertenece a otra sucursal.",
                    {"cart_branch_ids": foreign, "requested_branch_id": branch_id},
                )

            # 2. Validación de existencia real, con bloqueo de fila en orden
            # ascendente de clave
            stock_by_code = {}
            for code in sorted({line.product.code for line in cart_lines}):
                stock_by_code[code] = self.inventory.get_available(db, branch_id, code, lock=True)

            deficient = []
            for line in cart_lines:
                product = line.product
                available = stock_by_code[product.code]
                if available < line.qty:
                    deficient.append(
                        {
                            "product_id": product.id,
                            "code": product.code,
                            "description": product.description,
                            "available": available,
                            "requested": line.qty,
                        }
                    )
            if deficient:
                logger.warning(
                    "Pedido rechazado para %s en sucursal %s: %d renglón(es) sin existencia",
                    client_id, branch_id, len(deficient),
                )
                message = "; ".join(
                    f"Stock insuficiente para: {d['description']}. "
                    f"Disponible: {d['available']}, Solicitado: {d['requested']}"
                    for d in deficient
                )
                raise StockError("INSUFFICIENT_STOCK", message, deficient)

            # 3. Folio
            invoice_no = self.invoice_factory()
            total_qty = sum(line.qty for line in cart_lines)
            total_amount = sum((Decimal(line.unit_price) * line.qty for line in cart_lines), Decimal("0"))

            # 4. Encabezado y renglones
            order = Order(
                invoice_no=invoice_no,
                customer_id=customer_id or 0,
                branch_id=branch_id,
                total_qty=total_qty,
                total_amount=total_amount,
                status=ORDER_STATUS_PENDING,
            )
            db.add(order)
            db.flush()

            result_lines = []
            for line in cart_lines:
                db.add(
                    OrderLine(
                        order_id=order.id,
                        invoice_no=invoice_no,
                        customer_id=customer_id or 0,
                        product_id=line.product_id,
                        qty=line.qty,
                        unit_price=line.unit_price,
                        status=ORDER_STATUS_PENDING,
                        branch_id=branch_id,
                    )
                )
                if self.decrement_stock:
                    # Ya validado bajo el mismo bloqueo; no puede fallar salvo
                    # que otro renglón del mismo producto haya consumido la existencia.
                    if not self.inventory.decrement(db, branch_id, line.product.code, line.qty):
                        raise StockError(
                            "INSUFFICIENT_STOCK",
                            f"Stock insuficiente para: {line.product.description}.",
                            [{"product_id": line.product_id, "requested": line.qty}],
                        )
                result_lines.append(
                    {"product_id": line.product_id, "qty": line.qty, "unit_price": line.unit_price}
                )

            # 5. Vaciar carrito
            db.execute(delete(CartLine).where(CartLine.client_id == client_id))
            order_id = order.id
        # 6. commit hecho por atomic()

        # 7. Canal de contacto de la sucursal
        branch = db.get(Branch, branch_id)
        whatsapp_phone = (branch.whatsapp_phone or "") if branch else ""

        logger.info(
            "Pedido %s guardado: cliente=%s sucursal=%s piezas=%s",
            invoice_no, client_id, branch_id, total_qty,
        )
        return OrderPlacementResult(
            invoice_no=invoice_no,
            order_id=order_id,
            total_qty=total_qty,
            total_amount=total_amount,
            line_count=len(cart_lines),
            whatsapp_phone=whatsapp_phone,
            lines=result_lines,
        )
