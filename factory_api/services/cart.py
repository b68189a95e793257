# factory_api/services/cart.py
"""
Cart Store: carrito por cliente anónimo, ligado a una sola sucursal.

La existencia solo se lee aquí (reserva optimista); el descuento ocurre al
finalizar el pedido.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from factory_api.core.errors import NotFoundError, StockError, ValidationFailed
from factory_api.core.logging import get_logger
from factory_api.database import atomic
from factory_api.models.inventory import Product
from factory_api.models.platform import Branch
from factory_api.models.sales import CartLine
from factory_api.services.inventory import BranchInventoryStore

logger = get_logger(__name__)


@dataclass
class CartItemView:
    product_id: int
    code: str
    description: str
    photo: Optional[str]
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


def resolve_tier_price(product: Product, qty: int) -> Decimal:
    """Precio del nivel con el mayor mínimo alcanzado por `qty`."""
    chosen = product.price1 or Decimal("0")
    best_min = -1
    for minimum, price in product.price_tiers():
        if minimum <= qty and minimum > best_min:
            chosen, best_min = price, minimum
    return Decimal(chosen)


class CartService:
    def __init__(self, inventory: BranchInventoryStore):
        self.inventory = inventory

    def _lines(self, db: Session, client_id: str, lock: bool = False) -> List[CartLine]:
        stmt = select(CartLine).where(CartLine.client_id == client_id).order_by(CartLine.id)
        if lock:
            stmt = stmt.with_for_update()
        return list(db.execute(stmt).scalars().all())

    def add_or_increment(
        self,
        db: Session,
        client_id: str,
        product_id: int,
        branch_id: int,
        qty: int,
        price_snapshot: Optional[Decimal] = None,
        is_increment: bool = False,
    ) -> CartLine:
        with atomic(db):
            self.inventory.model_for(branch_id)

            product = db.get(Product, product_id)
            if product is None:
                raise NotFoundError("Producto", product_id)

            # Con el carrito vacío no hay filas que bloquear: dos primeras altas
            # simultáneas pueden quedar en sucursales distintas. El pedido
            # rechaza ese carrito con DIFFERENT_BRANCH.
            lines = self._lines(db, client_id, lock=True)
            if any(line.branch_id != branch_id for line in lines):
                raise ValidationFailed(
                    "DIFFERENT_BRANCH",
                    "El carrito ya tiene productos de otra sucursal. "
                    "Finaliza o vacía el carrito antes de cambiar de sucursal.",
                    {"cart_branch_id": lines[0].branch_id, "requested_branch_id": branch_id},
                )

            current_line = next((line for line in lines if line.product_id == product_id), None)
            current_qty = current_line.qty if current_line else 0
            final_qty = current_qty + qty if is_increment else qty

            if final_qty < 1:
                raise ValidationFailed("BELOW_MINIMUM", "La cantidad mínima permitida es 1 pieza.")

            available = self.inventory.get_available(db, branch_id, product.code)
            if final_qty > available:
                logger.info(
                    "Carrito %s: %s x%s rechazado en sucursal %s (disponible %s)",
                    client_id, product.code, final_qty, branch_id, available,
                )
                raise StockError(
                    "INSUFFICIENT_STOCK",
                    f"Stock insuficiente. Máximo disponible: {available}",
                    {"max_available": available, "requested": final_qty},
                )

            price = price_snapshot if price_snapshot is not None else resolve_tier_price(product, final_qty)

            if current_line is None:
                current_line = CartLine(
                    client_id=client_id,
                    product_id=product_id,
                    qty=final_qty,
                    unit_price=price,
                    branch_id=branch_id,
                )
            else:
                current_line.qty = final_qty
                current_line.unit_price = price
            db.add(current_line)
        return current_line

    def remove(self, db: Session, client_id: str, product_id: int) -> None:
        with atomic(db):
            db.execute(
                delete(CartLine).where(CartLine.client_id == client_id, CartLine.product_id == product_id)
            )

    def clear(self, db: Session, client_id: str) -> None:
        with atomic(db):
            db.execute(delete(CartLine).where(CartLine.client_id == client_id))

    def count(self, db: Session, client_id: str) -> int:
        total = db.execute(
            select(func.coalesce(func.sum(CartLine.qty), 0)).where(CartLine.client_id == client_id)
        ).scalar_one()
        return int(total)

    def list_items(self, db: Session, client_id: str) -> List[CartItemView]:
        lines = self._lines(db, client_id)
        branch_names = {}
        items = []
        for line in lines:
            if line.branch_id not in branch_names:
                branch = db.get(Branch, line.branch_id)
                branch_names[line.branch_id] = branch.name if branch else "Almacén"
            product = line.product
            items.append(
                CartItemView(
                    product_id=line.product_id,
                    code=product.code,
                    description=product.description,
                    photo=product.photo,
                    qty=line.qty,
                    unit_price=line.unit_price,
                    branch_id=line.branch_id,
                    branch_name=branch_names[line.branch_id],
                    available=self.inventory.get_available(db, line.branch_id, product.code),
                    price1=product.price1,
                    price2=product.price2,
                    price3=product.price3,
                    min2=product.min2,
                    min3=product.min3,
                )
            )
        return items
