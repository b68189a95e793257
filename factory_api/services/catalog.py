# factory_api/services/catalog.py
"""
Catálogo: alta y edición de productos, listados de tienda y de
administración, y consulta de sucursales.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import exists, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from factory_api.core.errors import ConflictError, NotFoundError, ValidationFailed
from factory_api.core.logging import get_logger
from factory_api.database import atomic
from factory_api.models.inventory import BarcodeConfig, ExtraBarcode, Product, ProductType
from factory_api.models.platform import Branch
from factory_api.schemas.inventory import ProductCreate, ProductUpdate
from factory_api.services.inventory import BranchInventoryStore

logger = get_logger(__name__)

STORE_PAGE_SIZE = 10
ADMIN_PAGE_SIZE = 15


def calculate_margin(price, cost) -> Tuple[Decimal, Decimal]:
    """Utilidad y % de utilidad sobre costo. Precio 0 => (0, 0)."""
    price = Decimal(price or 0)
    cost = Decimal(cost or 0)
    if price == 0:
        return Decimal("0"), Decimal("0")
    profit = price - cost
    pct = (profit / cost * 100) if cost > 0 else Decimal("0")
    return profit.quantize(Decimal("0.01")), pct.quantize(Decimal("0.01"))


def _apply_margins(product: Product) -> None:
    for tier in (1, 2, 3):
        profit, pct = calculate_margin(getattr(product, f"price{tier}"), product.cost)
        setattr(product, f"profit{tier}", profit)
        setattr(product, f"profit_pct{tier}", pct)


def _search_pattern(q: Optional[str]) -> Optional[str]:
    q = (q or "").strip().lower()
    return f"%{q}%" if q else None


class CatalogService:
    def __init__(self, inventory: BranchInventoryStore):
        self.inventory = inventory

    # ----------------------------------------------------------------
    # Tipos, claves y códigos sugeridos
    # ----------------------------------------------------------------
    def list_types(self, db: Session) -> List[ProductType]:
        return list(db.execute(select(ProductType).order_by(ProductType.description)).scalars().all())

    def next_code(self, db: Session) -> str:
        """Siguiente clave numérica (las claves no numéricas se ignoran)."""
        codes = db.execute(select(Product.code)).scalars().all()
        numeric = [int(code.strip()) for code in codes if code and code.strip().isdecimal()]
        return str(max(numeric) + 1 if numeric else 1)

    def next_barcode(self, db: Session) -> str:
        config = db.execute(select(BarcodeConfig).limit(1)).scalars().first()
        return str(config.next_barcode).strip() if config else ""

    # ----------------------------------------------------------------
    # Productos
    # ----------------------------------------------------------------
    def get_product(self, db: Session, code: str) -> Product:
        product = db.execute(select(Product).where(Product.code == code)).scalars().first()
        if product is None:
            raise NotFoundError("Producto", code)
        return product

    def get_product_with_stock(self, db: Session, code: str) -> Tuple[Product, Dict[int, object]]:
        product = self.get_product(db, code)
        return product, self.inventory.stock_by_branch(db, product.code)

    def create_product(self, db: Session, data: ProductCreate) -> Product:
        code = data.code.strip()
        if not code:
            raise ValidationFailed("INVALID_CODE", "La clave del producto no puede estar vacía.")
        with atomic(db):
            if db.execute(select(Product.id).where(Product.code == code)).first():
                logger.info("Alta rechazada: la clave %s ya existe", code)
                raise ConflictError(
                    "DUPLICATE_PRODUCT_CODE",
                    f'La clave "{code}" ya está registrada. Por favor, usa otra.',
                    {"code": code},
                )

            product = Product(
                code=code,
                description=data.description.upper(),
                barcode=data.barcode or "",
                supplier_code=data.supplier_code or "",
                cost=data.cost,
                cost_with_tax=data.cost,
                units_per_case=data.units_per_case or 1,
                type=data.type,
                price1=data.price1,
                price2=data.price2,
                price3=data.price3,
                min1=data.min1,
                min2=data.min2,
                min3=data.min3,
                is_active=True,
                status=1,
            )
            _apply_margins(product)
            db.add(product)
            try:
                db.flush()
            except IntegrityError as exc:
                # Otra alta concurrente ganó la misma clave
                raise ConflictError(
                    "DUPLICATE_PRODUCT_CODE",
                    f'La clave "{code}" ya está registrada. Por favor, usa otra.',
                    {"code": code},
                ) from exc

            # Un registro de existencias por sucursal, inactivo y en cero
            self.inventory.provision(db, code)

            if data.type:
                product_type = db.execute(
                    select(ProductType).where(ProductType.description == data.type).with_for_update()
                ).scalars().first()
                if product_type is not None:
                    product_type.sequence = (product_type.sequence or 0) + 1

            self._advance_barcode(db, data.barcode)

        db.refresh(product)
        logger.info("Producto %s dado de alta (tipo %s)", code, data.type)
        return product

    def _advance_barcode(self, db: Session, used_barcode: Optional[str]) -> None:
        """Solo avanza el folio si se usó exactamente el código sugerido."""
        config = db.execute(select(BarcodeConfig).limit(1).with_for_update()).scalars().first()
        if config is None:
            return
        suggested = str(config.next_barcode).strip()
        received = (used_barcode or "").strip()
        if received and received == suggested and suggested.isdigit():
            config.next_barcode = str(int(suggested) + 1)
            logger.debug("Folio de código de barras avanzado a %s", config.next_barcode)

    def update_product(self, db: Session, code: str, data: ProductUpdate) -> Product:
        with atomic(db):
            product = db.execute(
                select(Product).where(Product.code == code).with_for_update()
            ).scalars().first()
            if product is None:
                raise NotFoundError("Producto", code)

            update_data = data.model_dump(exclude_unset=True, exclude={"stocks"})
            for key, value in update_data.items():
                if value is None:
                    continue
                if key == "description":
                    value = value.upper()
                setattr(product, key, value)
            if "cost" in update_data and update_data["cost"] is not None:
                product.cost_with_tax = update_data["cost"]
            _apply_margins(product)
            db.add(product)

            for branch_id, stock in (data.stocks or {}).items():
                self.inventory.set_stock(
                    db, branch_id, product.code, stock.sellable, stock.warehouse, stock.is_active
                )

        db.refresh(product)
        logger.info("Producto %s actualizado", code)
        return product

    # ----------------------------------------------------------------
    # Listados
    # ----------------------------------------------------------------
    def store_inventory(
        self, db: Session, branch_id: int, q: Optional[str] = None, page: int = 0
    ) -> List[Tuple[Product, int]]:
        """Productos activos con existencia vendible en la sucursal."""
        stock = self.inventory.model_for(branch_id)
        available = func.coalesce(stock.sellable, 0)
        stmt = (
            select(Product, available)
            .outerjoin(stock, stock.code == Product.code)
            .where(Product.status == 1, available > 0)
        )
        pattern = _search_pattern(q)
        if pattern:
            stmt = stmt.where(
                or_(
                    func.lower(Product.code).like(pattern),
                    func.lower(Product.description).like(pattern),
                    func.lower(Product.type).like(pattern),
                )
            )
        stmt = stmt.order_by(Product.description).limit(STORE_PAGE_SIZE).offset(page * STORE_PAGE_SIZE)
        return [(product, int(qty)) for product, qty in db.execute(stmt).all()]

    def admin_inventory(
        self, db: Session, q: Optional[str] = None, page: int = 0
    ) -> List[Tuple[Product, Dict[int, int]]]:
        """Todas las sucursales; existencia = piezas + cajas * PzasxCaja."""
        stmt = select(Product)
        pattern = _search_pattern(q)
        if pattern:
            stmt = stmt.where(
                or_(
                    func.lower(Product.code).like(pattern),
                    func.lower(Product.description).like(pattern),
                    func.lower(Product.barcode).like(pattern),
                    func.lower(Product.supplier_code).like(pattern),
                    exists().where(
                        ExtraBarcode.code == Product.code,
                        func.lower(ExtraBarcode.barcode).like(pattern),
                    ),
                )
            )
        stmt = stmt.order_by(Product.id.desc()).limit(ADMIN_PAGE_SIZE).offset(page * ADMIN_PAGE_SIZE)
        products = list(db.execute(stmt).scalars().all())

        result = []
        for product in products:
            per_case = product.units_per_case or 1
            totals = {}
            for branch_id, record in self.inventory.stock_by_branch(db, product.code).items():
                if record is None:
                    totals[branch_id] = 0
                else:
                    totals[branch_id] = int(record.sellable or 0) + int(record.warehouse or 0) * per_case
            result.append((product, totals))
        return result

    # ----------------------------------------------------------------
    # Sucursales
    # ----------------------------------------------------------------
    def list_branches(self, db: Session, app_only: bool = False) -> List[Branch]:
        stmt = select(Branch)
        if app_only:
            stmt = stmt.where(Branch.app_visible.is_(True))
        return list(db.execute(stmt.order_by(Branch.id)).scalars().all())

    def branch_contact(self, db: Session, branch_id: int) -> str:
        self.inventory.model_for(branch_id)
        branch = db.get(Branch, branch_id)
        if branch is None:
            raise NotFoundError("Sucursal", branch_id)
        return branch.whatsapp_phone or ""
