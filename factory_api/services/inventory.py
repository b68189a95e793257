# factory_api/services/inventory.py
"""
Branch Inventory Store.

Cada sucursal tiene su propia tabla de existencias (alm1..almN). Las
sucursales se resuelven siempre a través del mapa explícito
{branch_id: modelo} construido al arrancar; nunca se arma el nombre de
tabla a partir de datos del request.
"""

from typing import Dict, Mapping, Optional

from sqlalchemy import inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from factory_api.core.errors import UnknownBranchError, ValidationFailed
from factory_api.core.logging import get_logger
from factory_api.models.inventory import BRANCH_STOCK_MODELS

logger = get_logger(__name__)


class BranchInventoryStore:
    def __init__(self, partitions: Mapping[int, type]):
        self._partitions = dict(partitions)

    @property
    def branch_ids(self) -> list[int]:
        return sorted(self._partitions)

    def model_for(self, branch_id: int) -> type:
        model = self._partitions.get(branch_id)
        if model is None:
            raise UnknownBranchError(branch_id)
        return model

    def validate(self, engine: Engine) -> None:
        """Verifica al arranque que cada partición configurada exista en la DB."""
        existing = set(inspect(engine).get_table_names())
        missing = [m.__tablename__ for m in self._partitions.values() if m.__tablename__ not in existing]
        if missing:
            raise RuntimeError(f"Faltan tablas de inventario por sucursal: {', '.join(missing)}")
        logger.info("Particiones de inventario verificadas: %s", self.branch_ids)

    def get_record(self, db: Session, branch_id: int, code: str, lock: bool = False):
        model = self.model_for(branch_id)
        stmt = select(model).where(model.code == code)
        if lock:
            # Bloqueo de fila: otra transacción no puede tocar esta existencia
            # hasta que la nuestra haga commit o rollback.
            stmt = stmt.with_for_update()
        return db.execute(stmt).scalars().first()

    def get_available(self, db: Session, branch_id: int, code: str, lock: bool = False) -> int:
        """Existencia vendible (ExisPVentas). Sin registro equivale a 0."""
        record = self.get_record(db, branch_id, code, lock=lock)
        if record is None or record.sellable is None:
            return 0
        return int(record.sellable)

    def decrement(self, db: Session, branch_id: int, code: str, amount: int) -> bool:
        """
        Descuenta `amount` del piso de venta. Lectura con bloqueo, validación
        y escritura dentro de la transacción del llamador; devuelve False si
        la existencia no alcanza (sin modificar nada).
        """
        if amount < 0:
            raise ValueError("amount must be non-negative")
        record = self.get_record(db, branch_id, code, lock=True)
        available = int(record.sellable or 0) if record is not None else 0
        if record is None or available < amount:
            return False
        record.sellable = available - amount
        db.add(record)
        return True

    def provision(self, db: Session, code: str) -> None:
        """Crea un registro inactivo y en cero en cada sucursal."""
        for branch_id in self.branch_ids:
            model = self._partitions[branch_id]
            db.add(model(code=code, sellable=0, warehouse=0, is_active=False))

    def set_stock(
        self,
        db: Session,
        branch_id: int,
        code: str,
        sellable: int,
        warehouse: int,
        is_active: bool,
    ) -> None:
        if sellable < 0 or warehouse < 0:
            raise ValidationFailed(
                "NEGATIVE_STOCK",
                f"La existencia de {code} en la sucursal {branch_id} no puede ser negativa.",
            )
        record = self.get_record(db, branch_id, code, lock=True)
        if record is None:
            record = self.model_for(branch_id)(code=code)
        record.sellable = sellable
        record.warehouse = warehouse
        record.is_active = is_active
        db.add(record)

    def stock_by_branch(self, db: Session, code: str) -> Dict[int, Optional[object]]:
        return {
            branch_id: self.get_record(db, branch_id, code)
            for branch_id in self.branch_ids
        }


inventory_store = BranchInventoryStore(BRANCH_STOCK_MODELS)
