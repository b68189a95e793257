# factory_api/models/reports.py
# type: ignore

from sqlalchemy import Column, Integer, Numeric, String, TIMESTAMP

from factory_api.database import Base


class CashRegister(Base):
    """Corte vigente de cada caja (catcaja)."""
    __tablename__ = "catcaja"

    id = Column(Integer, primary_key=True, autoincrement=True)
    branch_id = Column("NumSuc", Integer, nullable=False)
    register_no = Column("NumCaja", Integer, nullable=False)
    cashier_name = Column("Nombre", String(100), default="")
    cash = Column("Efectivo", Numeric(14, 2), default=0)
    card = Column("Tarjeta", Numeric(14, 2), default=0)
    bank = Column("Cheque", Numeric(14, 2), default=0)
    refunds = Column("Devolucion", Numeric(14, 2), default=0)
    withdrawals = Column("Retiro", Numeric(14, 2), default=0)


class DailySale(Base):
    """Cierre diario por caja (venta_diaria)."""
    __tablename__ = "venta_diaria"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column("Fecha", TIMESTAMP, nullable=False)
    branch_id = Column("NumSuc", Integer, nullable=False)
    register_no = Column("NumCaja", Integer, nullable=False)
    cash = Column("Efectivo", Numeric(14, 2), default=0)
    card = Column("Tarjeta", Numeric(14, 2), default=0)
    bank = Column("Cheque", Numeric(14, 2), default=0)
    withdrawals = Column("Retiro", Numeric(14, 2), default=0)
    net_cash = Column("Entregar", Numeric(14, 2), default=0)


class Withdrawal(Base):
    """Retiro de efectivo de una caja."""
    __tablename__ = "retiros"

    id = Column("Id", Integer, primary_key=True, autoincrement=True)
    branch_id = Column("NumSuc", Integer, nullable=False)
    register_no = Column("NumCaja", Integer, nullable=False)
    reason = Column("Motivo", String(255), default="")
    amount = Column("Monto", Numeric(14, 2), nullable=False)
    seller_id = Column("Vendedor", Integer, nullable=True)
    date = Column("Fecha", TIMESTAMP, nullable=False)
