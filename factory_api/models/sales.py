# factory_api/models/sales.py
# type: ignore

from sqlalchemy import (
    BigInteger, Column, ForeignKey, Integer, Numeric, String, TIMESTAMP, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship

from factory_api.database import Base

ORDER_STATUS_PENDING = "PENDIENTE"


class Customer(Base):
    """Cliente de la tienda en línea (se identifica por su celular)."""
    __tablename__ = "clientes"

    id = Column("Id", Integer, primary_key=True, autoincrement=True)
    # Clave corta: últimos 5 dígitos del celular
    short_key = Column("Nombre", String(20), nullable=False)
    full_name = Column("Nombre2", String(150), nullable=False)
    email = Column(String(150), default="")
    password_hash = Column("Password", String(255), nullable=False)
    street = Column("Calle", String(150), default="")
    neighborhood = Column("Barrio", String(100), default="")
    postal_code = Column("CP", String(10), default="")
    city = Column("Ciudad", String(100), default="")
    state = Column("Estado", String(100), default="")
    phone = Column("Cel", String(30), unique=True, index=True, nullable=False)
    balance = Column("Saldo", Numeric(12, 2), default=0)
    credit_limit = Column("LimiteCred", Numeric(12, 2), default=0)


class CartLine(Base):
    """Renglón del carrito de un cliente anónimo (ip_add)."""
    __tablename__ = "cart"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column("ip_add", String(100), index=True, nullable=False)
    product_id = Column("p_id", Integer, ForeignKey("productos.Id"), nullable=False)
    qty = Column(Integer, nullable=False)
    unit_price = Column("p_price", Numeric(12, 2), nullable=False)
    branch_id = Column("num_suc", Integer, nullable=False)

    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("ip_add", "p_id", name="uq_cart_client_product"),
    )


class Order(Base):
    """Encabezado del pedido; agrupa los renglones bajo un mismo folio."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_no = Column(BigInteger, unique=True, index=True, nullable=False)
    customer_id = Column(Integer, nullable=False, default=0)
    branch_id = Column("num_suc", Integer, nullable=False)
    total_qty = Column(Integer, nullable=False)
    total_amount = Column(Numeric(14, 2), nullable=False)
    status = Column("order_status", String(20), nullable=False, default=ORDER_STATUS_PENDING)
    created_at = Column("order_date", TIMESTAMP, default=func.now())

    lines = relationship("OrderLine", back_populates="order", cascade="all, delete-orphan")


class OrderLine(Base):
    __tablename__ = "pending_orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    invoice_no = Column(BigInteger, index=True, nullable=False)
    customer_id = Column(Integer, nullable=False, default=0)
    product_id = Column(Integer, ForeignKey("productos.Id"), nullable=False)
    qty = Column(Integer, nullable=False)
    unit_price = Column("p_price", Numeric(12, 2), nullable=False)
    status = Column("order_status", String(20), nullable=False, default=ORDER_STATUS_PENDING)
    branch_id = Column("num_suc", Integer, nullable=False)
    created_at = Column("order_date", TIMESTAMP, default=func.now())

    order = relationship("Order", back_populates="lines")
