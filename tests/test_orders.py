"""
Tests for order placement: all-or-nothing persistence of header, lines,
cart removal and stock decrement.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from conftest import make_product, set_stock
from factory_api.core.errors import StockError, StorageError, ValidationFailed
from factory_api.models.sales import CartLine, Order, OrderLine
from factory_api.services.orders import OrderService, generate_invoice_no


def _count(db_session, model):
    return db_session.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.fixture
def filled_cart(db_session, cart_service, seed_products):
    screw, nut = seed_products
    cart_service.add_or_increment(db_session, "cli-1", screw.id, 1, 3)
    cart_service.add_or_increment(db_session, "cli-1", nut.id, 1, 2, price_snapshot=Decimal("4.00"))
    return screw, nut


class TestPlaceOrder:

    def test_success_writes_header_and_lines(self, db_session, order_service, filled_cart):
        result = order_service.place_order(db_session, "cli-1", 7, 1)

        assert result.line_count == 2
        assert result.total_qty == 5
        assert result.total_amount == Decimal("38.00")
        assert result.whatsapp_phone == "5215550001"

        orders = db_session.execute(select(Order)).scalars().all()
        assert len(orders) == 1
        assert orders[0].invoice_no == result.invoice_no
        assert orders[0].status == "PENDIENTE"
        assert orders[0].customer_id == 7

        lines = db_session.execute(select(OrderLine)).scalars().all()
        assert len(lines) == 2
        assert {line.invoice_no for line in lines} == {result.invoice_no}
        assert {line.order_id for line in lines} == {orders[0].id}
        assert _count(db_session, CartLine) == 0

    def test_success_decrements_stock(self, db_session, inventory, order_service, filled_cart):
        order_service.place_order(db_session, "cli-1", None, 1)
        assert inventory.get_available(db_session, 1, "1001") == 2
        assert inventory.get_available(db_session, 1, "1002") == 6

    def test_admission_only_mode_keeps_stock(self, db_session, inventory, filled_cart):
        service = OrderService(inventory, decrement_stock=False)
        service.place_order(db_session, "cli-1", None, 1)
        assert inventory.get_available(db_session, 1, "1001") == 5
        assert _count(db_session, Order) == 1

    def test_empty_cart_writes_nothing(self, db_session, order_service, seed_products):
        with pytest.raises(ValidationFailed) as exc_info:
            order_service.place_order(db_session, "nadie", None, 1)
        assert exc_info.value.code == "EMPTY_CART"
        assert _count(db_session, Order) == 0
        assert _count(db_session, OrderLine) == 0

    def test_insufficient_stock_rolls_back_everything(self, db_session, inventory, order_service, filled_cart):
        # La existencia bajó después de agregar al carrito
        set_stock(db_session, 1, "1001", 2)

        with pytest.raises(StockError) as exc_info:
            order_service.place_order(db_session, "cli-1", None, 1)

        assert exc_info.value.code == "INSUFFICIENT_STOCK"
        assert exc_info.value.details == [
            {
                "product_id": filled_cart[0].id,
                "code": "1001",
                "description": "TORNILLO 1/4",
                "available": 2,
                "requested": 3,
            }
        ]
        assert _count(db_session, Order) == 0
        assert _count(db_session, OrderLine) == 0
        assert _count(db_session, CartLine) == 2
        assert inventory.get_available(db_session, 1, "1002") == 8

    def test_every_deficient_line_is_reported(self, db_session, order_service, filled_cart):
        set_stock(db_session, 1, "1001", 0)
        set_stock(db_session, 1, "1002", 1)
        with pytest.raises(StockError) as exc_info:
            order_service.place_order(db_session, "cli-1", None, 1)
        assert [d["code"] for d in exc_info.value.details] == ["1001", "1002"]

    def test_checkout_against_other_branch_is_rejected(self, db_session, order_service, filled_cart):
        with pytest.raises(ValidationFailed) as exc_info:
            order_service.place_order(db_session, "cli-1", None, 2)
        assert exc_info.value.code == "DIFFERENT_BRANCH"
        assert _count(db_session, CartLine) == 2

    def test_mixed_branch_cart_cannot_be_ordered(self, db_session, order_service, filled_cart):
        washer = make_product(db_session, "1003", "RONDANA 1/4")
        db_session.add(CartLine(client_id="cli-1", product_id=washer.id, qty=1, unit_price=Decimal("10"), branch_id=2))
        db_session.commit()

        with pytest.raises(ValidationFailed) as exc_info:
            order_service.place_order(db_session, "cli-1", None, 1)

        assert exc_info.value.code == "DIFFERENT_BRANCH"
        assert _count(db_session, Order) == 0
        assert _count(db_session, CartLine) == 3

    def test_stock_rows_are_locked_in_code_order(self, db_session, inventory, cart_service, seed_products, monkeypatch):
        screw, nut = seed_products
        cart_service.add_or_increment(db_session, "cli-3", nut.id, 1, 1)
        cart_service.add_or_increment(db_session, "cli-3", screw.id, 1, 1)

        locked = []
        original = inventory.get_available

        def tracking_get_available(db, branch_id, code, lock=False):
            if lock:
                locked.append(code)
            return original(db, branch_id, code, lock=lock)

        monkeypatch.setattr(inventory, "get_available", tracking_get_available)
        OrderService(inventory, decrement_stock=False).place_order(db_session, "cli-3", None, 1)

        assert locked == ["1001", "1002"]

    def test_invoice_collision_rolls_back(self, db_session, inventory, cart_service, filled_cart):
        service = OrderService(inventory, invoice_factory=lambda: 123)
        service.place_order(db_session, "cli-1", None, 1)

        screw, _ = filled_cart
        cart_service.add_or_increment(db_session, "cli-2", screw.id, 1, 1)
        with pytest.raises(StorageError) as exc_info:
            service.place_order(db_session, "cli-2", None, 1)

        assert exc_info.value.code == "STORAGE_FAILURE"
        assert _count(db_session, Order) == 1
        assert _count(db_session, CartLine) == 1
        assert inventory.get_available(db_session, 1, "1001") == 2


def test_invoice_numbers_are_unique_in_practice():
    numbers = {generate_invoice_no() for _ in range(50)}
    assert len(numbers) > 1


def test_invoice_numbers_fit_in_a_json_safe_integer():
    # Los clientes JavaScript solo representan enteros exactos hasta 2**53
    assert generate_invoice_no() < 2 ** 53


class TestCheckoutEndpoint:

    def test_checkout_returns_invoice_and_contact(self, client, filled_cart):
        response = client.post(
            "/api/v1/orders/checkout",
            json={"client_id": "cli-1", "customer_id": 3, "branch_id": 1},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["lines"] == 2
        assert data["total_qty"] == 5
        assert data["total_amount"] == 38.0
        assert data["whatsapp_phone"] == "5215550001"
        assert isinstance(data["invoice_no"], int)

        response = client.get("/api/v1/cart/count", params={"client_id": "cli-1"})
        assert response.json() == {"total": 0}

    def test_checkout_empty_cart(self, client, seed_products):
        response = client.post(
            "/api/v1/orders/checkout", json={"client_id": "vacio", "branch_id": 1}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "EMPTY_CART"

    def test_checkout_insufficient_stock(self, client, db_session, filled_cart):
        set_stock(db_session, 1, "1002", 1)
        response = client.post(
            "/api/v1/orders/checkout", json={"client_id": "cli-1", "branch_id": 1}
        )
        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "STOCK"
        assert data["details"][0]["code"] == "1002"
        assert "Disponible: 1, Solicitado: 2" in data["message"]
