"""
Tests for the catalog: product creation fan-out, updates with per-branch
stock, storefront and admin inventory listings, and branches.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from conftest import make_product, set_stock
from factory_api.core.errors import ConflictError, NotFoundError, ValidationFailed
from factory_api.models.inventory import ExtraBarcode, Product, ProductType
from factory_api.schemas.inventory import ProductCreate, ProductUpdate, StockEdit
from factory_api.services.catalog import calculate_margin


def _new_product(**overrides):
    data = {
        "code": "2001",
        "description": "martillo de uña",
        "cost": Decimal("50.00"),
        "units_per_case": 6,
        "type": "FERRETERIA",
        "price1": Decimal("80.00"),
        "price2": Decimal("75.00"),
        "min1": 1,
        "min2": 3,
    }
    data.update(overrides)
    return ProductCreate(**data)


class TestMargins:

    def test_margin_over_cost(self):
        assert calculate_margin(Decimal("80"), Decimal("50")) == (Decimal("30.00"), Decimal("60.00"))

    def test_zero_price_has_no_margin(self):
        assert calculate_margin(0, Decimal("50")) == (Decimal("0"), Decimal("0"))

    def test_zero_cost_has_no_percentage(self):
        assert calculate_margin(Decimal("10"), 0) == (Decimal("10.00"), Decimal("0.00"))


class TestCreateProduct:

    def test_create_provisions_every_branch(self, db_session, catalog_service, inventory, seed_catalog_config):
        product = catalog_service.create_product(db_session, _new_product())

        assert product.description == "MARTILLO DE UÑA"
        assert product.profit1 == Decimal("30.00")
        for branch_id in inventory.branch_ids:
            record = inventory.get_record(db_session, branch_id, "2001")
            assert record is not None
            assert record.sellable == 0
            assert record.is_active is False

    def test_create_advances_type_sequence(self, db_session, catalog_service, seed_catalog_config):
        catalog_service.create_product(db_session, _new_product())
        assert db_session.get(ProductType, "FERRETERIA").sequence == 5

    def test_suggested_barcode_advances_only_when_used(self, db_session, catalog_service, seed_catalog_config):
        catalog_service.create_product(db_session, _new_product(code="A1", barcode="999"))
        assert catalog_service.next_barcode(db_session) == "750100"

        catalog_service.create_product(db_session, _new_product(code="A2", barcode="750100"))
        assert catalog_service.next_barcode(db_session) == "750101"

    def test_duplicate_code_writes_nothing(self, db_session, catalog_service, seed_catalog_config):
        catalog_service.create_product(db_session, _new_product())
        with pytest.raises(ConflictError) as exc_info:
            catalog_service.create_product(db_session, _new_product(description="otro"))
        assert exc_info.value.code == "DUPLICATE_PRODUCT_CODE"
        assert db_session.get(ProductType, "FERRETERIA").sequence == 5

    def test_next_code_ignores_non_numeric(self, db_session, catalog_service, seed_products):
        make_product(db_session, "ABC", "ETIQUETA")
        assert catalog_service.next_code(db_session) == "1003"

    def test_next_code_ignores_superscript_digits(self, db_session, catalog_service, seed_products):
        make_product(db_session, "1²", "EXPONENTE")
        assert catalog_service.next_code(db_session) == "1003"

    def test_blank_code_is_rejected(self, db_session, catalog_service, seed_catalog_config):
        with pytest.raises(ValidationFailed) as exc_info:
            catalog_service.create_product(db_session, _new_product(code="   "))
        assert exc_info.value.code == "INVALID_CODE"
        assert db_session.execute(select(Product)).first() is None

    def test_next_code_on_empty_catalog(self, db_session, catalog_service):
        assert catalog_service.next_code(db_session) == "1"

    def test_next_barcode_without_config(self, db_session, catalog_service):
        assert catalog_service.next_barcode(db_session) == ""


class TestUpdateProduct:

    def test_update_prices_and_stock(self, db_session, catalog_service, inventory, seed_products):
        update = ProductUpdate(
            description="tornillo 3/8",
            price1=Decimal("12.00"),
            stocks={1: StockEdit(sellable=40, warehouse=2, is_active=True)},
        )
        product = catalog_service.update_product(db_session, "1001", update)

        assert product.code == "1001"
        assert product.description == "TORNILLO 3/8"
        assert product.profit1 == Decimal("7.00")
        record = inventory.get_record(db_session, 1, "1001")
        assert (record.sellable, record.warehouse, record.is_active) == (40, 2, True)
        # Las demás sucursales no cambian
        assert inventory.get_available(db_session, 2, "1001") == 20

    def test_update_unknown_product(self, db_session, catalog_service, seed_products):
        with pytest.raises(NotFoundError):
            catalog_service.update_product(db_session, "NOPE", ProductUpdate(price1=Decimal("1")))


class TestListings:

    def test_store_inventory_only_lists_stocked_products(self, db_session, catalog_service, seed_products):
        rows = catalog_service.store_inventory(db_session, 2)
        assert [(p.code, qty) for p, qty in rows] == [("1001", 20)]

    def test_store_inventory_search(self, db_session, catalog_service, seed_products):
        rows = catalog_service.store_inventory(db_session, 1, q="tuerca")
        assert [p.code for p, _ in rows] == ["1002"]

    def test_store_inventory_hides_inactive_status(self, db_session, catalog_service, seed_products):
        make_product(db_session, "3001", "DESCONTINUADO", status=0)
        set_stock(db_session, 1, "3001", 10)
        codes = [p.code for p, _ in catalog_service.store_inventory(db_session, 1)]
        assert "3001" not in codes

    def test_admin_search_matches_extra_barcodes(self, db_session, catalog_service, seed_products):
        db_session.add(ExtraBarcode(code="1002", barcode="7501234567890"))
        db_session.commit()
        rows = catalog_service.admin_inventory(db_session, q="4567")
        assert [p.code for p, _ in rows] == ["1002"]

    def test_admin_inventory_multiplies_cases(self, db_session, catalog_service, seed_products):
        set_stock(db_session, 3, "1001", 4, warehouse=2)
        rows = dict((p.code, stock) for p, stock in catalog_service.admin_inventory(db_session))
        # 4 piezas + 2 cajas * 12 piezas
        assert rows["1001"][3] == 28
        assert rows["1001"][1] == 5
        assert rows["1002"][2] == 0


class TestProductEndpoints:

    def test_create_requires_permission(self, client, cashier_headers, seed_catalog_config):
        response = client.post(
            "/api/v1/products/",
            headers=cashier_headers,
            json={"code": "9", "description": "x"},
        )
        assert response.status_code == 403

    def test_create_and_read(self, client, auth_headers, seed_catalog_config):
        response = client.post(
            "/api/v1/products/",
            headers=auth_headers,
            json={"code": "2001", "description": "martillo", "cost": 50, "price1": 80, "type": "FERRETERIA"},
        )
        assert response.status_code == 201
        assert response.json()["price1"] == 80.0
        assert response.json()["profit_pct1"] == 60.0

        response = client.get("/api/v1/products/2001", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["description"] == "MARTILLO"
        assert [s["branch_id"] for s in data["stocks"]] == [1, 2, 3, 4, 5]

    def test_blank_code_over_http(self, client, auth_headers, seed_catalog_config):
        response = client.post(
            "/api/v1/products/",
            headers=auth_headers,
            json={"code": "   ", "description": "x"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_CODE"

    def test_duplicate_code_over_http(self, client, auth_headers, seed_products):
        response = client.post(
            "/api/v1/products/",
            headers=auth_headers,
            json={"code": "1001", "description": "repetido"},
        )
        assert response.status_code == 409
        data = response.json()
        assert data["kind"] == "CONFLICT"
        assert data["error"] == "DUPLICATE_PRODUCT_CODE"

    def test_update_with_stocks(self, client, auth_headers, seed_products):
        response = client.put(
            "/api/v1/products/1002",
            headers=auth_headers,
            json={"price1": 5, "stocks": {"2": {"sellable": 7, "warehouse": 1, "is_active": True}}},
        )
        assert response.status_code == 200
        stocks = {s["branch_id"]: s for s in response.json()["stocks"]}
        assert stocks[2]["sellable"] == 7
        assert stocks[2]["is_active"] is True

    def test_update_with_unknown_branch(self, client, auth_headers, seed_products):
        response = client.put(
            "/api/v1/products/1002",
            headers=auth_headers,
            json={"stocks": {"9": {"sellable": 1}}},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "UNKNOWN_BRANCH"

    def test_unknown_product(self, client, auth_headers):
        response = client.get("/api/v1/products/NOPE", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "PRODUCTO_NOT_FOUND"

    def test_types_and_suggestions(self, client, auth_headers, seed_catalog_config):
        assert client.get("/api/v1/products/types", headers=auth_headers).json()[0]["description"] == "FERRETERIA"
        assert client.get("/api/v1/products/next-code", headers=auth_headers).json() == {"next_code": "1"}
        assert client.get("/api/v1/products/next-barcode", headers=auth_headers).json() == {"next_barcode": "750100"}


class TestInventoryAndBranchEndpoints:

    def test_storefront_inventory(self, client, seed_products):
        response = client.get("/api/v1/inventory/", params={"branch_id": 1})
        assert response.status_code == 200
        assert {item["code"]: item["available"] for item in response.json()} == {"1001": 5, "1002": 8}

    def test_storefront_unknown_branch(self, client, seed_products):
        response = client.get("/api/v1/inventory/", params={"branch_id": 50})
        assert response.status_code == 400

    def test_admin_inventory_requires_auth(self, client, seed_products):
        assert client.get("/api/v1/inventory/admin").status_code == 401

    def test_admin_inventory(self, client, cashier_headers, seed_products):
        response = client.get("/api/v1/inventory/admin", headers=cashier_headers)
        assert response.status_code == 200
        by_code = {item["code"]: item for item in response.json()}
        assert by_code["1001"]["stock"]["2"] == 20

    def test_branches(self, client, seed_branches):
        assert len(client.get("/api/v1/branches/").json()) == 3
        visible = client.get("/api/v1/branches/", params={"app_only": True}).json()
        assert [b["name"] for b in visible] == ["Centro", "Norte"]

    def test_branch_contact(self, client, seed_branches):
        response = client.get("/api/v1/branches/2/contact")
        assert response.json() == {"branch_id": 2, "whatsapp_phone": "5215550002"}
        assert client.get("/api/v1/branches/3/contact").json()["whatsapp_phone"] == ""
        assert client.get("/api/v1/branches/4/contact").status_code == 404
