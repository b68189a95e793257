"""
Pytest configuration and fixtures for backend tests.

Cada test usa una base SQLite en memoria (StaticPool: una sola conexión
compartida por la sesión del test y las sesiones de cada request).
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.pool import StaticPool

from factory_api.core.security import get_password_hash
from factory_api.database import Base, Database
from factory_api.main import create_app
from factory_api.models.auth import Role, SUPERUSER_ROLE, User
from factory_api.models.inventory import BarcodeConfig, Product, ProductType
from factory_api.models.platform import Branch
from factory_api.services.cart import CartService
from factory_api.services.catalog import CatalogService
from factory_api.services.inventory import inventory_store
from factory_api.services.orders import OrderService
from factory_api.services.permissions import PermissionService
from factory_api.services.seed import seed_defaults


@pytest.fixture(scope="function")
def database():
    db = Database(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db.create_tables()
    yield db
    Base.metadata.drop_all(bind=db.engine)
    db.close()


@pytest.fixture(scope="function")
def db_session(database):
    """Sesión del test con roles y permisos base ya sembrados."""
    session = database.session()
    seed_defaults(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(database, db_session):
    app = create_app(database=database)
    with TestClient(app) as test_client:
        yield test_client


# ***************************************************************
# Servicios (pruebas directas, sin HTTP)
# ***************************************************************
@pytest.fixture
def inventory():
    return inventory_store


@pytest.fixture
def cart_service():
    return CartService(inventory_store)


@pytest.fixture
def order_service():
    return OrderService(inventory_store, decrement_stock=True)


@pytest.fixture
def catalog_service():
    return CatalogService(inventory_store)


@pytest.fixture
def permission_service():
    return PermissionService()


# ***************************************************************
# Datos de prueba
# ***************************************************************
@pytest.fixture
def seed_branches(db_session):
    branches = [
        Branch(id=1, name="Centro", shipping_info="Envío gratis", app_visible=True, whatsapp_phone="5215550001"),
        Branch(id=2, name="Norte", shipping_info=None, app_visible=True, whatsapp_phone="5215550002"),
        Branch(id=3, name="Bodega", shipping_info=None, app_visible=False, whatsapp_phone=None),
    ]
    db_session.add_all(branches)
    db_session.commit()
    return branches


def make_product(db_session, code, description, price1="10.00", price2="9.00", min2=6, **kwargs):
    """Alta directa de un producto con registro de existencias en cada sucursal."""
    product = Product(
        code=code,
        description=description,
        barcode=kwargs.pop("barcode", ""),
        supplier_code="",
        cost=Decimal(kwargs.pop("cost", "5.00")),
        cost_with_tax=Decimal("5.00"),
        units_per_case=kwargs.pop("units_per_case", 12),
        type=kwargs.pop("type", None),
        price1=Decimal(price1),
        price2=Decimal(price2),
        price3=Decimal("0"),
        min1=1,
        min2=min2,
        min3=0,
        is_active=True,
        status=kwargs.pop("status", 1),
    )
    db_session.add(product)
    db_session.flush()
    inventory_store.provision(db_session, code)
    db_session.commit()
    return product


def set_stock(db_session, branch_id, code, sellable, warehouse=0):
    inventory_store.set_stock(db_session, branch_id, code, sellable, warehouse, True)
    db_session.commit()


@pytest.fixture
def seed_products(db_session, seed_branches):
    """
    Dos productos:
      1001 TORNILLO: 5 piezas en sucursal 1, 20 en sucursal 2
      1002 TUERCA:   8 piezas en sucursal 1
    """
    screw = make_product(db_session, "1001", "TORNILLO 1/4")
    nut = make_product(db_session, "1002", "TUERCA 1/4", price1="4.00", price2="3.50", min2=10)
    set_stock(db_session, 1, "1001", 5)
    set_stock(db_session, 2, "1001", 20)
    set_stock(db_session, 1, "1002", 8)
    return screw, nut


@pytest.fixture
def seed_catalog_config(db_session):
    db_session.add(ProductType(description="FERRETERIA", letter="F", sequence=4))
    db_session.add(BarcodeConfig(id=1, next_barcode="750100"))
    db_session.commit()


def _role_id(db_session, name):
    return db_session.execute(select(Role.id).where(Role.name == name)).scalar_one()


def make_user(db_session, username, password, role_name, is_active=True):
    user = User(
        username=username,
        password_hash=get_password_hash(password),
        role_id=_role_id(db_session, role_name),
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def seed_superuser(db_session):
    return make_user(db_session, "root", "rootpass123", SUPERUSER_ROLE)


@pytest.fixture
def seed_cashier(db_session):
    return make_user(db_session, "cajero", "cajero123", "Cajero")


def login(client, username, password):
    response = client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": password},
    )
    assert response.status_code == 200, f"Login failed: {response.json()}"
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client, seed_superuser):
    """Headers de un Superusuario."""
    return login(client, "root", "rootpass123")


@pytest.fixture
def cashier_headers(client, seed_cashier):
    return login(client, "cajero", "cajero123")
