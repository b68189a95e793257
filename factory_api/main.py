# factory_api/main.py
# type: ignore

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from factory_api.core.config import Settings, settings as default_settings
from factory_api.core.errors import ErrorKind, ServiceError
from factory_api.core.logging import configure_logging, get_logger
from factory_api.database import Database

# ***************************************************************
# 1. Importar todos los modelos para que SQLAlchemy los registre
# ***************************************************************
import factory_api.models.auth  # Role, Permission, User y excepciones
import factory_api.models.platform  # Branch (empresa)
import factory_api.models.inventory  # Product, tipos y alm1..almN
import factory_api.models.sales  # Customer, cart, orders
import factory_api.models.reports  # catcaja, venta_diaria, retiros

# ***************************************************************
# 2. Importar los Routers de API y los servicios
# ***************************************************************
from factory_api.api.v1.endpoints import (
    auth, branches, cart, customers, inventory, orders, products, reports, roles, users,
)
from factory_api.services.cart import CartService
from factory_api.services.catalog import CatalogService
from factory_api.services.inventory import inventory_store
from factory_api.services.orders import OrderService
from factory_api.services.permissions import permission_service
from factory_api.services.reports import ReportService
from factory_api.services.seed import seed_defaults

logger = get_logger(__name__)

_KIND_BY_HTTP_STATUS = {
    status.HTTP_401_UNAUTHORIZED: ErrorKind.AUTH,
    status.HTTP_403_FORBIDDEN: ErrorKind.AUTH,
    status.HTTP_404_NOT_FOUND: ErrorKind.NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorKind.CONFLICT,
}


def _startup(app: FastAPI, app_settings: Settings) -> None:
    database = app.state.database
    if app_settings.create_tables:
        database.create_tables()
    # Falla al arrancar si alguna sucursal configurada no tiene su tabla
    app.state.inventory.validate(database.engine)
    if app_settings.seed_defaults:
        db = database.session()
        try:
            seed_defaults(db, app_settings.superuser_name, app_settings.superuser_password)
        finally:
            db.close()


def create_app(database: Optional[Database] = None, app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Construye la aplicación. Si no se inyecta `database` se crea una a
    partir de DATABASE_URL al arrancar.
    """
    app_settings = app_settings or default_settings
    configure_logging(app_settings.log_level, app_settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_database = app.state.database is None
        if owns_database:
            app.state.database = Database(app_settings.require_database_url(), pool_pre_ping=True)
        _startup(app, app_settings)
        logger.info("Backend listo con sucursales %s", app.state.inventory.branch_ids)
        yield
        if owns_database:
            app.state.database.close()
            app.state.database = None

    app = FastAPI(
        title="Factory Backend API",
        version="v1",
        description="Backend multi-sucursal: inventario, carrito, pedidos, permisos y reportes.",
        lifespan=lifespan,
    )

    # Componentes compartidos (ver factory_api/api/deps.py)
    app.state.database = database
    app.state.inventory = inventory_store
    app.state.cart_service = CartService(inventory_store)
    app.state.order_service = OrderService(
        inventory_store, decrement_stock=app_settings.checkout_decrements_stock
    )
    app.state.catalog_service = CatalogService(inventory_store)
    app.state.permission_service = permission_service
    app.state.report_service = ReportService()

    # ***************************************************************
    # 3. Manejadores de errores: una sola forma de respuesta
    # ***************************************************************
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "kind": ErrorKind.VALIDATION.value,
                "error": "INVALID_REQUEST",
                "message": "Datos de entrada inválidos.",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            kind = ErrorKind.INTERNAL
        else:
            kind = _KIND_BY_HTTP_STATUS.get(exc.status_code, ErrorKind.VALIDATION)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "kind": kind.value,
                "error": f"HTTP_{exc.status_code}",
                "message": exc.detail,
            },
            headers=getattr(exc, "headers", None),
        )

    # ***************************************************************
    # 4. Incluir los Routers
    # ***************************************************************
    app.include_router(auth.router, tags=["Auth"], prefix="/api/v1/auth")
    app.include_router(users.router, tags=["Users"], prefix="/api/v1/users")
    app.include_router(roles.router, tags=["Roles"], prefix="/api/v1/roles")
    app.include_router(products.router, tags=["Products"], prefix="/api/v1/products")
    app.include_router(inventory.router, tags=["Inventory"], prefix="/api/v1/inventory")
    app.include_router(branches.router, tags=["Branches"], prefix="/api/v1/branches")
    app.include_router(cart.router, tags=["Cart"], prefix="/api/v1/cart")
    app.include_router(orders.router, tags=["Orders"], prefix="/api/v1/orders")
    app.include_router(customers.router, tags=["Customers"], prefix="/api/v1/customers")
    app.include_router(reports.router, tags=["Reports"], prefix="/api/v1/reports")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("factory_api.main:app", host="0.0.0.0", port=8000)
