# factory_api/api/deps.py
# type: ignore

from typing import Optional

from fastapi import Request

from factory_api.services.cart import CartService
from factory_api.services.catalog import CatalogService
from factory_api.services.orders import OrderService
from factory_api.services.permissions import PermissionService
from factory_api.services.reports import ReportService

# Los componentes se construyen en create_app() y se inyectan desde app.state


def get_cart_service(request: Request) -> CartService:
    return request.app.state.cart_service

def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service

def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service

def get_permission_service(request: Request) -> PermissionService:
    return request.app.state.permission_service

def get_report_service(request: Request) -> ReportService:
    return request.app.state.report_service


def resolve_client_id(request: Request, client_id: Optional[str]) -> str:
    """Identidad del cliente anónimo: la enviada o, en su defecto, la IP de origen."""
    if client_id:
        return client_id
    if request.client and request.client.host:
        return request.client.host
    return "APP_USER"
