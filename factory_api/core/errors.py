# factory_api/core/errors.py
"""
Errores de dominio del backend.

Los servicios lanzan subclases de ServiceError; el manejador registrado en
main.py las convierte en una respuesta JSON uniforme:

    {"success": false, "kind": "STOCK", "error": "INSUFFICIENT_STOCK",
     "message": "...", "details": [...]}

El cliente debe decidir por `kind`/`error`, nunca por el texto de `message`.
"""

from enum import Enum
from typing import Any, Optional

from fastapi import status


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    STOCK = "STOCK"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    AUTH = "AUTH"
    INTERNAL = "INTERNAL"


HTTP_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.STOCK: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.AUTH: status.HTTP_403_FORBIDDEN,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ServiceError(Exception):
    """Fallo estructurado: tipo (kind), código estable y mensaje legible."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, code: str, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def to_dict(self) -> dict:
        body = {
            "success": False,
            "kind": self.kind.value,
            "error": self.code,
            "message": self.message,
        }
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailed(ServiceError):
    kind = ErrorKind.VALIDATION


class StockError(ServiceError):
    kind = ErrorKind.STOCK


class ConflictError(ServiceError):
    kind = ErrorKind.CONFLICT


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: Any = None):
        code = f"{entity.upper()}_NOT_FOUND"
        if entity_id is not None:
            message = f"{entity} {entity_id} no encontrado."
        else:
            message = f"{entity} no encontrado."
        super().__init__(code, message)


class StorageError(ServiceError):
    kind = ErrorKind.INTERNAL


class UnknownBranchError(ValidationFailed):
    """La sucursal pedida no está entre las particiones configuradas."""

    def __init__(self, branch_id: Any):
        super().__init__(
            "UNKNOWN_BRANCH",
            f"La sucursal {branch_id} no está configurada.",
            {"branch_id": branch_id},
        )
