# factory_api/core/config.py

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Carga el .env del directorio de trabajo (si existe)
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


@dataclass(frozen=True)
class Settings:
    """Configuración del backend leída de variables de entorno."""

    database_url: Optional[str]
    secret_key: str
    algorithm: str
    access_token_expire_minutes: int
    refresh_token_expire_days: int
    # Número de sucursales (alm1..almN). Fijo por despliegue.
    branch_count: int
    checkout_decrements_stock: bool
    create_tables: bool
    seed_defaults: bool
    superuser_name: Optional[str]
    superuser_password: Optional[str]
    log_level: str
    log_json: bool

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            secret_key=os.getenv("SECRET_KEY", "CAMBIAR_ESTA_CLAVE_EN_PRODUCCION"),
            algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 30),
            refresh_token_expire_days=_env_int("REFRESH_TOKEN_EXPIRE_DAYS", 7),
            branch_count=_env_int("BRANCH_COUNT", 5),
            checkout_decrements_stock=_env_bool("CHECKOUT_DECREMENTS_STOCK", True),
            create_tables=_env_bool("CREATE_TABLES", True),
            seed_defaults=_env_bool("SEED_DEFAULTS", True),
            superuser_name=os.getenv("SUPERUSER_NAME"),
            superuser_password=os.getenv("SUPERUSER_PASSWORD"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=_env_bool("LOG_JSON", False),
        )

    def require_database_url(self) -> str:
        if not self.database_url:
            raise RuntimeError("Falta la variable de entorno requerida: DATABASE_URL")
        return self.database_url


settings = Settings.from_env()
