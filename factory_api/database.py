# factory_api/database.py

from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from factory_api.core.errors import ServiceError, StorageError
from factory_api.core.logging import get_logger

logger = get_logger(__name__)

# Clase base de la que heredan todos los modelos/tablas.
Base = declarative_base()


class Database:
    """
    Handle explícito de almacenamiento: engine + fábrica de sesiones.

    Se crea al arrancar la aplicación (lifespan) y se cierra al apagarla;
    nada del código de dominio lo referencia como variable global.
    """

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_tables(self) -> None:
        """Crea todas las tablas registradas si no existen."""
        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def close(self) -> None:
        self.engine.dispose()


# Función de dependencia para obtener una sesión de DB por request
def get_db(request: Request) -> Iterator[Session]:
    """Provee una sesión de base de datos a un endpoint de FastAPI."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Unidad de trabajo: commit al salir sin errores, rollback completo ante
    cualquier excepción. Los errores de SQLAlchemy se reportan como
    STORAGE_FAILURE.
    """
    try:
        yield db
        db.commit()
    except ServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Fallo de almacenamiento, transacción revertida")
        raise StorageError("STORAGE_FAILURE", "Error interno de almacenamiento.") from exc
    except Exception:
        db.rollback()
        raise
