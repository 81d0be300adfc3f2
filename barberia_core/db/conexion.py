# barberia_core/db/conexion.py
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from barberia_core.configuracion import DB_URL


def crear_engine(url: str = DB_URL, **kwargs) -> Engine:
    # Necesario para SQLite cuando la sesión se usa desde el threadpool
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, connect_args=connect_args, **kwargs)


def init_db(destino: Optional[Engine] = None) -> Engine:
    """
    Crea todas las tablas definidas en db.modelos si no existen.
    Si no se pasa un engine, usa BARBERIA_DB_URL.
    """
    # Import tardío para registrar los modelos antes de create_all
    from barberia_core.db import modelos  # noqa: F401

    destino = destino or crear_engine()
    SQLModel.metadata.create_all(destino)
    return destino
