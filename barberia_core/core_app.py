# barberia_core/core_app.py
import logging
from typing import List, Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from barberia_core.configuracion import DATOS_DEMO, LOG_LEVEL
from barberia_core.db.conexion import init_db
from barberia_core.db.persistencia import Persistencia, PersistenciaSQL
from barberia_core.dominio.estado import EstadoBarberia, Notificacion
from barberia_core.servicios import (
    asistente,
    catalogo,
    cierre,
    cobros,
)
from barberia_core.servicios.dependencias import get_estado

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def crear_app(
    persistencia: Optional[Persistencia] = None,
    demo: bool = DATOS_DEMO,
    usar_base: bool = True,
) -> FastAPI:
    """
    Arma la app con su propio EstadoBarberia.
    Sin persistencia explícita y con usar_base=True, al arrancar se abre la
    base de BARBERIA_DB_URL. Con usar_base=False todo queda en memoria.
    """
    app = FastAPI(title="Barbería API")

    # ---------- CORS ----------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],          # En producción se puede restringir al dominio del front
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    estado = EstadoBarberia(persistencia)
    app.state.barberia = estado

    # ---------- Eventos de arranque ----------

    @app.on_event("startup")
    async def on_startup() -> None:
        """
        Abre la base (si hace falta), carga catálogo y cobros del día y
        guarda lo que haya quedado pendiente (ej: el catálogo de ejemplo).
        """
        if estado.persistencia is None and usar_base:
            estado.persistencia = PersistenciaSQL(init_db())
        await estado.cargar(demo=demo)
        await estado.sincronizar()
        logger.info("API Barbería lista")

    # ---------- Routers ----------

    app.include_router(
        catalogo.router,
        prefix="/api/catalogo",
        tags=["Catalogo"],
    )
    app.include_router(
        cobros.router,
        prefix="/api/cobros",
        tags=["Cobros"],
    )
    app.include_router(
        asistente.router,
        prefix="/api/asistente",
        tags=["Asistente"],
    )
    app.include_router(
        cierre.router,
        prefix="/api/cierre",
        tags=["Cierre"],
    )

    # ---------- Avisos y salud ----------

    @app.get("/api/notificaciones", response_model=List[Notificacion])
    async def leer_notificaciones(estado: EstadoBarberia = Depends(get_estado)):
        """
        Devuelve y limpia los avisos pendientes (los toasts del front).
        """
        return estado.tomar_notificaciones()

    @app.get("/api/salud")
    def check_salud():
        """
        Endpoint de prueba para verificar que la API está corriendo.
        """
        return {
            "estado": "ok",
            "mensaje": "API Barbería funcionando",
        }

    return app


app = crear_app()
