"""
Fixtures compartidas: catálogo conocido, base SQLite en memoria y
cliente HTTP sobre una app armada para cada test.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from barberia_core.core_app import crear_app
from barberia_core.db.conexion import crear_engine, init_db
from barberia_core.db.persistencia import PersistenciaSQL, Resultado
from barberia_core.dominio.catalogo import Catalogo
from barberia_core.dominio.estado import EstadoBarberia


class PersistenciaRota:
    """Base que responde error a todo."""

    def __init__(self):
        self.llamadas = []

    async def insertar(self, tabla, registro):
        self.llamadas.append(("insertar", tabla))
        return Resultado(error="sin conexión")

    async def seleccionar(self, tabla, filtro=None, orden=None):
        self.llamadas.append(("seleccionar", tabla))
        return Resultado(error="sin conexión")

    async def actualizar(self, tabla, id, campos):
        self.llamadas.append(("actualizar", tabla))
        return Resultado(error="sin conexión")

    async def eliminar(self, tabla, id):
        self.llamadas.append(("eliminar", tabla))
        return Resultado(error="sin conexión")


# ===== FIXTURES =====

@pytest.fixture
def catalogo():
    """Catálogo chico con precios redondos"""
    c = Catalogo()
    c.agregar_servicio(name="Corte Clásico", price=3500)
    c.agregar_servicio(name="Corte + Barba", price=5000)
    c.agregar_extra(name="Lavado", price=500)
    c.agregar_extra(name="Cejas", price=300)
    c.agregar_barbero(name="Carlos", active=True)
    c.agregar_barbero(name="Miguel", active=True)
    c.agregar_barbero(name="Andrés", active=False)
    c.agregar_descuento(label="20%", value=20)
    return c


@pytest.fixture
def engine():
    motor = crear_engine("sqlite://", poolclass=StaticPool)
    init_db(motor)
    return motor


@pytest.fixture
def persistencia(engine):
    return PersistenciaSQL(engine)


@pytest.fixture
def persistencia_rota():
    return PersistenciaRota()


@pytest.fixture
def estado(persistencia):
    return EstadoBarberia(persistencia)


@pytest.fixture
def app(persistencia):
    return crear_app(persistencia=persistencia, demo=True)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
