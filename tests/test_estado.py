"""
Tests del estado de la barbería: aplicar en memoria, sincronizar con la
base y avisos de éxito o error.
"""
import asyncio
from datetime import date, datetime

import pytest
from sqlmodel import Session, select

from barberia_core.db.modelos import CobroRegistro, Servicio
from barberia_core.db.persistencia import Resultado
from barberia_core.dominio.errores import ErrorValidacion
from barberia_core.dominio.estado import EstadoBarberia


def _sembrar(estado):
    carlos = estado.agregar("barbero", {"name": "Carlos", "active": True})
    corte = estado.agregar("servicio", {"name": "Corte Clásico", "price": 3500})
    lavado = estado.agregar("extra", {"name": "Lavado", "price": 500})
    veinte = estado.agregar("descuento", {"label": "20%", "value": 20})
    return carlos, corte, lavado, veinte


class PersistenciaAnotadora:
    """Base en memoria que anota cada llamada; las altas pueden demorar."""

    def __init__(self, demora=0.0, lecturas_fallan=False):
        self.demora = demora
        self.lecturas_fallan = lecturas_fallan
        self.llamadas = []
        self.filas = {}

    async def insertar(self, tabla, registro):
        await asyncio.sleep(self.demora)
        self.llamadas.append(("insertar", tabla, registro["id"], registro))
        self.filas[(tabla, registro["id"])] = dict(registro)
        return Resultado(data=[registro])

    async def seleccionar(self, tabla, filtro=None, orden=None):
        if self.lecturas_fallan:
            return Resultado(error="sin conexión")
        return Resultado(data=[])

    async def actualizar(self, tabla, id, campos):
        self.llamadas.append(("actualizar", tabla, id, campos))
        return Resultado(data=[])

    async def eliminar(self, tabla, id):
        self.llamadas.append(("eliminar", tabla, id, None))
        self.filas.pop((tabla, id), None)
        return Resultado(data=[])


class TestAplicarYSincronizar:
    def test_cambio_visible_antes_de_sincronizar(self, estado):
        carlos, corte, _, _ = _sembrar(estado)

        assert estado.catalogo.servicio(corte.id) is corte
        assert estado.pendientes == 4

    def test_cobro_llega_a_la_base(self, estado, engine):
        carlos, corte, lavado, veinte = _sembrar(estado)
        cobro = estado.cobrar(carlos.id, corte.id, [lavado.id], veinte.id, "efectivo")

        asyncio.run(estado.sincronizar())

        assert estado.pendientes == 0
        with Session(engine) as session:
            fila = session.exec(select(CobroRegistro)).one()
        assert fila.id == cobro.id
        assert fila.total == 3200
        assert fila.discount_amount == 800
        assert fila.extras == [{"id": lavado.id, "name": "Lavado", "price": 500}]

        avisos = estado.tomar_notificaciones()
        assert [a.mensaje for a in avisos] == ["Cobro guardado correctamente"]
        assert estado.tomar_notificaciones() == []

    def test_eliminar_linea_desliga_en_la_base(self, estado, engine):
        premium = estado.agregar("linea", {"name": "Premium"})
        uno = estado.agregar("servicio", {"name": "Combo", "price": 6500, "line_id": premium.id})
        dos = estado.agregar("servicio", {"name": "Ritual", "price": 8000, "line_id": premium.id})
        asyncio.run(estado.sincronizar())

        assert estado.eliminar("linea", premium.id) is True
        asyncio.run(estado.sincronizar())

        with Session(engine) as session:
            servicios = session.exec(select(Servicio)).all()
        assert {s.id for s in servicios} == {uno.id, dos.id}
        assert all(s.line_id is None for s in servicios)

    def test_error_de_base_no_deshace_memoria(self, persistencia_rota):
        estado = EstadoBarberia(persistencia_rota)
        carlos, corte, _, _ = _sembrar(estado)
        cobro = estado.cobrar(carlos.id, corte.id, payment_method="mercado_pago")

        asyncio.run(estado.sincronizar())

        assert estado.registro.todos() == [cobro]
        assert estado.catalogo.servicio(corte.id) is not None
        avisos = estado.tomar_notificaciones()
        assert all(a.nivel == "error" for a in avisos)
        assert avisos[-1].mensaje == "Error al guardar en la base de datos"
        # Sin reintentos
        assert estado.pendientes == 0

    def test_sin_base_solo_memoria(self):
        estado = EstadoBarberia()
        carlos, corte, _, _ = _sembrar(estado)
        estado.cobrar(carlos.id, corte.id, payment_method="efectivo")

        assert estado.pendientes == 0
        assert len(estado.registro) == 1

    def test_sincronizaciones_superpuestas_respetan_el_orden(self):
        base = PersistenciaAnotadora(demora=0.01)

        async def alta_y_baja():
            estado = EstadoBarberia(base)
            servicio = estado.agregar("servicio", {"name": "Rapado", "price": 2500})
            primera = asyncio.create_task(estado.sincronizar())
            # La primera ya sacó el alta de la cola y espera a la base
            await asyncio.sleep(0)
            estado.eliminar("servicio", servicio.id)
            segunda = asyncio.create_task(estado.sincronizar())
            await asyncio.gather(primera, segunda)
            return estado, servicio

        estado, servicio = asyncio.run(alta_y_baja())

        assert [(accion, id) for accion, _, id, _ in base.llamadas] == [
            ("insertar", servicio.id),
            ("eliminar", servicio.id),
        ]
        assert estado.catalogo.servicios == []
        assert base.filas == {}
        assert estado.pendientes == 0

    def test_cambiar_valor_de_sin_descuento_no_va_a_la_base(self):
        base = PersistenciaAnotadora()
        estado = EstadoBarberia(base)

        estado.actualizar("descuento", "none", {"value": 30})
        assert estado.pendientes == 0

        estado.actualizar("descuento", "none", {"label": "Nada", "value": 30})
        asyncio.run(estado.sincronizar())

        assert base.llamadas == [("actualizar", "discounts", "none", {"label": "Nada"})]
        assert estado.catalogo.descuento("none").value == 0


class TestCobrar:
    def test_validacion_no_registra(self, estado):
        carlos, _, _, _ = _sembrar(estado)
        pendientes = estado.pendientes

        with pytest.raises(ErrorValidacion) as exc:
            estado.cobrar(carlos.id, None, payment_method=None)

        assert exc.value.campos == ["servicio", "medio_pago"]
        assert len(estado.registro) == 0
        assert estado.pendientes == pendientes

    def test_barbero_inactivo_cuenta_como_faltante(self, estado):
        carlos, corte, _, _ = _sembrar(estado)
        estado.actualizar("barbero", carlos.id, {"active": False})

        with pytest.raises(ErrorValidacion) as exc:
            estado.cobrar(carlos.id, corte.id, payment_method="efectivo")
        assert exc.value.campos == ["barbero"]

    def test_resumen_del_dia(self, estado):
        carlos, corte, _, _ = _sembrar(estado)
        hoy = datetime(2024, 5, 10, 10, 0)
        estado.cobrar(carlos.id, corte.id, payment_method="efectivo", ahora=hoy)
        estado.cobrar(carlos.id, corte.id, payment_method="efectivo",
                      ahora=datetime(2024, 5, 9, 10, 0))

        resumen = estado.resumen_del_dia(date(2024, 5, 10))

        assert resumen.count == 1
        assert resumen.total_efectivo == 3500
        assert resumen.per_barber[0].barber_id == carlos.id


class TestCargar:
    def test_base_vacia_siembra_demo_y_lo_guarda(self, estado, engine):
        asyncio.run(estado.cargar(demo=True))
        asyncio.run(estado.sincronizar())

        assert len(estado.catalogo.servicios) == 4
        with Session(engine) as session:
            assert len(session.exec(select(Servicio)).all()) == 4

    def test_recarga_catalogo_y_cobros_de_hoy(self, estado, persistencia):
        carlos, corte, _, veinte = _sembrar(estado)
        estado.cobrar(carlos.id, corte.id, discount_id=veinte.id, payment_method="efectivo")
        estado.cobrar(carlos.id, corte.id, payment_method="efectivo",
                      ahora=datetime(2020, 1, 1, 10, 0))
        asyncio.run(estado.sincronizar())

        nuevo = EstadoBarberia(persistencia)
        asyncio.run(nuevo.cargar(demo=True))

        assert [s.id for s in nuevo.catalogo.servicios] == [corte.id]
        assert nuevo.catalogo.descuento("none") is not None
        cobros = nuevo.registro.todos()
        assert len(cobros) == 1
        assert cobros[0].total == 2800
        assert cobros[0].discount == 20

    def test_error_al_cargar_avisa(self, persistencia_rota):
        estado = EstadoBarberia(persistencia_rota)
        asyncio.run(estado.cargar(demo=False))

        avisos = estado.tomar_notificaciones()
        assert avisos
        assert all(a.nivel == "error" for a in avisos)
        assert any(d.id == "none" for d in estado.catalogo.descuentos)

    def test_lecturas_fallidas_no_siembran_demo(self):
        base = PersistenciaAnotadora(lecturas_fallan=True)
        estado = EstadoBarberia(base)

        asyncio.run(estado.cargar(demo=True))
        asyncio.run(estado.sincronizar())

        assert base.llamadas == []
        assert estado.catalogo.servicios == []
        assert [d.id for d in estado.catalogo.descuentos] == ["none"]
        assert all(a.nivel == "error" for a in estado.tomar_notificaciones())
