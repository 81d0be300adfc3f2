"""
Tests del armado de cobros: montos, redondeo, validación y foto del catálogo.
"""
from datetime import datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from barberia_core.db.modelos import MedioPago, TipoDescuento
from barberia_core.dominio.cobros import (
    Cobro,
    calcular_montos,
    construir_cobro,
    redondear,
)
from barberia_core.dominio.errores import ErrorValidacion


def _por_nombre(items, nombre):
    return next(x for x in items if x.name == nombre)


class TestCalcularMontos:
    """Aritmética de subtotal, descuento y total"""

    def test_corte_con_lavado_y_veinte_por_ciento(self):
        montos = calcular_montos(3500, [500], porcentaje=20)
        assert montos.subtotal == 4000
        assert montos.monto_descuento == 800
        assert montos.total == 3200

    def test_sin_descuento(self):
        montos = calcular_montos(5000, [], porcentaje=0)
        assert montos.total == 5000
        assert montos.monto_descuento == 0

    def test_redondeo_half_up(self):
        # 1255 * 10% = 125.5 -> 126 ; 1245 * 10% = 124.5 -> 125
        assert calcular_montos(1255, porcentaje=10).monto_descuento == 126
        assert calcular_montos(1245, porcentaje=10).monto_descuento == 125
        assert redondear(Decimal("2.5")) == 3
        assert redondear(Decimal("3.5")) == 4

    @pytest.mark.parametrize("subtotal", [0, 1, 99, 3333, 4000, 12345])
    @pytest.mark.parametrize("porcentaje", [0, 10, 12.5, 33, 50, 100])
    def test_total_nunca_supera_subtotal(self, subtotal, porcentaje):
        montos = calcular_montos(subtotal, porcentaje=porcentaje)
        esperado = redondear(Decimal(subtotal) * Decimal(str(porcentaje)) / 100)
        assert montos.total == max(0, subtotal - esperado)
        assert 0 <= montos.total <= subtotal

    def test_descuento_fijo_no_pasa_el_subtotal(self):
        montos = calcular_montos(2000, [300], descuento_fijo=5000)
        assert montos.tipo_descuento == TipoDescuento.fixed
        assert montos.monto_descuento == 2300
        assert montos.total == 0

    def test_descuento_fijo_negativo(self):
        with pytest.raises(ValueError):
            calcular_montos(2000, descuento_fijo=-10)

    def test_porcentaje_fuera_de_rango(self):
        with pytest.raises(ValueError):
            calcular_montos(2000, porcentaje=120)


class TestConstruirCobro:
    """Armado del cobro completo a partir del catálogo"""

    def test_escenario_completo(self, catalogo):
        carlos = _por_nombre(catalogo.barberos_activos, "Carlos")
        corte = _por_nombre(catalogo.servicios, "Corte Clásico")
        lavado = _por_nombre(catalogo.extras, "Lavado")
        veinte = next(d for d in catalogo.descuentos if d.value == 20)

        cobro = construir_cobro(carlos, corte, [lavado], veinte, MedioPago.efectivo)

        assert cobro.subtotal == 4000
        assert cobro.discount_amount == 800
        assert cobro.total == 3200
        assert cobro.discount == 20
        assert cobro.discount_type == TipoDescuento.percentage
        assert cobro.discount_id == veinte.id
        assert cobro.subtotal == cobro.service_price + sum(e.price for e in cobro.extras)

    def test_descuento_none_equivale_a_cero(self, catalogo):
        barbero = catalogo.barberos_activos[0]
        servicio = _por_nombre(catalogo.servicios, "Corte + Barba")

        cobro = construir_cobro(
            barbero, servicio, [], catalogo.resolver_descuento("none"), "mercado_pago"
        )

        assert cobro.total == 5000
        assert cobro.discount_id is None
        assert cobro.payment_method == MedioPago.mercado_pago

    def test_faltan_campos(self, catalogo):
        with pytest.raises(ErrorValidacion) as exc:
            construir_cobro(None, None, [], None, None)
        assert exc.value.campos == ["barbero", "servicio", "medio_pago"]

    def test_falta_solo_medio_pago(self, catalogo):
        with pytest.raises(ErrorValidacion) as exc:
            construir_cobro(catalogo.barberos_activos[0], catalogo.servicios[0])
        assert exc.value.campos == ["medio_pago"]

    def test_foto_del_catalogo(self, catalogo):
        servicio = catalogo.servicios[0]
        cobro = construir_cobro(catalogo.barberos_activos[0], servicio, [], None, "efectivo")

        catalogo.actualizar_servicio(servicio.id, name="Otro nombre", price=9999)

        assert cobro.service_name == "Corte Clásico"
        assert cobro.service_price == 3500

    def test_cobro_inmutable(self, catalogo):
        cobro = construir_cobro(
            catalogo.barberos_activos[0], catalogo.servicios[0], [], None, "efectivo"
        )
        with pytest.raises(ValidationError):
            cobro.total = 1

    def test_hora_de_creacion(self, catalogo):
        momento = datetime(2024, 5, 10, 15, 30)
        cobro = construir_cobro(
            catalogo.barberos_activos[0], catalogo.servicios[0], [], None, "efectivo",
            ahora=momento,
        )
        assert cobro.created_at == momento


class TestRegistroPersistencia:
    """Fila de la tabla transactions"""

    def test_campos_del_registro(self, catalogo):
        lavado = _por_nombre(catalogo.extras, "Lavado")
        veinte = next(d for d in catalogo.descuentos if d.value == 20)
        cobro = construir_cobro(
            catalogo.barberos_activos[0], catalogo.servicios[0], [lavado], veinte, "efectivo"
        )

        registro = cobro.a_registro()

        assert {
            "barber_id", "barber_name", "service_id", "service_name", "service_price",
            "extras", "extras_total", "discount_id", "discount_name",
            "discount_percentage", "discount_amount", "subtotal", "total",
            "payment_method",
        } <= set(registro)
        assert registro["extras"] == [{"id": lavado.id, "name": "Lavado", "price": 500}]
        assert registro["extras_total"] == 500
        assert registro["discount_name"] == "20%"
        assert registro["discount_percentage"] == 20
        assert registro["discount_amount"] == 800
        assert registro["payment_method"] == "efectivo"

    def test_descuento_fijo_ida_y_vuelta(self, catalogo):
        cobro = construir_cobro(
            catalogo.barberos_activos[0], catalogo.servicios[0], [], None, "efectivo",
            descuento_fijo=500,
        )
        registro = cobro.a_registro()
        assert registro["discount_name"] is None
        assert registro["discount_percentage"] == 0

        assert Cobro.desde_registro(registro) == cobro

    def test_descuento_fijo_mayor_al_subtotal_vuelve_recortado(self, catalogo):
        cobro = construir_cobro(
            catalogo.barberos_activos[0], catalogo.servicios[0], [], None, "efectivo",
            descuento_fijo=5000,
        )
        assert cobro.discount == 5000
        assert cobro.total == 0

        leido = Cobro.desde_registro(cobro.a_registro())

        # Solo se guarda lo descontado
        assert leido.discount_type == TipoDescuento.fixed
        assert leido.discount == 3500
        assert (leido.subtotal, leido.total, leido.discount_amount) == (3500, 0, 3500)
