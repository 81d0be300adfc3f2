# barberia_core/dominio/asistente.py
"""
Asistente de cobro en cinco pasos: barbero -> servicio -> extras ->
descuento -> pago.

Elegir barbero, servicio o descuento avanza solo. Los extras se marcan
de a uno y se sale con `continuar()`. Elegir el medio de pago no confirma:
hace falta `confirmar()`.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from barberia_core.db.modelos import MedioPago
from barberia_core.dominio.catalogo import Catalogo
from barberia_core.dominio.cobros import Cobro, Montos, calcular_montos, construir_cobro, porcentaje_de
from barberia_core.dominio.errores import ErrorEtapa


class Etapa(str, Enum):
    barbero = "barbero"
    servicio = "servicio"
    extras = "extras"
    descuento = "descuento"
    pago = "pago"


ORDEN: List[Etapa] = list(Etapa)


class EstadoAsistente(BaseModel):
    etapa: Etapa
    alcanzada: Etapa
    barbero_id: Optional[str] = None
    servicio_id: Optional[str] = None
    extra_ids: List[str] = []
    descuento_id: Optional[str] = None
    medio_pago: Optional[MedioPago] = None
    listo: bool = False


class AsistenteCobro:
    def __init__(self, catalogo: Catalogo):
        self.catalogo = catalogo
        self.reiniciar()

    def reiniciar(self) -> None:
        self.etapa = Etapa.barbero
        self.alcanzada = Etapa.barbero
        self.barbero_id: Optional[str] = None
        self.servicio_id: Optional[str] = None
        self.extra_ids: List[str] = []
        self.descuento_id: Optional[str] = None
        self.medio_pago: Optional[MedioPago] = None

    # --------- Navegación ---------

    def _exigir_etapa(self, etapa: Etapa) -> None:
        if self.etapa != etapa:
            raise ErrorEtapa(f"Acción válida en la etapa {etapa.value}, no en {self.etapa.value}")

    def _avanzar_a(self, etapa: Etapa) -> None:
        self.etapa = etapa
        if ORDEN.index(etapa) > ORDEN.index(self.alcanzada):
            self.alcanzada = etapa

    def ir_a(self, etapa: Etapa | str) -> None:
        """
        Volver atrás siempre se puede; ir adelante solo hasta la etapa
        más lejana ya alcanzada.
        """
        etapa = Etapa(etapa)
        if ORDEN.index(etapa) > ORDEN.index(self.alcanzada):
            raise ErrorEtapa(f"Todavía no se llegó a la etapa {etapa.value}")
        self.etapa = etapa

    # --------- Selecciones ---------

    def seleccionar_barbero(self, barbero_id: str) -> None:
        self._exigir_etapa(Etapa.barbero)
        barbero = self.catalogo.barbero(barbero_id)
        if barbero is None or not barbero.active:
            raise ValueError(f"Barbero inválido o inactivo (id={barbero_id})")
        self.barbero_id = barbero_id
        self._avanzar_a(Etapa.servicio)

    def seleccionar_servicio(self, servicio_id: str) -> None:
        self._exigir_etapa(Etapa.servicio)
        if self.catalogo.servicio(servicio_id) is None:
            raise ValueError(f"Servicio inexistente (id={servicio_id})")
        self.servicio_id = servicio_id
        self._avanzar_a(Etapa.extras)

    def alternar_extra(self, extra_id: str) -> None:
        self._exigir_etapa(Etapa.extras)
        if extra_id in self.extra_ids:
            self.extra_ids.remove(extra_id)
            return
        if self.catalogo.extra(extra_id) is None:
            raise ValueError(f"Extra inexistente (id={extra_id})")
        self.extra_ids.append(extra_id)

    def continuar(self) -> None:
        self._exigir_etapa(Etapa.extras)
        self._avanzar_a(Etapa.descuento)

    def seleccionar_descuento(self, descuento_id: str) -> None:
        self._exigir_etapa(Etapa.descuento)
        if self.catalogo.descuento(descuento_id) is None:
            raise ValueError(f"Descuento inexistente (id={descuento_id})")
        self.descuento_id = descuento_id
        self._avanzar_a(Etapa.pago)

    def seleccionar_medio_pago(self, medio_pago: MedioPago | str) -> None:
        self._exigir_etapa(Etapa.pago)
        self.medio_pago = MedioPago(medio_pago)

    # --------- Lecturas ---------

    def _barbero(self):
        barbero = self.catalogo.barbero(self.barbero_id)
        # Si lo desactivaron en el medio, cuenta como no elegido
        return barbero if barbero is not None and barbero.active else None

    def _extras(self):
        extras = (self.catalogo.extra(i) for i in self.extra_ids)
        return [e for e in extras if e is not None]

    def vista_previa(self) -> Montos:
        """Montos con lo elegido hasta ahora."""
        servicio = self.catalogo.servicio(self.servicio_id)
        return calcular_montos(
            servicio.price if servicio else 0,
            [e.price for e in self._extras()],
            porcentaje=porcentaje_de(self.catalogo.resolver_descuento(self.descuento_id)),
        )

    def estado(self) -> EstadoAsistente:
        return EstadoAsistente(
            etapa=self.etapa,
            alcanzada=self.alcanzada,
            barbero_id=self.barbero_id,
            servicio_id=self.servicio_id,
            extra_ids=list(self.extra_ids),
            descuento_id=self.descuento_id,
            medio_pago=self.medio_pago,
            listo=bool(
                self._barbero()
                and self.catalogo.servicio(self.servicio_id)
                and self.medio_pago
            ),
        )

    # --------- Confirmación ---------

    def confirmar(self, ahora: Optional[datetime] = None) -> Cobro:
        """
        Arma el cobro con lo elegido. Si falta algo lanza ErrorValidacion y
        no toca nada; si sale bien vuelve al paso inicial.
        """
        cobro = construir_cobro(
            barbero=self._barbero(),
            servicio=self.catalogo.servicio(self.servicio_id),
            extras=self._extras(),
            descuento=self.catalogo.resolver_descuento(self.descuento_id),
            medio_pago=self.medio_pago,
            ahora=ahora,
        )
        self.reiniciar()
        return cobro
