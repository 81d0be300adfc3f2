# barberia_core/dominio/estado.py
"""
Estado de la barbería: catálogo, log de cobros, asistente y avisos.

Cada acción se aplica primero en memoria (queda visible en la próxima
lectura) y deja una operación pendiente para la base. `sincronizar()`
manda las pendientes en orden; los errores no deshacen lo hecho en
memoria ni se reintentan, quedan en el log y como aviso.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from datetime import date, datetime, time, timedelta
from typing import Any, Deque, Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, Field

from barberia_core.configuracion import MAX_NOTIFICACIONES
from barberia_core.db.modelos import MedioPago
from barberia_core.db.persistencia import Persistencia, Resultado
from barberia_core.dominio.asistente import AsistenteCobro
from barberia_core.dominio.catalogo import TIPOS, Catalogo
from barberia_core.dominio.cierre import ResumenDiario, resumir
from barberia_core.dominio.cobros import Cobro, construir_cobro
from barberia_core.dominio.errores import ErrorPersistencia
from barberia_core.dominio.registro import RegistroCobros

logger = logging.getLogger(__name__)


class Notificacion(BaseModel):
    nivel: Literal["exito", "error"]
    mensaje: str
    creada: datetime = Field(default_factory=datetime.now)


class OperacionPendiente(BaseModel):
    accion: Literal["insertar", "actualizar", "eliminar"]
    tabla: str
    id: str
    datos: Dict[str, Any] = {}
    mensaje_exito: Optional[str] = None
    mensaje_error: str = "Error al guardar en la base de datos"


class EstadoBarberia:
    def __init__(
        self,
        persistencia: Optional[Persistencia] = None,
        max_notificaciones: int = MAX_NOTIFICACIONES,
    ):
        self.persistencia = persistencia
        self.catalogo = Catalogo()
        self.registro = RegistroCobros()
        self.asistente = AsistenteCobro(self.catalogo)
        self.notificaciones: Deque[Notificacion] = deque(maxlen=max_notificaciones)
        self._pendientes: Deque[OperacionPendiente] = deque()
        # Un solo vaciado de la cola a la vez
        self._vaciando = asyncio.Lock()

    # --------- Avisos ---------

    def _avisar(self, nivel: str, mensaje: str) -> None:
        self.notificaciones.append(Notificacion(nivel=nivel, mensaje=mensaje))

    def tomar_notificaciones(self) -> List[Notificacion]:
        avisos = list(self.notificaciones)
        self.notificaciones.clear()
        return avisos

    # --------- Cola hacia la base ---------

    @property
    def pendientes(self) -> int:
        return len(self._pendientes)

    def _encolar(self, **kwargs) -> None:
        # Sin base configurada la app trabaja solo en memoria
        if self.persistencia is None:
            return
        self._pendientes.append(OperacionPendiente(**kwargs))

    async def _ejecutar(self, op: OperacionPendiente) -> Resultado:
        if op.accion == "insertar":
            return await self.persistencia.insertar(op.tabla, op.datos)
        if op.accion == "actualizar":
            return await self.persistencia.actualizar(op.tabla, op.id, op.datos)
        return await self.persistencia.eliminar(op.tabla, op.id)

    async def sincronizar(self) -> None:
        """
        Manda a la base todas las operaciones pendientes, en orden.
        Si otra llamada ya está vaciando la cola, espera a que termine.
        """
        async with self._vaciando:
            while self._pendientes:
                op = self._pendientes.popleft()
                try:
                    resultado = await self._ejecutar(op)
                except Exception as exc:
                    logger.exception(f"Fallo inesperado en {op.accion} {op.tabla} id={op.id}")
                    resultado = Resultado(error=str(exc))

                if resultado.ok:
                    logger.debug(f"{op.accion} {op.tabla} id={op.id} ok")
                    if op.mensaje_exito:
                        self._avisar("exito", op.mensaje_exito)
                    continue

                error = ErrorPersistencia(op.accion, op.tabla, resultado.error)
                logger.error(str(error))
                self._avisar("error", op.mensaje_error)

    # --------- Catálogo ---------

    def agregar(self, tipo: str, campos: Dict[str, Any]) -> Any:
        entidad = self.catalogo.agregar(tipo, campos)
        _, tabla = TIPOS[tipo]
        self._encolar(accion="insertar", tabla=tabla, id=entidad.id, datos=entidad.model_dump())
        return entidad

    def actualizar(self, tipo: str, id: str, cambios: Dict[str, Any]) -> Optional[Any]:
        entidad = self.catalogo.actualizar(tipo, id, cambios)
        if entidad is None:
            return None
        _, tabla = TIPOS[tipo]
        aplicados = self.catalogo.cambios_aplicables(tipo, id, cambios)
        if aplicados:
            datos = {campo: getattr(entidad, campo) for campo in aplicados}
            self._encolar(accion="actualizar", tabla=tabla, id=id, datos=datos)
        return entidad

    def eliminar(self, tipo: str, id: str) -> bool:
        desligados = self.catalogo.servicios_de_linea(id) if tipo == "linea" else []
        if not self.catalogo.eliminar(tipo, id):
            return False

        for servicio in desligados:
            self._encolar(
                accion="actualizar",
                tabla="services",
                id=servicio.id,
                datos={"line_id": None},
            )
        _, tabla = TIPOS[tipo]
        self._encolar(accion="eliminar", tabla=tabla, id=id)
        return True

    # --------- Cobros ---------

    def registrar_cobro(self, cobro: Cobro) -> Cobro:
        self.registro.agregar(cobro)
        logger.info(
            f"Cobro {cobro.id}: {cobro.service_name} por {cobro.barber_name}, "
            f"total={cobro.total} ({cobro.payment_method.value})"
        )
        self._encolar(
            accion="insertar",
            tabla="transactions",
            id=cobro.id,
            datos=cobro.a_registro(),
            mensaje_exito="Cobro guardado correctamente",
            mensaje_error="Error al guardar en la base de datos",
        )
        return cobro

    def cobrar(
        self,
        barber_id: Optional[str],
        service_id: Optional[str],
        extra_ids: Iterable[str] = (),
        discount_id: Optional[str] = None,
        payment_method: Optional[MedioPago] = None,
        descuento_fijo: Optional[int] = None,
        ahora: Optional[datetime] = None,
    ) -> Cobro:
        """
        Arma y registra un cobro a partir de ids del catálogo.
        Barbero inactivo o ids desconocidos cuentan como no elegidos.
        """
        barbero = self.catalogo.barbero(barber_id)
        if barbero is not None and not barbero.active:
            barbero = None
        extras = [self.catalogo.extra(i) for i in extra_ids]

        cobro = construir_cobro(
            barbero=barbero,
            servicio=self.catalogo.servicio(service_id),
            extras=[e for e in extras if e is not None],
            descuento=self.catalogo.resolver_descuento(discount_id),
            medio_pago=payment_method,
            descuento_fijo=descuento_fijo,
            ahora=ahora,
        )
        return self.registrar_cobro(cobro)

    def confirmar_asistente(self, ahora: Optional[datetime] = None) -> Cobro:
        return self.registrar_cobro(self.asistente.confirmar(ahora=ahora))

    def resumen_del_dia(self, fecha: Optional[date] = None) -> ResumenDiario:
        fecha = fecha or date.today()
        return resumir(self.registro.del_dia(fecha), self.catalogo.barberos_activos, fecha)

    # --------- Arranque ---------

    async def cargar(self, demo: bool = False, hoy: Optional[date] = None) -> None:
        """
        Lee el catálogo y los cobros del día desde la base.
        Si todas las lecturas del catálogo salieron bien, vinieron vacías y
        `demo` está activo, siembra el de ejemplo y lo deja encolado para
        guardarlo. Con alguna lectura fallida no se siembra nada.
        """
        if self.persistencia is None:
            if demo:
                self.catalogo.sembrar_demo()
            return

        catalogo_vacio = True
        lecturas_ok = True
        for tipo, (_, tabla) in TIPOS.items():
            resultado = await self.persistencia.seleccionar(tabla)
            if not resultado.ok:
                logger.error(str(ErrorPersistencia("seleccionar", tabla, resultado.error)))
                self._avisar("error", f"Error al cargar {tabla}")
                lecturas_ok = False
                continue
            if resultado.data:
                self.catalogo.reemplazar(tipo, resultado.data)
                catalogo_vacio = False

        inicio = datetime.combine(hoy or date.today(), time.min)
        resultado = await self.persistencia.seleccionar(
            "transactions",
            {"created_at__gte": inicio, "created_at__lt": inicio + timedelta(days=1)},
            orden="created_at",
        )
        if resultado.ok:
            self.registro.cargar(Cobro.desde_registro(r) for r in resultado.data)
        else:
            logger.error(str(ErrorPersistencia("seleccionar", "transactions", resultado.error)))
            self._avisar("error", "Error al cargar los cobros del día")

        if catalogo_vacio and demo and not lecturas_ok:
            logger.warning("No se pudo leer el catálogo: no se carga el de ejemplo")
        elif catalogo_vacio and demo:
            logger.info("Base sin catálogo: se carga el catálogo de ejemplo")
            self.catalogo.sembrar_demo()
            for tipo, (_, tabla) in TIPOS.items():
                for entidad in self.catalogo.listar(tipo):
                    self._encolar(
                        accion="insertar", tabla=tabla, id=entidad.id, datos=entidad.model_dump()
                    )

        logger.info(
            f"Catálogo cargado: {len(self.catalogo.servicios)} servicios, "
            f"{len(self.catalogo.todos_los_barberos)} barberos; "
            f"{len(self.registro)} cobros de hoy"
        )
