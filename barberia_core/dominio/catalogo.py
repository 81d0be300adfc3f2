# barberia_core/dominio/catalogo.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from sqlmodel import SQLModel

from barberia_core.db.modelos import (
    Barbero,
    Descuento,
    Extra,
    LineaServicio,
    Servicio,
    SIN_DESCUENTO,
)

logger = logging.getLogger(__name__)


# tipo -> (modelo, tabla en la base)
TIPOS: Dict[str, tuple[type[SQLModel], str]] = {
    "linea": (LineaServicio, "service_lines"),
    "servicio": (Servicio, "services"),
    "extra": (Extra, "extras"),
    "barbero": (Barbero, "barbers"),
    "descuento": (Descuento, "discounts"),
}


def _descuento_protegido() -> Descuento:
    return Descuento(id=SIN_DESCUENTO, label="Sin descuento", value=0)


class Catalogo:
    """
    Colecciones editables de servicios, líneas, extras, barberos y descuentos.

    Los ids se generan con uuid4 y nunca se reutilizan. Actualizar o
    eliminar un id inexistente no hace nada. El descuento "none" siempre
    está y no se puede borrar.
    """

    def __init__(self) -> None:
        self._items: Dict[str, List[Any]] = {tipo: [] for tipo in TIPOS}
        self._items["descuento"].append(_descuento_protegido())

    # --------- Genéricos ---------

    def listar(self, tipo: str) -> List[Any]:
        return list(self._items[tipo])

    def obtener(self, tipo: str, id: Optional[str]) -> Optional[Any]:
        if not id:
            return None
        return next((x for x in self._items[tipo] if x.id == id), None)

    def _nuevo_id(self, tipo: str) -> str:
        while True:
            nuevo = str(uuid4())
            if self.obtener(tipo, nuevo) is None:
                return nuevo

    def agregar(self, tipo: str, campos: Dict[str, Any]) -> Any:
        modelo, _ = TIPOS[tipo]
        datos = {k: v for k, v in campos.items() if k != "id"}
        entidad = modelo.model_validate({**datos, "id": self._nuevo_id(tipo)})
        self._items[tipo].append(entidad)
        logger.debug(f"{tipo} agregado: {entidad.id}")
        return entidad

    def cambios_aplicables(self, tipo: str, id: str, cambios: Dict[str, Any]) -> Dict[str, Any]:
        """Los cambios que `actualizar` realmente aplica sobre la entidad."""
        return {
            k: v for k, v in cambios.items()
            if k != "id" and not (tipo == "descuento" and id == SIN_DESCUENTO and k == "value")
        }

    def actualizar(self, tipo: str, id: str, cambios: Dict[str, Any]) -> Optional[Any]:
        entidad = self.obtener(tipo, id)
        if entidad is None:
            return None
        # "Sin descuento" siempre vale 0
        cambios = self.cambios_aplicables(tipo, id, cambios)

        modelo, _ = TIPOS[tipo]
        # Validamos el resultado completo antes de tocar la entidad
        validado = modelo.model_validate({**entidad.model_dump(), **cambios, "id": id})
        for campo in cambios:
            setattr(entidad, campo, getattr(validado, campo))
        return entidad

    def eliminar(self, tipo: str, id: str) -> bool:
        if tipo == "descuento" and id == SIN_DESCUENTO:
            return False
        if tipo == "linea":
            for servicio in self._items["servicio"]:
                if servicio.line_id == id:
                    servicio.line_id = None

        antes = len(self._items[tipo])
        self._items[tipo] = [x for x in self._items[tipo] if x.id != id]
        return len(self._items[tipo]) < antes

    def reemplazar(self, tipo: str, entidades: Iterable[Any]) -> None:
        """
        Pisa una colección completa (carga inicial desde la base).
        """
        modelo, _ = TIPOS[tipo]
        nuevos = [
            e if isinstance(e, modelo) else modelo.model_validate(e)
            for e in entidades
        ]
        if tipo == "descuento" and not any(d.id == SIN_DESCUENTO for d in nuevos):
            nuevos.insert(0, _descuento_protegido())
        self._items[tipo] = nuevos

    # --------- Lecturas ---------

    @property
    def servicios(self) -> List[Servicio]:
        return self.listar("servicio")

    @property
    def lineas(self) -> List[LineaServicio]:
        return self.listar("linea")

    @property
    def extras(self) -> List[Extra]:
        return self.listar("extra")

    @property
    def descuentos(self) -> List[Descuento]:
        return self.listar("descuento")

    @property
    def barberos_activos(self) -> List[Barbero]:
        return [b for b in self._items["barbero"] if b.active]

    @property
    def todos_los_barberos(self) -> List[Barbero]:
        return self.listar("barbero")

    def servicio(self, id: Optional[str]) -> Optional[Servicio]:
        return self.obtener("servicio", id)

    def extra(self, id: Optional[str]) -> Optional[Extra]:
        return self.obtener("extra", id)

    def barbero(self, id: Optional[str]) -> Optional[Barbero]:
        return self.obtener("barbero", id)

    def linea(self, id: Optional[str]) -> Optional[LineaServicio]:
        return self.obtener("linea", id)

    def descuento(self, id: Optional[str]) -> Optional[Descuento]:
        return self.obtener("descuento", id)

    def resolver_descuento(self, id: Optional[str]) -> Descuento:
        """Descuento elegido, o "Sin descuento" si el id viene vacío o no existe."""
        return self.descuento(id) or self.descuento(SIN_DESCUENTO)

    def servicios_de_linea(self, linea_id: str) -> List[Servicio]:
        return [s for s in self._items["servicio"] if s.line_id == linea_id]

    # --------- Altas / cambios / bajas por entidad ---------

    def agregar_servicio(self, **campos) -> Servicio:
        return self.agregar("servicio", campos)

    def actualizar_servicio(self, id: str, **cambios) -> Optional[Servicio]:
        return self.actualizar("servicio", id, cambios)

    def eliminar_servicio(self, id: str) -> bool:
        return self.eliminar("servicio", id)

    def agregar_linea(self, **campos) -> LineaServicio:
        return self.agregar("linea", campos)

    def actualizar_linea(self, id: str, **cambios) -> Optional[LineaServicio]:
        return self.actualizar("linea", id, cambios)

    def eliminar_linea(self, id: str) -> bool:
        """Desliga los servicios de la línea (no los borra) y después la elimina."""
        return self.eliminar("linea", id)

    def agregar_extra(self, **campos) -> Extra:
        return self.agregar("extra", campos)

    def actualizar_extra(self, id: str, **cambios) -> Optional[Extra]:
        return self.actualizar("extra", id, cambios)

    def eliminar_extra(self, id: str) -> bool:
        return self.eliminar("extra", id)

    def agregar_barbero(self, **campos) -> Barbero:
        return self.agregar("barbero", campos)

    def actualizar_barbero(self, id: str, **cambios) -> Optional[Barbero]:
        return self.actualizar("barbero", id, cambios)

    def eliminar_barbero(self, id: str) -> bool:
        return self.eliminar("barbero", id)

    def agregar_descuento(self, **campos) -> Descuento:
        return self.agregar("descuento", campos)

    def actualizar_descuento(self, id: str, **cambios) -> Optional[Descuento]:
        return self.actualizar("descuento", id, cambios)

    def eliminar_descuento(self, id: str) -> bool:
        return self.eliminar("descuento", id)

    # --------- Datos de ejemplo ---------

    def sembrar_demo(self) -> None:
        """
        Catálogo inicial para una barbería recién instalada.
        """
        for nombre, precio in (
            ("Corte Clásico", 3500),
            ("Corte + Barba", 5000),
            ("Barba", 2000),
            ("Combo Premium", 6500),
        ):
            self.agregar_servicio(name=nombre, price=precio)

        for nombre, precio in (
            ("Lavado", 500),
            ("Cejas", 300),
            ("Máscara Facial", 800),
            ("Tinte Barba", 1000),
        ):
            self.agregar_extra(name=nombre, price=precio)

        for nombre in ("Carlos", "Miguel", "Andrés"):
            self.agregar_barbero(name=nombre, active=True)

        for valor in (10, 20, 30, 50):
            self.agregar_descuento(label=f"{valor}%", value=valor)
