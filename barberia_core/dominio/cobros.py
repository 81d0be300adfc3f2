# barberia_core/dominio/cobros.py
"""
Armado de cobros: subtotal, descuento y total con redondeo half-up.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict

from barberia_core.db.modelos import (
    Barbero,
    Descuento,
    Extra,
    MedioPago,
    Servicio,
    SIN_DESCUENTO,
    TipoDescuento,
)
from barberia_core.dominio.errores import ErrorValidacion


# --------- Esquemas ---------

class ExtraCobro(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: int


class Montos(BaseModel):
    subtotal: int
    descuento: float
    tipo_descuento: TipoDescuento
    monto_descuento: int
    total: int


class Cobro(BaseModel):
    """
    Cobro ya armado. Inmutable: guarda una foto de nombres y precios
    para que editar el catálogo después no cambie el histórico.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    barber_id: str
    barber_name: str
    service_id: str
    service_name: str
    service_price: int
    extras: Tuple[ExtraCobro, ...] = ()
    discount: float = 0
    discount_type: TipoDescuento = TipoDescuento.percentage
    discount_id: Optional[str] = None
    payment_method: MedioPago
    subtotal: int
    total: int
    created_at: datetime

    @property
    def extras_total(self) -> int:
        return sum(e.price for e in self.extras)

    @property
    def discount_amount(self) -> int:
        return self.subtotal - self.total

    def a_registro(self) -> Dict[str, Any]:
        """
        Fila para la tabla `transactions`, campo por campo.
        """
        porcentual = self.discount_type == TipoDescuento.percentage
        return {
            "id": self.id,
            "created_at": self.created_at,
            "barber_id": self.barber_id,
            "barber_name": self.barber_name,
            "service_id": self.service_id,
            "service_name": self.service_name,
            "service_price": self.service_price,
            "extras": [e.model_dump() for e in self.extras],
            "extras_total": self.extras_total,
            "discount_id": self.discount_id,
            "discount_name": formatear_porcentaje(self.discount) if porcentual else None,
            "discount_percentage": self.discount if porcentual else 0,
            "discount_amount": self.discount_amount,
            "subtotal": self.subtotal,
            "total": self.total,
            "payment_method": self.payment_method.value,
        }

    @classmethod
    def desde_registro(cls, registro: Dict[str, Any]) -> "Cobro":
        # Sin discount_name el descuento fue un monto fijo. El registro solo
        # guarda lo descontado, así que un fijo mayor al subtotal vuelve recortado.
        if registro.get("discount_name") is None and registro.get("discount_amount"):
            tipo = TipoDescuento.fixed
            descuento = registro["discount_amount"]
        else:
            tipo = TipoDescuento.percentage
            descuento = registro.get("discount_percentage") or 0

        return cls(
            id=registro["id"],
            barber_id=registro["barber_id"],
            barber_name=registro["barber_name"],
            service_id=registro["service_id"],
            service_name=registro["service_name"],
            service_price=registro["service_price"],
            extras=tuple(ExtraCobro(**e) for e in registro.get("extras") or []),
            discount=descuento,
            discount_type=tipo,
            discount_id=registro.get("discount_id"),
            payment_method=registro["payment_method"],
            subtotal=registro["subtotal"],
            total=registro["total"],
            created_at=registro["created_at"],
        )


# --------- Helpers ---------

def redondear(valor: Decimal) -> int:
    """Redondeo a pesos enteros, .5 hacia arriba."""
    return int(valor.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def formatear_porcentaje(valor: float) -> str:
    if float(valor).is_integer():
        return f"{int(valor)}%"
    return f"{valor}%"


def porcentaje_de(descuento: Optional[Descuento]) -> float:
    if descuento is None or descuento.id == SIN_DESCUENTO:
        return 0
    return descuento.value


def calcular_montos(
    precio_servicio: int,
    precios_extras: Iterable[int] = (),
    porcentaje: float = 0,
    descuento_fijo: Optional[int] = None,
) -> Montos:
    """
    subtotal = servicio + extras
    descuento porcentual: round_half_up(subtotal * p / 100)
    descuento fijo: el monto, sin pasar el subtotal
    total = max(0, subtotal - descuento)
    """
    subtotal = precio_servicio + sum(precios_extras)

    if descuento_fijo:
        if descuento_fijo < 0:
            raise ValueError("El descuento fijo no puede ser negativo")
        tipo = TipoDescuento.fixed
        valor: float = descuento_fijo
        monto = min(descuento_fijo, subtotal)
    else:
        if not 0 <= porcentaje <= 100:
            raise ValueError("El porcentaje debe estar entre 0 y 100")
        tipo = TipoDescuento.percentage
        valor = porcentaje
        monto = redondear(Decimal(subtotal) * Decimal(str(porcentaje)) / 100)

    return Montos(
        subtotal=subtotal,
        descuento=valor,
        tipo_descuento=tipo,
        monto_descuento=monto,
        total=max(0, subtotal - monto),
    )


# --------- Armado ---------

def construir_cobro(
    barbero: Optional[Barbero],
    servicio: Optional[Servicio],
    extras: Iterable[Extra] = (),
    descuento: Optional[Descuento] = None,
    medio_pago: Optional[MedioPago | str] = None,
    descuento_fijo: Optional[int] = None,
    ahora: Optional[datetime] = None,
) -> Cobro:
    faltantes = []
    if barbero is None:
        faltantes.append("barbero")
    if servicio is None:
        faltantes.append("servicio")
    if not medio_pago:
        faltantes.append("medio_pago")
    if faltantes:
        raise ErrorValidacion(faltantes)

    extras = list(extras)
    montos = calcular_montos(
        servicio.price,
        [e.price for e in extras],
        porcentaje=porcentaje_de(descuento),
        descuento_fijo=descuento_fijo,
    )

    discount_id = None
    if montos.tipo_descuento == TipoDescuento.percentage and porcentaje_de(descuento):
        discount_id = descuento.id

    return Cobro(
        id=str(uuid4()),
        barber_id=barbero.id,
        barber_name=barbero.name,
        service_id=servicio.id,
        service_name=servicio.name,
        service_price=servicio.price,
        extras=tuple(ExtraCobro(id=e.id, name=e.name, price=e.price) for e in extras),
        discount=montos.descuento,
        discount_type=montos.tipo_descuento,
        discount_id=discount_id,
        payment_method=MedioPago(medio_pago),
        subtotal=montos.subtotal,
        total=montos.total,
        # Hora local: el cierre corta a la medianoche del local
        created_at=ahora or datetime.now(),
    )
