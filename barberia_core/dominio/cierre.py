# barberia_core/dominio/cierre.py
from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from barberia_core.db.modelos import Barbero, MedioPago
from barberia_core.dominio.cobros import Cobro


class ResumenBarbero(BaseModel):
    barber_id: str
    barber_name: str
    count: int = 0
    total_efectivo: int = 0
    total_mercado_pago: int = 0
    total: int = 0


class ResumenDiario(BaseModel):
    fecha: Optional[date] = None
    count: int
    total_efectivo: int
    total_mercado_pago: int
    total: int
    transactions: List[Cobro]
    per_barber: List[ResumenBarbero]


def resumir(
    cobros: Iterable[Cobro],
    barberos_activos: Iterable[Barbero],
    fecha: Optional[date] = None,
) -> ResumenDiario:
    """
    Cierre de caja sobre los cobros recibidos (normalmente los del día).

    El desglose por barbero arranca con una fila en cero por cada barbero
    activo, suma cada cobro en la fila de su barber_id (o crea una con el
    nombre guardado en el cobro si el barbero ya no está activo) y al final
    deja solo las filas con al menos un cobro.
    """
    cobros = list(cobros)

    total_efectivo = sum(c.total for c in cobros if c.payment_method == MedioPago.efectivo)
    total_mercado_pago = sum(
        c.total for c in cobros if c.payment_method == MedioPago.mercado_pago
    )

    # dict conserva el orden: activos primero, después los que aparecen
    por_barbero: Dict[str, ResumenBarbero] = {
        b.id: ResumenBarbero(barber_id=b.id, barber_name=b.name)
        for b in barberos_activos
    }
    for c in cobros:
        fila = por_barbero.get(c.barber_id)
        if fila is None:
            fila = ResumenBarbero(barber_id=c.barber_id, barber_name=c.barber_name)
            por_barbero[c.barber_id] = fila
        fila.count += 1
        fila.total += c.total
        if c.payment_method == MedioPago.efectivo:
            fila.total_efectivo += c.total
        else:
            fila.total_mercado_pago += c.total

    return ResumenDiario(
        fecha=fecha,
        count=len(cobros),
        total_efectivo=total_efectivo,
        total_mercado_pago=total_mercado_pago,
        total=total_efectivo + total_mercado_pago,
        transactions=list(reversed(cobros)),
        per_barber=[fila for fila in por_barbero.values() if fila.count > 0],
    )
