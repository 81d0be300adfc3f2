# barberia_core/servicios/cierre.py
from typing import Optional
from datetime import date

from fastapi import APIRouter, Depends

from barberia_core.dominio.cierre import ResumenDiario
from barberia_core.dominio.estado import EstadoBarberia
from barberia_core.servicios.dependencias import get_estado

router = APIRouter()


@router.get("/", response_model=ResumenDiario)
async def cierre_del_dia(
    fecha: Optional[date] = None,
    estado: EstadoBarberia = Depends(get_estado),
) -> ResumenDiario:
    """
    Cierre de caja: cantidad de cobros, totales por medio de pago y
    desglose por barbero. Sin fecha, usa el día de hoy.
    """
    return estado.resumen_del_dia(fecha)
