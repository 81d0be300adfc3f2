# barberia_core/servicios/cobros.py
from __future__ import annotations

from typing import List, Optional
from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel, Field

from barberia_core.db.modelos import MedioPago
from barberia_core.dominio.cobros import Cobro
from barberia_core.dominio.errores import ErrorValidacion
from barberia_core.dominio.estado import EstadoBarberia
from barberia_core.servicios.dependencias import get_estado

router = APIRouter()


# --------- Esquemas de entrada ---------

class CobroCreate(BaseModel):
    barber_id: Optional[str] = None
    service_id: Optional[str] = None
    extra_ids: List[str] = []
    discount_id: Optional[str] = None
    # Monto fijo en pesos; si viene, se ignora discount_id
    descuento_fijo: Optional[int] = Field(default=None, ge=0)
    payment_method: Optional[MedioPago] = None


# --------- Helpers ---------

def error_campos_requeridos(exc: ErrorValidacion) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={
            "mensaje": "Por favor completa barbero, servicio y método de pago.",
            "campos": exc.campos,
        },
    )


# --------- Endpoints ---------

@router.get("/", response_model=List[Cobro])
async def listar_cobros(
    fecha: Optional[date] = None,
    estado: EstadoBarberia = Depends(get_estado),
):
    """
    Cobros de un día (hoy por defecto), del más nuevo al más viejo.
    """
    cobros = estado.registro.del_dia(fecha or date.today())
    return list(reversed(cobros))


@router.post("/", response_model=Cobro, status_code=status.HTTP_201_CREATED)
async def crear_cobro(
    body: CobroCreate,
    background_tasks: BackgroundTasks,
    estado: EstadoBarberia = Depends(get_estado),
):
    try:
        cobro = estado.cobrar(
            barber_id=body.barber_id,
            service_id=body.service_id,
            extra_ids=body.extra_ids,
            discount_id=body.discount_id,
            payment_method=body.payment_method,
            descuento_fijo=body.descuento_fijo,
        )
    except ErrorValidacion as exc:
        raise error_campos_requeridos(exc)

    background_tasks.add_task(estado.sincronizar)
    return cobro
