# barberia_core/servicios/asistente.py
from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel

from barberia_core.db.modelos import MedioPago
from barberia_core.dominio.asistente import Etapa, EstadoAsistente
from barberia_core.dominio.cobros import Cobro, Montos
from barberia_core.dominio.errores import ErrorEtapa, ErrorValidacion
from barberia_core.dominio.estado import EstadoBarberia
from barberia_core.servicios.cobros import error_campos_requeridos
from barberia_core.servicios.dependencias import get_estado

router = APIRouter()


# --------- Esquemas ---------

class Seleccion(BaseModel):
    id: str


class SeleccionPago(BaseModel):
    medio_pago: MedioPago


class SeleccionEtapa(BaseModel):
    etapa: Etapa


class AsistenteOut(BaseModel):
    estado: EstadoAsistente
    vista_previa: Montos


# --------- Helpers ---------

def _vista(estado: EstadoBarberia) -> AsistenteOut:
    return AsistenteOut(
        estado=estado.asistente.estado(),
        vista_previa=estado.asistente.vista_previa(),
    )


def _aplicar(estado: EstadoBarberia, accion: Callable[[], None]) -> AsistenteOut:
    try:
        accion()
    except ErrorEtapa as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return _vista(estado)


# --------- Endpoints ---------

@router.get("/", response_model=AsistenteOut)
async def ver_asistente(estado: EstadoBarberia = Depends(get_estado)):
    return _vista(estado)


@router.post("/barbero", response_model=AsistenteOut)
async def elegir_barbero(body: Seleccion, estado: EstadoBarberia = Depends(get_estado)):
    return _aplicar(estado, lambda: estado.asistente.seleccionar_barbero(body.id))


@router.post("/servicio", response_model=AsistenteOut)
async def elegir_servicio(body: Seleccion, estado: EstadoBarberia = Depends(get_estado)):
    return _aplicar(estado, lambda: estado.asistente.seleccionar_servicio(body.id))


@router.post("/extras/{extra_id}", response_model=AsistenteOut)
async def alternar_extra(extra_id: str, estado: EstadoBarberia = Depends(get_estado)):
    return _aplicar(estado, lambda: estado.asistente.alternar_extra(extra_id))


@router.post("/continuar", response_model=AsistenteOut)
async def continuar(estado: EstadoBarberia = Depends(get_estado)):
    return _aplicar(estado, estado.asistente.continuar)


@router.post("/descuento", response_model=AsistenteOut)
async def elegir_descuento(body: Seleccion, estado: EstadoBarberia = Depends(get_estado)):
    return _aplicar(estado, lambda: estado.asistente.seleccionar_descuento(body.id))


@router.post("/pago", response_model=AsistenteOut)
async def elegir_pago(body: SeleccionPago, estado: EstadoBarberia = Depends(get_estado)):
    return _aplicar(estado, lambda: estado.asistente.seleccionar_medio_pago(body.medio_pago))


@router.post("/etapa", response_model=AsistenteOut)
async def ir_a_etapa(body: SeleccionEtapa, estado: EstadoBarberia = Depends(get_estado)):
    return _aplicar(estado, lambda: estado.asistente.ir_a(body.etapa))


@router.post("/reiniciar", response_model=AsistenteOut)
async def reiniciar(estado: EstadoBarberia = Depends(get_estado)):
    return _aplicar(estado, estado.asistente.reiniciar)


@router.post("/confirmar", response_model=Cobro, status_code=status.HTTP_201_CREATED)
async def confirmar(
    background_tasks: BackgroundTasks,
    estado: EstadoBarberia = Depends(get_estado),
):
    try:
        cobro = estado.confirmar_asistente()
    except ErrorValidacion as exc:
        raise error_campos_requeridos(exc)

    background_tasks.add_task(estado.sincronizar)
    return cobro
