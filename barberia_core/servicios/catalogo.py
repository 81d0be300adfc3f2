# barberia_core/servicios/catalogo.py
from typing import List, Optional, Type

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel, Field, ValidationError

from barberia_core.db.modelos import Barbero, Descuento, Extra, LineaServicio, Servicio
from barberia_core.dominio.estado import EstadoBarberia
from barberia_core.servicios.dependencias import get_estado

router = APIRouter()


# --------- Esquemas de entrada ---------

class LineaCreate(BaseModel):
    name: str = Field(min_length=1)


class LineaUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)


class ServicioCreate(BaseModel):
    name: str = Field(min_length=1)
    price: int = Field(ge=0)
    line_id: Optional[str] = None


class ServicioUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    price: Optional[int] = Field(default=None, ge=0)
    line_id: Optional[str] = None


class ExtraCreate(BaseModel):
    name: str = Field(min_length=1)
    price: int = Field(ge=0)


class ExtraUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    price: Optional[int] = Field(default=None, ge=0)


class BarberoCreate(BaseModel):
    name: str = Field(min_length=1)
    active: bool = True


class BarberoUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    active: Optional[bool] = None


class DescuentoCreate(BaseModel):
    label: str = Field(min_length=1)
    value: float = Field(ge=0, le=100)


class DescuentoUpdate(BaseModel):
    label: Optional[str] = Field(default=None, min_length=1)
    value: Optional[float] = Field(default=None, ge=0, le=100)


# --------- Helpers ---------

def _validar_linea(estado: EstadoBarberia, tipo: str, datos: dict) -> None:
    if tipo != "servicio" or not datos.get("line_id"):
        return
    if estado.catalogo.linea(datos["line_id"]) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Línea de servicio inexistente (id={datos['line_id']})",
        )


def _registrar_crud(
    ruta: str,
    tipo: str,
    modelo: Type,
    esquema_alta: Type[BaseModel],
    esquema_cambio: Type[BaseModel],
    etiqueta: str,
    con_listado: bool = True,
) -> None:
    """
    Arma listar / crear / actualizar / eliminar para una entidad del catálogo.
    """

    async def listar(estado: EstadoBarberia = Depends(get_estado)):
        return estado.catalogo.listar(tipo)

    async def crear(
        body: esquema_alta,
        background_tasks: BackgroundTasks,
        estado: EstadoBarberia = Depends(get_estado),
    ):
        datos = body.model_dump()
        _validar_linea(estado, tipo, datos)
        entidad = estado.agregar(tipo, datos)
        background_tasks.add_task(estado.sincronizar)
        return entidad

    async def actualizar(
        entidad_id: str,
        body: esquema_cambio,
        background_tasks: BackgroundTasks,
        estado: EstadoBarberia = Depends(get_estado),
    ):
        cambios = body.model_dump(exclude_unset=True)
        _validar_linea(estado, tipo, cambios)
        try:
            entidad = estado.actualizar(tipo, entidad_id, cambios)
        except ValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=exc.errors(include_url=False),
            )
        if entidad is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{etiqueta} no encontrado",
            )
        background_tasks.add_task(estado.sincronizar)
        return entidad

    async def eliminar(
        entidad_id: str,
        background_tasks: BackgroundTasks,
        estado: EstadoBarberia = Depends(get_estado),
    ):
        # Borrar algo que no existe no es error
        if estado.eliminar(tipo, entidad_id):
            background_tasks.add_task(estado.sincronizar)

    if con_listado:
        router.add_api_route(f"/{ruta}", listar, methods=["GET"], response_model=List[modelo])
    router.add_api_route(
        f"/{ruta}",
        crear,
        methods=["POST"],
        response_model=modelo,
        status_code=status.HTTP_201_CREATED,
    )
    router.add_api_route(
        f"/{ruta}/{{entidad_id}}", actualizar, methods=["PATCH"], response_model=modelo
    )
    router.add_api_route(
        f"/{ruta}/{{entidad_id}}",
        eliminar,
        methods=["DELETE"],
        status_code=status.HTTP_204_NO_CONTENT,
    )


# --------- Endpoints ---------

# Barberos va aparte para poder filtrar inactivos
@router.get("/barberos", response_model=List[Barbero])
async def listar_barberos(
    incluir_inactivos: bool = False,
    estado: EstadoBarberia = Depends(get_estado),
):
    if incluir_inactivos:
        return estado.catalogo.todos_los_barberos
    return estado.catalogo.barberos_activos


_registrar_crud("servicios", "servicio", Servicio, ServicioCreate, ServicioUpdate, "Servicio")
_registrar_crud("lineas", "linea", LineaServicio, LineaCreate, LineaUpdate, "Línea")
_registrar_crud("extras", "extra", Extra, ExtraCreate, ExtraUpdate, "Extra")
_registrar_crud("barberos", "barbero", Barbero, BarberoCreate, BarberoUpdate, "Barbero",
                con_listado=False)
_registrar_crud("descuentos", "descuento", Descuento, DescuentoCreate, DescuentoUpdate, "Descuento")
