# barberia_core/db/persistencia.py
"""
Colaborador de persistencia.

Expone cuatro operaciones asíncronas (insertar / seleccionar / actualizar /
eliminar) que nunca lanzan por errores de la base: devuelven un Resultado
con `data` o con `error`, igual que el cliente del almacén hospedado.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from barberia_core.db.modelos import TABLAS

logger = logging.getLogger(__name__)


class Resultado(BaseModel):
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Persistencia(Protocol):
    async def insertar(self, tabla: str, registro: Dict[str, Any]) -> Resultado: ...

    async def seleccionar(
        self,
        tabla: str,
        filtro: Optional[Dict[str, Any]] = None,
        orden: Optional[str] = None,
    ) -> Resultado: ...

    async def actualizar(self, tabla: str, id: str, campos: Dict[str, Any]) -> Resultado: ...

    async def eliminar(self, tabla: str, id: str) -> Resultado: ...


def _modelo(tabla: str):
    try:
        return TABLAS[tabla]
    except KeyError:
        raise ValueError(f"Tabla desconocida: {tabla}")


def _condicion(modelo, clave: str, valor: Any):
    # "created_at__gte" -> created_at >= valor
    campo, _, op = clave.partition("__")
    columna = getattr(modelo, campo)
    if op == "":
        return columna == valor
    if op == "gte":
        return columna >= valor
    if op == "lt":
        return columna < valor
    raise ValueError(f"Operador de filtro desconocido: {op}")


class PersistenciaSQL:
    """
    Implementación sobre las tablas SQLModel de db.modelos.
    El trabajo bloqueante de la sesión corre en el threadpool de FastAPI.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    async def insertar(self, tabla: str, registro: Dict[str, Any]) -> Resultado:
        return await run_in_threadpool(self._insertar, tabla, registro)

    async def seleccionar(
        self,
        tabla: str,
        filtro: Optional[Dict[str, Any]] = None,
        orden: Optional[str] = None,
    ) -> Resultado:
        return await run_in_threadpool(self._seleccionar, tabla, filtro or {}, orden)

    async def actualizar(self, tabla: str, id: str, campos: Dict[str, Any]) -> Resultado:
        return await run_in_threadpool(self._actualizar, tabla, id, campos)

    async def eliminar(self, tabla: str, id: str) -> Resultado:
        return await run_in_threadpool(self._eliminar, tabla, id)

    # --------- Versiones síncronas ---------

    def _insertar(self, tabla: str, registro: Dict[str, Any]) -> Resultado:
        modelo = _modelo(tabla)
        fila = modelo.model_validate(registro)
        try:
            with Session(self.engine, expire_on_commit=False) as session:
                session.add(fila)
                session.commit()
                session.refresh(fila)
        except SQLAlchemyError as exc:
            logger.error(f"Error insertando en {tabla}: {exc}")
            return Resultado(error=str(exc))
        return Resultado(data=fila.model_dump())

    def _seleccionar(
        self, tabla: str, filtro: Dict[str, Any], orden: Optional[str]
    ) -> Resultado:
        modelo = _modelo(tabla)
        q = select(modelo)
        for clave, valor in filtro.items():
            q = q.where(_condicion(modelo, clave, valor))
        if orden:
            columna = getattr(modelo, orden.lstrip("-"))
            q = q.order_by(columna.desc() if orden.startswith("-") else columna.asc())
        try:
            with Session(self.engine, expire_on_commit=False) as session:
                filas: List[Any] = session.exec(q).all()
        except SQLAlchemyError as exc:
            logger.error(f"Error leyendo {tabla}: {exc}")
            return Resultado(error=str(exc))
        return Resultado(data=[fila.model_dump() for fila in filas])

    def _actualizar(self, tabla: str, id: str, campos: Dict[str, Any]) -> Resultado:
        modelo = _modelo(tabla)
        try:
            with Session(self.engine, expire_on_commit=False) as session:
                fila = session.get(modelo, id)
                if not fila:
                    # Igual que el almacén hospedado: actualizar nada no es error
                    return Resultado()
                for campo, valor in campos.items():
                    if campo == "id":
                        continue
                    setattr(fila, campo, valor)
                session.add(fila)
                session.commit()
        except SQLAlchemyError as exc:
            logger.error(f"Error actualizando {tabla} id={id}: {exc}")
            return Resultado(error=str(exc))
        return Resultado()

    def _eliminar(self, tabla: str, id: str) -> Resultado:
        modelo = _modelo(tabla)
        try:
            with Session(self.engine, expire_on_commit=False) as session:
                fila = session.get(modelo, id)
                if fila:
                    session.delete(fila)
                    session.commit()
        except SQLAlchemyError as exc:
            logger.error(f"Error eliminando {tabla} id={id}: {exc}")
            return Resultado(error=str(exc))
        return Resultado()
