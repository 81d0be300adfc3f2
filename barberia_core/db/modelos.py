# barberia_core/db/modelos.py
from __future__ import annotations

from typing import List, Optional
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


# =========================
# Enums base
# =========================

class MedioPago(str, Enum):
    """
    Medios de pago aceptados en la barbería.
    """
    efectivo = "efectivo"
    mercado_pago = "mercado_pago"


class TipoDescuento(str, Enum):
    """
    fixed: monto fijo en pesos. percentage: porcentaje sobre el subtotal.
    """
    fixed = "fixed"
    percentage = "percentage"


# Id del descuento protegido ("Sin descuento")
SIN_DESCUENTO = "none"


# =========================
# Catálogo
# =========================

class LineaServicio(SQLModel, table=True):
    """
    Agrupación opcional de servicios (ej: "Premium").
    """
    __tablename__ = "service_lines"

    id: str = Field(primary_key=True)
    name: str


class Servicio(SQLModel, table=True):
    """
    Servicio cobrable. El precio va en pesos enteros.
    """
    __tablename__ = "services"

    id: str = Field(primary_key=True)
    name: str = Field(index=True)
    price: int = Field(ge=0)
    line_id: Optional[str] = Field(
        default=None,
        description="Línea a la que pertenece (puede no tener)"
    )


class Extra(SQLModel, table=True):
    __tablename__ = "extras"

    id: str = Field(primary_key=True)
    name: str
    price: int = Field(ge=0)


class Barbero(SQLModel, table=True):
    __tablename__ = "barbers"

    id: str = Field(primary_key=True)
    name: str
    active: bool = Field(
        default=True,
        description="Los inactivos no se ofrecen al cobrar pero siguen en el histórico"
    )


class Descuento(SQLModel, table=True):
    __tablename__ = "discounts"

    id: str = Field(primary_key=True)
    label: str
    value: float = Field(ge=0, le=100, description="Porcentaje 0 a 100")


# =========================
# Cobros
# =========================

class CobroRegistro(SQLModel, table=True):
    """
    Fila de un cobro tal como se guarda en la base.
    Nombres y precios son una foto del catálogo al momento del cobro.
    """
    __tablename__ = "transactions"

    id: str = Field(primary_key=True)
    created_at: datetime = Field(index=True, description="Momento del cobro")

    barber_id: str = Field(index=True)
    barber_name: str
    service_id: str
    service_name: str
    service_price: int

    extras: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    extras_total: int = 0

    discount_id: Optional[str] = None
    discount_name: Optional[str] = None
    discount_percentage: float = 0
    discount_amount: int = 0

    subtotal: int
    total: int
    payment_method: MedioPago


TABLAS = {
    "service_lines": LineaServicio,
    "services": Servicio,
    "extras": Extra,
    "barbers": Barbero,
    "discounts": Descuento,
    "transactions": CobroRegistro,
}
