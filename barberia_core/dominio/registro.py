# barberia_core/dominio/registro.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from barberia_core.dominio.cobros import Cobro


def _hora_local(momento: datetime) -> datetime:
    # Las fechas con zona se pasan a la hora local del equipo
    if momento.tzinfo is not None:
        return momento.astimezone().replace(tzinfo=None)
    return momento


class RegistroCobros:
    """
    Log de cobros, solo se agrega. El orden de inserción es el orden de
    creación porque los cobros se arman y se agregan de a uno.
    """

    def __init__(self) -> None:
        self._cobros: List[Cobro] = []
        self._ids: set[str] = set()

    def __len__(self) -> int:
        return len(self._cobros)

    def agregar(self, cobro: Cobro) -> None:
        if cobro.id in self._ids:
            raise ValueError(f"Cobro duplicado (id={cobro.id})")
        self._cobros.append(cobro)
        self._ids.add(cobro.id)

    def cargar(self, cobros: Iterable[Cobro]) -> None:
        """
        Agrega histórico leído de la base, ordenado por created_at.
        Los ids ya presentes se saltean.
        """
        for cobro in sorted(cobros, key=lambda c: _hora_local(c.created_at)):
            if cobro.id not in self._ids:
                self.agregar(cobro)

    def todos(self) -> List[Cobro]:
        return list(self._cobros)

    def recientes(self) -> List[Cobro]:
        """Más nuevo primero, como se muestran en pantalla."""
        return list(reversed(self._cobros))

    def del_dia(self, fecha: date) -> List[Cobro]:
        """
        Cobros con created_at en [00:00 de fecha, 00:00 del día siguiente).
        """
        inicio = datetime.combine(fecha, time.min)
        fin = inicio + timedelta(days=1)
        return [c for c in self._cobros if inicio <= _hora_local(c.created_at) < fin]

    def de_hoy(self, ahora: Optional[datetime] = None) -> List[Cobro]:
        return self.del_dia((ahora or datetime.now()).date())
