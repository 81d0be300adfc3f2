# barberia_core/dominio/errores.py
from typing import Iterable, Optional


class ErrorBarberia(Exception):
    """Base de los errores del dominio."""


class ErrorValidacion(ErrorBarberia):
    """
    Falta una selección obligatoria al confirmar un cobro.
    `campos` lista todos los que faltan (barbero, servicio, medio_pago).
    """

    def __init__(self, campos: Iterable[str]):
        self.campos = list(campos)
        super().__init__(f"Campos requeridos: {', '.join(self.campos)}")


class ErrorEtapa(ErrorBarberia, ValueError):
    """Salto hacia una etapa del asistente que todavía no se alcanzó."""


class ErrorPersistencia(ErrorBarberia):
    """
    La base rechazó una lectura o escritura. Nunca se relanza:
    queda en el log y como notificación para el usuario.
    """

    def __init__(self, operacion: str, tabla: str, detalle: Optional[str]):
        self.operacion = operacion
        self.tabla = tabla
        self.detalle = detalle
        super().__init__(f"{operacion} en {tabla} falló: {detalle}")
