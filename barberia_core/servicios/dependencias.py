# barberia_core/servicios/dependencias.py
from fastapi import Request

from barberia_core.dominio.estado import EstadoBarberia


def get_estado(request: Request) -> EstadoBarberia:
    """
    Estado de la barbería creado por la app al arrancar.
    Se usa con Depends() en los routers.
    """
    return request.app.state.barberia
