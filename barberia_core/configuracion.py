# barberia_core/configuracion.py
import os

# URL de la base de datos de la barbería.
# Puedes sobreescribirla con la variable de entorno BARBERIA_DB_URL
DB_URL = os.getenv("BARBERIA_DB_URL", "sqlite:///./datos_barberia.db")

LOG_LEVEL = os.getenv("BARBERIA_LOG_LEVEL", "INFO").upper()

# Si la base arranca vacía, se carga el catálogo de ejemplo
DATOS_DEMO = os.getenv("BARBERIA_DATOS_DEMO", "1").lower() in ("1", "true", "yes", "on")

# Cuántos avisos (toasts) se guardan como máximo sin ser leídos
MAX_NOTIFICACIONES = int(os.getenv("BARBERIA_MAX_NOTIFICACIONES", "50"))
