import logging
from logging.handlers import RotatingFileHandler
import os

from .settings import settings
from .discord_logger import send_discord_alert

LOGGER_NAME = "smarthome"

# Carpeta de logs (fuera del código fuente)
LOG_DIR = os.path.join(os.path.dirname(__file__), "../../logs")
os.makedirs(LOG_DIR, exist_ok=True)
LOG_FILE = os.path.join(LOG_DIR, settings.LOG_FILE_NAME)


def resolve_level(name: str) -> int:
    """Nivel de logging a partir de su nombre ("debug", "WARNING"...). Desconocido -> INFO."""
    level = logging.getLevelName((name or "").upper())
    return level if isinstance(level, int) else logging.INFO


logger = logging.getLogger(LOGGER_NAME)
logger.setLevel(resolve_level(settings.LOG_LEVEL))

# Solo handlers propios: los del root (p. ej. pytest) no cuentan
if not logger.handlers:
    # %(module)s: el logger se comparte entre módulos
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s.%(module)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )

    file_handler = RotatingFileHandler(LOG_FILE, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)


def log_critical_error(msg: str, **context):
    """
    Registra un fallo que requiere atención (correo no enviado, broker caído...)
    y lo reenvía a Discord con el contexto (usuario, dispositivo) en la misma línea.
    """
    if context:
        msg = f"{msg} | " + ", ".join(f"{k}={v}" for k, v in context.items())
    logger.error(msg)
    send_discord_alert(msg, level="ERROR")
