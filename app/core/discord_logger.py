import logging
import time

import requests

from .settings import settings

# logger.py importa este módulo: se pide el logger por nombre para no crear un ciclo
_log = logging.getLogger("smarthome")

# Última alerta enviada por nivel
_last_alert_time = {}

LEVEL_EMOJIS = {
    "INFO": "ℹ️",
    "WARN": "⚠️",
    "ERROR": "🔥",
    "CRITICAL": "💀",
}

# Límite de Discord para el campo content
MAX_CONTENT = 2000


def build_alert_payload(message: str, level: str) -> dict:
    emoji = LEVEL_EMOJIS.get(level, "⚡")
    content = f"{emoji} **[{level}] {settings.ALEXA_MANUFACTURER_NAME} SmartHome:** {message}"
    return {"username": "SmartHome", "content": content[:MAX_CONTENT]}


def send_discord_alert(message: str, level: str = "INFO") -> bool:
    """
    Envía una alerta al webhook de Discord.

    Como mucho una alerta por nivel cada DISCORD_FLOOD_SECONDS; un 500 repetido
    en bucle no debe inundar el canal. Sin webhook no hace nada.
    Devuelve True si la alerta salió.
    """
    if not settings.DISCORD_WEBHOOK_URL:
        return False

    now = time.monotonic()
    last_time = _last_alert_time.get(level)
    if last_time is not None and now - last_time < settings.DISCORD_FLOOD_SECONDS:
        return False

    _last_alert_time[level] = now

    try:
        response = requests.post(settings.DISCORD_WEBHOOK_URL, json=build_alert_payload(message, level), timeout=2)
        response.raise_for_status()
    except requests.RequestException as e:
        # No se usa log_critical_error aquí: volvería a llamar a Discord
        _log.warning(f"⚠️ No se pudo enviar la alerta a Discord: {e}")
        return False
    return True
