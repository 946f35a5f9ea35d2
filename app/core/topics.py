# app/core/topics.py

"""
Esquema de tópicos MQTT de los dispositivos.

    users/{userId}/devices/{endpointId}/command    backend -> dispositivo
    users/{userId}/devices/{endpointId}/state      dispositivo -> backend
    users/{userId}/devices/{endpointId}/telemetry  dispositivo -> backend

Toda construcción de tópicos (lado escritura, dispatcher) y todo parseo
(lado lectura, reconciliador) pasa por este módulo para que ambos lados
hablen exactamente el mismo esquema.
"""

import re
from typing import NamedTuple

from app.core.exceptions import InvalidTopic

COMMAND_SUFFIX = "command"
STATE_SUFFIX = "state"
TELEMETRY_SUFFIX = "telemetry"

# Único filtro con comodines permitido: la suscripción del reconciliador
STATE_SUBSCRIPTION = f"users/+/devices/+/{STATE_SUFFIX}"

MIN_SEGMENTS = 4
SEGMENT_OK = re.compile(r"[A-Za-z0-9._:-]+")
_TRAILING_SUFFIX = re.compile(rf"/({STATE_SUFFIX}|{TELEMETRY_SUFFIX}|{COMMAND_SUFFIX})$")


class StateAddress(NamedTuple):
    user_id: str
    endpoint_id: str


def normalize(raw_base: str) -> str:
    """
    Valida y normaliza un tópico base.

    Quita espacios y sufijos de canal sobrantes, rechaza comodines, segmentos
    vacíos, menos de 4 segmentos o caracteres fuera de [A-Za-z0-9._:-].
    Lanza InvalidTopic si algo no cuadra.
    """
    topic = (raw_base or "").strip()

    # Se quitan todos los sufijos finales para que normalize sea idempotente
    while _TRAILING_SUFFIX.search(topic):
        topic = _TRAILING_SUFFIX.sub("", topic)

    if "+" in topic or "#" in topic:
        raise InvalidTopic("Topic cannot contain wildcards (+/#)", {"topic": raw_base})
    if "//" in topic:
        raise InvalidTopic("Topic cannot contain empty segments (//)", {"topic": raw_base})

    parts = topic.split("/")
    if len(parts) < MIN_SEGMENTS:
        raise InvalidTopic(
            "Invalid base topic. Expected at least 4 segments, e.g. users/<userId>/devices/<endpointId>",
            {"topic": raw_base},
        )

    for part in parts:
        if not SEGMENT_OK.fullmatch(part):
            raise InvalidTopic("Invalid characters in topic segment", {"topic": raw_base, "segment": part})

    return "/".join(parts)


def check_segment(name: str, value: str) -> str:
    if not SEGMENT_OK.fullmatch(value or ""):
        raise InvalidTopic(f"{name} must be a single topic segment", {name: value})
    return value


def derive_default(user_id: str, endpoint_id: str) -> str:
    """
    Tópico base de un dispositivo BOARD: users/{userId}/devices/{endpointId}.

    Cada identificador debe ser un único segmento; si no, normalize podría
    recortar un sufijo o el tópico de estado dejaría de tener 5 segmentos.
    """
    check_segment("userId", user_id)
    check_segment("endpointId", endpoint_id)
    return normalize(f"users/{user_id}/devices/{endpoint_id}")


def command(base: str) -> str:
    return f"{base}/{COMMAND_SUFFIX}"


def state(base: str) -> str:
    return f"{base}/{STATE_SUFFIX}"


def telemetry(base: str) -> str:
    return f"{base}/{TELEMETRY_SUFFIX}"


def derive_topics(base: str) -> dict:
    """Familia completa de canales a partir de un tópico base guardado."""
    canonical = normalize(base)
    return {
        "base": canonical,
        "command": command(canonical),
        "state": state(canonical),
        "telemetry": telemetry(canonical),
    }


def parse_state_topic(topic: str) -> StateAddress | None:
    """
    Extrae (userId, endpointId) de users/{u}/devices/{e}/state.

    Devuelve None para cualquier otro tópico; no es un error, el filtro de
    suscripción deja pasar más cosas de las que nos interesan.
    """
    parts = (topic or "").split("/")
    if len(parts) != 5:
        return None

    root, user_id, collection, endpoint_id, suffix = parts
    if root != "users" or collection != "devices" or suffix != STATE_SUFFIX:
        return None
    if not SEGMENT_OK.fullmatch(user_id) or not SEGMENT_OK.fullmatch(endpoint_id):
        return None

    return StateAddress(user_id=user_id, endpoint_id=endpoint_id)
