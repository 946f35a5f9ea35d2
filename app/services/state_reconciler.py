# app/services/state_reconciler.py

"""
Reconciliador de estado.

Escucha users/+/devices/+/state de TODOS los usuarios y aplica el estado
reportado por cada dispositivo en la base de datos.

Payloads aceptados en el tópico de estado:
    {"power": "ON" | "OFF"}     estructurado
    ON | OFF                     literal, sin importar mayúsculas

Cualquier otra cosa se descarta sin error. Un mensaje malo nunca detiene la
suscripción: cada fallo se registra y se sigue con el siguiente.
"""

import asyncio
import json
from contextlib import suppress
from typing import Callable

from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.repositories import DeviceRepository
from app.models import PowerState, parse_power_state
from app.core import logger, topics
from app.core.exceptions import DeviceNotFound
from app.core.mqtt_client import MessageTransport

STATE_QOS = 1


def decode_power_report(payload: bytes | str) -> PowerState | None:
    """
    Decodifica el payload de un reporte de estado.

    Primero intenta JSON con el campo "power"; si no es JSON se toma el payload
    entero como el literal. Devuelve None si no es exactamente ON u OFF
    (sin espacios alrededor; mayúsculas o minúsculas da igual).
    """
    try:
        text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
    except UnicodeDecodeError:
        return None

    try:
        decoded = json.loads(text)
    except ValueError:
        token = text
    else:
        if isinstance(decoded, dict):
            token = decoded.get("power")
        elif isinstance(decoded, str):
            token = decoded
        else:
            token = None

    if not isinstance(token, str):
        return None

    try:
        return parse_power_state(token)
    except ValueError:
        return None


class StateReconciler:
    """
    Tarea de fondo de larga vida que aplica los reportes de estado.

    El hilo de red de paho sólo encola (topic, payload) en una asyncio.Queue;
    la tarea los procesa de uno en uno, cada uno con su propia sesión de BD
    en un hilo de trabajo para no bloquear el event loop.
    """

    def __init__(self, transport: MessageTransport, session_factory: Callable[[], Session] = SessionLocal):
        self.transport = transport
        self.session_factory = session_factory
        self._queue: asyncio.Queue | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task | None = None

    def start(self):
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._run(), name="state-reconciler")
        self.transport.subscribe(topics.STATE_SUBSCRIPTION, STATE_QOS, self._enqueue)
        logger.info(f"🔄 Reconciliador de estado escuchando {topics.STATE_SUBSCRIPTION}")

    async def stop(self):
        if self._task:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
            self._task = None
            logger.info("🛑 Reconciliador de estado detenido")

    async def wait_idle(self):
        """Espera a que se procesen todos los mensajes encolados."""
        if self._queue is not None:
            await self._queue.join()

    def _enqueue(self, topic: str, payload: bytes):
        # Llamado desde el hilo de paho
        self._loop.call_soon_threadsafe(self._queue.put_nowait, (topic, payload))

    async def _run(self):
        while True:
            topic, payload = await self._queue.get()
            try:
                await asyncio.to_thread(self.handle_message, topic, payload)
            except Exception as e:
                logger.error(f"❌ Error aplicando reporte de estado en {topic}: {e}")
            finally:
                self._queue.task_done()

    def handle_message(self, topic: str, payload: bytes | str) -> PowerState | None:
        """
        Aplica un reporte. Devuelve el estado guardado o None si se descartó.

        Sin números de secuencia: el último reporte que llega gana.
        """
        address = topics.parse_state_topic(topic)
        if address is None:
            return None

        state = decode_power_report(payload)
        if state is None:
            logger.debug(f"Reporte descartado en {topic}: payload no reconocido")
            return None

        db = self.session_factory()
        try:
            device_repo = DeviceRepository(db)
            try:
                device = device_repo.find_by_endpoint(address.user_id, address.endpoint_id)
            except DeviceNotFound:
                logger.warning(f"⚠️ Dispositivo no encontrado para el tópico {topic}")
                return None

            device_repo.set_power_state(device, state)
            logger.info(f"[MQTT] powerState <- {state.value} (endpointId={address.endpoint_id})")
            return state
        finally:
            db.close()
