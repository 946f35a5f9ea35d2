# app/core/mqtt_client.py

import asyncio
import uuid
import threading
from typing import Callable, Dict, Optional, Protocol, Tuple

import paho.mqtt.client as mqtt

from app.core.logger import logger
from app.core.settings import settings
from app.core.exceptions import TransportError, TransportUnavailable

# (topic, payload) -> None. Se ejecuta en el hilo de red de paho.
MessageCallback = Callable[[str, bytes], None]


class MessageTransport(Protocol):
    """Lo que el dispatcher y el reconciliador necesitan del transporte."""

    is_connected: bool

    async def publish(self, topic: str, payload: str, qos: int = 1) -> None: ...

    def subscribe(self, topic_filter: str, qos: int, callback: MessageCallback) -> None: ...


class MQTTClient:
    """
    Conexión única y de larga vida con el broker.

    Se crea una vez en el arranque y se inyecta en el dispatcher de comandos y
    en el reconciliador de estado. paho serializa internamente los frames, así
    que publish() se puede llamar desde muchas peticiones a la vez.
    """

    def __init__(
        self,
        host: str = settings.MQTT_BROKER_HOST,
        port: int = settings.MQTT_BROKER_PORT,
        publish_timeout: float = settings.MQTT_PUBLISH_TIMEOUT,
    ):
        self.host = host
        self.port = port
        self.publish_timeout = publish_timeout
        self.client: Optional[mqtt.Client] = None
        self.is_connected = False
        # filtro -> (qos, callback); se re-suscriben en cada reconexión
        self.subscriptions: Dict[str, Tuple[int, MessageCallback]] = {}
        self._lock = threading.Lock()

    def connect(self):
        """Arranca el loop de red en segundo plano; paho se encarga de reconectar."""
        try:
            unique_id = f"{settings.MQTT_CLIENT_ID}_{uuid.uuid4().hex[:8]}"
            self.client = mqtt.Client(
                callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
                client_id=unique_id,
                clean_session=True,
            )

            if settings.MQTT_USER:
                self.client.username_pw_set(settings.MQTT_USER, settings.MQTT_PASS)

            self.client.on_connect = self._on_connect
            self.client.on_disconnect = self._on_disconnect
            self.client.on_message = self._on_message
            self.client.reconnect_delay_set(min_delay=1, max_delay=30)

            self.client.connect_async(host=self.host, port=self.port, keepalive=60)
            self.client.loop_start()
            logger.info(f"🚀 MQTT Client iniciado ({self.host}:{self.port})")

        except (OSError, ValueError) as e:
            logger.error(f"❌ Error iniciando MQTT: {e}")

    def disconnect(self):
        if self.client:
            self.client.disconnect()
            self.client.loop_stop()
            self.is_connected = False

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.error(f"❌ Fallo conexión MQTT: {reason_code}")
            return

        self.is_connected = True
        logger.info(f"✅ Conectado a MQTT en {self.host}:{self.port}")

        with self._lock:
            subscriptions = list(self.subscriptions.items())
        for topic_filter, (qos, _) in subscriptions:
            client.subscribe(topic_filter, qos=qos)
            logger.info(f"📥 Suscrito a {topic_filter} (qos={qos})")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties):
        self.is_connected = False
        logger.warning(f"⚠️ MQTT Desconectado ({reason_code})")

    def _on_message(self, client, userdata, msg):
        with self._lock:
            callbacks = [
                callback
                for topic_filter, (_, callback) in self.subscriptions.items()
                if mqtt.topic_matches_sub(topic_filter, msg.topic)
            ]

        for callback in callbacks:
            try:
                callback(msg.topic, msg.payload)
            except Exception as e:
                logger.error(f"Error procesando mensaje MQTT en {msg.topic}: {e}")

    def subscribe(self, topic_filter: str, qos: int, callback: MessageCallback) -> None:
        """Registra un callback para un filtro; si ya hay conexión se suscribe al momento."""
        with self._lock:
            self.subscriptions[topic_filter] = (qos, callback)

        if self.client and self.is_connected:
            self.client.subscribe(topic_filter, qos=qos)
            logger.info(f"📥 Suscrito a {topic_filter} (qos={qos})")

    async def publish(self, topic: str, payload: str, qos: int = 1) -> None:
        """
        Publica un mensaje y espera el acuse del broker (PUBACK con qos 1).

        Un solo intento por llamada: sin conexión lanza TransportUnavailable y
        cualquier fallo o timeout del acuse lanza TransportError.
        """
        if not self.client or not self.is_connected:
            raise TransportUnavailable("MQTT backend disconnected", {"topic": topic})

        info = self.client.publish(topic, payload, qos=qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise TransportError(f"Publish rejected: {mqtt.error_string(info.rc)}", {"topic": topic})

        try:
            await asyncio.to_thread(info.wait_for_publish, self.publish_timeout)
        except (RuntimeError, ValueError) as e:
            raise TransportError(f"Publish failed: {e}", {"topic": topic}) from e

        if not info.is_published():
            logger.warning(f"⏱️ Timeout esperando PUBACK en {topic}")
            raise TransportError("Publish acknowledgement timed out", {"topic": topic})

        logger.info(f"📤 MQTT → {topic}: {payload}")


# Instancia única de la aplicación
mqtt_client = MQTTClient()


def get_mqtt_client() -> MQTTClient:
    return mqtt_client
