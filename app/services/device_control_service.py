# app/services/device_control_service.py

import json
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.repositories import DeviceRepository
from app.models import PowerState
from app.core import logger, topics
from app.core.exceptions import TransportError
from app.core.mqtt_client import MessageTransport

COMMAND_QOS = 1


@dataclass(frozen=True)
class PendingCommand:
    """Comando listo para el transporte; no tiene identidad más allá del publish."""
    topic: str
    payload: str
    qos: int = COMMAND_QOS


def build_power_payload(state: PowerState) -> str:
    # En el cable el estado va en minúsculas, independiente del enum guardado
    return json.dumps({"type": "power", "state": state.value.lower()}, separators=(",", ":"))


class DeviceControlService:
    """
    Dispatcher de comandos: (usuario, dispositivo, estado deseado) -> MQTT.

    El estado sólo se persiste después del PUBACK del broker. Si el proceso
    cae entre el publish y el commit, el reporte de estado del propio
    dispositivo lo corrige más tarde.
    """

    def __init__(self, db: Session, transport: MessageTransport):
        self.db = db
        self.device_repo = DeviceRepository(db)
        self.transport = transport

    async def send_power(self, user_id: str, device_id: str, desired_state: PowerState) -> PendingCommand:
        # 1. Dispositivo del usuario (ajeno == inexistente)
        device = self.device_repo.find_owned(user_id, device_id)

        # 2-3. Tópico y payload
        command = PendingCommand(
            topic=topics.command(device.dev_topic_base),
            payload=build_power_payload(desired_state),
        )

        # 4. Un solo intento, esperando el acuse
        try:
            await self.transport.publish(command.topic, command.payload, qos=command.qos)
        except TransportError as e:
            logger.error(f"❌ No se pudo publicar {desired_state.value} a {command.topic}: {e.message}")
            raise

        # 5. Sólo con el acuse se guarda el nuevo estado
        self.device_repo.set_power_state(device, desired_state)
        logger.info(f"💡 Dispositivo {device.dev_id} ({device.dev_name}) -> {desired_state.value}")
        return command
