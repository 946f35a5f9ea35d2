# app/repositories/device_repository.py

from dataclasses import dataclass

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Device, DeviceIntegration, DeviceType, PowerState
from app.core import logger
from app.core import topics
from app.core.exceptions import DeviceNotFound, InvalidTopic, TopicConflict


@dataclass
class DeviceSpec:
    """Datos ya validados para dar de alta un dispositivo."""
    name: str
    endpoint_id: str
    type: DeviceType
    integration: DeviceIntegration = DeviceIntegration.BOARD
    description: str | None = None
    topic: str | None = None
    channels: int = 1


class DeviceRepository:
    """
    Registro de dispositivos.

    Toda consulta va filtrada por el dueño: un dispositivo de otro usuario es
    indistinguible de uno que no existe (DeviceNotFound).
    """

    def __init__(self, db: Session):
        self.db = db

    def resolve_topic_base(self, owner_user_id: str, spec: DeviceSpec) -> str:
        if spec.integration == DeviceIntegration.BOARD:
            return topics.derive_default(owner_user_id, spec.endpoint_id)

        topics.check_segment("endpointId", spec.endpoint_id)
        if not spec.topic:
            raise InvalidTopic("topic is required for CUSTOM_TOPIC integration")

        base = topics.normalize(spec.topic)
        parts = base.split("/")
        # Un tópico propio no puede caer en el espacio de otro usuario
        if parts[0] == "users" and parts[1] != owner_user_id:
            raise InvalidTopic("Custom topic cannot address another user's namespace", {"topic": spec.topic})
        return base

    def create(self, owner_user_id: str, spec: DeviceSpec) -> Device:
        topic_base = self.resolve_topic_base(owner_user_id, spec)

        existing = self.db.query(Device).filter(
            or_(
                Device.dev_topic_base == topic_base,
                and_(Device.dev_user_id == owner_user_id, Device.dev_endpoint_id == spec.endpoint_id),
            )
        ).first()
        if existing:
            logger.warning(f"Intento de registrar dispositivo duplicado: {spec.endpoint_id} / {topic_base}")
            raise TopicConflict("A device with this endpointId or topic already exists")

        new_device = Device(
            dev_user_id=owner_user_id,
            dev_endpoint_id=spec.endpoint_id,
            dev_name=spec.name,
            dev_description=spec.description,
            dev_type=spec.type,
            dev_integration=spec.integration,
            dev_topic_base=topic_base,
            dev_channels=spec.channels,
            dev_power_state=PowerState.OFF,
        )

        try:
            self.db.add(new_device)
            self.db.commit()
            self.db.refresh(new_device)
        except IntegrityError as e:
            # Carrera entre dos altas simultáneas: la restricción única decide
            self.db.rollback()
            logger.warning(f"Conflicto de unicidad al crear dispositivo {spec.endpoint_id}: {e.orig}")
            raise TopicConflict("A device with this endpointId or topic already exists") from e

        logger.info(f"Dispositivo {new_device.dev_id} creado para el usuario {owner_user_id} en {topic_base}")
        return new_device

    def find_owned(self, owner_user_id: str, device_id: str) -> Device:
        device = self.db.query(Device).filter(
            Device.dev_id == device_id,
            Device.dev_user_id == owner_user_id,
        ).first()
        if not device:
            raise DeviceNotFound(device_id)
        return device

    def find_by_endpoint(self, owner_user_id: str, endpoint_id: str) -> Device:
        device = self.db.query(Device).filter(
            Device.dev_user_id == owner_user_id,
            Device.dev_endpoint_id == endpoint_id,
        ).first()
        if not device:
            raise DeviceNotFound(endpoint_id)
        return device

    def list_by_owner(self, owner_user_id: str) -> list[Device]:
        return (
            self.db.query(Device)
            .filter(Device.dev_user_id == owner_user_id)
            .order_by(Device.dev_created.asc())
            .all()
        )

    def set_power_state(self, device: Device, state: PowerState) -> Device:
        return self._update(device, dev_power_state=state)

    def rename(self, device: Device, name: str) -> Device:
        return self._update(device, dev_name=name)

    def _update(self, device: Device, **changes) -> Device:
        try:
            for key, value in changes.items():
                setattr(device, key, value)
            self.db.commit()
            self.db.refresh(device)
            return device
        except SQLAlchemyError as e:
            logger.error(f"No se pudo actualizar el dispositivo {device.dev_id}: {e}")
            self.db.rollback()
            raise
