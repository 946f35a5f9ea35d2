# app/models/device.py

import enum
import uuid
from datetime import datetime, timezone

from app.database import Base
from sqlalchemy import Column, String, Integer, TIMESTAMP, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship


class DeviceType(str, enum.Enum):
    LIGHT = "LIGHT"
    TV = "TV"
    THERMOSTAT = "THERMOSTAT"
    DOOR = "DOOR"


class DeviceIntegration(str, enum.Enum):
    BOARD = "BOARD"                 # tópico derivado: users/{userId}/devices/{endpointId}
    CUSTOM_TOPIC = "CUSTOM_TOPIC"   # tópico base enviado por el usuario


class PowerState(str, enum.Enum):
    ON = "ON"
    OFF = "OFF"


_POWER_STATES = {"ON": PowerState.ON, "OFF": PowerState.OFF}
_DEVICE_TYPES = {t.value: t for t in DeviceType}
_INTEGRATIONS = {i.value: i for i in DeviceIntegration}


def parse_power_state(token: str) -> PowerState:
    """Convierte "on"/"OFF"/... a PowerState sin recortar espacios. Cualquier otro valor es ValueError."""
    if isinstance(token, PowerState):
        return token
    state = _POWER_STATES.get(str(token).upper())
    if state is None:
        raise ValueError(f"Unknown power state: {token!r}")
    return state


def parse_device_type(value: str) -> DeviceType:
    if isinstance(value, DeviceType):
        return value
    device_type = _DEVICE_TYPES.get(str(value).upper())
    if device_type is None:
        raise ValueError(f"Unknown device type: {value!r}")
    return device_type


def parse_integration(value: str) -> DeviceIntegration:
    if isinstance(value, DeviceIntegration):
        return value
    integration = _INTEGRATIONS.get(str(value).upper())
    if integration is None:
        raise ValueError(f"Unknown integration: {value!r}")
    return integration


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Device(Base):
    __tablename__ = "tbdevice"
    __table_args__ = (
        UniqueConstraint("dev_user_id", "dev_endpoint_id", name="uq_device_user_endpoint"),
    )

    dev_id =            Column(String(36), primary_key=True, default=_new_id)
    dev_user_id =       Column(String(36), ForeignKey("tbusers.user_id", ondelete="CASCADE"), nullable=False, index=True)
    dev_endpoint_id =   Column(String(100), nullable=False)
    dev_name =          Column(String(100), nullable=False)
    dev_description =   Column(String(255), nullable=True)
    dev_type =          Column(Enum(DeviceType, name="device_type"), nullable=False)
    dev_integration =   Column(Enum(DeviceIntegration, name="device_integration"), nullable=False, default=DeviceIntegration.BOARD)
    dev_topic_base =    Column(String(255), nullable=False, unique=True)
    dev_channels =      Column(Integer, nullable=False, default=1)
    dev_power_state =   Column(Enum(PowerState, name="power_state"), nullable=False, default=PowerState.OFF)
    dev_created =       Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)

    user = relationship("User", back_populates="devices")
