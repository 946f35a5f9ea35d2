# app/schemas/device_schema.py

from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from app.models import DeviceType, DeviceIntegration, PowerState, parse_device_type, parse_integration

# Un endpointId es un único segmento de tópico MQTT
ENDPOINT_ID_PATTERN = r"^[A-Za-z0-9._:-]+$"

class BaseDevice(BaseModel):
    dev_name: str = Field(min_length=1, max_length=100)
    dev_description: str | None = Field(default=None, max_length=255)
    dev_endpoint_id: str = Field(min_length=1, max_length=100, pattern=ENDPOINT_ID_PATTERN)
    dev_type: DeviceType

    @field_validator("dev_type", mode="before")
    @classmethod
    def check_type(cls, value):
        return parse_device_type(value)

class DeviceCreate(BaseDevice):
    dev_integration: DeviceIntegration = DeviceIntegration.BOARD
    dev_topic: str | None = Field(default=None, max_length=255)
    dev_channels: int = Field(default=1, ge=1, le=32)

    @field_validator("dev_integration", mode="before")
    @classmethod
    def check_integration(cls, value):
        return parse_integration(value)

    @model_validator(mode="after")
    def check_custom_topic(self):
        if self.dev_integration == DeviceIntegration.CUSTOM_TOPIC and not (self.dev_topic or "").strip():
            raise ValueError("dev_topic es obligatorio cuando dev_integration = CUSTOM_TOPIC")
        return self

class DeviceRename(BaseModel):
    dev_name: str = Field(min_length=1, max_length=100)

class DeviceResponse(BaseDevice):
    dev_id: str
    dev_user_id: str
    dev_integration: DeviceIntegration
    dev_topic_base: str
    dev_channels: int
    dev_power_state: PowerState
    dev_created: datetime
    model_config = ConfigDict(from_attributes=True)

class DeviceTopicsResponse(BaseModel):
    base: str
    command: str
    state: str
    telemetry: str
