from pydantic import BaseModel, Field, field_validator

from app.models import PowerState, parse_power_state

class PowerRequest(BaseModel):
    """Request para forzar el estado de encendido"""
    power: PowerState = Field(..., description="ON u OFF")

    @field_validator("power", mode="before")
    @classmethod
    def check_power(cls, value):
        return parse_power_state(value)

class PowerResponse(BaseModel):
    """Respuesta de un comando publicado y confirmado por el broker"""
    dev_id: str
    dev_power_state: PowerState
    topic: str
