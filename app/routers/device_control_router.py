# app/routers/device_control_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.core import TokenData, get_current_user
from app.core.exceptions import SmartHomeError
from app.core.mqtt_client import MQTTClient, get_mqtt_client
from app.services import DeviceControlService
from app.schemas import PowerRequest, PowerResponse
from app.routers.errors import to_http_exception

router = APIRouter(prefix="/devices", tags=["Device Control"])

@router.patch("/{device_id}/power", response_model=PowerResponse)
async def set_power_route(
    device_id: str,
    request: PowerRequest,
    db: Session = Depends(get_db),
    transport: MQTTClient = Depends(get_mqtt_client),
    current_user: TokenData = Depends(get_current_user)
):
    """
    Publica ON/OFF en el tópico de comandos y guarda el estado cuando el broker confirma.

    **Ejemplo de uso:**
    ```
    PATCH /api/v1/devices/<dev_id>/power
    Authorization: Bearer <token>
    Content-Type: application/json

    {
        "power": "ON"
    }
    ```

    **Respuesta exitosa:**
    ```json
    {
        "dev_id": "0b6f...",
        "dev_power_state": "ON",
        "topic": "users/<user_id>/devices/lamp1/command"
    }
    ```

    **Errores posibles:**
    - 404: Dispositivo no encontrado o de otro usuario
    - 503: MQTT desconectado o sin acuse del broker
    """
    service = DeviceControlService(db, transport)
    try:
        command = await service.send_power(current_user.user_id, device_id, request.power)
    except SmartHomeError as e:
        raise to_http_exception(e)

    return PowerResponse(dev_id=device_id, dev_power_state=request.power, topic=command.topic)
