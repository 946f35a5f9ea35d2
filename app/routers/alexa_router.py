# app/routers/alexa_router.py

from json import JSONDecodeError

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.mqtt_client import MQTTClient, get_mqtt_client
from app.services import AlexaService
from app.services.alexa_service import error_response

router = APIRouter(tags=["Alexa"])

@router.post("/alexa")
async def alexa_directive_route(
    request: Request,
    db: Session = Depends(get_db),
    transport: MQTTClient = Depends(get_mqtt_client),
):
    """
    Punto de entrada de la skill Smart Home. Siempre responde 200: los errores
    viajan dentro del evento Alexa.ErrorResponse.
    """
    try:
        body = await request.json()
    except (JSONDecodeError, UnicodeDecodeError):
        return error_response("INVALID_DIRECTIVE", "Body is not valid JSON")

    if not isinstance(body, dict):
        return error_response("INVALID_DIRECTIVE", "Body must be a JSON object")

    return await AlexaService(db, transport).handle(body)
