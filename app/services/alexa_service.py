# app/services/alexa_service.py

"""
Adaptador de directivas Alexa Smart Home (payloadVersion 3).

Cada directiva recorre: recibida -> autenticada -> enrutada -> respondida.
Nunca se lanza hacia la capa HTTP: cualquier fallo termina en un evento
Alexa.ErrorResponse con su tipo de error.
"""

import uuid
from datetime import datetime, timezone

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.repositories import DeviceRepository
from app.models import Device, DeviceType, PowerState
from app.schemas import AlexaRequest, AlexaDirective
from app.core import logger, settings, security
from app.core.exceptions import (
    DeviceNotFound,
    ExpiredCredential,
    InvalidCredential,
    TransportError,
    UnsupportedDirective,
)
from app.core.mqtt_client import MessageTransport
from app.services.device_control_service import DeviceControlService

PAYLOAD_VERSION = "3"
POWER_UNCERTAINTY_MS = 500

POWER_DIRECTIVES = {"TurnOn": PowerState.ON, "TurnOff": PowerState.OFF}

DISPLAY_CATEGORIES = {
    DeviceType.LIGHT: "LIGHT",
    DeviceType.TV: "TV",
    DeviceType.THERMOSTAT: "THERMOSTAT",
    DeviceType.DOOR: "DOOR",
}

POWER_CAPABILITIES = [
    {"type": "AlexaInterface", "interface": "Alexa", "version": "3"},
    {
        "type": "AlexaInterface",
        "interface": "Alexa.PowerController",
        "version": "3",
        "properties": {
            "supported": [{"name": "powerState"}],
            "retrievable": True,
            "proactivelyReported": False,
        },
    },
]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _header(namespace: str, name: str, correlation_token: str | None = None) -> dict:
    header = {
        "namespace": namespace,
        "name": name,
        "payloadVersion": PAYLOAD_VERSION,
        "messageId": str(uuid.uuid4()),
    }
    if correlation_token:
        header["correlationToken"] = correlation_token
    return header


def _property(namespace: str, name: str, value, uncertainty_ms: int, time_of_sample: str | None = None) -> dict:
    return {
        "namespace": namespace,
        "name": name,
        "value": value,
        "timeOfSample": time_of_sample or _now_iso(),
        "uncertaintyInMilliseconds": uncertainty_ms,
    }


def error_response(error_type: str, message: str, directive: AlexaDirective | None = None) -> dict:
    correlation_token = directive.header.correlation_token if directive else None
    event = {
        "header": _header("Alexa", "ErrorResponse", correlation_token),
        "payload": {"type": error_type, "message": message},
    }
    if directive and directive.endpoint:
        event["endpoint"] = {"endpointId": directive.endpoint.endpoint_id}
    return {"event": event}


def extract_token(directive: AlexaDirective) -> str | None:
    """El token llega en payload.scope (Discovery) o en endpoint.scope (resto)."""
    scope = directive.payload.get("scope")
    if isinstance(scope, dict) and scope.get("token"):
        return scope["token"]
    if directive.endpoint and directive.endpoint.scope:
        return directive.endpoint.scope.token
    return None


def discovery_endpoint(device: Device) -> dict:
    return {
        "endpointId": device.dev_id,
        "manufacturerName": settings.ALEXA_MANUFACTURER_NAME,
        "friendlyName": device.dev_name,
        "description": device.dev_description or "Device",
        "displayCategories": [DISPLAY_CATEGORIES.get(device.dev_type, "OTHER")],
        "cookie": {},
        "capabilities": POWER_CAPABILITIES,
    }


class AlexaService:

    def __init__(self, db: Session, transport: MessageTransport):
        self.db = db
        self.device_repo = DeviceRepository(db)
        self.control = DeviceControlService(db, transport)

    async def handle(self, body: dict) -> dict:
        try:
            directive = AlexaRequest.model_validate(body).directive
        except ValidationError as e:
            logger.warning(f"Directiva Alexa mal formada: {e.error_count()} errores de validación")
            return error_response("INVALID_DIRECTIVE", "Malformed directive")

        header = directive.header
        try:
            principal = security.resolve_principal(extract_token(directive))
        except ExpiredCredential as e:
            return error_response("EXPIRED_AUTHORIZATION_CREDENTIAL", e.message, directive)
        except InvalidCredential as e:
            logger.warning(f"Directiva {header.namespace}.{header.name} con credencial inválida: {e.message}")
            return error_response("INVALID_AUTHORIZATION_CREDENTIAL", e.message, directive)

        try:
            return await self.route(principal.user_id, directive)
        except UnsupportedDirective as e:
            return error_response("INVALID_DIRECTIVE", e.message, directive)
        except DeviceNotFound:
            return error_response("NO_SUCH_ENDPOINT", "Endpoint not found", directive)
        except TransportError as e:
            return error_response("ENDPOINT_UNREACHABLE", e.message, directive)
        except ValueError as e:
            return error_response("INVALID_VALUE", str(e), directive)
        except Exception as e:
            logger.exception(f"❌ Error procesando {header.namespace}.{header.name}: {e}")
            return error_response("INTERNAL_ERROR", "Internal error", directive)

    async def route(self, user_id: str, directive: AlexaDirective) -> dict:
        namespace, name = directive.header.namespace, directive.header.name

        if namespace == "Alexa.Discovery" and name == "Discover":
            return self.discover(user_id)
        if namespace == "Alexa.PowerController" and name in POWER_DIRECTIVES:
            return await self.set_power(user_id, directive, POWER_DIRECTIVES[name])
        if namespace == "Alexa" and name == "ChangeReport":
            return self.rename(user_id, directive)
        if namespace == "Alexa" and name == "ReportState":
            return self.report_state(user_id, directive)

        raise UnsupportedDirective(namespace, name)

    def discover(self, user_id: str) -> dict:
        devices = self.device_repo.list_by_owner(user_id)
        logger.info(f"🔎 Discovery para el usuario {user_id}: {len(devices)} dispositivos")
        return {
            "event": {
                "header": _header("Alexa.Discovery", "Discover.Response"),
                "payload": {"endpoints": [discovery_endpoint(device) for device in devices]},
            }
        }

    async def set_power(self, user_id: str, directive: AlexaDirective, state: PowerState) -> dict:
        endpoint_id = self._endpoint_id(directive)
        await self.control.send_power(user_id, endpoint_id, state)

        return {
            "context": {
                "properties": [
                    _property("Alexa.PowerController", "powerState", state.value, POWER_UNCERTAINTY_MS),
                ]
            },
            "event": {
                "header": _header("Alexa", "Response", directive.header.correlation_token),
                "endpoint": {"endpointId": endpoint_id},
                "payload": {},
            },
        }

    def rename(self, user_id: str, directive: AlexaDirective) -> dict:
        endpoint_id = self._endpoint_id(directive)

        change = directive.payload.get("change")
        properties = change.get("properties") if isinstance(change, dict) else None
        if not isinstance(properties, list):
            raise ValueError("Missing change properties")

        new_name = next(
            (p.get("value") for p in properties if isinstance(p, dict) and p.get("name") == "friendlyName"),
            None,
        )
        if not isinstance(new_name, str) or not new_name.strip():
            raise ValueError("friendlyName not found in change properties")

        device = self.device_repo.find_owned(user_id, endpoint_id)
        self.device_repo.rename(device, new_name)

        time_of_sample = _now_iso()
        name_property = _property("Alexa", "friendlyName", new_name, 0, time_of_sample)
        return {
            "context": {"properties": [name_property]},
            "event": {
                "header": _header("Alexa", "ChangeReport", directive.header.correlation_token),
                "endpoint": {"endpointId": endpoint_id},
                "payload": {
                    "change": {
                        "cause": {"type": "APP_INTERACTION"},
                        "properties": [dict(name_property)],
                    }
                },
            },
        }

    def report_state(self, user_id: str, directive: AlexaDirective) -> dict:
        endpoint_id = self._endpoint_id(directive)
        device = self.device_repo.find_owned(user_id, endpoint_id)

        return {
            "context": {
                "properties": [
                    _property("Alexa.PowerController", "powerState", device.dev_power_state.value, POWER_UNCERTAINTY_MS),
                ]
            },
            "event": {
                "header": _header("Alexa", "StateReport", directive.header.correlation_token),
                "endpoint": {"endpointId": endpoint_id},
                "payload": {},
            },
        }

    @staticmethod
    def _endpoint_id(directive: AlexaDirective) -> str:
        if not directive.endpoint:
            raise ValueError("Missing endpointId")
        return directive.endpoint.endpoint_id
