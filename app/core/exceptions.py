"""
Errores de dominio del backend SmartHome.

Todas las excepciones heredan de SmartHomeError y llevan un mensaje legible
más un diccionario opcional de detalles para logs.
"""

from typing import Any, Dict, Optional


class SmartHomeError(Exception):
    """Base de todos los errores de dominio."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# --- Tópicos y registro de dispositivos ---

class InvalidTopic(SmartHomeError):
    """Tópico mal formado o inseguro (comodines, segmentos vacíos, etc.)."""


class TopicConflict(SmartHomeError):
    """Ya existe un dispositivo con ese tópico base o con ese endpointId."""


class DeviceNotFound(SmartHomeError):
    """El dispositivo no existe o no pertenece al usuario (indistinguibles)."""

    def __init__(self, device_ref: str, details: Optional[Dict[str, Any]] = None):
        self.device_ref = device_ref
        super().__init__("Device not found", details)


# --- Transporte MQTT ---

class TransportError(SmartHomeError):
    """La publicación no pudo entregarse al broker."""


class TransportUnavailable(TransportError):
    """El cliente MQTT no está conectado."""


# --- Directivas Alexa ---

class UnsupportedDirective(SmartHomeError):
    """Namespace/nombre de directiva no implementado."""

    def __init__(self, namespace: str, name: str):
        self.namespace = namespace
        self.name = name
        super().__init__(f"Directive {namespace}.{name} not implemented")


# --- Identidad / OAuth ---

class InvalidCredential(SmartHomeError):
    """Token ausente, mal formado o desconocido."""


class ExpiredCredential(InvalidCredential):
    """Token válido pero expirado."""


class OAuthError(SmartHomeError):
    """Error de los flujos OAuth2 (RFC 6749 §5.2)."""

    def __init__(self, error: str, description: str):
        self.error = error
        self.description = description
        super().__init__(description, {"error": error})


class EmailDeliveryError(SmartHomeError):
    """El proveedor de correo rechazó el envío."""
