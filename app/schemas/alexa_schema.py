# app/schemas/alexa_schema.py

from typing import Any, Literal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AlexaModel(BaseModel):
    """El protocolo Smart Home de Alexa usa camelCase en todo el JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AlexaHeader(AlexaModel):
    namespace: str
    name: str
    payload_version: str
    message_id: str
    correlation_token: str | None = None


class AlexaScope(AlexaModel):
    type: Literal["BearerToken"]
    token: str


class AlexaEndpoint(AlexaModel):
    endpoint_id: str
    scope: AlexaScope | None = None
    cookie: dict[str, Any] | None = None


class AlexaDirective(AlexaModel):
    header: AlexaHeader
    endpoint: AlexaEndpoint | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class AlexaRequest(AlexaModel):
    directive: AlexaDirective
