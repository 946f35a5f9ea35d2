# app/routers/errors.py

from fastapi import HTTPException, status

from app.core.exceptions import (
    SmartHomeError,
    InvalidTopic,
    TopicConflict,
    DeviceNotFound,
    TransportError,
)

# TransportUnavailable hereda de TransportError y comparte su código
HTTP_STATUS = {
    InvalidTopic: status.HTTP_400_BAD_REQUEST,
    TopicConflict: status.HTTP_409_CONFLICT,
    DeviceNotFound: status.HTTP_404_NOT_FOUND,
    TransportError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(exc: SmartHomeError) -> HTTPException:
    for error_type, status_code in HTTP_STATUS.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error interno del servidor.")
