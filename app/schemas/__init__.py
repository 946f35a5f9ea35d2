# Auth Schemas
from .auth_schema import (
    UserRegister,
    RegisterResponse,
    UserLogin,
    TokenResponse,
    TokenRefreshRequest,
    ResetPasswordRequest,
    ForgotPasswordRequest,
    MessageResponse,
)

# Device Schemas
from .device_schema import DeviceResponse, DeviceCreate, DeviceRename, DeviceTopicsResponse
from .device_control_schema import PowerRequest, PowerResponse

# Alexa Schemas
from .alexa_schema import AlexaRequest, AlexaDirective, AlexaHeader, AlexaEndpoint, AlexaScope
