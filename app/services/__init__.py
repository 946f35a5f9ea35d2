# app/services/__init__.py 

# Auth Service
from .auth_service import (
    register_user,
    confirm_email,
    login_for_access_token,
    refresh_access_token,
    logout_user,
    request_password_reset,
    reset_password,
    purge_expired_tokens,
)

# OAuth (account linking de Alexa)
from .oauth_service import authorize, exchange_auth_code, refresh_oauth_tokens

# Device Service
from .device_service import (
    get_device_by_id_service,
    get_all_devices_by_user_service,
    create_device_service,
    rename_device_service,
    get_device_topics_service,
)

# Control, reconciliación de estado y Alexa
from .device_control_service import DeviceControlService, PendingCommand
from .state_reconciler import StateReconciler
from .alexa_service import AlexaService
