from .user import User
from .device import Device, DeviceType, DeviceIntegration, PowerState, parse_power_state, parse_device_type, parse_integration
from .refresh_token import RefreshToken
from .password_reset_token import PasswordResetToken
from .email_verification_token import EmailVerificationToken
from .auth_code import AuthCode
