# app/repositories/__init__.py

from .user_repository import UserRepository
from .device_repository import DeviceRepository, DeviceSpec
from .refresh_token_repository import RefreshTokenRepository
from .password_reset_repository import PasswordResetRepository
from .email_verification_repository import EmailVerificationRepository
from .auth_code_repository import AuthCodeRepository
