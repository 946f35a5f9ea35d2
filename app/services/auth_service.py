from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import datetime, timedelta, timezone
import secrets

from passlib.context import CryptContext

from app.models import User
from app.repositories import (
    UserRepository,
    RefreshTokenRepository,
    PasswordResetRepository,
    EmailVerificationRepository,
    AuthCodeRepository,
)
from app.schemas import UserRegister, UserLogin, TokenResponse, ForgotPasswordRequest, ResetPasswordRequest, RegisterResponse
from app.core import logger, settings, security
from app.core.logger import log_critical_error
from app.core.exceptions import EmailDeliveryError
from app.services import email_service

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
EMAIL_VERIFICATION_HOURS = 24
PASSWORD_RESET_HOURS = 1


def issue_tokens(db: Session, user_id: str, client_id: str | None = None) -> TokenResponse:
    """Access token JWT de corta duración + refresh token opaco guardado en BD."""
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = security.create_token(
        data={"user_id": user_id}, expires_delta=access_token_expires
    )

    refresh_token_str = secrets.token_urlsafe(32)
    expires_at = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    RefreshTokenRepository(db).create_token(
        user_id=user_id, token=refresh_token_str, expires_at=expires_at, client_id=client_id
    )

    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token_str,
        token_type="Bearer",
        expires_in=int(access_token_expires.total_seconds()),
    )


def register_user(db: Session, user_data: UserRegister) -> RegisterResponse:
    user_repo = UserRepository(db)
    if user_repo.get_user_by_email_repository(user_data.user_email):
        logger.warning(f"Intento de registrar email duplicado: {user_data.user_email}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="El correo electrónico ya está en uso.")

    new_user = User(
        user_email=user_data.user_email,
        user_password=pwd_context.hash(user_data.user_password),
    )
    user = user_repo.create_user_repository(new_user)
    if not user:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="No se pudo crear el usuario.")

    token = secrets.token_urlsafe(32)
    expires_at = datetime.now(timezone.utc) + timedelta(hours=EMAIL_VERIFICATION_HOURS)
    EmailVerificationRepository(db).create_token(user_id=user.user_id, token=token, expires_at=expires_at)

    try:
        email_service.send_email_verification_email(user.user_email, token)
    except EmailDeliveryError as e:
        log_critical_error("No se pudo enviar el correo de verificación", user_id=user.user_id, error=e.message)

    logger.info(f"Usuario {user.user_id} registrado, pendiente de confirmar email")
    return RegisterResponse(
        user_id=user.user_id,
        user_email=user.user_email,
        message="Usuario creado. Revisa tu correo para confirmar el registro.",
    )


def confirm_email(db: Session, token: str):
    verification_repo = EmailVerificationRepository(db)
    verification = verification_repo.get_token(token)

    if not verification or verification.evt_used or security.is_expired(verification.evt_expires_at):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El token es inválido o ha expirado.")

    UserRepository(db).mark_email_verified_repository(verification.evt_user_id)
    verification_repo.mark_used(verification)

    logger.info(f"Email confirmado para el usuario {verification.evt_user_id}")
    return {"message": "Correo confirmado. Ya puedes iniciar sesión."}


def login_for_access_token(db: Session, user_data: UserLogin) -> TokenResponse:
    user_repo = UserRepository(db)
    user = user_repo.get_user_by_email_repository(user_data.user_email)

    if not user or not pwd_context.verify(user_data.user_password, user.user_password):
        logger.warning(f"Fallo de autenticación para el email: {user_data.user_email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email o contraseña incorrectos",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.user_email_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Es necesario confirmar el correo antes de iniciar sesión.",
        )

    logger.info(f"Usuario {user.user_email} ha iniciado sesión exitosamente.")
    return issue_tokens(db, user.user_id)


def refresh_access_token(db: Session, refresh_token_str: str) -> TokenResponse:
    """
    Rotación de refresh token:
    valida el actual, emite access + refresh nuevos e invalida el anterior.
    """
    token_repo = RefreshTokenRepository(db)
    old_refresh_token = token_repo.get_token(refresh_token_str)

    if not old_refresh_token or security.is_expired(old_refresh_token.ref_expires_at):
        logger.warning("Intento de uso de refresh token inválido o expirado")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de refresco inválido o expirado",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = old_refresh_token.ref_user_id
    tokens = issue_tokens(db, user_id, old_refresh_token.ref_client_id)
    token_repo.delete_token(refresh_token_str)

    logger.info(f"Refresh token rotado exitosamente para usuario {user_id}")
    return tokens


def logout_user(db: Session, refresh_token_str: str):
    RefreshTokenRepository(db).delete_token(refresh_token_str)
    logger.info("Usuario ha cerrado sesión, token de refresco invalidado.")


def request_password_reset(db: Session, request: ForgotPasswordRequest):
    generic_message = {"message": "Si tu correo está registrado, recibirás un email con instrucciones."}

    user = UserRepository(db).get_user_by_email_repository(request.user_email)
    if not user:
        logger.warning(f"Solicitud de reseteo para email no existente: {request.user_email}")
        return generic_message

    token = secrets.token_urlsafe(32)
    expires_at = datetime.now(timezone.utc) + timedelta(hours=PASSWORD_RESET_HOURS)
    PasswordResetRepository(db).create_token(user_id=user.user_id, token=token, expires_at=expires_at)

    try:
        email_service.send_password_reset_email(user.user_email, token)
    except EmailDeliveryError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="No se pudo enviar el correo de recuperación.")

    return generic_message


def reset_password(db: Session, request: ResetPasswordRequest):
    reset_repo = PasswordResetRepository(db)
    reset_token_obj = reset_repo.get_token(request.token)

    if not reset_token_obj or reset_token_obj.prt_used or security.is_expired(reset_token_obj.prt_expires_at):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El token es inválido o ha expirado.")

    new_hashed_password = pwd_context.hash(request.new_password)
    success = UserRepository(db).change_password_user_repository(reset_token_obj.prt_user_id, new_hashed_password)
    if not success:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="No se pudo actualizar la contraseña.")

    reset_repo.mark_used(reset_token_obj)

    logger.info(f"Contraseña restablecida para el usuario ID {reset_token_obj.prt_user_id}")
    return {"message": "Contraseña actualizada exitosamente."}


def purge_expired_tokens(db: Session) -> dict:
    """Borra códigos OAuth, refresh tokens y tokens de email ya expirados."""
    now = datetime.now(timezone.utc)
    return {
        "auth_codes": AuthCodeRepository(db).delete_expired(now),
        "refresh_tokens": RefreshTokenRepository(db).delete_expired(now),
        "password_reset": PasswordResetRepository(db).delete_expired(now),
        "email_verification": EmailVerificationRepository(db).delete_expired(now),
    }
