# app/routers/auth_router.py

from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends, Query, status

from app.database import get_db

from app.schemas import (
    UserRegister,
    RegisterResponse,
    UserLogin,
    TokenResponse,
    TokenRefreshRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse,
)

from app.services import (
    register_user,
    confirm_email,
    login_for_access_token,
    refresh_access_token,
    logout_user,
    request_password_reset,
    reset_password,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register_route(user_data: UserRegister, db: Session = Depends(get_db)):
    """
    Registra un usuario y envía el correo de confirmación.
    """
    return register_user(db, user_data)

@router.get("/confirm-email", response_model=MessageResponse)
def confirm_email_route(token: str = Query(..., min_length=10), db: Session = Depends(get_db)):
    """
    Enlace del correo de confirmación. El token es de un solo uso.
    """
    return confirm_email(db, token)

@router.post("/login", response_model=TokenResponse)
def login_route(user_data: UserLogin, db: Session = Depends(get_db)):
    """
    Inicia sesión y devuelve un token de acceso y uno de refresco.
    """
    return login_for_access_token(db, user_data)

@router.post("/refresh", response_model=TokenResponse)
def refresh_token_route(request: TokenRefreshRequest, db: Session = Depends(get_db)):
    """
    Recibe un token de refresco y devuelve un par nuevo; el anterior queda invalidado.
    """
    return refresh_access_token(db, request.refresh_token)

@router.post("/logout", response_model=MessageResponse)
def logout_route(request: TokenRefreshRequest, db: Session = Depends(get_db)):
    """
    Invalida el token de refresco del usuario para cerrar la sesión de forma segura.
    """
    logout_user(db, request.refresh_token)
    return {"message": "Cierre de sesión exitoso"}

@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password_route(request: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """
    Inicia el proceso de recuperación de contraseña. Envía un correo al usuario
    con un token de un solo uso.
    """
    return request_password_reset(db, request)

@router.post("/reset-password", response_model=MessageResponse)
def reset_password_route(request: ResetPasswordRequest, db: Session = Depends(get_db)):
    """
    Completa el proceso de recuperación usando el token (enviado por correo)
    y la nueva contraseña.
    """
    return reset_password(db, request)
