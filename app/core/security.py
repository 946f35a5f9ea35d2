from datetime import datetime, timedelta, timezone
from jose import ExpiredSignatureError, JWTError, jwt
from fastapi import HTTPException, Depends, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

from app.core.settings import settings
from app.core.exceptions import InvalidCredential, ExpiredCredential

oauth2_schema = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login", auto_error=False)

class TokenData(BaseModel):
    user_id: str | None = None


def create_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.KEY_SECRET, algorithm=settings.ALGORITHM)
    return encoded_jwt


def is_expired(expires_at: datetime) -> bool:
    # SQLite devuelve fechas naive; todas se guardan en UTC
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at < datetime.now(timezone.utc)


def resolve_principal(token: str | None) -> TokenData:
    """
    Resuelve un bearer token al usuario autenticado.

    Lanza InvalidCredential si falta o no es válido y ExpiredCredential si
    ya expiró. Lo usan tanto la API REST como el adaptador de Alexa.
    """
    if not token:
        raise InvalidCredential("Missing token")

    try:
        payload = jwt.decode(token, settings.KEY_SECRET, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise ExpiredCredential("Access token expired")
    except JWTError:
        raise InvalidCredential("Invalid token")

    user_id = payload.get("user_id")
    if user_id is None:
        raise InvalidCredential("Token without user")

    return TokenData(user_id=str(user_id))


async def get_current_user(token: str = Depends(oauth2_schema)) -> TokenData:
    try:
        return resolve_principal(token)
    except ExpiredCredential:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expirado",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except InvalidCredential as e:
        detail = "No autenticado" if token is None else "No se pudieron validar las credenciales"
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
