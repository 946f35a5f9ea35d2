# app/services/oauth_service.py

"""
OAuth2 para el account linking de Alexa (authorization code grant).

    GET  /oauth/authorize  -> código de un solo uso (10 min) y redirect
    POST /oauth/token      -> authorization_code | refresh_token

Los errores siguen RFC 6749 §5.2 (invalid_request, invalid_client,
invalid_grant, unsupported_grant_type) vía OAuthError.
"""

import secrets
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode, urlsplit, urlunsplit, parse_qsl

from sqlalchemy.orm import Session

from app.repositories import AuthCodeRepository, RefreshTokenRepository
from app.schemas import TokenResponse
from app.core import logger, settings, security
from app.core.exceptions import OAuthError
from app.services.auth_service import issue_tokens


def validate_client(client_id: str | None, client_secret: str | None = None) -> bool:
    if not client_id or not secrets.compare_digest(client_id, settings.OAUTH_CLIENT_ID):
        return False
    if client_secret is not None and not secrets.compare_digest(client_secret, settings.OAUTH_CLIENT_SECRET):
        return False
    return True


def build_redirect(redirect_uri: str, code: str, state: str) -> str:
    scheme, netloc, path, query, fragment = urlsplit(redirect_uri)
    params = parse_qsl(query, keep_blank_values=True)
    params += [("code", code), ("state", state)]
    return urlunsplit((scheme, netloc, path, urlencode(params), fragment))


def authorize(db: Session, user_id: str, response_type: str, client_id: str, redirect_uri: str, state: str) -> str:
    """Genera un código para el usuario autenticado y devuelve la URL de redirección."""
    if response_type != "code":
        raise OAuthError("unsupported_response_type", "Only response_type=code is supported")
    if not validate_client(client_id):
        raise OAuthError("invalid_client", "Unknown client_id")
    if not redirect_uri or not state:
        raise OAuthError("invalid_request", "redirect_uri and state are required")

    code = secrets.token_urlsafe(32)
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.AUTH_CODE_EXPIRE_MINUTES)
    AuthCodeRepository(db).create_code(
        user_id=user_id, code=code, client_id=client_id, redirect_uri=redirect_uri, expires_at=expires_at
    )

    logger.info(f"🔗 Código OAuth emitido para el usuario {user_id} (cliente {client_id})")
    return build_redirect(redirect_uri, code, state)


def exchange_auth_code(
    db: Session,
    code: str | None,
    client_id: str,
    client_secret: str,
    redirect_uri: str | None = None,
) -> TokenResponse:
    if not code:
        raise OAuthError("invalid_request", "Missing authorization code")
    if not validate_client(client_id, client_secret):
        raise OAuthError("invalid_client", "Invalid client credentials")

    code_repo = AuthCodeRepository(db)
    auth_code = code_repo.get_code(code)
    if not auth_code or auth_code.acd_client_id != client_id:
        raise OAuthError("invalid_grant", "Invalid authorization code")

    user_id = auth_code.acd_user_id
    expires_at = auth_code.acd_expires_at
    stored_redirect = auth_code.acd_redirect_uri

    # Un código encontrado se consume aunque haya expirado
    code_repo.delete_code(auth_code)

    if security.is_expired(expires_at):
        raise OAuthError("invalid_grant", "Authorization code expired")
    if redirect_uri and stored_redirect and redirect_uri != stored_redirect:
        raise OAuthError("invalid_grant", "redirect_uri mismatch")

    logger.info(f"🔑 Código OAuth canjeado por tokens para el usuario {user_id}")
    return issue_tokens(db, user_id, client_id)


def refresh_oauth_tokens(db: Session, refresh_token: str | None, client_id: str, client_secret: str) -> TokenResponse:
    if not refresh_token:
        raise OAuthError("invalid_request", "Missing refresh_token")
    if not validate_client(client_id, client_secret):
        raise OAuthError("invalid_client", "Invalid client credentials")

    token_repo = RefreshTokenRepository(db)
    stored = token_repo.get_token(refresh_token)
    if not stored or stored.ref_client_id != client_id:
        raise OAuthError("invalid_grant", "Invalid refresh_token")
    if security.is_expired(stored.ref_expires_at):
        raise OAuthError("invalid_grant", "Refresh token expired")

    tokens = issue_tokens(db, stored.ref_user_id, client_id)
    token_repo.delete_token(refresh_token)
    return tokens
