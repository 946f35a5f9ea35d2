from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from app.core import security
from app.core.exceptions import EmailDeliveryError
from app.repositories import EmailVerificationRepository, RefreshTokenRepository, UserRepository
from app.schemas import ForgotPasswordRequest, ResetPasswordRequest, UserLogin, UserRegister
from app.services import auth_service, email_service


@pytest.fixture()
def outbox(monkeypatch):
    """Captura los tokens que se mandarían por correo."""
    sent = {"verification": [], "reset": []}
    monkeypatch.setattr(email_service, "send_email_verification_email", lambda to, token: sent["verification"].append((to, token)))
    monkeypatch.setattr(email_service, "send_password_reset_email", lambda to, token: sent["reset"].append((to, token)))
    return sent


def _register(db_session, email="ana@example.com", password="supersecret1"):
    return auth_service.register_user(db_session, UserRegister(user_email=email, user_password=password))


def _login(db_session, email="ana@example.com", password="supersecret1"):
    return auth_service.login_for_access_token(db_session, UserLogin(user_email=email, user_password=password))


def test_register_hashes_password_and_sends_verification(db_session, outbox) -> None:
    response = _register(db_session)

    user = UserRepository(db_session).get_user_id_repository(response.user_id)
    assert user.user_password != "supersecret1"
    assert auth_service.pwd_context.verify("supersecret1", user.user_password)
    assert not user.user_email_verified
    assert outbox["verification"][0][0] == "ana@example.com"


def test_register_duplicate_email_conflicts(db_session, outbox) -> None:
    _register(db_session)

    with pytest.raises(HTTPException) as exc_info:
        _register(db_session)
    assert exc_info.value.status_code == 409


def test_register_survives_email_failure(db_session, monkeypatch) -> None:
    def failing(to, token):
        raise EmailDeliveryError("Could not send email")

    monkeypatch.setattr(email_service, "send_email_verification_email", failing)

    response = _register(db_session)

    assert response.user_email == "ana@example.com"


def test_login_requires_confirmed_email(db_session, outbox) -> None:
    _register(db_session)

    with pytest.raises(HTTPException) as exc_info:
        _login(db_session)
    assert exc_info.value.status_code == 403

    token = outbox["verification"][0][1]
    auth_service.confirm_email(db_session, token)
    tokens = _login(db_session)

    user = UserRepository(db_session).get_user_by_email_repository("ana@example.com")
    assert security.resolve_principal(tokens.access_token).user_id == user.user_id


def test_confirm_email_token_is_single_use(db_session, outbox) -> None:
    _register(db_session)
    token = outbox["verification"][0][1]

    auth_service.confirm_email(db_session, token)
    with pytest.raises(HTTPException) as exc_info:
        auth_service.confirm_email(db_session, token)
    assert exc_info.value.status_code == 400


def test_confirm_email_rejects_expired_token(db_session, outbox) -> None:
    response = _register(db_session)
    EmailVerificationRepository(db_session).create_token(
        user_id=response.user_id,
        token="expired-token-value",
        expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
    )

    with pytest.raises(HTTPException):
        auth_service.confirm_email(db_session, "expired-token-value")


def test_login_with_wrong_password_is_unauthorized(db_session, outbox) -> None:
    _register(db_session)

    with pytest.raises(HTTPException) as exc_info:
        _login(db_session, password="wrongpassword")
    assert exc_info.value.status_code == 401


def test_refresh_rotates_token(db_session, user_u1) -> None:
    issued = auth_service.issue_tokens(db_session, "u1")

    rotated = auth_service.refresh_access_token(db_session, issued.refresh_token)

    assert rotated.refresh_token != issued.refresh_token
    assert RefreshTokenRepository(db_session).get_token(issued.refresh_token) is None
    with pytest.raises(HTTPException) as exc_info:
        auth_service.refresh_access_token(db_session, issued.refresh_token)
    assert exc_info.value.status_code == 401


def test_logout_invalidates_refresh_token(db_session, user_u1) -> None:
    issued = auth_service.issue_tokens(db_session, "u1")

    auth_service.logout_user(db_session, issued.refresh_token)

    assert RefreshTokenRepository(db_session).get_token(issued.refresh_token) is None


def test_forgot_password_does_not_reveal_unknown_email(db_session, outbox) -> None:
    response = auth_service.request_password_reset(db_session, ForgotPasswordRequest(user_email="nobody@example.com"))

    assert "message" in response
    assert outbox["reset"] == []


def test_reset_password_flow(db_session, outbox) -> None:
    _register(db_session)
    auth_service.confirm_email(db_session, outbox["verification"][0][1])

    auth_service.request_password_reset(db_session, ForgotPasswordRequest(user_email="ana@example.com"))
    reset_token = outbox["reset"][0][1]
    auth_service.reset_password(db_session, ResetPasswordRequest(token=reset_token, new_password="newsecret22"))

    assert _login(db_session, password="newsecret22").access_token
    with pytest.raises(HTTPException):
        auth_service.reset_password(db_session, ResetPasswordRequest(token=reset_token, new_password="another333"))


def test_purge_expired_tokens_removes_only_expired(db_session, user_u1) -> None:
    repo = RefreshTokenRepository(db_session)
    repo.create_token(user_id="u1", token="old-token", expires_at=datetime.now(timezone.utc) - timedelta(days=1))
    repo.create_token(user_id="u1", token="live-token", expires_at=datetime.now(timezone.utc) + timedelta(days=1))

    deleted = auth_service.purge_expired_tokens(db_session)

    assert deleted["refresh_tokens"] == 1
    assert repo.get_token("old-token") is None
    assert repo.get_token("live-token") is not None
