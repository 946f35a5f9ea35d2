# app/routers/oauth_router.py

from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends, Form, Query, status
from fastapi.responses import JSONResponse, RedirectResponse

from app.database import get_db
from app.core import TokenData, get_current_user, logger
from app.core.exceptions import OAuthError
from app.schemas import TokenResponse
from app.services import authorize, exchange_auth_code, refresh_oauth_tokens

router = APIRouter(prefix="/oauth", tags=["OAuth"])


def oauth_error_response(e: OAuthError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": e.error, "error_description": e.description},
    )


@router.get("/authorize")
def authorize_route(
    response_type: str = Query(...),
    client_id: str = Query(...),
    redirect_uri: str = Query(...),
    state: str = Query(...),
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    """
    Vinculación de cuenta: emite un código para el usuario autenticado y
    redirige a redirect_uri con code y state.
    """
    try:
        location = authorize(db, current_user.user_id, response_type, client_id, redirect_uri, state)
    except OAuthError as e:
        logger.warning(f"OAuth authorize rechazado ({e.error}): {e.description}")
        return oauth_error_response(e)
    return RedirectResponse(url=location, status_code=status.HTTP_302_FOUND)


@router.post("/token", response_model=TokenResponse)
def token_route(
    grant_type: str = Form(...),
    client_id: str = Form(...),
    client_secret: str = Form(...),
    code: str | None = Form(None),
    refresh_token: str | None = Form(None),
    redirect_uri: str | None = Form(None),
    db: Session = Depends(get_db),
):
    """
    Endpoint de tokens para Alexa: grants authorization_code y refresh_token.
    """
    try:
        if grant_type == "authorization_code":
            return exchange_auth_code(db, code, client_id, client_secret, redirect_uri)
        if grant_type == "refresh_token":
            return refresh_oauth_tokens(db, refresh_token, client_id, client_secret)
        raise OAuthError("unsupported_grant_type", f"Unsupported grant_type: {grant_type}")
    except OAuthError as e:
        logger.warning(f"OAuth token rechazado ({e.error}): {e.description}")
        return oauth_error_response(e)
