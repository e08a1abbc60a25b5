"""Telegram login and refresh-token routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from tseleskop.api.schemas.auth import AuthResponse, TelegramAuthRequest
from tseleskop.api.schemas.user import UserResponse
from tseleskop.core.config import settings
from tseleskop.db.deps import get_db
from tseleskop.db.models.user import User
from tseleskop.observability.metrics import log_metric
from tseleskop.observability.tracing import trace
from tseleskop.services import auth_service
from tseleskop.services.token_service import TokenPair

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _respond(response: Response, user: User, tokens: TokenPair) -> AuthResponse:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=tokens.refresh_token,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
        httponly=True,
        samesite="none",
        secure=settings.refresh_cookie_secure,
        domain=settings.refresh_cookie_domain,
    )
    return AuthResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user=UserResponse.model_validate(user),
    )


@router.post("/telegram", response_model=AuthResponse)
def telegram_login(
    payload: TelegramAuthRequest,
    response: Response,
    db: Session = Depends(get_db),
) -> AuthResponse:
    """Log in (registering on first visit) with Telegram mini-app init data."""
    with trace("auth.telegram", metadata={"route": "/api/auth/telegram"}, user_id=str(payload.init_data.user.id)):
        user, tokens = auth_service.authenticate(db, payload.init_data)
    log_metric("auth.login", 1)
    return _respond(response, user, tokens)


@router.post("/refresh", response_model=AuthResponse)
def refresh_tokens(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> AuthResponse:
    """Rotate the token pair using the refresh cookie."""
    user, tokens = auth_service.refresh(db, request.cookies.get(settings.refresh_cookie_name))
    return _respond(response, user, tokens)
