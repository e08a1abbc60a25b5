"""Telegram mini-app login and refresh-token rotation."""
from __future__ import annotations

import logging
from typing import Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tseleskop.api.schemas.auth import TelegramInitData
from tseleskop.core.errors import ApiError
from tseleskop.db.models.user import User
from tseleskop.observability.metrics import log_metric
from tseleskop.services.token_service import (
    TokenPair,
    find_refresh,
    generate_tokens,
    save_refresh,
    validate_refresh,
)

logger = logging.getLogger(__name__)


def get_or_create_telegram_user(db: Session, init_data: TelegramInitData) -> User:
    """Create the user on first login; backfill the chat id of older accounts.

    Init data is trusted as sent by the mini-app; its hash is not verified.
    """
    telegram_user = init_data.user
    user_id = str(telegram_user.id)
    user = db.get(User, user_id)
    if user:
        if not user.chat_id:
            user.chat_id = user_id
            db.add(user)
            db.flush()
        return user

    user = User(
        id=user_id,
        first_name=telegram_user.first_name,
        last_name=telegram_user.last_name,
        username=telegram_user.username,
        photo_url=telegram_user.photo_url,
        invite_code=f"invite_{user_id}",
        chat_id=user_id,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        # A concurrent first login created the row.
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise
    logger.info("Registered new user %s", user_id)
    log_metric("auth.user_created", 1)
    return user


def authenticate(db: Session, init_data: TelegramInitData) -> Tuple[User, TokenPair]:
    user = get_or_create_telegram_user(db, init_data)
    tokens = generate_tokens(user.id)
    save_refresh(db, user.id, tokens.refresh_token)
    db.commit()
    db.refresh(user)
    return user, tokens


def refresh(db: Session, refresh_token: str | None) -> Tuple[User, TokenPair]:
    user_id = validate_refresh(refresh_token)
    if not user_id or not refresh_token or not find_refresh(db, refresh_token):
        raise ApiError.unauthorized()
    user = db.get(User, user_id)
    if not user:
        raise ApiError.unauthorized()

    tokens = generate_tokens(user.id)
    save_refresh(db, user.id, tokens.refresh_token)
    db.commit()
    return user, tokens
