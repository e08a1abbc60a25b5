"""Pydantic schemas for Telegram login and token refresh."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from tseleskop.api.schemas.user import UserResponse
from tseleskop.core.camel import CamelModel


class TelegramUser(BaseModel):
    """The ``user`` object of Telegram WebApp init data (snake_case as Telegram sends it)."""

    id: int
    first_name: str
    last_name: Optional[str] = None
    username: Optional[str] = None
    photo_url: Optional[str] = None


class TelegramInitData(BaseModel):
    user: TelegramUser


class TelegramAuthRequest(CamelModel):
    init_data: TelegramInitData


class AuthResponse(CamelModel):
    access_token: str
    refresh_token: str
    user: UserResponse
