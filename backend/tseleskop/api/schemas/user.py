"""Pydantic schemas for users."""
from __future__ import annotations

from typing import Optional

from pydantic import Field

from tseleskop.core.camel import CamelModel


class UserResponse(CamelModel):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    photo_url: Optional[str] = None
    invite_code: str


class UserEditRequest(CamelModel):
    first_name: Optional[str] = Field(default=None, max_length=255)
    last_name: Optional[str] = Field(default=None, max_length=255)
    username: Optional[str] = Field(default=None, max_length=255)
