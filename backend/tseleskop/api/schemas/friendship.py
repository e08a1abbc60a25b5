"""Pydantic schemas for friendships."""
from __future__ import annotations

from pydantic import Field

from tseleskop.core.camel import CamelModel, UtcDatetime


class FriendshipCreateRequest(CamelModel):
    invite_code: str = Field(..., min_length=1)


class FriendshipResponse(CamelModel):
    first_user_id: str
    second_user_id: str
    created_at: UtcDatetime
