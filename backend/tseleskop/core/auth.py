"""Bearer-token dependency resolving the calling user."""
from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from tseleskop.core.context import bind_user_id
from tseleskop.core.errors import ApiError
from tseleskop.db.deps import get_db
from tseleskop.db.models.user import User
from tseleskop.services.token_service import validate_access

_http_bearer = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_http_bearer),
    db: Session = Depends(get_db),
) -> User:
    """Require ``Authorization: Bearer <access token>`` and return the User, or 401."""
    if credentials is None:
        raise ApiError.unauthorized("Not authenticated")
    user_id = validate_access(credentials.credentials)
    if user_id is None:
        raise ApiError.unauthorized("Invalid or expired token")
    user = db.get(User, user_id)
    if user is None:
        raise ApiError.unauthorized("User not found")
    bind_user_id(user.id)
    return user
