"""Issue and validate access/refresh JWTs."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from uuid import uuid4

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from tseleskop.core.clock import utcnow
from tseleskop.core.config import settings
from tseleskop.db.models.refresh_token import RefreshToken

ACCESS = "access"
REFRESH = "refresh"


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


def _encode(user_id: str, kind: str, secret: str, lifetime: timedelta) -> str:
    now = utcnow()
    payload = {
        "sub": user_id,
        "type": kind,
        "iat": now,
        "exp": now + lifetime,
        "jti": uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def _decode(token: str | None, kind: str, secret: str) -> str | None:
    if not token:
        return None
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("type") != kind:
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) and subject else None


def generate_tokens(user_id: str) -> TokenPair:
    return TokenPair(
        access_token=_encode(
            user_id, ACCESS, settings.jwt_access_secret, timedelta(minutes=settings.access_token_expire_minutes)
        ),
        refresh_token=_encode(
            user_id, REFRESH, settings.jwt_refresh_secret, timedelta(days=settings.refresh_token_expire_days)
        ),
    )


def validate_access(token: str | None) -> str | None:
    """Return the user id of a valid access token, otherwise None."""
    return _decode(token, ACCESS, settings.jwt_access_secret)


def validate_refresh(token: str | None) -> str | None:
    return _decode(token, REFRESH, settings.jwt_refresh_secret)


def save_refresh(db: Session, user_id: str, token: str) -> RefreshToken:
    record = db.get(RefreshToken, user_id)
    if record:
        record.token = token
        record.created_at = utcnow()
    else:
        record = RefreshToken(user_id=user_id, token=token)
        db.add(record)
    db.flush()
    return record


def find_refresh(db: Session, token: str) -> RefreshToken | None:
    return db.query(RefreshToken).filter(RefreshToken.token == token).one_or_none()
