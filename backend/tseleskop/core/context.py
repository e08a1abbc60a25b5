"""Per-request context shared with log records."""
from __future__ import annotations

from contextvars import ContextVar

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_ctx_var: ContextVar[str | None] = ContextVar("user_id", default=None)


def get_request_id() -> str | None:
    return request_id_ctx_var.get()


def get_user_id() -> str | None:
    """Telegram id of the authenticated caller, once the bearer token is resolved."""
    return user_id_ctx_var.get()


def bind_user_id(user_id: str | None) -> None:
    user_id_ctx_var.set(user_id)
