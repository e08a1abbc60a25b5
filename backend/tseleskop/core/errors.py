"""Application errors and their HTTP rendering."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "Случилась непредвиденная ошибка"
AI_UNAVAILABLE_MESSAGE = "Сервис ИИ временно недоступен, попробуйте ещё раз позже"
NOT_CONFIGURED_MESSAGE = "Сервис не настроен"


class ApiError(Exception):
    """Client-facing failure carrying an HTTP status and a user-readable message."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @classmethod
    def bad_request(cls, message: str) -> "ApiError":
        return cls(status.HTTP_400_BAD_REQUEST, message)

    @classmethod
    def unauthorized(cls, message: str = "Unauthorized") -> "ApiError":
        return cls(status.HTTP_401_UNAUTHORIZED, message)

    @classmethod
    def forbidden(cls, message: str) -> "ApiError":
        return cls(status.HTTP_403_FORBIDDEN, message)

    @classmethod
    def not_found(cls, message: str) -> "ApiError":
        return cls(status.HTTP_404_NOT_FOUND, message)


class ConfigurationError(RuntimeError):
    """A required setting (API key, bucket, bot token) is missing."""


def error_body(status_code: int, message: str) -> dict:
    return {"error": message, "status": status_code}


def register_exception_handlers(app: FastAPI) -> None:
    # Imported lazily so core does not depend on the services package at import time.
    from tseleskop.services.ai.errors import AIServiceError

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        logger.warning("ApiError %s on %s: %s", exc.status_code, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(AIServiceError)
    async def handle_ai_error(request: Request, exc: AIServiceError) -> JSONResponse:
        logger.error("AI upstream failure on %s: %s", request.url.path, exc)
        code = status.HTTP_502_BAD_GATEWAY
        return JSONResponse(status_code=code, content=error_body(code, AI_UNAVAILABLE_MESSAGE))

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error("Configuration error on %s: %s", request.url.path, exc)
        code = status.HTTP_503_SERVICE_UNAVAILABLE
        return JSONResponse(status_code=code, content=error_body(code, NOT_CONFIGURED_MESSAGE))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return JSONResponse(status_code=code, content=error_body(code, UNEXPECTED_ERROR_MESSAGE))
