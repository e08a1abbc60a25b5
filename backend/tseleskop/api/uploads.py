"""Helpers shared by routes that accept multipart uploads."""
from __future__ import annotations

import json
from typing import Any, Optional, Type, TypeVar

from fastapi import UploadFile, status
from pydantic import BaseModel, ValidationError

from tseleskop.core.config import settings
from tseleskop.core.errors import ApiError
from tseleskop.services.image_processing import process_image

ModelT = TypeVar("ModelT", bound=BaseModel)


def read_image(upload: Optional[UploadFile]) -> Optional[bytes]:
    """Return the upload re-encoded as JPEG, or None when no file was sent."""
    if upload is None or not upload.filename:
        return None
    data = upload.file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        raise ApiError(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, f"Файл слишком большой (максимум {limit_mb} МБ)")
    if not data:
        raise ApiError.bad_request("Пустой файл изображения")
    return process_image(data, upload.content_type)


def parse_info(info: Optional[str], model: Type[ModelT], *, drop_empty: bool = False) -> ModelT:
    """Validate the JSON ``info`` form field; malformed or invalid JSON is a 400."""
    if not info:
        raise ApiError.bad_request("Поле info обязательно")
    try:
        raw: Any = json.loads(info)
    except ValueError as exc:
        raise ApiError.bad_request(f"Ошибка парсинга JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ApiError.bad_request("Поле info должно быть JSON-объектом")
    if drop_empty:
        raw = {key: value for key, value in raw.items() if value not in ("", None)}
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ApiError.bad_request(_validation_message(exc)) from exc


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)
