"""Normalize uploaded images (HEIC included) to EXIF-rotated JPEG."""
from __future__ import annotations

import io
import logging
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener

from tseleskop.core.errors import ApiError

register_heif_opener()

logger = logging.getLogger(__name__)

JPEG_QUALITY = 90
JPEG_PASSTHROUGH_LIMIT = 10 * 1024 * 1024
SUPPORTED_FORMATS = ("jpeg", "jpg", "png", "webp", "gif", "heic", "heif", "tiff", "avif")


def detect_format(data: bytes) -> Optional[str]:
    """Real container format from magic bytes, independent of the declared MIME type."""
    if len(data) < 4:
        return None
    if data.startswith(b"\xff\xd8\xff"):
        return "jpeg"
    if data.startswith(b"\x89PNG"):
        return "png"
    if data.startswith(b"GIF8"):
        return "gif"
    if data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "webp"
    if data[4:8] == b"ftyp":
        brand = data[8:12]
        if brand in (b"heic", b"heix", b"mif1", b"msf1", b"hevc"):
            return "heic"
        if brand in (b"avif", b"avis"):
            return "avif"
    if data.startswith(b"II*\x00") or data.startswith(b"MM\x00*"):
        return "tiff"
    return None


def _to_rgb(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "L"):
        return image
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def process_image(data: bytes, content_type: Optional[str] = None) -> bytes:
    """Decode any Pillow/HEIF image, apply EXIF orientation and re-encode as progressive JPEG.

    A JPEG that Pillow cannot decode is passed through untouched when it is
    under 10 MB; anything else that fails to decode is a 400.
    """
    real_format = detect_format(data)
    declared = (content_type or "").lower()
    if real_format and declared and real_format not in declared:
        logger.warning("Declared type %s does not match detected format %s", content_type, real_format)

    try:
        with Image.open(io.BytesIO(data)) as source:
            image = _to_rgb(ImageOps.exif_transpose(source))
            output = io.BytesIO()
            image.save(output, format="JPEG", quality=JPEG_QUALITY, progressive=True, optimize=True)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        is_jpeg = real_format == "jpeg" or "jpeg" in declared or "jpg" in declared
        if is_jpeg and len(data) < JPEG_PASSTHROUGH_LIMIT:
            logger.warning("JPEG could not be re-encoded (%s); storing original bytes", exc)
            return data
        if declared and not any(fmt in declared for fmt in SUPPORTED_FORMATS):
            raise ApiError.bad_request(
                f"Неподдерживаемый формат изображения: {content_type}. "
                "Поддерживаются: JPEG, PNG, WebP, HEIC, HEIF, GIF, TIFF, AVIF"
            ) from exc
        raise ApiError.bad_request(
            f"Не удалось обработать изображение: {exc}. Проверьте формат и размер файла."
        ) from exc

    processed = output.getvalue()
    logger.info(
        "Image processed (format=%s, %d -> %d bytes)", real_format or declared or "unknown", len(data), len(processed)
    )
    return processed
