from __future__ import annotations

import io

import pytest
from PIL import Image

from tseleskop.core.errors import ApiError
from tseleskop.services.image_processing import detect_format, process_image


def _encode(image: Image.Image, fmt: str, **kwargs) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **kwargs)
    return buffer.getvalue()


def test_detect_format_from_magic_bytes() -> None:
    png = _encode(Image.new("RGB", (2, 2)), "PNG")
    webp = _encode(Image.new("RGB", (2, 2)), "WEBP")

    assert detect_format(png) == "png"
    assert detect_format(webp) == "webp"
    assert detect_format(b"\xff\xd8\xff\xe0rest") == "jpeg"
    assert detect_format(b"\x00\x00\x00\x18ftypheic") == "heic"
    assert detect_format(b"abc") is None


def test_transparent_png_becomes_jpeg_on_white() -> None:
    png = _encode(Image.new("RGBA", (4, 4), (0, 0, 0, 0)), "PNG")

    output = process_image(png, "image/png")

    assert detect_format(output) == "jpeg"
    with Image.open(io.BytesIO(output)) as result:
        assert result.mode == "RGB"
        assert result.getpixel((0, 0))[0] > 240


def test_exif_orientation_is_applied() -> None:
    image = Image.new("RGB", (6, 2), (10, 200, 10))
    exif = image.getexif()
    exif[0x0112] = 6  # rotate 90 degrees clockwise on display
    jpeg = _encode(image, "JPEG", exif=exif)

    with Image.open(io.BytesIO(process_image(jpeg, "image/jpeg"))) as result:
        assert result.size == (2, 6)


def test_broken_jpeg_is_stored_as_is() -> None:
    broken = b"\xff\xd8\xff\xe0" + b"\x00" * 32

    assert process_image(broken, "image/jpeg") == broken


def test_unknown_format_is_rejected() -> None:
    with pytest.raises(ApiError) as excinfo:
        process_image(b"plain text, not pixels", "text/plain")

    assert excinfo.value.status_code == 400
    assert "Неподдерживаемый формат изображения" in excinfo.value.message


def test_undecodable_supported_format_is_rejected() -> None:
    with pytest.raises(ApiError) as excinfo:
        process_image(b"\x89PNG\r\n\x1a\nbroken", "image/png")

    assert "Не удалось обработать изображение" in excinfo.value.message
