import base64

import pytest

from visionary.api.multimodal import image_inputs
from visionary.api.multimodal.image_inputs import decode_data_url, load_image_file
from visionary.core.errors import InvalidImageError


def _data_url(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode()}"


def test_decode_data_url(png_bytes):
    image = decode_data_url(_data_url(png_bytes))
    assert image.data == png_bytes
    assert image.mime_type == "image/png"


def test_jpg_alias_is_normalized(png_bytes):
    assert decode_data_url(_data_url(png_bytes, "image/jpg")).mime_type == "image/jpeg"


@pytest.mark.parametrize("value", [
    "",
    "not a data url",
    "data:image/png,abcd",
    "data:image/png;base64,@@@@",
    "data:image/png;base64,",
])
def test_rejects_malformed_payloads(value):
    with pytest.raises(InvalidImageError):
        decode_data_url(value)


def test_rejects_unsupported_type(png_bytes):
    with pytest.raises(InvalidImageError, match="Unsupported image type"):
        decode_data_url(_data_url(png_bytes, "application/pdf"))


def test_rejects_oversized_payload(monkeypatch, png_bytes):
    monkeypatch.setattr(image_inputs, "MAX_IMAGE_BYTES", 10)
    with pytest.raises(InvalidImageError, match="max size"):
        decode_data_url(_data_url(png_bytes))


def test_load_image_file(tmp_path, png_bytes):
    path = tmp_path / "face.png"
    path.write_bytes(png_bytes)

    image = load_image_file(str(path))

    assert image.data == png_bytes
    assert image.mime_type == "image/png"


def test_load_missing_file(tmp_path):
    with pytest.raises(InvalidImageError, match="File not found"):
        load_image_file(str(tmp_path / "missing.jpg"))
