# =============================================================================
# tests/unit/test_images.py
# Unit Tests for photo fetching and JPEG re-encoding
# =============================================================================

import base64
import io
from unittest.mock import MagicMock

import pytest
import requests
from PIL import Image

from haccp_core.errors import ImageEmbedError
from haccp_core.reports.images import (
    MAX_EMBED_PIXELS,
    decode_data_url,
    fetch_image_bytes,
    load_embeddable_image,
    to_jpeg,
)


class TestDataUrls:

    def test_decode(self):
        url = "data:image/png;base64," + base64.b64encode(b"raw-bytes").decode("ascii")
        assert decode_data_url(url) == b"raw-bytes"

    @pytest.mark.parametrize("url", [
        "data:image/png;base64,",
        "image/png;base64,AAAA",
        "data:image/svg+xml,<svg/>",
        "data:image/png;base64,***",
    ])
    def test_rejected(self, url):
        with pytest.raises(ImageEmbedError):
            decode_data_url(url)


class TestFetch:

    def test_http_download_uses_timeout(self):
        session = MagicMock()
        session.get.return_value.content = b"image-bytes"

        data = fetch_image_bytes("https://cdn.example.com/a.jpg", timeout=5, session=session)

        assert data == b"image-bytes"
        session.get.assert_called_once_with("https://cdn.example.com/a.jpg", timeout=5)

    def test_http_error(self):
        session = MagicMock()
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError("404")

        with pytest.raises(ImageEmbedError):
            fetch_image_bytes("https://cdn.example.com/missing.jpg", session=session)

    def test_connection_error(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("no route")

        with pytest.raises(ImageEmbedError):
            fetch_image_bytes("https://cdn.example.com/a.jpg", session=session)

    def test_unsupported_reference(self):
        with pytest.raises(ImageEmbedError):
            fetch_image_bytes("ftp://files.example.com/a.jpg")


class TestToJpeg:

    def test_png_with_alpha_becomes_jpeg(self, image_factory):
        jpeg = to_jpeg(image_factory(mode="RGBA"))

        assert jpeg.startswith(b"\xff\xd8")
        with Image.open(io.BytesIO(jpeg)) as image:
            assert image.mode == "RGB"

    def test_large_images_are_scaled_down(self, image_factory):
        jpeg = to_jpeg(image_factory(size=(2400, 1200)))

        with Image.open(io.BytesIO(jpeg)) as image:
            assert max(image.size) == MAX_EMBED_PIXELS

    def test_garbage_is_rejected(self):
        with pytest.raises(ImageEmbedError):
            to_jpeg(b"definitely not an image")

    def test_load_from_data_url(self, png_bytes):
        url = "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
        assert load_embeddable_image(url).startswith(b"\xff\xd8")
