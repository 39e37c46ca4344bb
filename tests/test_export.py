"""Unit tests for PNG export.

Tests cover:
- Channel conversion (ceil, clamp to [0, 255])
- PngImage sink pixel storage and PNG output
- Array export
"""

import numpy as np
import pytest
from PIL import Image


class TestChannelConversion:
    """Tests for float to byte conversion."""

    @pytest.mark.parametrize(
        "value,expected",
        [(0.0, 0), (1.0, 255), (0.5, 128), (0.001, 1), (3.0, 255), (-0.5, 0)],
    )
    def test_channel_to_byte(self, value, expected):
        """Test values are scaled, rounded up and clamped."""
        from src.tracer.preview.export import channel_to_byte

        assert channel_to_byte(value) == expected

    def test_image_to_uint8_forces_opaque(self):
        """Test the alpha channel is always 255."""
        from src.tracer.preview.export import image_to_uint8

        image = np.array([[[0.5, 2.0, -1.0, 0.0]]], dtype=np.float32)
        out = image_to_uint8(image)
        assert out.dtype == np.uint8
        assert out[0, 0].tolist() == [128, 255, 0, 255]


class TestPngImage:
    """Tests for the PngImage sink."""

    def test_set_and_get_pixel(self):
        """Test a pixel is stored as opaque bytes."""
        from src.tracer.preview.export import PngImage

        sink = PngImage(4, 3)
        sink.set_pixel(3, 2, (1.0, 0.5, 0.0, 0.2))
        assert sink.get_pixel(3, 2) == (255, 128, 0, 255)
        assert sink.get_pixel(0, 0) == (0, 0, 0, 255)

    def test_out_of_range_pixel(self):
        """Test writing outside the image raises IndexError."""
        from src.tracer.preview.export import PngImage

        sink = PngImage(4, 3)
        with pytest.raises(IndexError):
            sink.set_pixel(4, 0, (1.0, 1.0, 1.0, 1.0))

    def test_invalid_size(self):
        """Test a zero-sized image is rejected."""
        from src.tracer.preview.export import PngImage

        with pytest.raises(ValueError):
            PngImage(0, 3)

    def test_store_writes_png(self, tmp_path):
        """Test store writes a PNG with the pixel data, creating directories."""
        from src.tracer.preview.export import PngImage

        sink = PngImage(5, 2)
        sink.set_pixel(4, 1, (0.0, 1.0, 0.0, 1.0))
        path = tmp_path / "frames" / "001.png"
        sink.store(path)

        with Image.open(path) as img:
            assert img.size == (5, 2)
            assert img.mode == "RGBA"
            assert img.getpixel((4, 1)) == (0, 255, 0, 255)
            assert img.getpixel((0, 0)) == (0, 0, 0, 255)

    def test_save_png(self, tmp_path):
        """Test saving a float image array."""
        from src.tracer.preview.export import save_png

        image = np.full((3, 4, 4), 0.5, dtype=np.float32)
        path = tmp_path / "out.png"
        save_png(image, path)

        with Image.open(path) as img:
            assert img.size == (4, 3)
            assert img.getpixel((1, 1)) == (128, 128, 128, 255)
