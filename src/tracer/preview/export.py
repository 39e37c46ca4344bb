"""PNG export of rendered images.

Rendered colours are unclamped floats. They are converted to 8-bit per
channel as min(ceil(c * 255), 255) with negatives clamped to 0, and alpha is
always written opaque.

Example:
    >>> from src.tracer.preview.export import PngImage, save_png
    >>> sink = PngImage(800, 600)
    >>> renderer.render_to_sink(camera, sink, "frame.png")
    >>> # or, from an array returned by Renderer.render
    >>> save_png(image, "frame.png")
"""

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.tracer.materials.phong import Color


def channel_to_byte(value: float) -> int:
    """Convert one colour channel to a byte."""
    return int(min(max(np.ceil(value * 255.0), 0.0), 255.0))


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a float RGBA image of shape (H, W, 4) to opaque 8-bit RGBA."""
    out = np.clip(np.ceil(image * 255.0), 0.0, 255.0).astype(np.uint8)
    out[..., 3] = 255
    return out


def save_png(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Save a float RGBA image of shape (H, W, 4) as a PNG file."""
    PILImage.fromarray(image_to_uint8(image)).save(filepath)


class PngImage:
    """Pixel sink that collects pixels and writes them as a PNG.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._pixels = np.zeros((height, width, 4), dtype=np.uint8)
        self._pixels[..., 3] = 255

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        """Set pixel (x, y) from an unclamped RGBA colour.

        Raises:
            IndexError: If (x, y) lies outside the image.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        self._pixels[y, x, 0] = channel_to_byte(color[0])
        self._pixels[y, x, 1] = channel_to_byte(color[1])
        self._pixels[y, x, 2] = channel_to_byte(color[2])

    def get_pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        """Get the stored 8-bit RGBA value of pixel (x, y)."""
        r, g, b, a = self._pixels[y, x]
        return (int(r), int(g), int(b), int(a))

    def to_numpy(self) -> npt.NDArray[np.uint8]:
        """Copy of the 8-bit RGBA pixels, shape (height, width, 4)."""
        return self._pixels.copy()

    def store(self, path: str | Path) -> None:
        """Write the image to path as PNG, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        PILImage.fromarray(self._pixels).save(path, format="PNG")
