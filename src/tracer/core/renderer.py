"""Frame renderer: one primary ray per pixel, Phong shaded.

For every pixel the renderer casts the camera's primary ray, searches the
scene for the nearest visible hit within the camera's clip range and shades
it with the Phong model. Pixels whose ray misses everything get the
background colour. There is no sampling: each pixel is evaluated exactly
once, so rendering the same scene twice gives identical output.

The kernel is pixel-parallel. Each pixel only reads the shared scene tables
and writes its own slot of the frame buffer.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.core.renderer import Renderer
    >>> from src.tracer.preview.export import PngImage
    >>> renderer = Renderer(800, 600)
    >>> image = renderer.render(camera)  # (600, 800, 4) float32
    >>> renderer.render_to_sink(camera, PngImage(800, 600), "frame.png")
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.tracer.camera.view_plane import (
    Camera,
    get_camera_position,
    get_clip_range,
    get_primary_ray,
    setup_camera,
)
from src.tracer.core.shading import shade
from src.tracer.materials.phong import Color, validate_color
from src.tracer.scene.intersection import find_nearest

vec4 = tm.vec4


class PixelSink(Protocol):
    """Destination for rendered pixels."""

    def set_pixel(self, x: int, y: int, color: Color) -> None: ...

    def store(self, path: str | Path) -> None: ...


@dataclass(frozen=True)
class RenderSettings:
    """Per-renderer settings.

    Attributes:
        background: Colour of pixels whose primary ray hits nothing.
    """

    background: Color = (0.2, 0.2, 0.2, 1.0)

    def __post_init__(self) -> None:
        validate_color(self.background, "background")


# =============================================================================
# Render Target (Frame Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_frame_buffer = ti.Vector.field(4, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_background = ti.Vector.field(4, dtype=ti.f32, shape=())


def _check_dimensions(width: int, height: int) -> None:
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )


# =============================================================================
# Per-pixel Evaluation
# =============================================================================


@ti.func
def render_pixel_impl(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32) -> vec4:
    """Colour of pixel (i, j): shaded nearest hit, or the background."""
    ray = get_primary_ray(i, j, width, height)
    front, back = get_clip_range()
    rec = find_nearest(ray.origin, ray.direction, front, back)

    color = _background[None]
    if rec.hit == 1:
        color = shade(rec, get_camera_position())
    return color


@ti.kernel
def _render_frame(width: ti.i32, height: ti.i32):
    for i, j in ti.ndrange(width, height):
        _frame_buffer[i, j] = render_pixel_impl(i, j, width, height)


@ti.kernel
def _render_single_pixel(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32) -> vec4:
    return render_pixel_impl(i, j, width, height)


# =============================================================================
# Public Rendering API
# =============================================================================


def write_to_sink(image: npt.NDArray[np.float32], sink: PixelSink, path: str | Path) -> None:
    """Hand a rendered image to a pixel sink and store it.

    Pixels are delivered column by column (x outer, y inner), then the sink
    is stored exactly once.

    Args:
        image: Array of shape (height, width, 4) as returned by Renderer.render.
        sink: The pixel sink.
        path: Destination passed to sink.store.
    """
    height, width = image.shape[:2]
    for x in range(width):
        for y in range(height):
            pixel = image[y, x]
            sink.set_pixel(x, y, (float(pixel[0]), float(pixel[1]), float(pixel[2]), float(pixel[3])))
    sink.store(path)


class Renderer:
    """Renders frames of the current scene from a camera.

    The scene (geometry, materials, lights) is read from the Taichi tables;
    upload it before calling render. The frame buffer is shared, so only one
    frame renders at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        settings: Render settings.
    """

    def __init__(self, width: int, height: int, settings: RenderSettings | None = None) -> None:
        """Initialize the renderer.

        Args:
            width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
            height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).
            settings: Render settings, defaults to RenderSettings().

        Raises:
            ValueError: If the dimensions are out of range.
        """
        _check_dimensions(width, height)
        self._width = width
        self._height = height
        self._settings = settings if settings is not None else RenderSettings()

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def settings(self) -> RenderSettings:
        """Get the render settings."""
        return self._settings

    def _prepare(self, camera: Camera) -> None:
        setup_camera(camera)
        _background[None] = list(self._settings.background)

    def render(self, camera: Camera) -> npt.NDArray[np.float32]:
        """Render one frame.

        Args:
            camera: The camera to render from. It is normalized before use.

        Returns:
            Unclamped RGBA image of shape (height, width, 4), row j holding
            pixels (i, j) for i in range(width).
        """
        self._prepare(camera)
        _render_frame(self._width, self._height)
        buffer = _frame_buffer.to_numpy()[: self._width, : self._height]
        return np.ascontiguousarray(buffer.transpose(1, 0, 2), dtype=np.float32)

    def render_pixel(self, camera: Camera, i: int, j: int) -> tuple[float, float, float, float]:
        """Render a single pixel, for testing and debugging.

        Raises:
            ValueError: If (i, j) lies outside the image.
        """
        if not (0 <= i < self._width and 0 <= j < self._height):
            raise ValueError(f"Pixel ({i}, {j}) outside {self._width}x{self._height} image")
        self._prepare(camera)
        color = _render_single_pixel(i, j, self._width, self._height)
        return (float(color[0]), float(color[1]), float(color[2]), float(color[3]))

    def render_to_sink(self, camera: Camera, sink: PixelSink, path: str | Path) -> None:
        """Render one frame into a pixel sink and store it at path."""
        write_to_sink(self.render(camera), sink, path)
