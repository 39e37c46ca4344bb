"""View-plane camera model for primary ray generation.

The camera sits at `position`, looks along `direction` and is oriented by
`up`. Pixels are projected onto a rectangular view plane perpendicular to
the view direction at `view_plane_distance`. The plane is
`view_plane_width` by `view_plane_height` world units regardless of the
image resolution.

Pixel (i, j) of a width x height image maps to view-plane coordinates

    x = -i * view_plane_width / width + view_plane_width / 2
    y = -j * view_plane_height / height + view_plane_height / 2

so pixel (0, 0) lands at the positive edge of the plane and the image
center maps to (0, 0). The point on the plane is

    position + direction * view_plane_distance + right * x + up * y

with right = up x direction, and the primary ray runs from the camera
position through that point. Nearest-hit queries for primary rays use
[front_plane_distance, back_plane_distance] as the valid range.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.camera.view_plane import Camera, setup_camera, get_primary_ray
    >>> camera = Camera(
    ...     position=(0.0, 0.0, 0.0),
    ...     direction=(0.0, 0.0, 1.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     view_plane_distance=65.0,
    ...     view_plane_width=160.0,
    ...     view_plane_height=120.0,
    ...     front_plane_distance=0.0,
    ...     back_plane_distance=1000.0,
    ... )
    >>> setup_camera(camera)
    >>> # Use get_primary_ray(i, j, width, height) within a Taichi kernel
"""

import math
from dataclasses import dataclass, replace

import numpy as np
import taichi as ti

from src.tracer.core.ray import Ray, make_ray_through, vec3
from src.tracer.core.rotation import quaternion_from_axis_angle, rotate_vector

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration of a view-plane camera.

    Attributes:
        position: Camera position in world space.
        direction: Viewing direction.
        up: Up direction. Need not be perpendicular to direction until
            normalize_camera() has been applied.
        view_plane_distance: Distance from the camera to the view plane.
        view_plane_width: Width of the view plane in world units.
        view_plane_height: Height of the view plane in world units.
        front_plane_distance: Minimum hit distance for primary rays.
        back_plane_distance: Maximum hit distance for primary rays.
    """

    position: tuple[float, float, float]
    direction: tuple[float, float, float]
    up: tuple[float, float, float]
    view_plane_distance: float
    view_plane_width: float
    view_plane_height: float
    front_plane_distance: float
    back_plane_distance: float


def _normalized(v: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(v)
    if norm > 0.0:
        return v / norm
    return v


def normalize_camera(camera: Camera) -> Camera:
    """Return a copy of the camera with an orthonormal direction/up basis.

    Normalizes direction and up, then re-orthogonalizes up with
    up = (direction x up) x direction, so a caller-supplied up that is not
    perpendicular to the view direction still yields an orthonormal basis.
    """
    direction = _normalized(np.array(camera.direction, dtype=np.float64))
    up = _normalized(np.array(camera.up, dtype=np.float64))
    up = _normalized(np.cross(np.cross(direction, up), direction))
    return replace(camera, direction=tuple(direction.tolist()), up=tuple(up.tolist()))


def image_to_view_plane(n: int, image_size: int, view_plane_size: float) -> float:
    """Map a pixel index to a view-plane coordinate."""
    return -n * view_plane_size / image_size + view_plane_size / 2.0


def orbit_camera(
    center: tuple[float, float, float],
    up: tuple[float, float, float],
    first_direction: tuple[float, float, float],
    distance: float,
    angle: float,
    view_plane_distance: float = 65.0,
    view_plane_width: float = 160.0,
    view_plane_height: float = 120.0,
    front_plane_distance: float = 0.0,
    back_plane_distance: float = 1000.0,
) -> Camera:
    """Place a camera on a circle around center, looking at it.

    The view direction is first_direction rotated by angle (radians) about
    up; the camera sits distance units behind center along that direction.
    """
    rotation = quaternion_from_axis_angle(angle, up)
    direction = rotate_vector(rotation, first_direction)
    position = tuple(c - d * distance for c, d in zip(center, direction))
    return Camera(
        position=position,
        direction=direction,
        up=tuple(up),
        view_plane_distance=view_plane_distance,
        view_plane_width=view_plane_width,
        view_plane_height=view_plane_height,
        front_plane_distance=front_plane_distance,
        back_plane_distance=back_plane_distance,
    )


def orbit_cameras(
    center: tuple[float, float, float],
    up: tuple[float, float, float],
    first_direction: tuple[float, float, float],
    distance: float,
    num_frames: int,
    **view_plane,
) -> list[Camera]:
    """Cameras for a full 360 degree orbit split into num_frames steps."""
    if num_frames <= 0:
        raise ValueError(f"num_frames must be positive, got {num_frames}")
    step = 2.0 * math.pi / num_frames
    return [
        orbit_camera(center, up, first_direction, distance, k * step, **view_plane)
        for k in range(num_frames)
    ]


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_position = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_view_plane_distance = ti.field(dtype=ti.f32, shape=())
_view_plane_width = ti.field(dtype=ti.f32, shape=())
_view_plane_height = ti.field(dtype=ti.f32, shape=())
_front_plane_distance = ti.field(dtype=ti.f32, shape=())
_back_plane_distance = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: Camera) -> Camera:
    """Normalize the camera and upload it for ray generation.

    Must be called before rendering a frame.

    Returns:
        The normalized camera that was uploaded.
    """
    camera = normalize_camera(camera)
    direction = np.array(camera.direction)
    up = np.array(camera.up)
    right = np.cross(up, direction)

    _camera_position[None] = list(camera.position)
    _camera_direction[None] = direction.tolist()
    _camera_up[None] = up.tolist()
    _camera_right[None] = right.tolist()
    _view_plane_distance[None] = camera.view_plane_distance
    _view_plane_width[None] = camera.view_plane_width
    _view_plane_height[None] = camera.view_plane_height
    _front_plane_distance[None] = camera.front_plane_distance
    _back_plane_distance[None] = camera.back_plane_distance
    return camera


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def view_plane_coordinate(n: ti.i32, image_size: ti.i32, view_plane_size: ti.f32) -> ti.f32:
    """Kernel-side image_to_view_plane."""
    return -ti.cast(n, ti.f32) * view_plane_size / ti.cast(image_size, ti.f32) + view_plane_size / 2.0


@ti.func
def get_view_plane_point(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    """World-space point on the view plane for pixel (i, j)."""
    x = view_plane_coordinate(i, width, _view_plane_width[None])
    y = view_plane_coordinate(j, height, _view_plane_height[None])
    return (
        _camera_position[None]
        + _camera_direction[None] * _view_plane_distance[None]
        + _camera_right[None] * x
        + _camera_up[None] * y
    )


@ti.func
def get_primary_ray(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Primary ray from the camera through pixel (i, j)."""
    return make_ray_through(_camera_position[None], get_view_plane_point(i, j, width, height))


@ti.func
def get_camera_position() -> vec3:
    """Camera position in world space."""
    return _camera_position[None]


@ti.func
def get_clip_range():
    """Valid hit range (front, back) for primary rays."""
    return _front_plane_distance[None], _back_plane_distance[None]


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the uploaded camera basis for debugging."""

    def _tuple(field) -> tuple[float, float, float]:
        v = field[None]
        return (float(v[0]), float(v[1]), float(v[2]))

    return {
        "position": _tuple(_camera_position),
        "direction": _tuple(_camera_direction),
        "up": _tuple(_camera_up),
        "right": _tuple(_camera_right),
    }
