"""Camera module for view and ray generation.

Components:
    view_plane: Camera with a rectangular view plane at a fixed distance

The camera basis is re-orthonormalized when uploaded, so any up vector that
is not parallel to the view direction is accepted. Orbit helpers place
cameras on a circle around a focal point for animations.
"""

from .view_plane import (
    Camera,
    get_camera_info,
    get_camera_position,
    get_clip_range,
    get_primary_ray,
    image_to_view_plane,
    normalize_camera,
    orbit_camera,
    orbit_cameras,
    setup_camera,
)

__all__ = [
    "Camera",
    "normalize_camera",
    "setup_camera",
    "image_to_view_plane",
    "get_primary_ray",
    "get_camera_position",
    "get_clip_range",
    "get_camera_info",
    "orbit_camera",
    "orbit_cameras",
]
