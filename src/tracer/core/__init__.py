"""Core rendering module.

Components:
    ray: Ray data structure and vector helpers
    rotation: Quaternion rotation (host side and kernel side)
    shading: Shadow testing and Phong shading
    renderer: Pixel-parallel frame renderer
    animation: Rendering of frame sequences to PNG files

Every pixel is evaluated once: primary ray, nearest hit, one shadow ray per
light and the Phong sum. There is no sampling or accumulation.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    make_ray,
    make_ray_through,
    ray_at,
    safe_normalize,
    vec3,
    vec4,
)
from .rotation import (
    IDENTITY_ROTATION,
    Quaternion,
    is_identity,
    normalize_quaternion,
    quat_conjugate,
    quat_is_identity,
    quat_rotate,
    quaternion_conjugate,
    quaternion_from_axis_angle,
    quaternion_multiply,
    rotate_vector,
)

# Note: shading, renderer and animation are NOT imported here to avoid circular imports.
# Import directly from src.tracer.core.renderer or src.tracer.core.animation when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "make_ray_through",
    "vec3",
    "vec4",
    "length",
    "dot",
    "cross",
    "safe_normalize",
    "Quaternion",
    "IDENTITY_ROTATION",
    "quaternion_from_axis_angle",
    "normalize_quaternion",
    "quaternion_conjugate",
    "quaternion_multiply",
    "rotate_vector",
    "is_identity",
    "quat_conjugate",
    "quat_is_identity",
    "quat_rotate",
]
