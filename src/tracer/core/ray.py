"""Ray data structure and vector utilities for the Phong ray tracer.

This module provides the Ray dataclass and the small set of vector helpers
the intersection and shading kernels share. All operations are Taichi
functions so they can be called from inside kernels.

A ray is an origin plus a unit direction. The direction is normalized once,
when the ray is built, and never renormalized afterwards.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.core.ray import make_ray_through, ray_at, vec3
    >>> @ti.kernel
    ... def demo() -> ti.f32:
    ...     ray = make_ray_through(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 2.0))
    ...     return ray_at(ray, 5.0).z  # 5.0
"""

import taichi as ti
import taichi.math as tm

# Type aliases for vectors using Taichi's math module
vec3 = tm.vec3
vec4 = tm.vec4


@ti.dataclass
class Ray:
    """A ray with an origin point and a unit direction.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3), unit length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from an origin and a direction, normalizing the direction.

    Args:
        origin: The starting point of the ray.
        direction: The direction vector. Need not be unit length.

    Returns:
        A new Ray whose direction is unit length (or zero for a zero input).
    """
    return Ray(origin=origin, direction=safe_normalize(direction))


@ti.func
def make_ray_through(origin: vec3, target: vec3) -> Ray:
    """Create a ray starting at origin and passing through target.

    Args:
        origin: The starting point of the ray.
        target: Any point the ray should pass through.

    Returns:
        A new Ray with direction normalize(target - origin).
    """
    return make_ray(origin, target - origin)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def safe_normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Unlike tm.normalize, a zero-length vector is returned unchanged instead
    of producing non-finite components.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v, or v itself if it has
        zero length.
    """
    norm = tm.length(v)
    result = v
    if norm > 0.0:
        result = v / norm
    return result
