"""Quadric (sphere / ellipsoid) primitive with analytic ray intersection.

A quadric is the zero set of

    (x/rx)^2 + (y/ry)^2 + (z/rz)^2 - 1 = 0

in the shape's local frame, where (rx, ry, rz) = semi_axes * radius. A sphere
is the special case semi_axes = (1, 1, 1). The local frame is placed in the
world by a translation (center) and a unit quaternion rotation.

Intersection transforms the ray into the local frame with the conjugate
rotation, solves the quadratic a*t^2 + b*t + c = 0 in closed form, and
reports the position on the original world-space ray. The normal is the
gradient of the implicit equation at the local hit point, rotated back into
world space.

Root selection takes the near root t0 unless it lies before t_min, in which
case the far root t1 is tried. The chosen root is then checked against
[t_min, t_max]. When t0 is beyond t_max the far root is not considered, so a
ray whose near root lies past the query horizon reports a miss.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.geometry.quadric import Quadric, hit_quadric, vec3, vec4
    >>> unit_sphere = Quadric(
    ...     center=vec3(0, 0, 5), semi_axes=vec3(1, 1, 1),
    ...     radius=1.0, rotation=vec4(1, 0, 0, 0),
    ... )
    >>> # Use hit_quadric within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.tracer.core.rotation import quat_conjugate, quat_is_identity, quat_rotate
from src.tracer.core.ray import safe_normalize

vec3 = tm.vec3
vec4 = tm.vec4


@ti.dataclass
class Quadric:
    """An ellipsoid defined by center, per-axis scale and rotation.

    Attributes:
        center: The center of the ellipsoid in world space (vec3).
        semi_axes: Relative semi-axis lengths along local x, y, z (vec3).
        radius: Uniform multiplier applied to semi_axes.
        rotation: Unit quaternion (w, x, y, z) orienting the local frame.
    """

    center: vec3
    semi_axes: vec3
    radius: ti.f32
    rotation: vec4


@ti.dataclass
class HitRecord:
    """Geometric result of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 otherwise.
        t: Ray parameter of the intersection. Only valid if hit == 1.
        point: World-space intersection point. Only valid if hit == 1.
        normal: Unit outward surface normal in world space. Not flipped
            toward the ray. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def make_miss_hit_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(hit=0, t=0.0, point=vec3(0.0, 0.0, 0.0), normal=vec3(0.0, 0.0, 0.0))


@ti.func
def quadric_coefficients(local_origin: vec3, local_direction: vec3, radii: vec3):
    """Coefficients of the ray-ellipsoid quadratic in the local frame.

    Args:
        local_origin: Ray origin relative to the center, in the local frame.
        local_direction: Ray direction in the local frame.
        radii: Effective semi-axis lengths (rx, ry, rz).

    Returns:
        Tuple (a, b, c) of a*t^2 + b*t + c = 0.
    """
    inv_r2 = 1.0 / (radii * radii)
    a = tm.dot(local_direction * local_direction, inv_r2)
    b = 2.0 * tm.dot(local_origin * local_direction, inv_r2)
    c = tm.dot(local_origin * local_origin, inv_r2) - 1.0
    return a, b, c


@ti.func
def hit_quadric(
    ray_origin: vec3,
    ray_direction: vec3,
    quadric: Quadric,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-quadric intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        quadric: The quadric to test against.
        t_min: Minimum t value of a valid hit (inclusive).
        t_max: Maximum t value of a valid hit (inclusive).

    Returns:
        A HitRecord. Check the hit field before reading anything else.
    """
    rotated = quat_is_identity(quadric.rotation) == 0
    inverse = quat_conjugate(quadric.rotation)

    # Move the ray into the quadric's local frame
    local_origin = ray_origin - quadric.center
    local_direction = ray_direction
    if rotated:
        local_origin = quat_rotate(inverse, local_origin)
        local_direction = quat_rotate(inverse, local_direction)

    radii = quadric.semi_axes * quadric.radius
    a, b, c = quadric_coefficients(local_origin, local_direction, radii)

    discriminant = b * b - 4.0 * a * c

    result = make_miss_hit_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0 = (-b - sqrt_d) / (2.0 * a)
        t1 = (-b + sqrt_d) / (2.0 * a)

        t = t0
        if t < t_min:
            t = t1

        # Non-finite roots (a == 0) fail the range test
        if t >= t_min and t <= t_max:
            point = ray_origin + t * ray_direction

            local_point = point - quadric.center
            if rotated:
                local_point = quat_rotate(inverse, local_point)

            normal = safe_normalize(local_point / (radii * radii))
            if rotated:
                normal = quat_rotate(quadric.rotation, normal)

            result = HitRecord(hit=1, t=t, point=point, normal=normal)

    return result


@ti.func
def make_quadric(center: vec3, semi_axes: vec3, radius: ti.f32, rotation: vec4) -> Quadric:
    """Create a quadric within a Taichi kernel."""
    return Quadric(center=center, semi_axes=semi_axes, radius=radius, rotation=rotation)


@ti.func
def make_sphere_quadric(center: vec3, radius: ti.f32) -> Quadric:
    """Create an unrotated sphere within a Taichi kernel."""
    return Quadric(
        center=center,
        semi_axes=vec3(1.0, 1.0, 1.0),
        radius=radius,
        rotation=vec4(1.0, 0.0, 0.0, 0.0),
    )
