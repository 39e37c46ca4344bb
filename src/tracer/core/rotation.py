"""Quaternion rotations for oriented geometry and camera animation.

Quaternions are stored as (w, x, y, z) with w the real part. The identity
rotation is (1, 0, 0, 0). Geometry rotations are expected to be unit
quaternions; for those the inverse rotation is the conjugate.

Host-side helpers operate on plain tuples and are used while building
scenes and cameras. The Taichi functions at the bottom of the module are
what the intersection kernels call.
"""

import math

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3
vec4 = tm.vec4

Quaternion = tuple[float, float, float, float]

IDENTITY_ROTATION: Quaternion = (1.0, 0.0, 0.0, 0.0)


# =============================================================================
# Host-side helpers
# =============================================================================


def quaternion_from_axis_angle(
    angle: float, axis: tuple[float, float, float]
) -> Quaternion:
    """Build a unit quaternion rotating by angle (radians) about axis.

    Args:
        angle: Rotation angle in radians, counter-clockwise about the axis.
        axis: Rotation axis. Normalized here; a zero axis yields the identity.

    Returns:
        The rotation as a (w, x, y, z) tuple.
    """
    ax, ay, az = axis
    norm = math.sqrt(ax * ax + ay * ay + az * az)
    if norm == 0.0:
        return IDENTITY_ROTATION

    half = angle / 2.0
    s = math.sin(half) / norm
    return (math.cos(half), ax * s, ay * s, az * s)


def normalize_quaternion(q: Quaternion) -> Quaternion:
    """Scale a quaternion to unit length.

    Raises:
        ValueError: If the quaternion has zero length.
    """
    w, x, y, z = q
    norm = math.sqrt(w * w + x * x + y * y + z * z)
    if norm == 0.0:
        raise ValueError("Cannot normalize a zero-length quaternion")
    return (w / norm, x / norm, y / norm, z / norm)


def quaternion_conjugate(q: Quaternion) -> Quaternion:
    """Return the conjugate (the inverse, for unit quaternions)."""
    w, x, y, z = q
    return (w, -x, -y, -z)


def quaternion_multiply(a: Quaternion, b: Quaternion) -> Quaternion:
    """Hamilton product a * b (apply b first, then a)."""
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return (
        aw * bw - ax * bx - ay * by - az * bz,
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
    )


def rotate_vector(
    q: Quaternion, v: tuple[float, float, float]
) -> tuple[float, float, float]:
    """Rotate a 3D vector by a unit quaternion.

    Uses v' = v + 2w(u x v) + 2u x (u x v), with u the vector part of q.
    """
    w, ux, uy, uz = q
    vx, vy, vz = v

    # t = 2 * (u x v)
    tx = 2.0 * (uy * vz - uz * vy)
    ty = 2.0 * (uz * vx - ux * vz)
    tz = 2.0 * (ux * vy - uy * vx)

    return (
        vx + w * tx + (uy * tz - uz * ty),
        vy + w * ty + (uz * tx - ux * tz),
        vz + w * tz + (ux * ty - uy * tx),
    )


def is_identity(q: Quaternion) -> bool:
    """Check whether q is exactly the identity rotation."""
    return tuple(q) == IDENTITY_ROTATION


# =============================================================================
# Kernel-side rotation
# =============================================================================


@ti.func
def quat_conjugate(q: vec4) -> vec4:
    """Conjugate of a (w, x, y, z) quaternion."""
    return vec4(q[0], -q[1], -q[2], -q[3])


@ti.func
def quat_is_identity(q: vec4) -> ti.i32:
    """Return 1 if q is exactly (1, 0, 0, 0), 0 otherwise."""
    result = 0
    if q[0] == 1.0 and q[1] == 0.0 and q[2] == 0.0 and q[3] == 0.0:
        result = 1
    return result


@ti.func
def quat_rotate(q: vec4, v: vec3) -> vec3:
    """Rotate v by the unit quaternion q = (w, x, y, z)."""
    u = vec3(q[1], q[2], q[3])
    t = 2.0 * tm.cross(u, v)
    return v + q[0] * t + tm.cross(u, t)
