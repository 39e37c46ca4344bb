"""Shadow testing and Phong shading.

For a visible hit, each point light contributes

    ambient:  material.ambient * light.ambient                 (always)
    diffuse:  material.diffuse * light.diffuse * (n . l)        (if lit)
    specular: material.specular * light.specular * max(0, r . v)^shininess

where l points from the hit to the light, r = normalize(2 (n . l) n - l)
is the reflected light direction and v points from the hit to the camera.
Diffuse and specular terms are only added when n . l > 0 and no geometry
other than a volume blocks the segment toward the light. The sum over all
lights is returned unclamped; clamping happens in the pixel sink.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.core.shading import shade
    >>> # Use shade(rec, camera_position) within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.tracer.core.ray import dot, length, safe_normalize
from src.tracer.scene.intersection import GEOMETRY_VOLUME, SceneHitRecord, find_nearest
from src.tracer.scene.lights import (
    get_light_position,
    light_ambient,
    light_diffuse,
    light_specular,
    num_lights,
)

vec3 = tm.vec3
vec4 = tm.vec4

# Offset applied at both ends of a shadow ray to avoid self-shadowing
SHADOW_EPSILON = 1e-3


@ti.func
def is_lit(point: vec3, light_index: ti.i32) -> ti.i32:
    """Test whether a point receives direct light from a light source.

    A shadow ray runs from the point toward the light over
    [SHADOW_EPSILON, distance - SHADOW_EPSILON]. Volumes do not cast
    shadows: if the nearest blocker is a volume the point counts as lit.

    Args:
        point: World-space point to test.
        light_index: Index of the light in the light table.

    Returns:
        1 if the point is lit by the light, 0 if it is in shadow.
    """
    to_light = get_light_position(light_index) - point
    distance = length(to_light)
    direction = safe_normalize(to_light)

    rec = find_nearest(point, direction, SHADOW_EPSILON, distance - SHADOW_EPSILON)

    lit = 1
    if rec.hit == 1 and rec.geometry_kind != GEOMETRY_VOLUME:
        lit = 0
    return lit


@ti.func
def shade(rec: SceneHitRecord, camera_position: vec3) -> vec4:
    """Phong colour of a hit, summed over all lights.

    Args:
        rec: A hit record with hit == 1.
        camera_position: World-space camera position.

    Returns:
        The unclamped RGBA colour.
    """
    color = vec4(0.0, 0.0, 0.0, 0.0)
    view_dir = safe_normalize(camera_position - rec.point)

    for k in range(num_lights[None]):
        color += rec.ambient * light_ambient[k]

        light_dir = safe_normalize(get_light_position(k) - rec.point)
        n_dot_l = dot(rec.normal, light_dir)

        if n_dot_l > 0.0:
            if is_lit(rec.point, k) == 1:
                color += rec.diffuse * light_diffuse[k] * n_dot_l

                reflected = safe_normalize(2.0 * n_dot_l * rec.normal - light_dir)
                spec_dot = ti.max(0.0, dot(reflected, view_dir))
                color += rec.specular * light_specular[k] * (spec_dot ** ti.cast(rec.shininess, ti.f32))

    return color
