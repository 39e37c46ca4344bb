"""Scene-level nearest-hit search over quadrics and volumes.

The scene keeps one geometry table in insertion order. Each entry names a
geometry kind (quadric or volume) and a slot in that kind's storage. The
nearest-hit search walks this table linearly (there is no spatial index),
hands the caller's full [t_min, t_max] interval to every geometry, and keeps
the visible hit with the smallest t. Ties keep the geometry found first.

Quadrics are stored here in Structure-of-Arrays fields together with their
material index and base colour. Volumes are stored in
src.tracer.geometry.volume and referenced by slot.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.scene.intersection import add_quadric, clear_scene, find_nearest
    >>> clear_scene()
    >>> add_quadric((0, 0, 5), (1, 1, 1), 1.0, (1, 0, 0, 0), material_id=0,
    ...             color=(1, 1, 1, 1))
    >>> # Use find_nearest within a Taichi kernel
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from src.tracer.geometry.quadric import hit_quadric, make_quadric
from src.tracer.geometry.volume import MAX_VOLUMES, hit_volume, num_volumes
from src.tracer.materials.phong import get_phong_material, material_from_color_ti

vec3 = tm.vec3
vec4 = tm.vec4


class GeometryKind(IntEnum):
    """Geometry variants stored in the scene table."""

    QUADRIC = 0
    VOLUME = 1


# Plain integer kinds for use inside kernels
GEOMETRY_QUADRIC = int(GeometryKind.QUADRIC)
GEOMETRY_VOLUME = int(GeometryKind.VOLUME)


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with shading information.

    Attributes:
        hit: 1 if the ray intersected any geometry, 0 otherwise.
        visible: 1 if the hit surface is visible. Only valid if hit == 1.
        t: Ray parameter of the intersection. Only valid if hit == 1.
        point: World-space intersection point. Only valid if hit == 1.
        normal: Unit surface normal. Only valid if hit == 1.
        color: Surface colour (RGBA). For volumes, the composited colour.
        ambient: Ambient reflectance of the hit material.
        diffuse: Diffuse reflectance of the hit material.
        specular: Specular reflectance of the hit material.
        shininess: Specular exponent of the hit material.
        geometry_kind: GeometryKind of the hit geometry, -1 on a miss.
        geometry_index: Index of the hit geometry in the scene table, -1 on a miss.
    """

    hit: ti.i32
    visible: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    color: vec4
    ambient: vec4
    diffuse: vec4
    specular: vec4
    shininess: ti.i32
    geometry_kind: ti.i32
    geometry_index: ti.i32


# Maximum number of entries in the scene tables
MAX_GEOMETRIES = 1024
MAX_QUADRICS = 1024

# Geometry table in insertion order
geometry_kinds = ti.field(dtype=ti.i32, shape=MAX_GEOMETRIES)
geometry_slots = ti.field(dtype=ti.i32, shape=MAX_GEOMETRIES)
num_geometries = ti.field(dtype=ti.i32, shape=())

# Quadric storage: Structure of Arrays layout
quadric_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADRICS)
quadric_semi_axes = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADRICS)
quadric_radii = ti.field(dtype=ti.f32, shape=MAX_QUADRICS)
quadric_rotations = ti.Vector.field(4, dtype=ti.f32, shape=MAX_QUADRICS)
quadric_material_ids = ti.field(dtype=ti.i32, shape=MAX_QUADRICS)
quadric_colors = ti.Vector.field(4, dtype=ti.f32, shape=MAX_QUADRICS)
num_quadrics = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear the geometry table and quadric storage.

    Volume voxel data is owned by src.tracer.geometry.volume and is not
    released here, so volumes can be re-referenced across frames.
    """
    num_geometries[None] = 0
    num_quadrics[None] = 0


def _append_geometry(kind: GeometryKind, slot: int) -> int:
    idx = num_geometries[None]
    if idx >= MAX_GEOMETRIES:
        raise RuntimeError(f"Maximum number of geometries ({MAX_GEOMETRIES}) exceeded")
    geometry_kinds[idx] = int(kind)
    geometry_slots[idx] = slot
    num_geometries[None] = idx + 1
    return idx


def add_quadric(
    center: tuple[float, float, float],
    semi_axes: tuple[float, float, float],
    radius: float,
    rotation: tuple[float, float, float, float],
    material_id: int,
    color: tuple[float, float, float, float],
) -> int:
    """Add a quadric to the scene.

    Args:
        center: Center of the quadric.
        semi_axes: Relative semi-axis lengths.
        radius: Uniform multiplier applied to semi_axes.
        rotation: Unit quaternion (w, x, y, z).
        material_id: Index into the Phong material table.
        color: Base colour (RGBA).

    Returns:
        The index of the quadric in the scene geometry table.

    Raises:
        RuntimeError: If the maximum number of quadrics or geometries is exceeded.
    """
    slot = num_quadrics[None]
    if slot >= MAX_QUADRICS:
        raise RuntimeError(f"Maximum number of quadrics ({MAX_QUADRICS}) exceeded")
    idx = _append_geometry(GeometryKind.QUADRIC, slot)
    quadric_centers[slot] = list(center)
    quadric_semi_axes[slot] = list(semi_axes)
    quadric_radii[slot] = radius
    quadric_rotations[slot] = list(rotation)
    quadric_material_ids[slot] = material_id
    quadric_colors[slot] = list(color)
    num_quadrics[None] = slot + 1
    return idx


def add_volume_reference(volume_slot: int) -> int:
    """Reference an uploaded volume from the scene geometry table.

    Args:
        volume_slot: Slot returned by src.tracer.geometry.volume.add_volume.

    Returns:
        The index of the volume in the scene geometry table.

    Raises:
        ValueError: If the slot does not name an uploaded volume.
        RuntimeError: If the maximum number of geometries is exceeded.
    """
    if volume_slot < 0 or volume_slot >= min(num_volumes[None], MAX_VOLUMES):
        raise ValueError(f"Unknown volume slot {volume_slot}")
    return _append_geometry(GeometryKind.VOLUME, volume_slot)


def get_geometry_count() -> int:
    """Get the number of entries in the scene geometry table."""
    return int(num_geometries[None])


def get_quadric_count() -> int:
    """Get the number of quadrics in the scene."""
    return int(num_quadrics[None])


@ti.func
def make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    zero3 = vec3(0.0, 0.0, 0.0)
    zero4 = vec4(0.0, 0.0, 0.0, 0.0)
    return SceneHitRecord(
        hit=0,
        visible=0,
        t=0.0,
        point=zero3,
        normal=zero3,
        color=zero4,
        ambient=zero4,
        diffuse=zero4,
        specular=zero4,
        shininess=0,
        geometry_kind=-1,
        geometry_index=-1,
    )


@ti.func
def _intersect_quadric_slot(
    slot: ti.i32, geometry: ti.i32, ray_origin: vec3, ray_direction: vec3, t_min: ti.f32, t_max: ti.f32
) -> SceneHitRecord:
    quadric = make_quadric(
        quadric_centers[slot],
        quadric_semi_axes[slot],
        quadric_radii[slot],
        quadric_rotations[slot],
    )
    rec = hit_quadric(ray_origin, ray_direction, quadric, t_min, t_max)
    result = make_miss_record()
    if rec.hit == 1:
        ambient, diffuse, specular, shininess = get_phong_material(quadric_material_ids[slot])
        result = SceneHitRecord(
            hit=1,
            visible=1,
            t=rec.t,
            point=rec.point,
            normal=rec.normal,
            color=quadric_colors[slot],
            ambient=ambient,
            diffuse=diffuse,
            specular=specular,
            shininess=shininess,
            geometry_kind=GEOMETRY_QUADRIC,
            geometry_index=geometry,
        )
    return result


@ti.func
def _intersect_volume_slot(
    slot: ti.i32, geometry: ti.i32, ray_origin: vec3, ray_direction: vec3, t_min: ti.f32, t_max: ti.f32
) -> SceneHitRecord:
    rec = hit_volume(ray_origin, ray_direction, slot, t_min, t_max)
    result = make_miss_record()
    if rec.hit == 1:
        ambient, diffuse, specular, shininess = material_from_color_ti(rec.color)
        result = SceneHitRecord(
            hit=1,
            visible=1,
            t=rec.t,
            point=rec.point,
            normal=rec.normal,
            color=rec.color,
            ambient=ambient,
            diffuse=diffuse,
            specular=specular,
            shininess=shininess,
            geometry_kind=GEOMETRY_VOLUME,
            geometry_index=geometry,
        )
    return result


@ti.func
def intersect_geometry(
    geometry: ti.i32, ray_origin: vec3, ray_direction: vec3, t_min: ti.f32, t_max: ti.f32
) -> SceneHitRecord:
    """Intersect a ray with one entry of the scene geometry table."""
    kind = geometry_kinds[geometry]
    slot = geometry_slots[geometry]
    result = make_miss_record()
    if kind == GEOMETRY_QUADRIC:
        result = _intersect_quadric_slot(slot, geometry, ray_origin, ray_direction, t_min, t_max)
    elif kind == GEOMETRY_VOLUME:
        result = _intersect_volume_slot(slot, geometry, ray_origin, ray_direction, t_min, t_max)
    return result


@ti.func
def find_nearest(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the nearest visible hit among all geometries.

    Every geometry is queried with the full [t_min, t_max] interval, so a
    volume composites over its whole extent regardless of what lies in
    front of it.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        The nearest SceneHitRecord, or a miss record if nothing was hit.
    """
    result = make_miss_record()
    for g in range(num_geometries[None]):
        rec = intersect_geometry(g, ray_origin, ray_direction, t_min, t_max)
        if rec.hit == 1 and rec.visible == 1:
            if result.hit == 0 or rec.t < result.t:
                result = rec
    return result
