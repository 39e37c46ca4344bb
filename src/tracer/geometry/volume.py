"""Volume field primitive: ray marching through a sampled density grid.

A volume field is a regular grid of 8-bit densities (for example a CT scan)
placed in world space as an axis-aligned box

    [origin, origin + resolution * spacing * scale]

Densities are mapped to RGBA samples through a colour map; the alpha channel
is the sample opacity. A ray is clipped to the box with the slab method and
then marched front to back with a fixed step, compositing samples as

    weight = alpha * (1 - accumulated_alpha)
    accumulated_color += sample * weight
    accumulated_alpha += weight

until the ray leaves the box or the accumulated opacity saturates. The first
non-transparent sample fixes the reported t, hit point and surface normal
(central differences of density around that voxel).

Storage follows the Structure-of-Arrays layout used for the other scene
tables. All volumes share a single preallocated u8 voxel pool and a single
colour-map table; each volume slot records its offset into both.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.geometry.volume import add_volume
    >>> from src.tracer.geometry.volume_io import load_volume
    >>> from src.tracer.materials.colormap import ColorMap
    >>> data = load_volume("ctscan/walnut.dat", "ctscan/walnut.raw")
    >>> slot = add_volume(data, origin=(-5.0, -20.0, 105.0), scale=0.2,
    ...                   color_map=ColorMap().add(2, 2, (0.87, 0.72, 0.52, 0.8)))
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from src.tracer.core.ray import safe_normalize
from src.tracer.geometry.volume_io import VolumeData
from src.tracer.materials.colormap import ColorMap

logger = logging.getLogger(__name__)

vec3 = tm.vec3
vec4 = tm.vec4
ivec3 = tm.ivec3

# Fraction of the smallest scaled voxel spacing advanced per marching step
STEP_FRACTION = 0.5

# Offset of the first sample past the entry point, in steps
ENTRY_OFFSET = 0.05

# Rays with a smaller direction component are treated as parallel to a slab
PARALLEL_EPSILON = 1e-8

# =============================================================================
# Volume Storage (GPU-accessible)
# =============================================================================

MAX_VOLUMES = 8
MAX_VOXELS = 2**24
MAX_COLORMAP_ENTRIES = 256

# Shared voxel pool; each volume owns [offset, offset + voxel_count)
voxels = ti.field(dtype=ti.u8, shape=MAX_VOXELS)
num_voxels_used = ti.field(dtype=ti.i32, shape=())

# Shared colour-map table; each volume owns [start, start + count)
colormap_low = ti.field(dtype=ti.i32, shape=MAX_COLORMAP_ENTRIES)
colormap_high = ti.field(dtype=ti.i32, shape=MAX_COLORMAP_ENTRIES)
colormap_color = ti.Vector.field(4, dtype=ti.f32, shape=MAX_COLORMAP_ENTRIES)
num_colormap_entries = ti.field(dtype=ti.i32, shape=())

# Per-volume parameters
volume_origins = ti.Vector.field(3, dtype=ti.f32, shape=MAX_VOLUMES)
volume_spacings = ti.Vector.field(3, dtype=ti.f32, shape=MAX_VOLUMES)
volume_resolutions = ti.Vector.field(3, dtype=ti.i32, shape=MAX_VOLUMES)
volume_scales = ti.field(dtype=ti.f32, shape=MAX_VOLUMES)
volume_voxel_offsets = ti.field(dtype=ti.i32, shape=MAX_VOLUMES)
volume_colormap_starts = ti.field(dtype=ti.i32, shape=MAX_VOLUMES)
volume_colormap_counts = ti.field(dtype=ti.i32, shape=MAX_VOLUMES)
num_volumes = ti.field(dtype=ti.i32, shape=())


@ti.dataclass
class VolumeHitRecord:
    """Result of marching a ray through a volume.

    Attributes:
        hit: 1 if any opacity was accumulated, 0 otherwise.
        t: Ray parameter of the first non-transparent sample.
        point: World-space position of the first non-transparent sample.
        normal: Density gradient at the first sample (unit length, or zero
            where the density is locally constant).
        color: Front-to-back composited colour (RGBA).
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    color: vec4


@ti.kernel
def _upload_voxels(src: ti.types.ndarray(dtype=ti.u8, ndim=1), offset: ti.i32):
    for i in range(src.shape[0]):
        voxels[offset + i] = src[i]


def clear_volumes() -> None:
    """Remove all volumes, releasing the voxel pool and colour-map table."""
    num_volumes[None] = 0
    num_voxels_used[None] = 0
    num_colormap_entries[None] = 0


def get_volume_count() -> int:
    """Get the number of uploaded volumes."""
    return int(num_volumes[None])


def add_volume(
    data: VolumeData,
    origin: tuple[float, float, float],
    scale: float,
    color_map: ColorMap,
) -> int:
    """Upload a volume and its colour map, returning the volume slot.

    The voxel data is copied once into the shared pool and stays there until
    clear_volumes() is called.

    Args:
        data: Loaded resolution, spacing and density bytes.
        origin: World-space position of the minimum corner.
        scale: Uniform scale applied to the voxel spacing (must be > 0).
        color_map: Density to RGBA mapping.

    Returns:
        The index of the volume slot.

    Raises:
        ValueError: If scale is not positive.
        RuntimeError: If the volume, voxel or colour-map capacity is exceeded.
    """
    if scale <= 0.0:
        raise ValueError(f"Volume scale must be positive, got {scale}")

    slot = num_volumes[None]
    if slot >= MAX_VOLUMES:
        raise RuntimeError(f"Maximum number of volumes ({MAX_VOLUMES}) exceeded")

    voxel_offset = num_voxels_used[None]
    voxel_count = data.voxel_count
    if voxel_offset + voxel_count > MAX_VOXELS:
        raise RuntimeError(
            f"Voxel pool capacity ({MAX_VOXELS}) exceeded: "
            f"{voxel_offset} in use, {voxel_count} requested"
        )

    colormap_start = num_colormap_entries[None]
    if colormap_start + len(color_map) > MAX_COLORMAP_ENTRIES:
        raise RuntimeError(
            f"Maximum number of colour-map entries ({MAX_COLORMAP_ENTRIES}) exceeded"
        )

    _upload_voxels(np.ascontiguousarray(data.density, dtype=np.uint8), voxel_offset)

    for k, entry in enumerate(color_map.ranges):
        colormap_low[colormap_start + k] = entry.low
        colormap_high[colormap_start + k] = entry.high
        colormap_color[colormap_start + k] = list(entry.color)

    volume_origins[slot] = list(origin)
    volume_spacings[slot] = list(data.spacing)
    volume_resolutions[slot] = list(data.resolution)
    volume_scales[slot] = scale
    volume_voxel_offsets[slot] = voxel_offset
    volume_colormap_starts[slot] = colormap_start
    volume_colormap_counts[slot] = len(color_map)

    num_voxels_used[None] = voxel_offset + voxel_count
    num_colormap_entries[None] = colormap_start + len(color_map)
    num_volumes[None] = slot + 1

    logger.debug(
        "Uploaded volume %d: resolution=%s, %d voxels at offset %d",
        slot,
        data.resolution,
        voxel_count,
        voxel_offset,
    )
    return slot


def volume_bounds(
    data: VolumeData, origin: tuple[float, float, float], scale: float
) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """World-space bounding box (min corner, max corner) of a placed volume."""
    extent = tuple(
        data.resolution[i] * data.spacing[i] * scale for i in range(3)
    )
    upper = (origin[0] + extent[0], origin[1] + extent[1], origin[2] + extent[2])
    return tuple(origin), upper


# =============================================================================
# Voxel Access
# =============================================================================


@ti.func
def voxel_value(volume: ti.i32, x: ti.i32, y: ti.i32, z: ti.i32) -> ti.i32:
    """Density at integer voxel coordinates; 0 outside the grid."""
    res = volume_resolutions[volume]
    value = 0
    if x >= 0 and y >= 0 and z >= 0 and x < res[0] and y < res[1] and z < res[2]:
        index = volume_voxel_offsets[volume] + (z * res[1] + y) * res[0] + x
        value = ti.cast(voxels[index], ti.i32)
    return value


@ti.func
def voxel_indices(volume: ti.i32, position: vec3) -> ivec3:
    """Map a world position to the voxel containing it."""
    local = (position - volume_origins[volume]) / volume_spacings[volume] / volume_scales[volume]
    return ti.cast(ti.floor(local), ti.i32)


@ti.func
def lookup_color(volume: ti.i32, value: ti.i32) -> vec4:
    """First-match colour-map lookup; transparent black when nothing matches."""
    color = vec4(0.0, 0.0, 0.0, 0.0)
    found = 0
    start = volume_colormap_starts[volume]
    for k in range(volume_colormap_counts[volume]):
        entry = start + k
        if found == 0 and colormap_low[entry] <= value and value <= colormap_high[entry]:
            color = colormap_color[entry]
            found = 1
    return color


@ti.func
def sample_color(volume: ti.i32, position: vec3) -> vec4:
    """Colour-mapped density at a world position."""
    idx = voxel_indices(volume, position)
    return lookup_color(volume, voxel_value(volume, idx[0], idx[1], idx[2]))


@ti.func
def density_gradient(volume: ti.i32, idx: ivec3) -> vec3:
    """Central-difference density gradient at a voxel, normalized."""
    x = idx[0]
    y = idx[1]
    z = idx[2]
    gradient = vec3(
        ti.cast(voxel_value(volume, x + 1, y, z) - voxel_value(volume, x - 1, y, z), ti.f32),
        ti.cast(voxel_value(volume, x, y + 1, z) - voxel_value(volume, x, y - 1, z), ti.f32),
        ti.cast(voxel_value(volume, x, y, z + 1) - voxel_value(volume, x, y, z - 1), ti.f32),
    )
    return safe_normalize(gradient)


# =============================================================================
# Ray Marching
# =============================================================================


@ti.func
def clip_to_box(
    ray_origin: vec3,
    ray_direction: vec3,
    box_min: vec3,
    box_max: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
):
    """Clip [t_min, t_max] to an axis-aligned box using the slab method.

    Returns:
        Tuple (inside, t_enter, t_exit). inside is 0 when the ray misses the
        box within the interval.
    """
    inside = 1
    t_enter = t_min
    t_exit = t_max
    for axis in ti.static(range(3)):
        origin = ray_origin[axis]
        direction = ray_direction[axis]
        if ti.abs(direction) < PARALLEL_EPSILON:
            # Parallel to this slab: the origin must lie between its planes
            if origin < box_min[axis] or origin > box_max[axis]:
                inside = 0
        else:
            t1 = (box_min[axis] - origin) / direction
            t2 = (box_max[axis] - origin) / direction
            if t1 > t2:
                swap = t1
                t1 = t2
                t2 = swap
            t_enter = ti.max(t_enter, t1)
            t_exit = ti.min(t_exit, t2)
            if t_enter > t_exit:
                inside = 0
    return inside, t_enter, t_exit


@ti.func
def hit_volume(
    ray_origin: vec3,
    ray_direction: vec3,
    volume: ti.i32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> VolumeHitRecord:
    """March a ray through a volume, compositing samples front to back.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        volume: Volume slot returned by add_volume.
        t_min: Minimum t value of a valid hit.
        t_max: Maximum t value of a valid hit.

    Returns:
        A VolumeHitRecord. hit is 1 only if some opacity was accumulated.
    """
    origin = volume_origins[volume]
    spacing = volume_spacings[volume]
    scale = volume_scales[volume]
    extent = ti.cast(volume_resolutions[volume], ti.f32) * spacing * scale

    inside, t_enter, t_exit = clip_to_box(
        ray_origin, ray_direction, origin, origin + extent, t_min, t_max
    )

    result = VolumeHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        color=vec4(0.0, 0.0, 0.0, 0.0),
    )

    if inside == 1:
        step = STEP_FRACTION * ti.min(spacing[0], ti.min(spacing[1], spacing[2])) * scale
        t = t_enter + ENTRY_OFFSET * step

        accumulated_color = vec4(0.0, 0.0, 0.0, 0.0)
        accumulated_alpha = 0.0
        first_found = 0
        first_t = 0.0
        first_point = vec3(0.0, 0.0, 0.0)
        first_idx = ivec3(0, 0, 0)

        while t <= t_exit and accumulated_alpha < 1.0:
            position = ray_origin + t * ray_direction
            color = sample_color(volume, position)
            alpha = color[3]

            if alpha > 0.0:
                if first_found == 0:
                    first_found = 1
                    first_t = t
                    first_point = position
                    first_idx = voxel_indices(volume, position)

                weight = alpha * (1.0 - accumulated_alpha)
                accumulated_color += color * weight
                accumulated_alpha += weight

            t += step

        if first_found == 1 and accumulated_alpha > 0.0:
            result = VolumeHitRecord(
                hit=1,
                t=first_t,
                point=first_point,
                normal=density_gradient(volume, first_idx),
                color=accumulated_color,
            )

    return result
