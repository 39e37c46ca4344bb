"""Geometry module for quadrics and voxel volumes.

Components:
    quadric: Ellipsoids and spheres with quaternion rotation
    volume: Voxel volume storage and front-to-back ray marching
    volume_io: Loading of volume metadata and raw density files

Intersection routines are Taichi functions (@ti.func) taking the ray and a
[t_min, t_max] interval and returning a hit record whose fields are only
valid when hit == 1.
"""

from .quadric import HitRecord, Quadric, hit_quadric, make_quadric, make_sphere_quadric
from .volume import (
    MAX_COLORMAP_ENTRIES,
    MAX_VOLUMES,
    MAX_VOXELS,
    VolumeHitRecord,
    add_volume,
    clear_volumes,
    get_volume_count,
    hit_volume,
    volume_bounds,
)
from .volume_io import VolumeData, VolumeLoadError, VolumeMetadata, load_volume, parse_metadata

__all__ = [
    "Quadric",
    "HitRecord",
    "hit_quadric",
    "make_quadric",
    "make_sphere_quadric",
    "VolumeHitRecord",
    "add_volume",
    "clear_volumes",
    "get_volume_count",
    "hit_volume",
    "volume_bounds",
    "MAX_VOLUMES",
    "MAX_VOXELS",
    "MAX_COLORMAP_ENTRIES",
    "VolumeData",
    "VolumeMetadata",
    "VolumeLoadError",
    "load_volume",
    "parse_metadata",
]
