"""Scene module: scene tables, nearest-hit search, lights and management.

Components:
    intersection: Geometry table and nearest-hit search over all geometry
    lights: Point light table
    manager: High-level scene builder with per-frame geometry snapshots
    demo: Demo scene of coloured ellipsoids around a walnut volume

Scene data is stored in Taichi fields in Structure-of-Arrays layout and is
read-only while a frame renders.
"""

from .intersection import (
    MAX_GEOMETRIES,
    MAX_QUADRICS,
    GeometryKind,
    SceneHitRecord,
    add_quadric,
    add_volume_reference,
    clear_scene,
    find_nearest,
    get_geometry_count,
    get_quadric_count,
)
from .lights import MAX_LIGHTS, PointLight, add_light, clear_lights, get_light_count
from .manager import Geometry, QuadricInfo, SceneManager, VolumeInfo

# Note: demo is NOT imported here; it depends on the camera package.

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "GeometryKind",
    "add_quadric",
    "add_volume_reference",
    "clear_scene",
    "find_nearest",
    "get_geometry_count",
    "get_quadric_count",
    "MAX_GEOMETRIES",
    "MAX_QUADRICS",
    # Lights
    "PointLight",
    "add_light",
    "clear_lights",
    "get_light_count",
    "MAX_LIGHTS",
    # Manager module
    "SceneManager",
    "QuadricInfo",
    "VolumeInfo",
    "Geometry",
]
