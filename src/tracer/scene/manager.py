"""Scene manager coordinating geometry, materials, volumes and lights.

The Taichi tables in src.tracer.scene.intersection, src.tracer.materials.phong,
src.tracer.geometry.volume and src.tracer.scene.lights are flat, index-based
storage. SceneManager keeps the Python-side description of what was uploaded
and offers one call per kind of object.

Geometry is described by immutable values (QuadricInfo, VolumeInfo). A scene
snapshot is simply a tuple of them, so an animation can hold one snapshot per
frame and re-upload it with upload_geometry() before rendering that frame.
Volume voxel data is uploaded once and only referenced by later snapshots.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.scene.manager import SceneManager
    >>> from src.tracer.scene.lights import PointLight
    >>> from src.tracer.materials.phong import RED
    >>> scene = SceneManager()
    >>> scene.add_sphere(center=(0, 0, 100), radius=5, color=RED)
    >>> scene.add_light(PointLight.white((65, 40, 90)))
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from src.tracer.core.rotation import IDENTITY_ROTATION, Quaternion, normalize_quaternion
from src.tracer.geometry.volume import add_volume as _upload_volume
from src.tracer.geometry.volume import clear_volumes, get_volume_count
from src.tracer.geometry.volume_io import VolumeData
from src.tracer.materials.colormap import ColorMap
from src.tracer.materials.phong import (
    WHITE,
    Color,
    PhongMaterial,
    add_phong_material,
    clear_phong_materials,
    material_from_color,
    validate_color,
)
from src.tracer.scene.intersection import (
    MAX_GEOMETRIES,
    MAX_QUADRICS,
    add_quadric,
    add_volume_reference,
    clear_scene,
    get_geometry_count,
    get_quadric_count,
)
from src.tracer.scene.lights import MAX_LIGHTS, PointLight, add_light, clear_lights, get_light_count

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuadricInfo:
    """An ellipsoid (or sphere) with its surface properties.

    Attributes:
        center: Center of the quadric.
        semi_axes: Relative semi-axis lengths, multiplied by radius.
        radius: Uniform size multiplier.
        rotation: Quaternion (w, x, y, z), normalized on construction.
        color: Base colour (RGBA).
        material: Phong material. Derived from color when not given.
    """

    center: tuple[float, float, float]
    semi_axes: tuple[float, float, float] = (1.0, 1.0, 1.0)
    radius: float = 1.0
    rotation: Quaternion = IDENTITY_ROTATION
    color: Color = WHITE
    material: PhongMaterial | None = None

    def __post_init__(self) -> None:
        validate_color(self.color, "color")
        if self.radius <= 0.0:
            raise ValueError(f"Radius must be positive, got {self.radius}")
        if any(a <= 0.0 for a in self.semi_axes):
            raise ValueError(f"Semi-axes must be positive, got {self.semi_axes}")
        object.__setattr__(self, "rotation", normalize_quaternion(self.rotation))
        if self.material is None:
            object.__setattr__(self, "material", material_from_color(self.color))

    @classmethod
    def sphere(
        cls,
        center: tuple[float, float, float],
        radius: float,
        color: Color = WHITE,
        material: PhongMaterial | None = None,
    ) -> "QuadricInfo":
        """A sphere: a quadric with unit semi-axes."""
        return cls(center=center, radius=radius, color=color, material=material)

    def with_rotation(self, rotation: Quaternion) -> "QuadricInfo":
        """Copy of this quadric with a new rotation."""
        return replace(self, rotation=rotation)

    def with_center(self, center: tuple[float, float, float]) -> "QuadricInfo":
        """Copy of this quadric moved to center."""
        return replace(self, center=center)


@dataclass(frozen=True)
class VolumeInfo:
    """A volume whose voxels have been uploaded.

    Attributes:
        slot: Volume slot returned by the upload.
        origin: World-space minimum corner.
        scale: Uniform scale applied to the voxel spacing.
        color_map: Density to colour mapping used for the upload.
        resolution: Voxel counts along X, Y and Z.
    """

    slot: int
    origin: tuple[float, float, float]
    scale: float
    color_map: ColorMap = field(compare=False)
    resolution: tuple[int, int, int] = (0, 0, 0)


Geometry = QuadricInfo | VolumeInfo


class SceneManager:
    """High-level scene builder over the Taichi scene tables.

    Creating a SceneManager clears every table, so there is effectively one
    active scene per Taichi runtime.

    Attributes:
        geometries: Geometry currently in the scene, in insertion order.
        volumes: Volumes whose voxel data has been uploaded.
        lights: Lights in the scene.
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.geometries: list[Geometry] = []
        self.volumes: list[VolumeInfo] = []
        self.lights: list[PointLight] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_phong_materials()
        clear_volumes()
        clear_lights()
        self.geometries.clear()
        self.volumes.clear()
        self.lights.clear()

    def clear(self) -> None:
        """Clear the entire scene, including uploaded volumes and lights."""
        self._clear_all()

    def clear_geometry(self) -> None:
        """Remove all geometry and materials, keeping volumes and lights."""
        clear_scene()
        clear_phong_materials()
        self.geometries.clear()

    # =========================================================================
    # Geometry
    # =========================================================================

    def add_quadric(self, info: QuadricInfo) -> int:
        """Add a quadric and register its material.

        Returns:
            The index of the quadric in the scene geometry table.

        Raises:
            RuntimeError: If a table capacity is exceeded.
        """
        material_id = add_phong_material(info.material)
        idx = add_quadric(
            center=info.center,
            semi_axes=info.semi_axes,
            radius=info.radius,
            rotation=info.rotation,
            material_id=material_id,
            color=info.color,
        )
        self.geometries.append(info)
        return idx

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        color: Color = WHITE,
        material: PhongMaterial | None = None,
    ) -> int:
        """Add a sphere to the scene."""
        return self.add_quadric(QuadricInfo.sphere(center, radius, color, material))

    def add_ellipsoid(
        self,
        center: tuple[float, float, float],
        semi_axes: tuple[float, float, float],
        radius: float = 1.0,
        color: Color = WHITE,
        rotation: Quaternion = IDENTITY_ROTATION,
        material: PhongMaterial | None = None,
    ) -> int:
        """Add an ellipsoid to the scene."""
        info = QuadricInfo(
            center=center,
            semi_axes=semi_axes,
            radius=radius,
            rotation=rotation,
            color=color,
            material=material,
        )
        return self.add_quadric(info)

    def upload_volume(
        self,
        data: VolumeData,
        origin: tuple[float, float, float],
        scale: float,
        color_map: ColorMap,
    ) -> VolumeInfo:
        """Upload voxel data without adding it to the scene.

        The returned VolumeInfo can be added to any number of snapshots.
        """
        slot = _upload_volume(data, origin, scale, color_map)
        info = VolumeInfo(
            slot=slot,
            origin=tuple(origin),
            scale=scale,
            color_map=color_map,
            resolution=data.resolution,
        )
        self.volumes.append(info)
        return info

    def add_volume_info(self, info: VolumeInfo) -> int:
        """Reference an uploaded volume from the scene.

        Returns:
            The index of the volume in the scene geometry table.
        """
        idx = add_volume_reference(info.slot)
        self.geometries.append(info)
        return idx

    def add_volume(
        self,
        data: VolumeData,
        origin: tuple[float, float, float],
        scale: float,
        color_map: ColorMap,
    ) -> int:
        """Upload a volume and add it to the scene."""
        return self.add_volume_info(self.upload_volume(data, origin, scale, color_map))

    def add_geometry(self, geometry: Geometry) -> int:
        """Add a QuadricInfo or an uploaded VolumeInfo."""
        if isinstance(geometry, QuadricInfo):
            return self.add_quadric(geometry)
        if isinstance(geometry, VolumeInfo):
            return self.add_volume_info(geometry)
        raise TypeError(f"Unsupported geometry type: {type(geometry).__name__}")

    def snapshot(self) -> tuple[Geometry, ...]:
        """Immutable copy of the current geometry list."""
        return tuple(self.geometries)

    def upload_geometry(self, geometries: Iterable[Geometry]) -> None:
        """Replace the scene geometry with a snapshot.

        Volumes in the snapshot must already be uploaded. Lights are kept.
        """
        self.clear_geometry()
        for geometry in geometries:
            self.add_geometry(geometry)
        logger.debug(
            "Uploaded %d geometries (%d quadrics)",
            get_geometry_count(),
            get_quadric_count(),
        )

    # =========================================================================
    # Lights
    # =========================================================================

    def add_light(self, light: PointLight) -> int:
        """Add a point light and return its index."""
        idx = add_light(light)
        self.lights.append(light)
        return idx

    # =========================================================================
    # Counts
    # =========================================================================

    def get_geometry_count(self) -> int:
        """Get the number of geometries in the scene."""
        return get_geometry_count()

    def get_quadric_count(self) -> int:
        """Get the number of quadrics in the scene."""
        return get_quadric_count()

    def get_volume_count(self) -> int:
        """Get the number of uploaded volumes."""
        return get_volume_count()

    def get_light_count(self) -> int:
        """Get the number of lights."""
        return get_light_count()

    @staticmethod
    def get_max_geometries() -> int:
        """Get the maximum number of geometries."""
        return MAX_GEOMETRIES

    @staticmethod
    def get_max_quadrics() -> int:
        """Get the maximum number of quadrics."""
        return MAX_QUADRICS

    @staticmethod
    def get_max_lights() -> int:
        """Get the maximum number of lights."""
        return MAX_LIGHTS
