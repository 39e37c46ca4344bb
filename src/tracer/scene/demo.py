"""Demo scene: coloured ellipsoids around a CT-scanned walnut.

The scene contains:
- A white reference sphere at (0, -25, 100)
- Three red ellipsoids stretched along X, three green along Y, three blue
  along Z, lined up from the reference sphere
- Flat yellow, cyan and magenta ellipsoids facing each axis
- A large orange sphere
- A walnut volume (loaded from CT files, or a synthetic shell)
- Four grey point lights

The camera orbits (0, -5, 100) at distance 95 with -Y as up, starting from a
view along +Z.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.scene.demo import create_demo_scene, demo_cameras
    >>> scene = create_demo_scene()
    >>> cameras = demo_cameras(num_frames=90)
"""

import numpy as np

from src.tracer.camera.view_plane import Camera, orbit_cameras
from src.tracer.geometry.volume_io import VolumeData
from src.tracer.materials.colormap import ColorMap
from src.tracer.materials.phong import BLUE, CYAN, GREEN, MAGENTA, ORANGE, RED, WHITE, YELLOW
from src.tracer.scene.lights import PointLight
from src.tracer.scene.manager import QuadricInfo, SceneManager

# =============================================================================
# Scene Constants
# =============================================================================

# Placement of the walnut volume
WALNUT_ORIGIN = (-5.0, -20.0, 105.0)
WALNUT_SCALE = 0.2

# Density values of the walnut interior and shell
WALNUT_INNER = 1
WALNUT_SHELL = 2

LIGHT_POSITIONS = (
    (65.0, 40.0, 90.0),
    (-10.0, 40.0, 165.0),
    (65.0, -35.0, 165.0),
    (65.0, 40.0, 165.0),
)
LIGHT_INTENSITY = 0.8

# Orbit camera
ORBIT_CENTER = (0.0, -5.0, 100.0)
ORBIT_UP = (0.0, -1.0, 0.0)
ORBIT_FIRST_DIRECTION = (0.0, 0.0, 1.0)
ORBIT_DISTANCE = 95.0
DEFAULT_NUM_FRAMES = 90


def demo_quadrics() -> list[QuadricInfo]:
    """The analytic shapes of the demo scene."""
    radius = 5.0
    x_axis = (2.0, 0.5, 0.5)
    y_axis = (0.5, 2.0, 0.5)
    z_axis = (0.5, 0.5, 2.0)

    quadrics = [QuadricInfo.sphere((0.0, -25.0, 100.0), radius, WHITE)]
    quadrics += [QuadricInfo((x, -25.0, 100.0), x_axis, radius, color=RED) for x in (15.0, 35.0, 55.0)]
    quadrics += [QuadricInfo((0.0, y, 100.0), y_axis, radius, color=GREEN) for y in (-10.0, 10.0, 30.0)]
    quadrics += [QuadricInfo((0.0, -25.0, z), z_axis, radius, color=BLUE) for z in (115.0, 135.0, 155.0)]
    quadrics += [
        QuadricInfo((35.0, 10.0, 100.0), (5.0, 5.0, 0.5), radius, color=YELLOW),
        QuadricInfo((0.0, 10.0, 135.0), (0.5, 5.0, 5.0), radius, color=CYAN),
        QuadricInfo((35.0, -25.0, 135.0), (5.0, 0.5, 5.0), radius, color=MAGENTA),
        QuadricInfo.sphere((-25.0, -50.0, 75.0), 25.0, ORANGE),
    ]
    return quadrics


def walnut_color_map() -> ColorMap:
    """Translucent brown interior, mostly opaque tan shell."""
    return (
        ColorMap()
        .add(WALNUT_INNER, WALNUT_INNER, (0.36, 0.26, 0.16, 0.1))
        .add(WALNUT_SHELL, WALNUT_SHELL, (0.87, 0.72, 0.52, 0.8))
    )


def synthetic_walnut(resolution: int = 64) -> VolumeData:
    """A spherical walnut stand-in: a filled core inside a thick shell.

    Args:
        resolution: Voxel count along each axis.

    Returns:
        A cubic volume with unit spacing. Voxels inside 0.3 of the half
        size hold WALNUT_INNER, voxels between 0.3 and 0.45 hold
        WALNUT_SHELL, everything else is 0.
    """
    if resolution < 2:
        raise ValueError(f"Resolution must be at least 2, got {resolution}")
    coords = np.arange(resolution, dtype=np.float32) + 0.5 - resolution / 2.0
    z, y, x = np.meshgrid(coords, coords, coords, indexing="ij")
    r = np.sqrt(x * x + y * y + z * z) / resolution

    grid = np.zeros((resolution, resolution, resolution), dtype=np.uint8)
    grid[r < 0.45] = WALNUT_SHELL
    grid[r < 0.3] = WALNUT_INNER
    return VolumeData.from_grid(grid, spacing=(1.0, 1.0, 1.0))


def demo_lights() -> list[PointLight]:
    """The four grey point lights of the demo scene."""
    return [PointLight.white(position, LIGHT_INTENSITY) for position in LIGHT_POSITIONS]


def create_demo_scene(walnut: VolumeData | None = None, include_walnut: bool = True) -> SceneManager:
    """Build the demo scene in a fresh SceneManager.

    Args:
        walnut: Walnut volume data. A synthetic walnut is used when None.
        include_walnut: Set to False to leave the volume out.

    Returns:
        The populated scene.
    """
    scene = SceneManager()
    for quadric in demo_quadrics():
        scene.add_quadric(quadric)

    if include_walnut:
        data = walnut if walnut is not None else synthetic_walnut()
        scene.add_volume(data, WALNUT_ORIGIN, WALNUT_SCALE, walnut_color_map())

    for light in demo_lights():
        scene.add_light(light)
    return scene


def demo_cameras(num_frames: int = DEFAULT_NUM_FRAMES) -> list[Camera]:
    """Cameras of a full orbit around the demo scene."""
    return orbit_cameras(
        ORBIT_CENTER,
        ORBIT_UP,
        ORBIT_FIRST_DIRECTION,
        ORBIT_DISTANCE,
        num_frames,
    )
