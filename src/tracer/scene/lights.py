"""Point light storage.

Lights are omnidirectional point sources with separate ambient, diffuse and
specular colours for the Phong model. They are stored in Taichi fields so
the shading kernel can iterate over them.
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.tracer.materials.phong import NONE, Color, validate_color

vec3 = tm.vec3


@dataclass(frozen=True)
class PointLight:
    """A point light emitting uniformly in all directions.

    Attributes:
        position: World-space position of the light.
        ambient: Ambient colour contribution (RGBA).
        diffuse: Diffuse colour contribution (RGBA).
        specular: Specular colour contribution (RGBA).
    """

    position: tuple[float, float, float]
    ambient: Color = NONE
    diffuse: Color = NONE
    specular: Color = NONE

    def __post_init__(self) -> None:
        validate_color(self.ambient, "ambient")
        validate_color(self.diffuse, "diffuse")
        validate_color(self.specular, "specular")

    @classmethod
    def white(cls, position: tuple[float, float, float], intensity: float = 0.8) -> "PointLight":
        """Grey light with the same intensity for every Phong term."""
        color = (intensity, intensity, intensity, 1.0)
        return cls(position=position, ambient=color, diffuse=color, specular=color)


MAX_LIGHTS = 64

light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_ambient = ti.Vector.field(4, dtype=ti.f32, shape=MAX_LIGHTS)
light_diffuse = ti.Vector.field(4, dtype=ti.f32, shape=MAX_LIGHTS)
light_specular = ti.Vector.field(4, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def add_light(light: PointLight) -> int:
    """Add a point light and return its index.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_positions[idx] = list(light.position)
    light_ambient[idx] = list(light.ambient)
    light_diffuse[idx] = list(light.diffuse)
    light_specular[idx] = list(light.specular)
    num_lights[None] = idx + 1
    return idx


def clear_lights() -> None:
    """Remove all lights."""
    num_lights[None] = 0


def get_light_count() -> int:
    """Get the number of lights."""
    return int(num_lights[None])


@ti.func
def get_light_position(idx: ti.i32) -> vec3:
    """Position of light idx."""
    return light_positions[idx]
