"""Phong material model and colour constants.

A Phong material describes how a surface responds to each term of the Phong
reflection model:

    color = ambient * light.ambient
          + diffuse * light.diffuse * (N . L)
          + specular * light.specular * (R . V) ^ shininess

Colours are RGBA quadruples. Colour arithmetic is component-wise on all four
channels, including alpha; the image sink discards alpha at output time.

Materials live in a preallocated Taichi table (Structure of Arrays) and are
referenced from geometry by index. Volumes derive their material from the
composited sample colour at hit time via material_from_color.

Example:
    >>> from src.tracer.materials.phong import RED, add_phong_material, material_from_color
    >>> material_id = add_phong_material(material_from_color(RED))
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

vec4 = tm.vec4

Color = tuple[float, float, float, float]

# =============================================================================
# Colour Constants
# =============================================================================

NONE: Color = (0.0, 0.0, 0.0, 0.0)
BLACK: Color = (0.0, 0.0, 0.0, 1.0)
RED: Color = (1.0, 0.0, 0.0, 1.0)
GREEN: Color = (0.0, 1.0, 0.0, 1.0)
BLUE: Color = (0.0, 0.0, 1.0, 1.0)
YELLOW: Color = (1.0, 1.0, 0.0, 1.0)
MAGENTA: Color = (1.0, 0.0, 1.0, 1.0)
CYAN: Color = (0.0, 1.0, 1.0, 1.0)
WHITE: Color = (1.0, 1.0, 1.0, 1.0)
ORANGE: Color = (1.0, 0.5, 0.0, 1.0)

# Fractions of the base colour used by material_from_color
AMBIENT_RATIO = 0.1
DIFFUSE_RATIO = 0.3
SPECULAR_RATIO = 0.5
DEFAULT_SHININESS = 100


def validate_color(color: tuple[float, ...], name: str = "color") -> Color:
    """Check that a colour has four components and return it as a tuple.

    Raises:
        ValueError: If the colour does not have exactly four components.
    """
    if len(color) != 4:
        raise ValueError(f"{name} must have 4 components (RGBA), got {len(color)}")
    return (float(color[0]), float(color[1]), float(color[2]), float(color[3]))


def scale_color(color: Color, k: float) -> Color:
    """Multiply every channel of a colour by k."""
    return (color[0] * k, color[1] * k, color[2] * k, color[3] * k)


@dataclass(frozen=True)
class PhongMaterial:
    """Phong reflection coefficients.

    Attributes:
        ambient: Ambient reflectance (RGBA).
        diffuse: Diffuse reflectance (RGBA).
        specular: Specular reflectance (RGBA).
        shininess: Specular exponent, must be >= 0.
    """

    ambient: Color = NONE
    diffuse: Color = NONE
    specular: Color = NONE
    shininess: int = 0

    def __post_init__(self) -> None:
        validate_color(self.ambient, "ambient")
        validate_color(self.diffuse, "diffuse")
        validate_color(self.specular, "specular")
        if self.shininess < 0:
            raise ValueError(f"shininess must be >= 0, got {self.shininess}")


def material_from_color(color: Color) -> PhongMaterial:
    """Derive a balanced Phong material from a single base colour.

    Uses 10% of the colour for ambient, 30% for diffuse and 50% for specular,
    with a shininess of 100.
    """
    color = validate_color(color)
    return PhongMaterial(
        ambient=scale_color(color, AMBIENT_RATIO),
        diffuse=scale_color(color, DIFFUSE_RATIO),
        specular=scale_color(color, SPECULAR_RATIO),
        shininess=DEFAULT_SHININESS,
    )


@ti.func
def material_from_color_ti(color: vec4):
    """Kernel-side material_from_color.

    Returns:
        Tuple of (ambient, diffuse, specular, shininess).
    """
    return (
        color * AMBIENT_RATIO,
        color * DIFFUSE_RATIO,
        color * SPECULAR_RATIO,
        ti.cast(DEFAULT_SHININESS, ti.i32),
    )


# =============================================================================
# Material Table (GPU-accessible)
# =============================================================================

MAX_MATERIALS = 1024

phong_ambient = ti.Vector.field(4, dtype=ti.f32, shape=MAX_MATERIALS)
phong_diffuse = ti.Vector.field(4, dtype=ti.f32, shape=MAX_MATERIALS)
phong_specular = ti.Vector.field(4, dtype=ti.f32, shape=MAX_MATERIALS)
phong_shininess = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_phong_materials = ti.field(dtype=ti.i32, shape=())


def add_phong_material(material: PhongMaterial) -> int:
    """Register a material and return its index in the material table.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_phong_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
    phong_ambient[idx] = list(material.ambient)
    phong_diffuse[idx] = list(material.diffuse)
    phong_specular[idx] = list(material.specular)
    phong_shininess[idx] = material.shininess
    num_phong_materials[None] = idx + 1
    return idx


def clear_phong_materials() -> None:
    """Remove all materials from the table."""
    num_phong_materials[None] = 0


def get_phong_material_count() -> int:
    """Get the number of registered materials."""
    return int(num_phong_materials[None])


@ti.func
def get_phong_material(material_id: ti.i32):
    """Look up a material from the table.

    Args:
        material_id: Index returned by add_phong_material.

    Returns:
        Tuple of (ambient, diffuse, specular, shininess).
    """
    return (
        phong_ambient[material_id],
        phong_diffuse[material_id],
        phong_specular[material_id],
        phong_shininess[material_id],
    )
