"""Materials module: Phong materials, colours and colour maps.

Components:
    phong: Phong material model, colour constants and the material table
    colormap: Density-range to colour lookup used by volumes
"""

from .colormap import ColorMap, ColorRange
from .phong import (
    BLACK,
    BLUE,
    CYAN,
    GREEN,
    MAGENTA,
    NONE,
    ORANGE,
    RED,
    WHITE,
    YELLOW,
    Color,
    PhongMaterial,
    add_phong_material,
    clear_phong_materials,
    get_phong_material,
    get_phong_material_count,
    material_from_color,
)

__all__ = [
    # Colours
    "Color",
    "NONE",
    "BLACK",
    "RED",
    "GREEN",
    "BLUE",
    "YELLOW",
    "MAGENTA",
    "CYAN",
    "WHITE",
    "ORANGE",
    # Phong
    "PhongMaterial",
    "material_from_color",
    "add_phong_material",
    "clear_phong_materials",
    "get_phong_material",
    "get_phong_material_count",
    # Colour map
    "ColorMap",
    "ColorRange",
]
