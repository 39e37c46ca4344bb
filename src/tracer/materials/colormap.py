"""Piecewise colour lookup table for voxel densities.

A ColorMap is an ordered list of inclusive density ranges, each mapped to an
RGBA colour. Lookup is a linear scan returning the first matching range; a
density that matches no range maps to the fully transparent NONE colour.

The alpha channel of each colour is the opacity used by volume compositing,
so a range with alpha 0 renders as empty space.

Example:
    >>> from src.tracer.materials.colormap import ColorMap
    >>> walnut = (
    ...     ColorMap()
    ...     .add(1, 1, (0.36, 0.26, 0.16, 0.1))
    ...     .add(2, 2, (0.87, 0.72, 0.52, 0.8))
    ... )
    >>> walnut.get_color(2)
    (0.87, 0.72, 0.52, 0.8)
"""

from dataclasses import dataclass

from src.tracer.materials.phong import NONE, Color, validate_color


@dataclass(frozen=True)
class ColorRange:
    """A single inclusive density range and its colour."""

    low: int
    high: int
    color: Color


class ColorMap:
    """Ordered density-range to colour table."""

    def __init__(self) -> None:
        self._ranges: list[ColorRange] = []

    def add(self, low: int, high: int, color: Color) -> "ColorMap":
        """Append a range. Returns self so calls can be chained.

        Raises:
            ValueError: If low > high or the colour is not RGBA.
        """
        if low > high:
            raise ValueError(f"Invalid density range: low ({low}) > high ({high})")
        self._ranges.append(ColorRange(int(low), int(high), validate_color(color)))
        return self

    def get_color(self, value: int) -> Color:
        """Return the colour of the first range containing value, else NONE."""
        for entry in self._ranges:
            if entry.low <= value <= entry.high:
                return entry.color
        return NONE

    @property
    def ranges(self) -> tuple[ColorRange, ...]:
        """The ranges in lookup order."""
        return tuple(self._ranges)

    def __len__(self) -> int:
        return len(self._ranges)

    def __repr__(self) -> str:
        return f"ColorMap(ranges={len(self._ranges)})"
