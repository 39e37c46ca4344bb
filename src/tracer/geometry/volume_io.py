"""Loading of volume fields from metadata and raw density files.

A volume is described by two files:

* a text metadata file, one key per line, tokens separated by any run of
  whitespace and/or colons::

      Resolution:     256 256 256
      SliceThickness: 0.1 0.1 0.1

  Resolution gives the voxel counts (X, Y, Z) and SliceThickness the
  physical spacing between samples along each axis. Other lines are ignored.

* a raw binary file of exactly X*Y*Z bytes, one density byte per voxel,
  X varying fastest and Z slowest.

Any missing or malformed key, or a raw file shorter than the voxel count,
raises VolumeLoadError. The error is not recovered here; scene construction
is expected to abort.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

_TOKEN_SEPARATOR = re.compile(r"[:\s]+")


class VolumeLoadError(ValueError):
    """Raised when volume metadata or raw data cannot be loaded."""


@dataclass(frozen=True)
class VolumeMetadata:
    """Grid description read from a metadata file.

    Attributes:
        resolution: Voxel counts along X, Y and Z.
        spacing: Physical distance between samples along X, Y and Z.
    """

    resolution: tuple[int, int, int]
    spacing: tuple[float, float, float]

    @property
    def voxel_count(self) -> int:
        """Total number of voxels in the grid."""
        return self.resolution[0] * self.resolution[1] * self.resolution[2]


@dataclass(frozen=True, eq=False)
class VolumeData:
    """A loaded density grid.

    Attributes:
        resolution: Voxel counts along X, Y and Z.
        spacing: Physical distance between samples along X, Y and Z.
        density: Flat uint8 array of length X*Y*Z, X fastest, Z slowest.
    """

    resolution: tuple[int, int, int]
    spacing: tuple[float, float, float]
    density: npt.NDArray[np.uint8]

    def __post_init__(self) -> None:
        if len(self.resolution) != 3 or any(n <= 0 for n in self.resolution):
            raise VolumeLoadError(f"Resolution must be three positive integers, got {self.resolution}")
        if len(self.spacing) != 3 or any(s <= 0.0 for s in self.spacing):
            raise VolumeLoadError(f"Spacing must be three positive numbers, got {self.spacing}")
        if self.density.ndim != 1 or self.density.size != self.voxel_count:
            raise VolumeLoadError(
                f"Density must be a flat array of {self.voxel_count} voxels, "
                f"got shape {self.density.shape}"
            )

    @property
    def voxel_count(self) -> int:
        """Total number of voxels in the grid."""
        return self.resolution[0] * self.resolution[1] * self.resolution[2]

    def value(self, x: int, y: int, z: int) -> int:
        """Density at integer voxel coordinates; 0 outside the grid."""
        nx, ny, nz = self.resolution
        if x < 0 or y < 0 or z < 0 or x >= nx or y >= ny or z >= nz:
            return 0
        return int(self.density[(z * ny + y) * nx + x])

    @classmethod
    def from_grid(
        cls, grid: npt.NDArray[np.integer], spacing: tuple[float, float, float]
    ) -> "VolumeData":
        """Build a volume from a (Z, Y, X) indexed 3D array."""
        if grid.ndim != 3:
            raise VolumeLoadError(f"Grid must be 3-dimensional, got {grid.ndim} dimensions")
        nz, ny, nx = grid.shape
        density = np.ascontiguousarray(grid, dtype=np.uint8).reshape(-1)
        return cls(resolution=(nx, ny, nz), spacing=tuple(spacing), density=density)


def _parse_triple(tokens: list[str], key: str, convert, path: Path):
    if len(tokens) < 4:
        raise VolumeLoadError(f"{path}: {key} needs 3 values, got {len(tokens) - 1}")
    try:
        return tuple(convert(tok) for tok in tokens[1:4])
    except ValueError as e:
        raise VolumeLoadError(f"{path}: malformed {key} value: {e}") from e


def parse_metadata(path: str | Path) -> VolumeMetadata:
    """Read Resolution and SliceThickness from a metadata file.

    Raises:
        FileNotFoundError: If the file does not exist.
        VolumeLoadError: If a key is missing or malformed.
    """
    path = Path(path)
    resolution = None
    spacing = None

    with path.open("r", encoding="utf-8") as f:
        for line in f:
            tokens = [tok for tok in _TOKEN_SEPARATOR.split(line.strip()) if tok]
            if not tokens:
                continue
            if tokens[0] == "Resolution":
                resolution = _parse_triple(tokens, "Resolution", int, path)
            elif tokens[0] == "SliceThickness":
                spacing = _parse_triple(tokens, "SliceThickness", float, path)

    if resolution is None:
        raise VolumeLoadError(f"{path}: missing Resolution")
    if spacing is None:
        raise VolumeLoadError(f"{path}: missing SliceThickness")
    if any(n <= 0 for n in resolution):
        raise VolumeLoadError(f"{path}: Resolution must be positive, got {resolution}")
    if any(s <= 0.0 for s in spacing):
        raise VolumeLoadError(f"{path}: SliceThickness must be positive, got {spacing}")

    return VolumeMetadata(resolution=resolution, spacing=spacing)


def read_raw_density(path: str | Path, voxel_count: int) -> npt.NDArray[np.uint8]:
    """Read exactly voxel_count density bytes from a raw file.

    Trailing bytes beyond voxel_count are ignored.

    Raises:
        FileNotFoundError: If the file does not exist.
        VolumeLoadError: If the file holds fewer than voxel_count bytes.
    """
    path = Path(path)
    density = np.fromfile(path, dtype=np.uint8, count=voxel_count)
    if density.size != voxel_count:
        raise VolumeLoadError(
            f"Failed to read the {voxel_count}-byte raw data from {path} "
            f"(got {density.size} bytes)"
        )
    return density


def load_volume(metadata_path: str | Path, raw_path: str | Path) -> VolumeData:
    """Load a volume from its metadata and raw density files.

    Raises:
        FileNotFoundError: If either file does not exist.
        VolumeLoadError: If the metadata or raw data is invalid.
    """
    try:
        metadata = parse_metadata(metadata_path)
        density = read_raw_density(raw_path, metadata.voxel_count)
    except VolumeLoadError:
        logger.error("Failed to load volume from %s / %s", metadata_path, raw_path)
        raise

    logger.info(
        "Loaded volume %s: resolution=%s spacing=%s",
        metadata_path,
        metadata.resolution,
        metadata.spacing,
    )
    return VolumeData(
        resolution=metadata.resolution,
        spacing=metadata.spacing,
        density=density,
    )
