"""Unit tests for volume file loading.

Tests cover:
- Metadata parsing with colon and whitespace separators
- Missing and malformed keys
- Raw density reading (exact, trailing bytes, short file)
- VolumeData validation and voxel lookup
"""

import numpy as np
import pytest


def _write_metadata(tmp_path, text, name="volume.dat"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestParseMetadata:
    """Tests for parse_metadata."""

    def test_colon_and_tabs(self, tmp_path):
        """Test the usual 'Key:<tab>values' layout."""
        from src.tracer.geometry.volume_io import parse_metadata

        path = _write_metadata(tmp_path, "Resolution:\t4 3 2\nSliceThickness:\t0.1 0.2 0.3\n")
        metadata = parse_metadata(path)
        assert metadata.resolution == (4, 3, 2)
        assert metadata.spacing == pytest.approx((0.1, 0.2, 0.3))
        assert metadata.voxel_count == 24

    def test_mixed_separators_and_extra_lines(self, tmp_path):
        """Test runs of spaces/colons are one separator and unknown keys are ignored."""
        from src.tracer.geometry.volume_io import parse_metadata

        text = "ObjectFileName: walnut.raw\n\nResolution : : 8   8 8\nSliceThickness 1 1 2\n"
        metadata = parse_metadata(_write_metadata(tmp_path, text))
        assert metadata.resolution == (8, 8, 8)
        assert metadata.spacing == pytest.approx((1.0, 1.0, 2.0))

    def test_missing_resolution(self, tmp_path):
        """Test a file without Resolution fails."""
        from src.tracer.geometry.volume_io import VolumeLoadError, parse_metadata

        path = _write_metadata(tmp_path, "SliceThickness: 1 1 1\n")
        with pytest.raises(VolumeLoadError, match="Resolution"):
            parse_metadata(path)

    def test_missing_slice_thickness(self, tmp_path):
        """Test a file without SliceThickness fails."""
        from src.tracer.geometry.volume_io import VolumeLoadError, parse_metadata

        path = _write_metadata(tmp_path, "Resolution: 1 1 1\n")
        with pytest.raises(VolumeLoadError, match="SliceThickness"):
            parse_metadata(path)

    @pytest.mark.parametrize(
        "text",
        [
            "Resolution: 4 4\nSliceThickness: 1 1 1\n",
            "Resolution: 4 four 4\nSliceThickness: 1 1 1\n",
            "Resolution: 4 0 4\nSliceThickness: 1 1 1\n",
            "Resolution: 4 4 4\nSliceThickness: 1 -1 1\n",
        ],
    )
    def test_malformed_values(self, tmp_path, text):
        """Test wrong counts, unparsable and non-positive values fail."""
        from src.tracer.geometry.volume_io import VolumeLoadError, parse_metadata

        with pytest.raises(VolumeLoadError):
            parse_metadata(_write_metadata(tmp_path, text))

    def test_volume_load_error_is_value_error(self):
        """Test callers catching ValueError also catch load failures."""
        from src.tracer.geometry.volume_io import VolumeLoadError

        assert issubclass(VolumeLoadError, ValueError)


class TestLoadVolume:
    """Tests for raw density reading and load_volume."""

    def test_load_volume(self, tmp_path):
        """Test metadata and raw data combine into VolumeData."""
        from src.tracer.geometry.volume_io import load_volume

        metadata = _write_metadata(tmp_path, "Resolution: 3 2 2\nSliceThickness: 0.5 0.5 0.5\n")
        raw = tmp_path / "volume.raw"
        raw.write_bytes(bytes(range(12)))

        data = load_volume(metadata, raw)
        assert data.resolution == (3, 2, 2)
        assert data.density.dtype == np.uint8
        # X fastest, Z slowest
        assert data.value(0, 0, 0) == 0
        assert data.value(2, 0, 0) == 2
        assert data.value(0, 1, 0) == 3
        assert data.value(0, 0, 1) == 6
        assert data.value(2, 1, 1) == 11

    def test_trailing_bytes_ignored(self, tmp_path):
        """Test extra bytes after the voxel data are ignored."""
        from src.tracer.geometry.volume_io import read_raw_density

        raw = tmp_path / "volume.raw"
        raw.write_bytes(bytes([1, 2, 3, 4, 5]))
        density = read_raw_density(raw, 4)
        assert density.tolist() == [1, 2, 3, 4]

    def test_short_raw_file(self, tmp_path):
        """Test a raw file with fewer bytes than voxels fails."""
        from src.tracer.geometry.volume_io import VolumeLoadError, load_volume

        metadata = _write_metadata(tmp_path, "Resolution: 2 2 2\nSliceThickness: 1 1 1\n")
        raw = tmp_path / "volume.raw"
        raw.write_bytes(bytes(7))
        with pytest.raises(VolumeLoadError):
            load_volume(metadata, raw)

    def test_missing_file(self, tmp_path):
        """Test a missing metadata file raises FileNotFoundError."""
        from src.tracer.geometry.volume_io import load_volume

        with pytest.raises(FileNotFoundError):
            load_volume(tmp_path / "nope.dat", tmp_path / "nope.raw")


class TestVolumeData:
    """Tests for VolumeData."""

    def test_density_length_must_match(self):
        """Test a density array of the wrong size is rejected."""
        from src.tracer.geometry.volume_io import VolumeData, VolumeLoadError

        with pytest.raises(VolumeLoadError):
            VolumeData(resolution=(2, 2, 2), spacing=(1.0, 1.0, 1.0), density=np.zeros(7, dtype=np.uint8))

    def test_value_outside_grid_is_zero(self):
        """Test out-of-range coordinates read as 0."""
        from src.tracer.geometry.volume_io import VolumeData

        data = VolumeData.from_grid(np.full((2, 2, 2), 9, dtype=np.uint8), spacing=(1.0, 1.0, 1.0))
        assert data.value(1, 1, 1) == 9
        assert data.value(-1, 0, 0) == 0
        assert data.value(0, 2, 0) == 0
        assert data.value(0, 0, 5) == 0

    def test_from_grid_axis_order(self):
        """Test from_grid takes a (Z, Y, X) array."""
        from src.tracer.geometry.volume_io import VolumeData

        grid = np.zeros((4, 3, 2), dtype=np.uint8)
        grid[3, 2, 1] = 5
        data = VolumeData.from_grid(grid, spacing=(1.0, 1.0, 1.0))
        assert data.resolution == (2, 3, 4)
        assert data.value(1, 2, 3) == 5
