"""Unit tests for the view-plane camera.

Tests cover:
- Pixel to view-plane mapping
- Basis normalization and re-orthogonalization
- Primary rays through the center and corner pixels
- Orbit camera placement
"""

import math

import numpy as np
import pytest
import taichi as ti


def _primary_ray(i, j, width, height):
    from src.tracer.camera.view_plane import get_primary_ray

    origin = ti.field(dtype=ti.math.vec3, shape=())
    direction = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel():
        ray = get_primary_ray(i, j, width, height)
        origin[None] = ray.origin
        direction[None] = ray.direction

    test_kernel()
    o = origin[None]
    d = direction[None]
    return (o[0], o[1], o[2]), (d[0], d[1], d[2])


class TestImageToViewPlane:
    """Tests for the pixel to view-plane mapping."""

    def test_center_pixel_maps_to_zero(self):
        """Test the middle of the image lands on the view axis."""
        from src.tracer.camera.view_plane import image_to_view_plane

        assert image_to_view_plane(400, 800, 160.0) == pytest.approx(0.0)
        assert image_to_view_plane(300, 600, 120.0) == pytest.approx(0.0)

    def test_first_pixel_maps_to_positive_edge(self):
        """Test pixel 0 lands on the positive edge of the plane."""
        from src.tracer.camera.view_plane import image_to_view_plane

        assert image_to_view_plane(0, 800, 160.0) == pytest.approx(80.0)
        assert image_to_view_plane(800, 800, 160.0) == pytest.approx(-80.0)


class TestNormalizeCamera:
    """Tests for normalize_camera."""

    def test_orthonormal_basis(self, front_camera):
        """Test a tilted, unnormalized up becomes perpendicular and unit."""
        from dataclasses import replace

        from src.tracer.camera.view_plane import normalize_camera

        camera = normalize_camera(replace(front_camera, direction=(0.0, 0.0, 5.0), up=(0.0, 3.0, 3.0)))
        d = np.array(camera.direction)
        u = np.array(camera.up)
        assert np.linalg.norm(d) == pytest.approx(1.0)
        assert np.linalg.norm(u) == pytest.approx(1.0)
        assert np.dot(d, u) == pytest.approx(0.0, abs=1e-12)
        assert u == pytest.approx((0.0, 1.0, 0.0))

    def test_original_camera_unchanged(self, front_camera):
        """Test normalization returns a new value."""
        from dataclasses import replace

        from src.tracer.camera.view_plane import normalize_camera

        camera = replace(front_camera, direction=(0.0, 0.0, 2.0))
        normalize_camera(camera)
        assert camera.direction == (0.0, 0.0, 2.0)


class TestPrimaryRays:
    """Tests for primary ray generation."""

    def test_center_pixel_looks_forward(self, front_camera):
        """Test the center pixel ray follows the view direction."""
        from src.tracer.camera.view_plane import setup_camera

        setup_camera(front_camera)
        origin, direction = _primary_ray(50, 50, 100, 100)
        assert origin == pytest.approx((0.0, 0.0, 0.0))
        assert direction == pytest.approx((0.0, 0.0, 1.0), abs=1e-6)

    def test_first_pixel_direction(self, front_camera):
        """Test pixel (0, 0) passes through position + d + right + up."""
        from src.tracer.camera.view_plane import setup_camera

        setup_camera(front_camera)
        _, direction = _primary_ray(0, 0, 100, 100)
        # right = up x direction = (1, 0, 0)
        s = 1.0 / math.sqrt(3.0)
        assert direction == pytest.approx((s, s, s), abs=1e-6)

    def test_rays_are_unit_length(self, front_camera):
        """Test primary ray directions are normalized."""
        from dataclasses import replace

        from src.tracer.camera.view_plane import setup_camera

        setup_camera(replace(front_camera, position=(3.0, -2.0, 1.0), view_plane_width=7.0))
        for i, j in [(0, 0), (13, 77), (99, 99)]:
            _, direction = _primary_ray(i, j, 100, 100)
            assert math.sqrt(sum(c * c for c in direction)) == pytest.approx(1.0, abs=1e-6)

    def test_clip_range(self, front_camera):
        """Test the clip range comes from the front and back planes."""
        from dataclasses import replace

        from src.tracer.camera.view_plane import get_clip_range, setup_camera

        setup_camera(replace(front_camera, front_plane_distance=2.0, back_plane_distance=50.0))
        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            front, back = get_clip_range()
            result[0] = front
            result[1] = back

        test_kernel()
        assert result[0] == pytest.approx(2.0)
        assert result[1] == pytest.approx(50.0)

    def test_camera_info(self, front_camera):
        """Test the uploaded basis can be read back."""
        from src.tracer.camera.view_plane import get_camera_info, setup_camera

        setup_camera(front_camera)
        info = get_camera_info()
        assert info["right"] == pytest.approx((1.0, 0.0, 0.0))
        assert info["up"] == pytest.approx((0.0, 1.0, 0.0))


class TestOrbitCamera:
    """Tests for orbit camera placement."""

    def test_zero_angle(self):
        """Test angle 0 looks along the first direction."""
        from src.tracer.camera.view_plane import orbit_camera

        camera = orbit_camera((0.0, -5.0, 100.0), (0.0, -1.0, 0.0), (0.0, 0.0, 1.0), 95.0, 0.0)
        assert camera.position == pytest.approx((0.0, -5.0, 5.0))
        assert camera.direction == pytest.approx((0.0, 0.0, 1.0))
        assert camera.view_plane_width == 160.0
        assert camera.back_plane_distance == 1000.0

    def test_quarter_turn(self):
        """Test a quarter turn about -y swings the view to -x."""
        from src.tracer.camera.view_plane import orbit_camera

        camera = orbit_camera((0.0, -5.0, 100.0), (0.0, -1.0, 0.0), (0.0, 0.0, 1.0), 95.0, math.pi / 2.0)
        assert camera.direction == pytest.approx((-1.0, 0.0, 0.0), abs=1e-12)
        assert camera.position == pytest.approx((95.0, -5.0, 100.0))

    def test_orbit_cameras_keep_distance(self):
        """Test every orbit camera sits at the same distance from the center."""
        from src.tracer.camera.view_plane import orbit_cameras

        center = (0.0, -5.0, 100.0)
        cameras = orbit_cameras(center, (0.0, -1.0, 0.0), (0.0, 0.0, 1.0), 95.0, 8)
        assert len(cameras) == 8
        for camera in cameras:
            offset = np.array(camera.position) - np.array(center)
            assert np.linalg.norm(offset) == pytest.approx(95.0)

    def test_orbit_cameras_requires_frames(self):
        """Test zero frames is rejected."""
        from src.tracer.camera.view_plane import orbit_cameras

        with pytest.raises(ValueError):
            orbit_cameras((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0), 1.0, 0)
