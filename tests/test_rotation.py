"""Unit tests for quaternion rotation.

Tests cover:
- Axis-angle construction and normalization
- Host-side vector rotation
- Conjugate as inverse rotation
- Kernel-side rotation matching the host side
"""

import math

import pytest
import taichi as ti


def _close(a, b, tol=1e-9):
    return all(abs(x - y) < tol for x, y in zip(a, b))


class TestHostRotation:
    """Tests for host-side quaternion helpers."""

    def test_identity_leaves_vector_unchanged(self):
        """Test the identity rotation is a no-op."""
        from src.tracer.core.rotation import IDENTITY_ROTATION, rotate_vector

        assert _close(rotate_vector(IDENTITY_ROTATION, (1.0, -2.0, 3.0)), (1.0, -2.0, 3.0))

    def test_quarter_turn_about_z(self):
        """Test 90 degrees about +z maps +x to +y."""
        from src.tracer.core.rotation import quaternion_from_axis_angle, rotate_vector

        q = quaternion_from_axis_angle(math.pi / 2.0, (0.0, 0.0, 1.0))
        assert _close(rotate_vector(q, (1.0, 0.0, 0.0)), (0.0, 1.0, 0.0))

    def test_axis_is_normalized(self):
        """Test an unnormalized axis gives a unit quaternion."""
        from src.tracer.core.rotation import quaternion_from_axis_angle

        q = quaternion_from_axis_angle(1.0, (0.0, 5.0, 0.0))
        assert abs(sum(c * c for c in q) - 1.0) < 1e-12

    def test_zero_axis_gives_identity(self):
        """Test a zero axis yields the identity."""
        from src.tracer.core.rotation import IDENTITY_ROTATION, quaternion_from_axis_angle

        assert quaternion_from_axis_angle(1.0, (0.0, 0.0, 0.0)) == IDENTITY_ROTATION

    def test_conjugate_undoes_rotation(self):
        """Test rotating by q then by its conjugate restores the vector."""
        from src.tracer.core.rotation import (
            quaternion_conjugate,
            quaternion_from_axis_angle,
            rotate_vector,
        )

        q = quaternion_from_axis_angle(0.7, (1.0, 2.0, 3.0))
        v = (4.0, -1.0, 2.5)
        restored = rotate_vector(quaternion_conjugate(q), rotate_vector(q, v))
        assert _close(restored, v)

    def test_multiply_composes_rotations(self):
        """Test a*b applies b first, then a."""
        from src.tracer.core.rotation import (
            quaternion_from_axis_angle,
            quaternion_multiply,
            rotate_vector,
        )

        a = quaternion_from_axis_angle(0.4, (0.0, 1.0, 0.0))
        b = quaternion_from_axis_angle(1.1, (1.0, 0.0, 0.0))
        v = (0.3, 0.5, -2.0)
        expected = rotate_vector(a, rotate_vector(b, v))
        assert _close(rotate_vector(quaternion_multiply(a, b), v), expected)

    def test_normalize_zero_quaternion_raises(self):
        """Test a zero quaternion cannot be normalized."""
        from src.tracer.core.rotation import normalize_quaternion

        with pytest.raises(ValueError):
            normalize_quaternion((0.0, 0.0, 0.0, 0.0))

    def test_is_identity(self):
        """Test identity detection."""
        from src.tracer.core.rotation import is_identity, quaternion_from_axis_angle

        assert is_identity((1.0, 0.0, 0.0, 0.0))
        assert not is_identity(quaternion_from_axis_angle(0.1, (0.0, 0.0, 1.0)))


class TestKernelRotation:
    """Tests for kernel-side rotation."""

    def test_quat_rotate_matches_host(self):
        """Test quat_rotate agrees with rotate_vector."""
        from src.tracer.core.rotation import quat_rotate, quaternion_from_axis_angle, rotate_vector, vec3, vec4

        q = quaternion_from_axis_angle(1.3, (0.2, -1.0, 0.5))
        v = (1.0, 2.0, 3.0)
        expected = rotate_vector(q, v)

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = quat_rotate(vec4(q[0], q[1], q[2], q[3]), vec3(v[0], v[1], v[2]))

        test_kernel()
        r = result[None]
        for i in range(3):
            assert abs(r[i] - expected[i]) < 1e-5

    def test_quat_conjugate_round_trip(self):
        """Test rotating by q then its conjugate restores the vector."""
        from src.tracer.core.rotation import quat_conjugate, quat_rotate, quaternion_from_axis_angle, vec3, vec4

        q = quaternion_from_axis_angle(2.0, (1.0, 1.0, 0.0))
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            quat = vec4(q[0], q[1], q[2], q[3])
            v = vec3(-3.0, 0.5, 2.0)
            result[None] = quat_rotate(quat_conjugate(quat), quat_rotate(quat, v))

        test_kernel()
        r = result[None]
        assert abs(r[0] + 3.0) < 1e-5
        assert abs(r[1] - 0.5) < 1e-5
        assert abs(r[2] - 2.0) < 1e-5

    def test_quat_is_identity(self):
        """Test identity detection inside a kernel."""
        from src.tracer.core.rotation import quat_is_identity, vec4

        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = quat_is_identity(vec4(1.0, 0.0, 0.0, 0.0))
            result[1] = quat_is_identity(vec4(0.0, 1.0, 0.0, 0.0))

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0
