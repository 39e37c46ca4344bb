"""Pytest configuration for ray tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene tables before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized first
    from src.tracer.geometry.volume import clear_volumes
    from src.tracer.materials.phong import clear_phong_materials
    from src.tracer.scene.intersection import clear_scene
    from src.tracer.scene.lights import clear_lights

    def _clear_all():
        clear_scene()
        clear_volumes()
        clear_phong_materials()
        clear_lights()

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def front_camera():
    """Camera at the origin looking down +z with +y up."""
    from src.tracer.camera.view_plane import Camera

    return Camera(
        position=(0.0, 0.0, 0.0),
        direction=(0.0, 0.0, 1.0),
        up=(0.0, 1.0, 0.0),
        view_plane_distance=1.0,
        view_plane_width=2.0,
        view_plane_height=2.0,
        front_plane_distance=0.0,
        back_plane_distance=1000.0,
    )
