"""Taichi-based Phong ray tracer with volumetric rendering.

This package renders scenes of analytic quadrics and voxel volumes with
Taichi, with support for:
- Ellipsoids and spheres with arbitrary quaternion rotation
- Front-to-back ray marching of CT-style density volumes
- Phong shading with hard shadows from point lights
- Orbit animations rendered to numbered PNG frames

Subpackages:
    core: Rays, rotations, shading, frame rendering and animation
    geometry: Quadric and volume intersection, volume file loading
    materials: Phong materials, colour constants and colour maps
    scene: Scene tables, nearest-hit search, lights and scene management
    camera: View-plane camera with primary ray generation
    preview: PNG export
"""

__version__ = "0.1.0"
