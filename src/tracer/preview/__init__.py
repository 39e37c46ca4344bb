"""Preview module for image output.

Components:
    export: PNG pixel sink and array export via Pillow
"""

from src.tracer.preview.export import PngImage, channel_to_byte, image_to_uint8, save_png

__all__ = [
    "PngImage",
    "save_png",
    "image_to_uint8",
    "channel_to_byte",
]
