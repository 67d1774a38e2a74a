"""Preview module for image output.

Components:
    export: Plain-text PPM and PNG encoders
"""

from raylight.preview.export import (
    format_ppm,
    save_image,
    save_png,
    save_ppm,
)

__all__ = [
    "format_ppm",
    "save_ppm",
    "save_png",
    "save_image",
]
