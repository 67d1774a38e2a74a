"""Image export utilities for rendered images.

This module encodes 8-bit RGB images produced by the renderer.

Supported formats:
    - PPM (plain-text P3, maxval 255)
    - PNG (8-bit RGB via Pillow)

Images are NumPy arrays of shape (height, width, 3) with dtype uint8,
row 0 at the top.

Example:
    >>> from raylight.preview.export import save_image
    >>> from raylight.core.renderer import Renderer, RenderSettings
    >>>
    >>> renderer = Renderer(RenderSettings(width=400, height=225))
    >>> renderer.render()
    >>> save_image(renderer.get_image_uint8(), "output.ppm")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def _check_image(image: npt.NDArray[np.uint8]) -> None:
    """Raise ValueError unless image is a (H, W, 3) uint8 array."""
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (height, width, 3), got {image.shape}")
    if image.dtype != np.uint8:
        raise ValueError(f"Expected dtype uint8, got {image.dtype}")


def format_ppm(image: npt.NDArray[np.uint8]) -> str:
    """Encode an image as plain-text PPM (P3).

    The header is ``P3``, then ``width height``, then ``255``, each on its
    own line, followed by one ``"R G B"`` line per pixel in top-to-bottom,
    left-to-right order.

    Args:
        image: Array of shape (height, width, 3), dtype uint8.

    Returns:
        The PPM document, ending with a newline.

    Raises:
        ValueError: If the array has the wrong shape or dtype.
    """
    _check_image(image)
    height, width, _ = image.shape

    lines = ["P3", f"{width} {height}", "255"]
    for r, g, b in image.reshape(-1, 3).tolist():
        lines.append(f"{r} {g} {b}")
    return "\n".join(lines) + "\n"


def save_ppm(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image as a plain-text PPM file.

    Args:
        image: Array of shape (height, width, 3), dtype uint8.
        filepath: Output file path (should end in .ppm).
    """
    Path(filepath).write_text(format_ppm(image), encoding="ascii")
    logger.debug("Wrote PPM %s", filepath)


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image as an 8-bit RGB PNG file.

    Args:
        image: Array of shape (height, width, 3), dtype uint8.
        filepath: Output file path (should end in .png).
    """
    _check_image(image)
    pil_image = PILImage.fromarray(image)
    pil_image.save(filepath)
    logger.debug("Wrote PNG %s", filepath)


def save_image(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image, picking the encoder from the file extension.

    Raises:
        ValueError: If the extension is neither .ppm nor .png.
    """
    suffix = Path(filepath).suffix.lower()
    if suffix == ".ppm":
        save_ppm(image, filepath)
    elif suffix == ".png":
        save_png(image, filepath)
    else:
        raise ValueError(f"Unsupported image format '{suffix}', use .ppm or .png")
