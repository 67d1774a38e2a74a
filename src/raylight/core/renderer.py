"""Renderer with progressive sample accumulation.

This module wraps the integrator kernels in a small object that owns the
render settings. It supports:
- Rendering all samples at once or in batches
- Progress callbacks and a generator interface
- Reset and re-render with the same seed

Because every pixel keeps its own generator state between batches, the
final image depends only on the scene, the camera and the settings, never
on how the samples were split into batches.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raylight.core.renderer import Renderer, RenderSettings
    >>> from raylight.scene.presets import create_random_scene
    >>> from raylight.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(seed=0)
    >>> setup_camera(camera)
    >>>
    >>> renderer = Renderer(RenderSettings(width=300, height=200, samples_per_pixel=10))
    >>> renderer.render()
    >>> image = renderer.get_image_uint8()
"""

import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import numpy.typing as npt

from raylight.core.integrator import (
    MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    clear_render_target,
    get_image_uint8,
    get_mean_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class RenderSettings:
    """Image and sampling parameters for a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of ray segments per path.
        seed: Seed for the per-pixel generators.

    Raises:
        ValueError: If any parameter is out of range.
    """

    width: int
    height: int
    samples_per_pixel: int = 100
    max_depth: int = MAX_DEPTH
    seed: int = 0

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")

    @classmethod
    def from_aspect_ratio(
        cls,
        width: int,
        aspect_ratio: float,
        *,
        samples_per_pixel: int = 100,
        max_depth: int = MAX_DEPTH,
        seed: int = 0,
    ) -> "RenderSettings":
        """Build settings whose height follows from width / aspect_ratio.

        The height is rounded down and never less than one pixel.
        """
        if aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
        height = max(1, int(width / aspect_ratio))
        return cls(
            width=width,
            height=height,
            samples_per_pixel=samples_per_pixel,
            max_depth=max_depth,
            seed=seed,
        )


class Renderer:
    """Progressive renderer over the module-level integrator buffers.

    There is one render target per process; creating a Renderer sets it up
    for the given settings and clears any previous accumulation.

    Attributes:
        settings: The RenderSettings in use.
    """

    def __init__(self, settings: RenderSettings) -> None:
        """Initialize the renderer and its render target.

        Args:
            settings: Image size, sampling parameters and seed.
        """
        self.settings = settings
        setup_render_target(settings.width, settings.height, seed=settings.seed)
        logger.debug("Render target set up: %r", settings)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Discard accumulated samples and reseed every pixel.

        Rendering again after a reset reproduces the same image.
        """
        clear_render_target()

    def render(
        self,
        num_samples: int | None = None,
        batch_size: int | None = None,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Accumulate samples, optionally reporting progress after each batch.

        Can be called multiple times to keep refining the image.

        Args:
            num_samples: Samples to add per pixel. Defaults to
                settings.samples_per_pixel.
            batch_size: Samples per kernel launch. Defaults to all at once.
            callback: Optional function called after each batch with
                (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int | None = None,
        batch_size: int | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Accumulate samples, yielding progress after each batch.

        Args:
            num_samples: Samples to add per pixel. Defaults to
                settings.samples_per_pixel.
            batch_size: Samples per kernel launch. Defaults to all at once.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If num_samples or batch_size is less than 1.
        """
        if num_samples is None:
            num_samples = self.settings.samples_per_pixel
        if batch_size is None:
            batch_size = num_samples
        if num_samples < 1:
            raise ValueError(f"num_samples must be at least 1, got {num_samples}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self.settings.max_depth)
            remaining -= batch
            yield (self.sample_count, target_samples)

        logger.info(
            "Rendered %dx%d at %d samples per pixel",
            self.width,
            self.height,
            self.sample_count,
        )

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the linear mean radiance, shape (height, width, 3)."""
        return get_mean_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the gamma-corrected 8-bit image, shape (height, width, 3)."""
        return get_image_uint8()

    def save_image(self, filepath: str | Path) -> None:
        """Save the rendered image, choosing the encoder from the suffix.

        Args:
            filepath: Output path ending in ".ppm" or ".png".

        Raises:
            ValueError: If the file extension is not supported.
        """
        from raylight.preview.export import save_image

        save_image(self.get_image_uint8(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count}, seed={self.settings.seed})"
        )
