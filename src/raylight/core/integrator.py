"""Monte Carlo radiance estimator and per-pixel rendering kernels.

This module implements the light transport loop and the image buffers it
fills. For each camera ray, ``ray_color`` follows a single scattering chain
through the scene: at every hit the material either absorbs the path or
scatters it with an attenuation, and a path that escapes the scene picks up
the sky gradient weighted by the product of all attenuations along the way.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Bounded path length via an explicit depth counter (no recursion)
    - Per-pixel generator state persisted between sample batches
    - Progressive accumulation of sample sums

The kernel parallelizes over pixels. Each pixel reads the shared scene,
material, and camera fields and writes only its own slots of the sum,
count, and generator-state buffers.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raylight.core.integrator import render_image, setup_render_target
    >>> from raylight.scene.presets import create_two_sphere_scene
    >>> from raylight.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_two_sphere_scene(aspect_ratio=16.0 / 9.0)
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225, seed=7)
    >>> render_image(num_samples=100, max_depth=50)
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from raylight.camera.thin_lens import get_ray
from raylight.core.sampler import Rng, make_seed_states, random_float
from raylight.materials.dielectric import scatter_dielectric_by_id
from raylight.materials.lambertian import scatter_lambertian_by_id
from raylight.materials.metal import scatter_metal_by_id
from raylight.scene.intersection import intersect_scene
from raylight.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum ray bounces (path length)
MAX_DEPTH = 50

# Lower bound of the hit interval; skips the previous bounce's own surface
T_MIN = 0.001

# Upper bound of the hit interval (largest finite f32)
T_MAX = 3.4028234663852886e38

# Sky gradient endpoints
SKY_HORIZON_COLOR = (1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = (0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Sum of radiance samples per pixel, indexed [x, y] with y = 0 the top row
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Generator state per pixel
_rng_state = ti.field(dtype=ti.u32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Seed of the current render target
_seed = 0


def setup_render_target(width: int, height: int, seed: int = 0) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions, clears the accumulation buffers and
    seeds one generator per pixel.

    Args:
        width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).
        seed: Seed for the per-pixel generators.

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    global _seed

    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    _seed = seed

    clear_render_target()


def clear_render_target() -> None:
    """Clear the accumulation buffers and reseed the per-pixel generators.

    After clearing, rendering the same scene again reproduces the same
    image.
    """
    _color_sum.fill(0.0)
    _sample_count.fill(0)
    if _render_target_initialized[None] == 1:
        width, height = get_image_dimensions()
        _seed_pixels(make_seed_states(_seed, width, height), width, height)


@ti.kernel
def _seed_pixels(states: ti.types.ndarray(), width: ti.i32, height: ti.i32):
    for x, y in ti.ndrange(width, height):
        _rng_state[x, y] = ti.cast(states[x, y], ti.u32)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.template(),
):
    """Dispatch to the scattering function of the hit material.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). An
        unknown material absorbs the path.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal, rng
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, rng
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, rng
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Radiance Estimator
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Vertical sky gradient seen by rays that escape the scene.

    Blends from white at the horizon (and below) to light blue overhead
    based on the y component of the normalized direction.
    """
    unit_direction = tm.normalize(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - a) * vec3(SKY_HORIZON_COLOR) + a * vec3(SKY_ZENITH_COLOR)


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32, rng: ti.template()) -> vec3:
    """Estimate the radiance arriving along a ray.

    Iterative form of the recursive estimator: each bounce consumes one unit
    of depth and multiplies the path throughput by the material attenuation.

    - depth exhausted: black (no more light gathered)
    - hit in [T_MIN, T_MAX] and absorbed: black
    - hit and scattered: continue from the hit point
    - miss: throughput * background_color(direction)

    Args:
        origin: Ray origin.
        direction: Ray direction (any length).
        max_depth: Maximum number of ray segments to trace. <= 0 gives black.
        rng: The per-pixel generator (advanced in place).

    Returns:
        The estimated linear RGB radiance.
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction

    # Active flag for path continuation (single return at end of ti.func)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            hit_record = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                # Ray escaped
                radiance = throughput * background_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    hit_record.material_id,
                    ray_direction,
                    hit_record.normal,
                    hit_record.front_face,
                    rng,
                )

                if did_scatter == 0:
                    # Absorbed
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = hit_record.point
                    ray_direction = scattered_direction

    return radiance


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace NaN/Inf channels (degenerate geometry) with zero."""
    result = color
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    return result


@ti.func
def _pixel_coordinates(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    rng: ti.template(),
):
    """Jittered normalized image coordinates (s, t) for pixel (x, y).

    y = 0 is the top row, which maps to t = 1. A one-pixel dimension uses
    a denominator of 1 instead of 0.
    """
    s_scale = ti.cast(tm.max(width - 1, 1), ti.f32)
    t_scale = ti.cast(tm.max(height - 1, 1), ti.f32)
    s = (ti.cast(x, ti.f32) + random_float(rng)) / s_scale
    t = (ti.cast(height - 1 - y, ti.f32) + random_float(rng)) / t_scale
    return s, t


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_samples(width: ti.i32, height: ti.i32, num_samples: ti.i32, max_depth: ti.i32):
    """Add num_samples radiance samples to every pixel.

    Each pixel is an independent unit of work: it loads its own generator,
    traces its samples serially, and writes back only its own slots.
    """
    for x, y in ti.ndrange(width, height):
        rng = Rng(state=_rng_state[x, y])
        color_sum = vec3(0.0, 0.0, 0.0)

        for _ in range(num_samples):
            s, t = _pixel_coordinates(x, y, width, height, rng)
            ray = get_ray(s, t, rng)
            color_sum += _sanitize(ray_color(ray.origin, ray.direction, max_depth, rng))

        _color_sum[x, y] += color_sum
        _sample_count[x, y] += num_samples
        _rng_state[x, y] = rng.state


@ti.kernel
def _evaluate_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    max_depth: ti.i32,
    seed: ti.u32,
) -> vec3:
    """Run the radiance estimator for a single ray."""
    rng = Rng(state=seed)
    return ray_color(vec3(ox, oy, oz), vec3(dx, dy, dz), max_depth, rng)


# =============================================================================
# Public Rendering API
# =============================================================================


def evaluate_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Estimate the radiance along one ray from Python.

    Useful for testing and debugging the estimator without a render target.
    Uses the currently loaded scene.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z), any non-zero length.
        max_depth: Maximum path length.
        seed: Generator seed for this evaluation.

    Returns:
        Tuple of (R, G, B) linear radiance.
    """
    color = _evaluate_ray(
        origin[0],
        origin[1],
        origin[2],
        direction[0],
        direction[1],
        direction[2],
        max_depth,
        seed % 2**32,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1, max_depth: int = MAX_DEPTH) -> None:
    """Add samples to every pixel of the render target.

    Can be called repeatedly; samples accumulate. Because each pixel's
    generator state is kept between calls, rendering N samples at once or
    in several smaller calls gives the same sums.

    Args:
        num_samples: Number of samples to add per pixel.
        max_depth: Maximum path length for each sample.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If num_samples < 1 or max_depth < 0.
    """
    _check_render_target_initialized()
    if num_samples < 1:
        raise ValueError(f"num_samples must be at least 1, got {num_samples}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")

    width, height = get_image_dimensions()
    logger.debug("Rendering %d samples per pixel at %dx%d", num_samples, width, height)
    _render_samples(width, height, num_samples, max_depth)


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_mean_image_numpy() -> npt.NDArray[np.float32]:
    """Get the per-pixel mean radiance as a NumPy array.

    The array shape is (height, width, 3), row 0 is the top of the image,
    and values are linear (no gamma, no clamping). Pixels without samples
    are black.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    sums = _color_sum.to_numpy()[:width, :height, :]
    counts = _sample_count.to_numpy()[:width, :height]

    mean = np.zeros_like(sums)
    np.divide(sums, counts[:, :, np.newaxis], out=mean, where=counts[:, :, np.newaxis] > 0)

    # Transpose from (width, height, 3) to (height, width, 3)
    return np.transpose(mean, (1, 0, 2)).astype(np.float32)


def quantize_image(mean_image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert linear mean radiance to 8-bit channels.

    Applies gamma 2 (square root), clamps to [0, 0.999] and maps to
    floor(256 * value), so every channel lands in [0, 255].

    Args:
        mean_image: Linear radiance array of any shape.

    Returns:
        Array of the same shape with dtype uint8.
    """
    corrected = np.sqrt(np.maximum(mean_image, 0.0))
    clamped = np.clip(corrected, 0.0, 0.999)
    return np.floor(256.0 * clamped).astype(np.uint8)


def get_image_uint8() -> npt.NDArray[np.uint8]:
    """Get the rendered image as gamma-corrected 8-bit RGB.

    Returns:
        Array of shape (height, width, 3), dtype uint8, row 0 at the top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    return quantize_image(get_mean_image_numpy())
