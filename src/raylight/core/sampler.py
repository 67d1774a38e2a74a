"""Explicit random number generation for Monte Carlo sampling.

Each pixel owns an independent generator. The generator is a small Taichi
dataclass holding a 32-bit linear congruential state; every sampling function
takes it as a ``ti.template()`` argument so the state is advanced in place,
and the render kernel loads it from and stores it back to a per-pixel field.
Nothing here touches ``ti.random``, so a render is reproducible for a given
seed no matter how the parallel loop is scheduled across threads.

Host-side seeding uses NumPy's ``default_rng`` to draw one starting state per
pixel from a single user seed.

Example:
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     rng = Rng(state=12345)
    ...     return random_float(rng)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from raylight.core.ray import length_squared, normalize, vec3

# Numerical Recipes LCG constants (both fit in a signed 32-bit literal)
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223

# 2^-32, maps a u32 state onto [0, 1)
_INV_U32_RANGE = 2.3283064365386963e-10

# Largest f32 strictly below 1.0
_ONE_MINUS_EPSILON = 0.99999994

# Rejection sampling iteration cap
_MAX_REJECTION_TRIES = 100


@ti.dataclass
class Rng:
    """Per-pixel pseudo-random generator state.

    Attributes:
        state: The current 32-bit generator state.
    """

    state: ti.u32


@ti.func
def random_float(rng: ti.template()) -> ti.f32:
    """Draw a uniform float in [0, 1) and advance the generator.

    Args:
        rng: The generator to advance (modified in place).

    Returns:
        A uniformly distributed value in [0, 1).
    """
    rng.state = rng.state * ti.cast(LCG_MULTIPLIER, ti.u32) + ti.cast(LCG_INCREMENT, ti.u32)
    # u32 -> f32 rounds to nearest, so the top of the range can round up to 1.0
    return tm.min(ti.cast(rng.state, ti.f32) * _INV_U32_RANGE, _ONE_MINUS_EPSILON)


@ti.func
def random_range(rng: ti.template(), low: ti.f32, high: ti.f32) -> ti.f32:
    """Draw a uniform float in [low, high)."""
    return low + (high - low) * random_float(rng)


@ti.func
def random_in_unit_sphere(rng: ti.template()) -> vec3:
    """Generate a random point inside the unit sphere.

    Uses rejection sampling on the [-1, 1)^3 cube.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(_MAX_REJECTION_TRIES):
        if not found:
            x = random_range(rng, -1.0, 1.0)
            y = random_range(rng, -1.0, 1.0)
            z = random_range(rng, -1.0, 1.0)
            p = vec3(x, y, z)
            if length_squared(p) < 1.0:
                found = True
    return p


@ti.func
def random_unit_vector(rng: ti.template()) -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    return normalize(random_in_unit_sphere(rng))


@ti.func
def random_in_unit_disk(rng: ti.template()) -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used to sample the thin-lens aperture for depth of field.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(_MAX_REJECTION_TRIES):
        if not found:
            x = random_range(rng, -1.0, 1.0)
            y = random_range(rng, -1.0, 1.0)
            p = vec3(x, y, 0.0)
            if x * x + y * y < 1.0:
                found = True
    return p


def make_seed_states(seed: int, width: int, height: int) -> npt.NDArray[np.uint32]:
    """Draw one independent generator state per pixel.

    Args:
        seed: The user-level seed for the whole image.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        Array of shape (width, height) with dtype uint32.
    """
    host_rng = np.random.default_rng(seed)
    return host_rng.integers(0, 2**32, size=(width, height), dtype=np.uint32)
