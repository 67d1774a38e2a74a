"""Core rendering module.

Components:
    ray: Ray data structure and vector helpers
    sampler: Per-pixel random number generator and sampling routines
    integrator: Radiance estimator and per-pixel rendering kernels
    renderer: Render settings and the progressive Renderer

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)
from .sampler import (
    Rng,
    make_seed_states,
    random_float,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    random_unit_vector,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from raylight.core.integrator or raylight.core.renderer when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "Rng",
    "random_float",
    "random_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "make_seed_states",
]
