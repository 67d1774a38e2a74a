"""Taichi-based Monte Carlo ray tracer.

This package renders scenes of spheres with diffuse, metal and glass
materials, using Taichi kernels that trace every pixel in parallel:
- Thin-lens camera with depth of field
- Lambertian, metal (fuzzy reflection) and dielectric materials
- Bounded-depth path tracing against a sky gradient
- Seeded, reproducible progressive rendering

Subpackages:
    core: Ray helpers, random sampling, the radiance estimator and renderer
    camera: Thin-lens camera model with ray generation
    geometry: Sphere primitive and hit records
    materials: Scattering models and material registries
    scene: Scene storage, scene manager and preset scenes
    preview: PPM and PNG image export
"""

__version__ = "0.1.0"
