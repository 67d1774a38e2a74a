"""Ready-made scenes.

This module provides factory functions for the standard test scenes:

- ``create_random_scene``: a large ground sphere covered with a grid of
  small randomly-chosen diffuse, metal and glass spheres, plus three large
  feature spheres (glass, brown diffuse, polished metal).
- ``create_two_sphere_scene``: one diffuse sphere resting on a large ground
  sphere, the smallest scene that exercises every code path of a diffuse
  render.
- ``create_material_showcase``: one sphere of each material side by side,
  with a hollow glass bubble.

Each factory returns a ``(SceneManager, Camera)`` pair. Random choices come
from a NumPy generator seeded by the caller, so the same seed always builds
the same scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raylight.scene.presets import create_random_scene
    >>> from raylight.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(seed=0)
    >>> setup_camera(camera)
"""

import logging

import numpy as np

from raylight.camera.thin_lens import Camera
from raylight.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# =============================================================================
# Random Scene Constants
# =============================================================================

# Default view of the random scene
RANDOM_SCENE_LOOKFROM = (13.0, 2.0, 3.0)
RANDOM_SCENE_LOOKAT = (0.0, 0.0, 0.0)
RANDOM_SCENE_VUP = (0.0, 1.0, 0.0)
RANDOM_SCENE_VFOV = 20.0
RANDOM_SCENE_APERTURE = 0.1
RANDOM_SCENE_FOCUS_DIST = 10.0
RANDOM_SCENE_ASPECT_RATIO = 3.0 / 2.0

GROUND_ALBEDO = (0.5, 0.5, 0.5)
GROUND_RADIUS = 1000.0

# Small spheres sit on a grid of cells a, b in [-GRID_EXTENT, GRID_EXTENT)
GRID_EXTENT = 11
SMALL_SPHERE_RADIUS = 0.2

# Cumulative probabilities of the small sphere materials
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.95

# Small spheres closer than this to (4, 0.2, 0) are skipped
CLEARANCE_CENTER = (4.0, 0.2, 0.0)
CLEARANCE_DISTANCE = 0.9

GLASS_IOR = 1.5


def _random_scene_camera(aspect_ratio: float) -> Camera:
    return Camera(
        lookfrom=RANDOM_SCENE_LOOKFROM,
        lookat=RANDOM_SCENE_LOOKAT,
        vup=RANDOM_SCENE_VUP,
        vfov=RANDOM_SCENE_VFOV,
        aspect_ratio=aspect_ratio,
        aperture=RANDOM_SCENE_APERTURE,
        focus_dist=RANDOM_SCENE_FOCUS_DIST,
    )


def create_random_scene(
    seed: int = 0,
    aspect_ratio: float = RANDOM_SCENE_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Create the random "final" scene of many small spheres.

    For every grid cell (a, b) a small sphere is placed at
    ``(a + 0.9 * r1, 0.2, b + 0.9 * r2)`` unless it would crowd the metal
    feature sphere. Its material is diffuse with probability 0.8 (random
    albedo in [0, 1)), metal with probability 0.15 (albedo in [0.5, 1),
    fuzz in [0, 0.5)), and glass otherwise.

    Args:
        seed: Seed for the random sphere layout.
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        A tuple of (SceneManager, Camera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_lambertian_sphere(
        center=(0.0, -GROUND_RADIUS, 0.0),
        radius=GROUND_RADIUS,
        albedo=GROUND_ALBEDO,
    )

    clearance_center = np.array(CLEARANCE_CENTER)
    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array(
                [a + 0.9 * rng.random(), SMALL_SPHERE_RADIUS, b + 0.9 * rng.random()]
            )

            if np.linalg.norm(center - clearance_center) <= CLEARANCE_DISTANCE:
                continue

            center_tuple = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < DIFFUSE_PROBABILITY:
                albedo = tuple(float(c) for c in rng.uniform(0.0, 1.0, size=3))
                scene.add_lambertian_sphere(center_tuple, SMALL_SPHERE_RADIUS, albedo)
            elif choose_mat < METAL_PROBABILITY:
                albedo = tuple(float(c) for c in rng.uniform(0.5, 1.0, size=3))
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(center_tuple, SMALL_SPHERE_RADIUS, albedo, fuzz)
            else:
                scene.add_dielectric_sphere(center_tuple, SMALL_SPHERE_RADIUS, GLASS_IOR)

    scene.add_dielectric_sphere(center=(0.0, 1.0, 0.0), radius=1.0, ior=GLASS_IOR)
    scene.add_lambertian_sphere(
        center=(-4.0, 1.0, 0.0), radius=1.0, albedo=(0.4, 0.2, 0.1)
    )
    scene.add_metal_sphere(
        center=(4.0, 1.0, 0.0), radius=1.0, albedo=(0.7, 0.6, 0.5), fuzz=0.0
    )

    logger.debug(
        "Random scene (seed=%d): %d spheres, %d materials",
        seed,
        scene.get_sphere_count(),
        scene.get_material_count(),
    )
    return scene, _random_scene_camera(aspect_ratio)


def create_two_sphere_scene(
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[SceneManager, Camera]:
    """Create a diffuse sphere resting on a large diffuse ground sphere.

    The camera is a pinhole at the origin looking down -z with a 90 degree
    vertical field of view.

    Returns:
        A tuple of (SceneManager, Camera).
    """
    scene = SceneManager()
    gray = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    scene.add_sphere(center=(0.0, 0.0, -1.0), radius=0.5, material_id=gray)
    scene.add_sphere(center=(0.0, -100.5, -1.0), radius=100.0, material_id=gray)

    camera = Camera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


def create_material_showcase(
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[SceneManager, Camera]:
    """Create three spheres side by side: hollow glass, diffuse, and metal.

    The glass sphere contains a slightly smaller sphere with index 1 / 1.5
    (air inside glass), so it renders as a thin hollow shell.

    Returns:
        A tuple of (SceneManager, Camera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    center = scene.add_lambertian_material(albedo=(0.1, 0.2, 0.5))
    glass = scene.add_dielectric_material(ior=GLASS_IOR)
    bubble = scene.add_dielectric_material(ior=1.0 / GLASS_IOR)
    gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.0)

    scene.add_sphere(center=(0.0, -100.5, -1.0), radius=100.0, material_id=ground)
    scene.add_sphere(center=(0.0, 0.0, -1.0), radius=0.5, material_id=center)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=0.5, material_id=glass)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=0.4, material_id=bubble)
    scene.add_sphere(center=(1.0, 0.0, -1.0), radius=0.5, material_id=gold)

    camera = Camera(
        lookfrom=(-2.0, 2.0, 1.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=3.4,
    )
    return scene, camera
