"""Scene module for scene storage and construction.

Components:
    intersection: Sphere storage in Taichi fields and closest-hit queries
    manager: Unified scene manager coordinating spheres and materials
    presets: Ready-made scenes (random spheres, two spheres, showcase)

Scene data uses a Structure-of-Arrays layout and is read-only while
render kernels run.
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .presets import (
    create_material_showcase,
    create_random_scene,
    create_two_sphere_scene,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "create_random_scene",
    "create_two_sphere_scene",
    "create_material_showcase",
]
