"""Geometry module for shape primitives.

All intersection routines are Taichi functions (@ti.func) returning a
HitRecord whose normal always faces against the incoming ray.
"""

from .sphere import HitRecord, Sphere, hit_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
]
