"""Sphere primitive with closed-form ray-sphere intersection.

This module provides a Sphere dataclass, the HitRecord produced by a
successful intersection, and the intersection function itself.

The ray-sphere intersection is found by solving:
    |origin + t * direction - center|^2 = radius^2

which, with oc = origin - center, is the quadratic
    a*t^2 + 2*half_b*t + c = 0
    a = dot(direction, direction)
    half_b = dot(oc, direction)
    c = dot(oc, oc) - radius^2

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raylight.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The ray parameter of the intersection, within [t_min, t_max].
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the sphere.
            Only valid if hit == 1.
        normal: The unit surface normal at the intersection point, flipped
            so that it always opposes the incoming ray direction.
            Only valid if hit == 1.
        front_face: 1 if the ray struck the outside of the sphere, 0 if it
            struck the inside. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection over the interval [t_min, t_max].

    The nearer root is tried first; if it lies outside the interval the
    farther root is tried. A tangent ray (zero discriminant) produces a
    single root and therefore at most one hit.

    The geometric outward normal (point - center) / radius is flipped to face
    the incoming ray, and front_face records which side was struck. Materials
    rely on this orientation to choose the refraction ratio.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Minimum accepted t value (inclusive).
        t_max: Maximum accepted t value (inclusive).

    Returns:
        A HitRecord. Check the hit field to determine if intersection occurred.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = half_b * half_b - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Find the nearest root that lies in the acceptable range
        root = (-half_b - sqrt_d) / a
        valid = root >= t_min and root <= t_max
        if not valid:
            root = (-half_b + sqrt_d) / a
            valid = root >= t_min and root <= t_max

        if valid:
            did_hit = 1
            hit_t = root
            hit_point = ray_origin + root * ray_direction
            outward_normal = (hit_point - sphere.center) / sphere.radius

            if tm.dot(ray_direction, outward_normal) < 0.0:
                is_front_face = 1
                hit_normal = outward_normal
            else:
                # Ray is inside the sphere, hitting back face
                is_front_face = 0
                hit_normal = -outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )
