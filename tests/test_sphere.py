"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (back face)
- Ray tangent to sphere
- Interval bounds and unnormalized directions
"""

import pytest
import taichi as ti


def _make_hit_fields():
    """Create 0-d fields for (hit, t, point, normal, front_face)."""
    return (
        ti.field(dtype=ti.i32, shape=()),
        ti.field(dtype=ti.f32, shape=()),
        ti.field(dtype=ti.math.vec3, shape=()),
        ti.field(dtype=ti.math.vec3, shape=()),
        ti.field(dtype=ti.i32, shape=()),
    )


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_sphere_fields(self):
        """Test a Sphere built in a kernel keeps its center and radius."""
        from raylight.geometry.sphere import Sphere, vec3

        center_result = ti.field(dtype=ti.math.vec3, shape=())
        radius_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(1.0, 2.0, 3.0), radius=0.5)
            center_result[None] = sphere.center
            radius_result[None] = sphere.radius

        test_kernel()
        c = center_result[None]
        assert abs(c[0] - 1.0) < 1e-6
        assert abs(c[1] - 2.0) < 1e-6
        assert abs(c[2] - 3.0) < 1e-6
        assert abs(radius_result[None] - 0.5) < 1e-6


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_hit_sphere_from_outside(self):
        """Test a ray from the origin hitting the near surface of a sphere."""
        from raylight.geometry.sphere import Sphere, hit_sphere, vec3

        hit, t_val, point, normal, front_face = _make_hit_fields()

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, -1.0), radius=0.5)
            record = hit_sphere(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), sphere, 0.001, 1e30)
            hit[None] = record.hit
            t_val[None] = record.t
            point[None] = record.point
            normal[None] = record.normal
            front_face[None] = record.front_face

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 0.5) < 1e-5
        p = point[None]
        assert abs(p[0]) < 1e-6
        assert abs(p[1]) < 1e-6
        assert abs(p[2] + 0.5) < 1e-5
        n = normal[None]
        assert abs(n[0]) < 1e-6
        assert abs(n[1]) < 1e-6
        assert abs(n[2] - 1.0) < 1e-5
        assert front_face[None] == 1

    def test_hit_sphere_miss(self):
        """Test ray missing sphere entirely."""
        from raylight.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            record = hit_sphere(vec3(5.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), sphere, 0.001, 1000.0)
            hit[None] = record.hit

        test_kernel()
        assert hit[None] == 0

    def test_hit_sphere_from_inside(self):
        """Test a ray starting at the center hits the back face."""
        from raylight.geometry.sphere import Sphere, hit_sphere, vec3

        hit, t_val, point, normal, front_face = _make_hit_fields()

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            record = hit_sphere(vec3(0.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0), sphere, 0.001, 1e30)
            hit[None] = record.hit
            t_val[None] = record.t
            normal[None] = record.normal
            front_face[None] = record.front_face

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 1.0) < 1e-5
        # Normal faces back toward the center, against the ray
        n = normal[None]
        assert abs(n[0] + 1.0) < 1e-5
        assert abs(n[1]) < 1e-6
        assert abs(n[2]) < 1e-6
        assert front_face[None] == 0

    def test_hit_sphere_tangent(self):
        """Test a ray grazing the sphere produces a single hit at the contact point."""
        from raylight.geometry.sphere import Sphere, hit_sphere, vec3

        hit, t_val, point, normal, front_face = _make_hit_fields()

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            record = hit_sphere(vec3(-5.0, 1.0, 0.0), vec3(1.0, 0.0, 0.0), sphere, 0.001, 1e30)
            hit[None] = record.hit
            t_val[None] = record.t
            point[None] = record.point

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 5.0) < 1e-5
        p = point[None]
        assert abs(p[0]) < 1e-5
        assert abs(p[1] - 1.0) < 1e-5

    def test_hit_sphere_respects_t_max(self):
        """Test a sphere beyond t_max is not reported."""
        from raylight.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, -10.0), radius=1.0)
            record = hit_sphere(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), sphere, 0.001, 5.0)
            hit[None] = record.hit

        test_kernel()
        assert hit[None] == 0

    def test_hit_sphere_skips_root_below_t_min(self):
        """Test the far root is used when the near root is below t_min."""
        from raylight.geometry.sphere import Sphere, hit_sphere, vec3

        hit, t_val, point, normal, front_face = _make_hit_fields()

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, -1.0), radius=0.5)
            # Near root at t=0.5 is excluded, far root at t=1.5 is accepted
            record = hit_sphere(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), sphere, 1.0, 1e30)
            hit[None] = record.hit
            t_val[None] = record.t
            front_face[None] = record.front_face

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 1.5) < 1e-5
        assert front_face[None] == 0

    def test_hit_sphere_behind_ray(self):
        """Test a sphere entirely behind the origin is missed."""
        from raylight.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, 5.0), radius=1.0)
            record = hit_sphere(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), sphere, 0.001, 1e30)
            hit[None] = record.hit

        test_kernel()
        assert hit[None] == 0

    @pytest.mark.parametrize("scale", [0.25, 1.0, 4.0])
    def test_hit_point_independent_of_direction_length(self, scale):
        """Test the hit point does not depend on the direction's length."""
        from raylight.geometry.sphere import Sphere, hit_sphere, vec3

        hit, t_val, point, normal, front_face = _make_hit_fields()

        @ti.kernel
        def test_kernel(s: ti.f32):
            sphere = Sphere(center=vec3(0.0, 0.0, -3.0), radius=1.0)
            record = hit_sphere(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -s), sphere, 0.001, 1e30)
            hit[None] = record.hit
            point[None] = record.point
            t_val[None] = record.t

        test_kernel(scale)
        assert hit[None] == 1
        assert abs(point[None][2] + 2.0) < 1e-4
        assert abs(t_val[None] - 2.0 / scale) < 1e-4
