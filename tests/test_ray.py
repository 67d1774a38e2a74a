"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector utility functions (dot, cross, normalize, length, reflect, refract)
- Schlick reflectance and near-zero detection
"""

import math

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from raylight.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_unnormalized_direction(self):
        """Test ray_at scales by the direction's own length."""
        from raylight.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 1.0, 0.0), direction=vec3(2.0, 0.0, 0.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 5.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_ray_at_negative_t(self):
        """Test ray_at handles negative t (behind origin)."""
        from raylight.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0))
            result[None] = ray_at(ray, -3.0)

        test_kernel()
        assert abs(result[None][2] + 3.0) < 1e-6


class TestVectorUtilities:
    """Tests for vector helper functions."""

    def test_length_and_length_squared(self):
        """Test length of a 3-4-0 vector."""
        from raylight.core.ray import length, length_squared, vec3

        len_result = ti.field(dtype=ti.f32, shape=())
        len_sq_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            len_result[None] = length(v)
            len_sq_result[None] = length_squared(v)

        test_kernel()
        assert abs(len_result[None] - 5.0) < 1e-6
        assert abs(len_sq_result[None] - 25.0) < 1e-5

    def test_normalize(self):
        """Test normalize produces a unit vector."""
        from raylight.core.ray import length, normalize, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = length(normalize(vec3(1.0, 2.0, 3.0)))

        test_kernel()
        assert abs(result[None] - 1.0) < 1e-6

    def test_dot_and_cross(self):
        """Test dot and cross products of the x and y axes."""
        from raylight.core.ray import cross, dot, vec3

        dot_result = ti.field(dtype=ti.f32, shape=())
        cross_result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            x = vec3(1.0, 0.0, 0.0)
            y = vec3(0.0, 1.0, 0.0)
            dot_result[None] = dot(x, y)
            cross_result[None] = cross(x, y)

        test_kernel()
        assert abs(dot_result[None]) < 1e-6
        c = cross_result[None]
        assert abs(c[0]) < 1e-6
        assert abs(c[1]) < 1e-6
        assert abs(c[2] - 1.0) < 1e-6

    def test_reflect(self):
        """Test reflection off a horizontal surface flips the y component."""
        from raylight.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6


class TestRefraction:
    """Tests for refract and Schlick reflectance."""

    def test_refract_eta_one_does_not_bend(self):
        """Test that equal indices of refraction leave the direction unchanged."""
        from raylight.core.ray import normalize, refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            incident = normalize(vec3(1.0, -2.0, 0.5))
            result[None] = refract(incident, vec3(0.0, 1.0, 0.0), 1.0)

        test_kernel()
        r = result[None]
        norm = math.sqrt(1.0 + 4.0 + 0.25)
        assert abs(r[0] - 1.0 / norm) < 1e-5
        assert abs(r[1] + 2.0 / norm) < 1e-5
        assert abs(r[2] - 0.5 / norm) < 1e-5

    def test_refract_bends_toward_normal(self):
        """Test Snell's law when entering a denser medium."""
        from raylight.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())
        eta = 1.0 / 1.5

        @ti.kernel
        def test_kernel():
            inv_sqrt2 = 1.0 / ti.sqrt(2.0)
            incident = vec3(inv_sqrt2, -inv_sqrt2, 0.0)
            result[None] = refract(incident, vec3(0.0, 1.0, 0.0), eta)

        test_kernel()
        r = result[None]
        sin_in = 1.0 / math.sqrt(2.0)
        sin_out = eta * sin_in
        # Output is unit length and satisfies n1 sin1 = n2 sin2
        assert abs(r[0] - sin_out) < 1e-5
        assert abs(r[1] + math.sqrt(1.0 - sin_out * sin_out)) < 1e-5
        assert abs(r[2]) < 1e-6

    def test_schlick_normal_incidence(self):
        """Test Schlick reflectance is r0 at normal incidence."""
        from raylight.core.ray import schlick_reflectance

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = schlick_reflectance(1.0, 1.5)

        test_kernel()
        # r0 = ((1 - 1.5) / (1 + 1.5))^2 = 0.04
        assert abs(result[None] - 0.04) < 1e-6

    def test_schlick_grazing_incidence(self):
        """Test Schlick reflectance approaches 1 at grazing incidence."""
        from raylight.core.ray import schlick_reflectance

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = schlick_reflectance(0.0, 1.5)

        test_kernel()
        assert abs(result[None] - 1.0) < 1e-6

    @pytest.mark.parametrize("cosine", [0.2, 0.5, 0.9])
    def test_schlick_ratio_and_reciprocal_agree(self, cosine):
        """Test Schlick gives the same value for ior and 1 / ior."""
        from raylight.core.ray import schlick_reflectance

        direct = ti.field(dtype=ti.f32, shape=())
        reciprocal = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(c: ti.f32):
            direct[None] = schlick_reflectance(c, 1.5)
            reciprocal[None] = schlick_reflectance(c, 1.0 / 1.5)

        test_kernel(cosine)
        assert abs(direct[None] - reciprocal[None]) < 1e-6


class TestNearZero:
    """Tests for degenerate vector detection."""

    def test_near_zero(self):
        """Test that only vectors with every component below 1e-8 count."""
        from raylight.core.ray import near_zero, vec3

        tiny = ti.field(dtype=ti.i32, shape=())
        small = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            tiny[None] = near_zero(vec3(1e-9, -1e-9, 0.0))
            small[None] = near_zero(vec3(1e-9, 1e-4, 0.0))

        test_kernel()
        assert tiny[None] == 1
        assert small[None] == 0
