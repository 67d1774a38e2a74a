"""Unit tests for the Dielectric material module.

Tests cover:
- Refraction with matched indices does not bend the ray
- Total internal reflection inside a dense medium
- Schlick reflection probability at normal incidence
- Attenuation is always white and the path never absorbs
- Helper functions and the material registry
"""

import math

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 4000


def _scatter_once(ior, incident, normal, front_face, state=1):
    from raylight.core.sampler import Rng
    from raylight.materials.dielectric import scatter_dielectric

    result_dir = ti.Vector.field(3, dtype=ti.f32, shape=())
    result_att = ti.Vector.field(3, dtype=ti.f32, shape=())
    result_scatter = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(
        eta: ti.f32,
        ix: ti.f32, iy: ti.f32, iz: ti.f32,
        nx: ti.f32, ny: ti.f32, nz: ti.f32,
        ff: ti.i32, seed: ti.u32,
    ):
        rng = Rng(state=seed)
        direction, attenuation, did_scatter = scatter_dielectric(
            eta, ti.math.vec3(ix, iy, iz), ti.math.vec3(nx, ny, nz), ff, rng
        )
        result_dir[None] = direction
        result_att[None] = attenuation
        result_scatter[None] = did_scatter

    test_kernel(ior, *incident, *normal, front_face, state)
    return (
        result_dir[None].to_numpy(),
        result_att[None].to_numpy(),
        int(result_scatter[None]),
    )


class TestRefraction:
    """Tests for the refracted branch."""

    @pytest.mark.parametrize("front_face", [0, 1])
    @pytest.mark.parametrize("state", [1, 2, 3])
    def test_ior_one_normal_incidence_passes_straight_through(self, front_face, state):
        """Test a matched-index surface transmits the ray unchanged."""
        direction, attenuation, did_scatter = _scatter_once(
            1.0, (0.0, 0.0, -2.0), (0.0, 0.0, 1.0), front_face, state
        )
        np.testing.assert_allclose(direction, (0.0, 0.0, -1.0), atol=1e-6)
        np.testing.assert_allclose(attenuation, (1.0, 1.0, 1.0), atol=1e-6)
        assert did_scatter == 1

    @pytest.mark.parametrize("front_face", [0, 1])
    def test_ior_one_oblique_incidence_does_not_bend(self, front_face):
        """Test a matched-index surface keeps an oblique ray's direction.

        Schlick's term is tiny but nonzero at this angle, so an occasional
        mirror bounce is allowed; every transmitted ray must be undeviated.
        """
        incident = np.array([0.6, -0.8, 0.3])
        unit_incident = incident / np.linalg.norm(incident)
        mirrored = unit_incident * np.array([1.0, -1.0, 1.0])

        transmitted = 0
        for state in range(1, 50):
            direction, attenuation, did_scatter = _scatter_once(
                1.0, tuple(incident), (0.0, 1.0, 0.0), front_face, state
            )
            assert did_scatter == 1
            np.testing.assert_allclose(attenuation, (1.0, 1.0, 1.0), atol=1e-6)
            if direction[1] < 0.0:
                transmitted += 1
                np.testing.assert_allclose(direction, unit_incident, atol=1e-5)
            else:
                np.testing.assert_allclose(direction, mirrored, atol=1e-5)

        assert transmitted > 40

    def test_total_internal_reflection(self):
        """Test a steep ray inside glass always reflects."""
        sin_theta = 0.9
        cos_theta = math.sqrt(1.0 - sin_theta * sin_theta)
        for state in (1, 99, 12345):
            direction, attenuation, did_scatter = _scatter_once(
                1.5, (sin_theta, -cos_theta, 0.0), (0.0, 1.0, 0.0), 0, state
            )
            np.testing.assert_allclose(direction, (sin_theta, cos_theta, 0.0), atol=1e-5)
            np.testing.assert_allclose(attenuation, (1.0, 1.0, 1.0), atol=1e-6)
            assert did_scatter == 1


class TestReflectionProbability:
    """Tests for the stochastic reflect/refract choice."""

    def test_normal_incidence_reflects_about_four_percent(self):
        """Test the reflection rate matches Schlick's r0 for glass."""
        from raylight.core.sampler import Rng
        from raylight.materials.dielectric import scatter_dielectric

        reflected = ti.field(dtype=ti.i32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                rng = Rng(state=2024)
                for i in range(N_SAMPLES):
                    d, att, s = scatter_dielectric(
                        1.5,
                        ti.math.vec3(0.0, -1.0, 0.0),
                        ti.math.vec3(0.0, 1.0, 0.0),
                        1,
                        rng,
                    )
                    reflected[i] = 0
                    if d.y > 0.0:
                        reflected[i] = 1

        test_kernel()
        rate = reflected.to_numpy().mean()
        assert 0.02 < rate < 0.06


class TestDielectricHelpers:
    """Tests for will_reflect and fresnel_reflectance."""

    def test_will_reflect(self):
        """Test total internal reflection detection from each side."""
        from raylight.materials.dielectric import will_reflect

        inside = ti.field(dtype=ti.i32, shape=())
        outside = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            incident = ti.math.vec3(0.9, -ti.sqrt(1.0 - 0.81), 0.0)
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            inside[None] = will_reflect(1.5, incident, normal, 0)
            outside[None] = will_reflect(1.5, incident, normal, 1)

        test_kernel()
        assert inside[None] == 1
        assert outside[None] == 0

    def test_fresnel_reflectance_normal_incidence(self):
        """Test reflectance at normal incidence is r0 on both sides."""
        from raylight.materials.dielectric import fresnel_reflectance

        front = ti.field(dtype=ti.f32, shape=())
        back = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            incident = ti.math.vec3(0.0, -1.0, 0.0)
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            front[None] = fresnel_reflectance(1.5, incident, normal, 1)
            back[None] = fresnel_reflectance(1.5, incident, normal, 0)

        test_kernel()
        assert abs(front[None] - 0.04) < 1e-5
        assert abs(back[None] - 0.04) < 1e-5


class TestDielectricRegistry:
    """Tests for the dielectric material registry."""

    def test_add_and_lookup(self):
        """Test IORs are stored and looked up by index."""
        from raylight.materials.dielectric import (
            add_dielectric_material,
            get_dielectric_ior,
            get_dielectric_material_count,
        )

        add_dielectric_material()
        idx = add_dielectric_material(2.4)
        assert get_dielectric_material_count() == 2

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel(material_idx: ti.i32):
            result[0] = get_dielectric_ior(0)
            result[1] = get_dielectric_ior(material_idx)

        test_kernel(idx)
        np.testing.assert_allclose(result.to_numpy(), (1.5, 2.4), atol=1e-6)

    def test_bubble_ior_below_one_is_allowed(self):
        """Test an index below one (air inside water) is accepted."""
        from raylight.materials.dielectric import add_dielectric_material

        assert add_dielectric_material(1.0 / 1.33) == 0

    @pytest.mark.parametrize("ior", [0.0, -1.0])
    def test_invalid_ior(self, ior):
        """Test a non-positive IOR is rejected."""
        from raylight.materials.dielectric import add_dielectric_material

        with pytest.raises(ValueError, match="not positive"):
            add_dielectric_material(ior)

    def test_scatter_by_id_never_absorbs(self):
        """Test scatter_dielectric_by_id always scatters with white attenuation."""
        from raylight.core.sampler import Rng
        from raylight.materials.dielectric import add_dielectric_material, scatter_dielectric_by_id

        idx = add_dielectric_material(1.5)
        scattered = ti.field(dtype=ti.i32, shape=64)
        attenuation = ti.Vector.field(3, dtype=ti.f32, shape=64)

        @ti.kernel
        def test_kernel(material_idx: ti.i32):
            for i in range(64):
                rng = Rng(state=ti.cast(i + 1, ti.u32))
                d, att, s = scatter_dielectric_by_id(
                    material_idx,
                    ti.math.vec3(0.3, -1.0, 0.2),
                    ti.math.vec3(0.0, 1.0, 0.0),
                    i % 2,
                    rng,
                )
                scattered[i] = s
                attenuation[i] = att

        test_kernel(idx)
        assert np.all(scattered.to_numpy() == 1)
        np.testing.assert_allclose(attenuation.to_numpy(), 1.0, atol=1e-6)
