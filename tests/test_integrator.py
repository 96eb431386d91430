"""Tests for the radiance estimator."""

import pytest
import math
import numpy as np

from pathforge.vec3 import Vec3, Point3, Color
from pathforge.ray import Ray
from pathforge.shapes import Sphere, HittableList
from pathforge.materials import Material, Lambertian, Metal, DiffuseLight
from pathforge.integrator import estimate_radiance, sky_gradient


WHITE = Color(1, 1, 1)
BLACK = Color(0, 0, 0)


@pytest.fixture
def rng():
    return np.random.default_rng(99)


def mean_radiance(ray, scene, depth, rng, n, **kwargs):
    total = np.zeros(3)
    for _ in range(n):
        total += estimate_radiance(ray, scene, depth, rng, **kwargs).to_array()
    return total / n


class TestSkyGradient:
    """Test the default background."""

    def test_straight_up_is_blue(self):
        assert sky_gradient(Ray(Point3(0, 0, 0), Vec3(0, 1, 0))) == Color(0.5, 0.7, 1.0)

    def test_straight_down_is_white(self):
        assert sky_gradient(Ray(Point3(0, 0, 0), Vec3(0, -5, 0))) == WHITE

    def test_horizon_is_midway(self):
        assert sky_gradient(Ray(Point3(0, 0, 0), Vec3(1, 0, 0))) == Color(0.75, 0.85, 1.0)


class TestEstimateRadiance:
    """Test single-path radiance estimates."""

    def test_zero_depth_is_black(self, rng):
        scene = HittableList()
        ray = Ray(Point3(0, 0, 0), Vec3(0, 1, 0))
        assert estimate_radiance(ray, scene, 0, rng) == BLACK
        assert estimate_radiance(ray, scene, -3, rng) == BLACK

    def test_miss_returns_sky(self, rng):
        ray = Ray(Point3(0, 0, 0), Vec3(0, 1, 0))
        assert estimate_radiance(ray, HittableList(), 5, rng) == sky_gradient(ray)

    def test_miss_returns_solid_background(self, rng):
        ray = Ray(Point3(0, 0, 0), Vec3(0, 1, 0))
        background = Color(0.1, 0.2, 0.3)
        assert estimate_radiance(ray, HittableList(), 5, rng, background=background) == background

    def test_no_material_is_black(self, rng):
        scene = HittableList([Sphere(Point3(0, 0, -3), 1.0)])
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        assert estimate_radiance(ray, scene, 5, rng, background=WHITE) == BLACK

    def test_emitter_front_face(self, rng):
        scene = HittableList([Sphere(Point3(0, 0, -3), 1.0, DiffuseLight(Color(3, 2, 1)))])
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        assert estimate_radiance(ray, scene, 1, rng, background=BLACK) == Color(3, 2, 1)

    def test_absorber_returns_emission_only(self, rng):
        class Absorber(Material):
            pass

        scene = HittableList([Sphere(Point3(0, 0, -3), 1.0, Absorber())])
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        assert estimate_radiance(ray, scene, 5, rng, background=WHITE) == BLACK

    def test_mirror_reflects_background(self, rng):
        scene = HittableList([Sphere(Point3(0, 0, -3), 1.0, Metal(Color(0.8, 0.6, 0.4)))])
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        background = Color(0.5, 0.5, 0.5)

        result = estimate_radiance(ray, scene, 5, rng, background=background)
        assert result == Color(0.4, 0.3, 0.2)

    def test_diffuse_convex_object_under_uniform_sky(self, rng):
        # Scattered rays leave a convex object, so every path picks up albedo * sky
        scene = HittableList([Sphere(Point3(0, 0, -3), 1.0, Lambertian(Color(0.5, 0.25, 0.75)))])
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        for _ in range(20):
            result = estimate_radiance(ray, scene, 5, rng, background=WHITE)
            assert result == Color(0.5, 0.25, 0.75)

    def test_closed_room_without_lights_is_dark(self, rng):
        # Camera inside a diffuse sphere: paths never escape to the background
        scene = HittableList([Sphere(Point3(0, 0, 0), 5.0, Lambertian(Color(0.9, 0.9, 0.9)))])
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        for _ in range(10):
            assert estimate_radiance(ray, scene, 6, rng, background=WHITE) == BLACK

    def test_energy_bounded(self, rng):
        scene = HittableList([
            Sphere(Point3(0, -100.5, -1), 100, Lambertian(Color(0.8, 0.8, 0.8))),
            Sphere(Point3(0, 0, -1), 0.5, Lambertian(Color(0.9, 0.9, 0.9))),
            Sphere(Point3(1, 0, -1), 0.5, Metal(Color(0.9, 0.9, 0.9), 0.3)),
        ])
        for _ in range(100):
            direction = Vec3(rng.uniform(-1, 1), rng.uniform(-1, 0.5), -1)
            result = estimate_radiance(Ray(Point3(0, 0, 1), direction), scene, 8, rng, background=WHITE)
            assert result.max_component() <= 1.0 + 1e-9


class TestLightSampling:
    """Explicit light sampling agrees with plain cosine sampling."""

    @pytest.fixture
    def lit_floor(self):
        floor = Sphere(Point3(0, -100, 0), 100, Lambertian(Color(0.7, 0.7, 0.7)))
        lamp = Sphere(Point3(0, 4, 0), 2.0, DiffuseLight(Color(8, 8, 8)))
        return HittableList([floor, lamp]), HittableList([lamp])

    def test_direct_light_estimates_agree(self, rng, lit_floor):
        scene, lights = lit_floor
        ray = Ray(Point3(0, 1, 0), Vec3(0, -1, 0))
        # Lamp subtends 30 degrees: albedo * L * sin^2(30)
        expected = 0.7 * 8 * 0.25

        plain = mean_radiance(ray, scene, 2, rng, 2000, background=BLACK)
        sampled = mean_radiance(ray, scene, 2, rng, 2000, lights=lights, background=BLACK)

        assert abs(plain[0] - expected) < 0.25
        assert abs(sampled[0] - expected) < 0.15

    def test_light_sampling_reduces_variance(self, rng, lit_floor):
        scene, lights = lit_floor
        ray = Ray(Point3(0, 1, 0), Vec3(0, -1, 0))

        plain = [estimate_radiance(ray, scene, 2, rng, background=BLACK).x for _ in range(500)]
        sampled = [estimate_radiance(ray, scene, 2, rng, lights=lights, background=BLACK).x
                   for _ in range(500)]

        assert np.std(sampled) < np.std(plain)

    def test_empty_light_list_falls_back_to_material(self, rng, lit_floor):
        scene, _ = lit_floor
        ray = Ray(Point3(0, 1, 0), Vec3(0, -1, 0))
        result = estimate_radiance(ray, scene, 2, rng, lights=HittableList(), background=BLACK)
        assert math.isfinite(result.x)
