"""
Built-in scenes for the command line.

Each builder takes the render settings (for the image aspect ratio) and
returns a Scene whose world is already wrapped in a BVH.
"""

from __future__ import annotations
from typing import Callable, Dict, Optional

import numpy as np

from .vec3 import Vec3, Point3, Color
from .camera import Camera
from .shapes import Sphere, MovingSphere, HittableList
from .materials import Lambertian, Metal, Dielectric, DiffuseLight
from .bvh import build_bvh
from .renderer import RenderSettings
from .scene_parser import Scene


def three_spheres(settings: RenderSettings) -> Scene:
    """Diffuse, mirror and glass spheres on a large diffuse ground."""
    world = HittableList()

    world.add(Sphere(Point3(0, -100.5, -1), 100, Lambertian(Color(0.8, 0.8, 0.0))))
    world.add(Sphere(Point3(0, 0, 0), 0.5, Lambertian(Color(0.7, 0.3, 0.3))))
    world.add(Sphere(Point3(-1, 0, -1), 0.5, Metal(Color(0.8, 0.8, 0.8), 0.0)))
    world.add(Sphere(Point3(1, 0, -1), 0.5, Dielectric(1.5)))

    camera = Camera(
        look_from=Point3(0, 0, 5),
        look_at=Point3(0, 0, 0),
        vup=Vec3(0, 1, 0),
        vfov=30,
        aspect_ratio=settings.aspect_ratio,
        aperture=0.0,
        focus_dist=5.0
    )
    return Scene(build_bvh(world), camera, settings)


def random_spheres(settings: RenderSettings, seed: Optional[int] = None, extent: int = 5) -> Scene:
    """Field of small random spheres around three large ones.

    Diffuse small spheres bounce vertically during the shutter interval.
    """
    rng = np.random.default_rng(seed)
    world = HittableList()

    world.add(Sphere(Point3(0, -1000, 0), 1000, Lambertian(Color(0.5, 0.5, 0.5))))

    for a in range(-extent, extent):
        for b in range(-extent, extent):
            choose_mat = rng.random()
            center = Point3(a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())

            if (center - Point3(4, 0.2, 0)).length() <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = Vec3.random(rng) * Vec3.random(rng)
                center1 = center + Vec3(0, rng.uniform(0, 0.5), 0)
                world.add(MovingSphere(center, center1, 0.0, 1.0, 0.2, Lambertian(albedo)))
            elif choose_mat < 0.95:
                albedo = Vec3.random(rng, 0.5, 1)
                world.add(Sphere(center, 0.2, Metal(albedo, rng.uniform(0, 0.5))))
            else:
                world.add(Sphere(center, 0.2, Dielectric(1.5)))

    world.add(Sphere(Point3(0, 1, 0), 1.0, Dielectric(1.5)))
    world.add(Sphere(Point3(-4, 1, 0), 1.0, Lambertian(Color(0.4, 0.2, 0.1))))
    world.add(Sphere(Point3(4, 1, 0), 1.0, Metal(Color(0.7, 0.6, 0.5), 0.0)))

    camera = Camera(
        look_from=Point3(13, 2, 3),
        look_at=Point3(0, 0, 0),
        vup=Vec3(0, 1, 0),
        vfov=20,
        aspect_ratio=settings.aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
        shutter_open=0.0,
        shutter_close=1.0
    )
    return Scene(build_bvh(world, camera.shutter_open, camera.shutter_close), camera, settings)


def lit_spheres(settings: RenderSettings) -> Scene:
    """Spheres lit only by a spherical area light, sampled explicitly."""
    settings.use_sky_gradient = False
    settings.background_color = Color(0, 0, 0)

    world = HittableList()
    lamp = Sphere(Point3(0, 6, 0), 1.5, DiffuseLight(Color(6, 6, 6)))

    world.add(Sphere(Point3(0, -1000, 0), 1000, Lambertian(Color(0.73, 0.73, 0.73))))
    world.add(Sphere(Point3(-2.2, 1, 0), 1.0, Lambertian(Color(0.65, 0.05, 0.05))))
    world.add(Sphere(Point3(0, 1, 0), 1.0, Dielectric(1.5)))
    world.add(Sphere(Point3(2.2, 1, 0), 1.0, Metal(Color(0.8, 0.8, 0.8), 0.2)))
    world.add(lamp)

    camera = Camera(
        look_from=Point3(0, 3, 12),
        look_at=Point3(0, 1.5, 0),
        vup=Vec3(0, 1, 0),
        vfov=35,
        aspect_ratio=settings.aspect_ratio,
        aperture=0.0,
        focus_dist=12.0
    )
    return Scene(build_bvh(world), camera, settings, lights=HittableList([lamp]))


BUILTIN_SCENES: Dict[str, Callable[[RenderSettings], Scene]] = {
    'three-spheres': three_spheres,
    'random-spheres': lambda settings: random_spheres(settings, settings.seed),
    'lit-spheres': lit_spheres,
}
