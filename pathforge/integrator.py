"""
Monte Carlo light-transport estimator.

The estimator follows one path per call: it intersects the scene, adds the
surface emission and recurses on a scattered ray until the depth budget is
used up or the path escapes to the background. Diffuse bounces are weighted
by ``scattering_pdf / pdf`` so that sampling from a density other than the
material's own (for instance toward the lights) stays unbiased.
"""

from __future__ import annotations
import math
from typing import Callable, Optional, Union

import numpy as np

from .vec3 import Color
from .ray import Ray
from .shapes import Hittable, HittableList
from .pdf import CosinePdf, HittablePdf, MixturePdf

SHADOW_EPSILON = 0.001

Background = Union[Color, Callable[[Ray], Color]]


def sky_gradient(ray: Ray) -> Color:
    """Blend white to sky blue by the height of the ray direction."""
    unit_direction = ray.direction.normalize()
    t = 0.5 * (unit_direction.y + 1.0)
    return Color(1.0, 1.0, 1.0) * (1.0 - t) + Color(0.5, 0.7, 1.0) * t


def _has_lights(lights: Optional[Hittable]) -> bool:
    if lights is None:
        return False
    if isinstance(lights, HittableList):
        return len(lights) > 0
    return True


def estimate_radiance(
    ray: Ray,
    scene: Hittable,
    depth: int,
    rng: np.random.Generator,
    lights: Optional[Hittable] = None,
    background: Background = sky_gradient
) -> Color:
    """Estimate the radiance arriving along ``ray``.

    Args:
        ray: The ray to trace
        scene: The scene to trace against
        depth: Remaining path length; zero or less returns black
        rng: Random generator owned by the calling worker
        lights: Optional emitters to importance-sample at diffuse bounces
        background: Color, or a function of the ray, returned on a miss

    Returns:
        One sample of the incoming radiance
    """
    if depth <= 0:
        return Color(0, 0, 0)

    rec = scene.hit(ray, SHADOW_EPSILON, math.inf)

    if rec is None:
        if callable(background):
            return background(ray)
        return background

    material = rec.material
    if material is None:
        return Color(0, 0, 0)

    emitted = material.emitted(ray, rec, rec.u, rec.v, rec.point)

    result = material.scatter(ray, rec, rng)
    if result is None:
        return emitted

    if result.is_specular:
        return emitted + result.attenuation * estimate_radiance(
            result.scattered_ray, scene, depth - 1, rng, lights, background
        )

    scattered = result.scattered_ray
    pdf_value = result.pdf

    if _has_lights(lights):
        mixture = MixturePdf(HittablePdf(lights, rec.point), CosinePdf(rec.normal))
        scattered = Ray(rec.point, mixture.generate(rng), ray.time)
        pdf_value = mixture.value(scattered.direction)

    if pdf_value <= 0:
        return emitted

    weight = material.scattering_pdf(ray, rec, scattered) / pdf_value
    if weight == 0:
        return emitted

    return emitted + result.attenuation * weight * estimate_radiance(
        scattered, scene, depth - 1, rng, lights, background
    )
