"""
Materials system with importance-sampling support.

Implements:
- Lambertian diffuse (cosine-weighted sampling)
- Metal (specular reflection with fuzz)
- Dielectric (glass, water - with refraction)
- Diffuse area light (one-sided emitter)
- Isotropic phase function for participating media

A scatter result carries the density the outgoing direction was drawn
with. A density of zero marks a delta-like lobe (metal, glass) or a
volume event that the integrator must not reweight.
"""

from __future__ import annotations
from abc import ABC
from dataclasses import dataclass
from typing import Optional, Union
import math

import numpy as np

from .vec3 import Vec3, Color, Point3
from .ray import Ray
from .onb import Onb
from .shapes import HitRecord
from .textures import Texture, as_texture


@dataclass
class ScatterResult:
    """Result of a material scatter operation."""
    attenuation: Color
    scattered_ray: Ray
    pdf: float = 0.0

    @property
    def is_specular(self) -> bool:
        return self.pdf == 0.0


class Material(ABC):
    """Base class for materials.

    The defaults describe a black absorber: nothing scatters and nothing
    is emitted.
    """

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        """Compute the scattered ray and attenuation.

        Args:
            ray_in: The incoming ray
            rec: Intersection record at the surface
            rng: Random generator owned by the calling worker

        Returns:
            ScatterResult if ray scatters, None if absorbed
        """
        return None

    def scattering_pdf(self, ray_in: Ray, rec: HitRecord, scattered: Ray) -> float:
        """Density with which this material would produce ``scattered``."""
        return 0.0

    def emitted(self, ray_in: Ray, rec: HitRecord, u: float, v: float, point: Point3) -> Color:
        """Return emitted light color. Default is no emission."""
        return Color(0, 0, 0)


class Lambertian(Material):
    """Diffuse material with Lambertian (ideal matte) scattering."""

    def __init__(self, albedo: Union[Color, Texture]):
        """Create a Lambertian material.

        Args:
            albedo: The base color (RGB, each component 0-1) or a texture
        """
        self.albedo = as_texture(albedo)

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        uvw = Onb.build_from_w(rec.normal)
        direction = uvw.local_vec(Vec3.random_cosine_direction(rng)).normalize()
        scattered = Ray(rec.point, direction, ray_in.time)

        return ScatterResult(
            attenuation=self.albedo.value(rec.u, rec.v, rec.point),
            scattered_ray=scattered,
            pdf=uvw.w.dot(direction) / math.pi
        )

    def scattering_pdf(self, ray_in: Ray, rec: HitRecord, scattered: Ray) -> float:
        cosine = rec.normal.dot(scattered.direction.normalize())
        return 0.0 if cosine < 0 else cosine / math.pi


class Metal(Material):
    """Metallic material with specular reflection."""

    def __init__(self, albedo: Color, fuzz: float = 0.0):
        """Create a metal material.

        Args:
            albedo: The reflection color
            fuzz: Radius of the reflection perturbation (0 = mirror, clamped to 1)
        """
        self.albedo = albedo
        self.fuzz = min(fuzz, 1.0)

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        reflected = ray_in.direction.normalize().reflect(rec.normal)
        if self.fuzz > 0:
            reflected = reflected + Vec3.random_in_unit_sphere(rng) * self.fuzz

        # Only scatter if reflection is in the correct hemisphere
        if reflected.dot(rec.normal) <= 0:
            return None

        return ScatterResult(
            attenuation=self.albedo,
            scattered_ray=Ray(rec.point, reflected, ray_in.time),
            pdf=0.0
        )


class Dielectric(Material):
    """Dielectric (glass-like) material with refraction."""

    def __init__(self, ir: float = 1.5):
        """Create a dielectric material.

        Args:
            ir: Index of refraction (1.0 = air, 1.5 = glass, 2.4 = diamond)
        """
        self.ir = ir

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        # Determine refraction ratio based on whether we're entering or exiting
        refraction_ratio = 1.0 / self.ir if rec.front_face else self.ir

        unit_direction = ray_in.direction.normalize()
        cos_theta = min(-unit_direction.dot(rec.normal), 1.0)
        sin_theta = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))

        cannot_refract = refraction_ratio * sin_theta > 1.0

        if cannot_refract or self.reflectance(cos_theta, refraction_ratio) > rng.random():
            direction = unit_direction.reflect(rec.normal)
        else:
            direction = unit_direction.refract(rec.normal, refraction_ratio)

        return ScatterResult(
            attenuation=Color(1, 1, 1),
            scattered_ray=Ray(rec.point, direction, ray_in.time),
            pdf=0.0
        )

    @staticmethod
    def reflectance(cosine: float, ref_idx: float) -> float:
        """Schlick's approximation for reflectance."""
        r0 = (1 - ref_idx) / (1 + ref_idx)
        r0 = r0 * r0
        return r0 + (1 - r0) * pow(1 - cosine, 5)


class DiffuseLight(Material):
    """One-sided light-emitting material."""

    def __init__(self, emit: Union[Color, Texture]):
        """Create an emissive material.

        Args:
            emit: The emitted radiance, as a color or a texture
        """
        self.emit = as_texture(emit)

    def emitted(self, ray_in: Ray, rec: HitRecord, u: float, v: float, point: Point3) -> Color:
        if not rec.front_face:
            return Color(0, 0, 0)
        return self.emit.value(u, v, point)


class Isotropic(Material):
    """Scatters uniformly over the sphere; used inside participating media."""

    def __init__(self, albedo: Union[Color, Texture]):
        self.albedo = as_texture(albedo)

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        return ScatterResult(
            attenuation=self.albedo.value(rec.u, rec.v, rec.point),
            scattered_ray=Ray(rec.point, Vec3.random_unit_vector(rng), ray_in.time),
            pdf=0.0
        )
