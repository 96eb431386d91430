"""
Direction sampling densities used for importance sampling.

Implements:
- Cosine-weighted hemisphere density (diffuse surfaces)
- Density toward a hittable (light sampling)
- 50/50 mixture of two densities (one-sample multiple importance sampling)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import math

import numpy as np

from .vec3 import Vec3, Point3
from .onb import Onb
from .shapes import Hittable


class Pdf(ABC):
    """A probability density over directions with a matching sampler."""

    @abstractmethod
    def value(self, direction: Vec3) -> float:
        """Density of ``direction`` (solid-angle measure)."""

    @abstractmethod
    def generate(self, rng: np.random.Generator) -> Vec3:
        """Draw a direction distributed according to this density."""


class CosinePdf(Pdf):
    """Cosine-weighted density around a surface normal."""

    def __init__(self, w: Vec3):
        self.uvw = Onb.build_from_w(w)

    def value(self, direction: Vec3) -> float:
        cosine = direction.normalize().dot(self.uvw.w)
        return max(cosine, 0.0) / math.pi

    def generate(self, rng: np.random.Generator) -> Vec3:
        return self.uvw.local_vec(Vec3.random_cosine_direction(rng))


class HittablePdf(Pdf):
    """Density of directions toward a hittable, seen from ``origin``."""

    def __init__(self, hittable: Hittable, origin: Point3):
        self.hittable = hittable
        self.origin = origin

    def value(self, direction: Vec3) -> float:
        return self.hittable.pdf_value(self.origin, direction)

    def generate(self, rng: np.random.Generator) -> Vec3:
        return self.hittable.random(self.origin, rng)


class MixturePdf(Pdf):
    """Weighted mixture of two densities."""

    def __init__(self, p0: Pdf, p1: Pdf, weight: float = 0.5):
        """Create a mixture.

        Args:
            p0: First density, chosen with probability ``weight``
            p1: Second density
            weight: Mixing weight in [0, 1]
        """
        self.p0 = p0
        self.p1 = p1
        self.weight = weight

    def value(self, direction: Vec3) -> float:
        return self.weight * self.p0.value(direction) + (1 - self.weight) * self.p1.value(direction)

    def generate(self, rng: np.random.Generator) -> Vec3:
        if rng.random() < self.weight:
            return self.p0.generate(rng)
        return self.p1.generate(rng)
