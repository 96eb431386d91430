"""
Vec3: the small immutable vector used for points, directions and colors.

Linear RGB radiance shares the type with geometry, so ``Color`` and
``Point3`` are plain aliases. Every random helper draws from an explicit
``numpy.random.Generator``; nothing here touches global random state.
"""

from __future__ import annotations
import math
from typing import Iterator, Union

import numpy as np

Operand = Union["Vec3", float]


def _operand(value: Operand):
    return value._data if isinstance(value, Vec3) else value


class Vec3:
    """Three float64 components behind a read-only numpy array."""

    __slots__ = ('_data',)

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        data = np.array((x, y, z), dtype=np.float64)
        data.flags.writeable = False
        self._data = data

    @classmethod
    def from_array(cls, arr) -> Vec3:
        """Wrap any length-3 array-like without re-validating components."""
        vec = cls.__new__(cls)
        data = np.array(arr, dtype=np.float64)
        data.flags.writeable = False
        vec._data = data
        return vec

    @property
    def x(self) -> float:
        return float(self._data[0])

    @property
    def y(self) -> float:
        return float(self._data[1])

    @property
    def z(self) -> float:
        return float(self._data[2])

    # color channel names
    r, g, b = x, y, z

    def __add__(self, other: Operand) -> Vec3:
        return Vec3.from_array(self._data + _operand(other))

    __radd__ = __add__

    def __sub__(self, other: Operand) -> Vec3:
        return Vec3.from_array(self._data - _operand(other))

    def __rsub__(self, other: float) -> Vec3:
        return Vec3.from_array(other - self._data)

    def __mul__(self, other: Operand) -> Vec3:
        return Vec3.from_array(self._data * _operand(other))

    __rmul__ = __mul__

    def __truediv__(self, other: Operand) -> Vec3:
        return Vec3.from_array(self._data / _operand(other))

    def __neg__(self) -> Vec3:
        return Vec3.from_array(np.negative(self._data))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Vec3):
            return bool(np.allclose(self._data, other._data))
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._data.tobytes())

    def __getitem__(self, index: int) -> float:
        return float(self._data[index])

    def __iter__(self) -> Iterator[float]:
        yield from (float(c) for c in self._data)

    def __repr__(self) -> str:
        x, y, z = self
        return f"Vec3({x:.4f}, {y:.4f}, {z:.4f})"

    def dot(self, other: Vec3) -> float:
        return float(self._data @ other._data)

    def cross(self, other: Vec3) -> Vec3:
        return Vec3.from_array(np.cross(self._data, other._data))

    def length_squared(self) -> float:
        return self.dot(self)

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def normalize(self) -> Vec3:
        """Unit vector along this one; the zero vector maps to itself."""
        n = self.length()
        return self if n == 0 else self / n

    def reflect(self, normal: Vec3) -> Vec3:
        """Mirror this vector about the plane with unit ``normal``."""
        return self - normal * (2.0 * self.dot(normal))

    def refract(self, normal: Vec3, eta_ratio: float) -> Vec3:
        """Snell refraction of a unit vector.

        Args:
            normal: Unit normal on the incoming side
            eta_ratio: Incident over transmitted refractive index

        Total internal reflection is the caller's responsibility.
        """
        cos_theta = min(-self.dot(normal), 1.0)
        perpendicular = (self + normal * cos_theta) * eta_ratio
        parallel_len = math.sqrt(abs(1.0 - perpendicular.length_squared()))
        return perpendicular - normal * parallel_len

    def near_zero(self, epsilon: float = 1e-8) -> bool:
        return bool((np.abs(self._data) < epsilon).all())

    def has_nan(self) -> bool:
        return bool(np.isnan(self._data).any())

    def max_component(self) -> float:
        return float(self._data.max())

    def clamp(self, min_val: float = 0.0, max_val: float = 1.0) -> Vec3:
        return Vec3.from_array(np.clip(self._data, min_val, max_val))

    def to_array(self) -> np.ndarray:
        """Writable copy of the components."""
        return np.array(self._data)

    # Sampling helpers

    @staticmethod
    def random(rng: np.random.Generator, min_val: float = 0.0, max_val: float = 1.0) -> Vec3:
        """Components drawn uniformly from [min_val, max_val)."""
        return Vec3.from_array(rng.uniform(min_val, max_val, size=3))

    @staticmethod
    def random_in_unit_sphere(rng: np.random.Generator) -> Vec3:
        """Rejection sample a point strictly inside the unit ball."""
        p = rng.uniform(-1.0, 1.0, size=3)
        while p @ p >= 1.0:
            p = rng.uniform(-1.0, 1.0, size=3)
        return Vec3.from_array(p)

    @staticmethod
    def random_unit_vector(rng: np.random.Generator) -> Vec3:
        """Uniform direction on the unit sphere."""
        p = Vec3.random_in_unit_sphere(rng)
        while p.length_squared() <= 1e-12:
            p = Vec3.random_in_unit_sphere(rng)
        return p.normalize()

    @staticmethod
    def random_in_unit_disk(rng: np.random.Generator) -> Vec3:
        """Rejection sample a point of the unit disk in the z = 0 plane."""
        x, y = rng.uniform(-1.0, 1.0, size=2)
        while x * x + y * y >= 1.0:
            x, y = rng.uniform(-1.0, 1.0, size=2)
        return Vec3(x, y, 0.0)

    @staticmethod
    def random_cosine_direction(rng: np.random.Generator) -> Vec3:
        """Unit direction about +z with density cos(theta) / pi."""
        u1, u2 = rng.random(2)
        phi = 2.0 * math.pi * u1
        radius = math.sqrt(u2)
        return Vec3(radius * math.cos(phi), radius * math.sin(phi), math.sqrt(1.0 - u2))

    @staticmethod
    def random_to_sphere(rng: np.random.Generator, radius: float, distance_squared: float) -> Vec3:
        """Uniform direction about +z inside the cone a sphere subtends.

        Args:
            rng: Random generator
            radius: Radius of the target sphere
            distance_squared: Squared distance to its center
        """
        u1, u2 = rng.random(2)
        cos_max = math.sqrt(max(0.0, 1.0 - radius * radius / distance_squared))
        z = 1.0 + u2 * (cos_max - 1.0)
        sin_theta = math.sqrt(max(0.0, 1.0 - z * z))
        phi = 2.0 * math.pi * u1
        return Vec3(sin_theta * math.cos(phi), sin_theta * math.sin(phi), z)


Point3 = Vec3
Color = Vec3
