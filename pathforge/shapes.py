"""
Scene geometry: hit records, the Hittable interface, spheres, boxes and lists.

A Hittable answers three questions: where does a ray first meet it inside
an open parameter interval, which box holds it over a shutter interval,
and (for emitters) how to pick and weigh directions toward it.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional, TYPE_CHECKING
import math

import numpy as np

from .vec3 import Vec3, Point3
from .ray import Ray
from .onb import Onb

if TYPE_CHECKING:
    from .materials import Material


@dataclass
class HitRecord:
    """The nearest intersection of a ray with a surface.

    ``normal`` is unit length and always opposes the ray; ``front_face``
    records whether that meant flipping the outward normal.
    """
    point: Point3
    normal: Vec3
    t: float
    front_face: bool
    material: Optional[Material] = None
    u: float = 0.0
    v: float = 0.0

    def set_face_normal(self, ray: Ray, outward_normal: Vec3) -> None:
        self.front_face = ray.direction.dot(outward_normal) < 0
        self.normal = outward_normal if self.front_face else -outward_normal


class Hittable(ABC):
    """Anything a ray can intersect.

    Shapes that implement :meth:`pdf_value` and :meth:`random` set
    ``samples_as_light`` so they may join the light list.
    """

    samples_as_light = False

    @abstractmethod
    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Closest intersection with t strictly inside (t_min, t_max), else None."""

    @abstractmethod
    def bounding_box(self, time0: float, time1: float) -> Optional[AABB]:
        """Box enclosing the object for every time in [time0, time1].

        None means the object is unbounded.
        """

    def pdf_value(self, origin: Point3, direction: Vec3) -> float:
        """Solid-angle density of :meth:`random` producing ``direction``.

        Zero for shapes that are never sampled as lights.
        """
        return 0.0

    def random(self, origin: Point3, rng: np.random.Generator) -> Vec3:
        """Direction from ``origin`` toward this shape."""
        raise NotImplementedError(f"{type(self).__name__} cannot be sampled as a light")


def get_sphere_uv(point: Vec3) -> tuple[float, float]:
    """Texture coordinates of a point on the unit sphere.

    u turns around +y starting from -x; v climbs from the south pole (0)
    to the north pole (1).
    """
    polar = math.acos(min(1.0, max(-1.0, -point.y)))
    azimuth = math.atan2(-point.z, point.x) + math.pi
    return azimuth / (2 * math.pi), polar / math.pi


class _Ball(Hittable):
    """Intersection and bounds shared by the static and moving spheres.

    Subclasses say where the center is at a given time.
    """

    radius: float
    material: Optional[Material]

    @abstractmethod
    def _center_at(self, time: float) -> Point3:
        ...

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        # |O + tD - C|^2 = r^2 as a t^2 + 2 h t + c = 0, with h = D.(O - C)
        a = ray.direction.length_squared()
        if self.radius <= 0 or a == 0:
            return None

        center = self._center_at(ray.time)
        oc = ray.origin - center
        h = oc.dot(ray.direction)
        c = oc.length_squared() - self.radius * self.radius

        discriminant = h * h - a * c
        if discriminant < 0:
            return None
        sqrtd = math.sqrt(discriminant)

        for root in ((-h - sqrtd) / a, (-h + sqrtd) / a):
            if t_min < root < t_max:
                break
        else:
            return None

        point = ray.at(root)
        outward = (point - center) / self.radius
        u, v = get_sphere_uv(outward)
        rec = HitRecord(point, outward, root, True, self.material, u, v)
        rec.set_face_normal(ray, outward)
        return rec

    def _box_at(self, time: float) -> AABB:
        center = self._center_at(time)
        extent = abs(self.radius)
        return AABB(center - extent, center + extent)


class Sphere(_Ball):
    """A stationary sphere; also the only shape that can be sampled as a light."""

    samples_as_light = True

    def __init__(self, center: Point3, radius: float, material: Optional[Material] = None):
        """Create a sphere.

        A radius of zero or less gives a sphere that nothing hits.
        """
        self.center = center
        self.radius = radius
        self.material = material

    def _center_at(self, time: float) -> Point3:
        return self.center

    def bounding_box(self, time0: float, time1: float) -> Optional[AABB]:
        return self._box_at(time0)

    def pdf_value(self, origin: Point3, direction: Vec3) -> float:
        """One over the solid angle of the cone the sphere subtends from ``origin``.

        Directions that miss the sphere, and origins on or inside it, get zero.
        """
        if self.hit(Ray(origin, direction), 0.001, math.inf) is None:
            return 0.0

        dist2 = (self.center - origin).length_squared()
        r2 = self.radius * self.radius
        if dist2 <= r2:
            return 0.0

        solid_angle = 2 * math.pi * (1 - math.sqrt(1 - r2 / dist2))
        return 1 / solid_angle if solid_angle > 0 else 0.0

    def random(self, origin: Point3, rng: np.random.Generator) -> Vec3:
        to_center = self.center - origin
        local = Vec3.random_to_sphere(rng, self.radius, to_center.length_squared())
        return Onb.build_from_w(to_center).local_vec(local)

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"


class MovingSphere(_Ball):
    """A sphere whose center travels linearly from center0 at time0 to center1 at time1.

    Times outside [time0, time1] extrapolate along the same line.
    """

    def __init__(
        self,
        center0: Point3,
        center1: Point3,
        time0: float,
        time1: float,
        radius: float,
        material: Optional[Material] = None
    ):
        self.center0 = center0
        self.center1 = center1
        self.time0 = time0
        self.time1 = time1
        self.radius = radius
        self.material = material

    def center(self, time: float) -> Point3:
        span = self.time1 - self.time0
        if span == 0:
            return self.center0
        return self.center0 + (self.center1 - self.center0) * ((time - self.time0) / span)

    _center_at = center

    def bounding_box(self, time0: float, time1: float) -> Optional[AABB]:
        return AABB.surrounding_box(self._box_at(time0), self._box_at(time1))

    def __repr__(self) -> str:
        return (f"MovingSphere({self.center0} @ {self.time0} -> "
                f"{self.center1} @ {self.time1}, radius={self.radius})")


class AABB:
    """Axis-aligned box given by its minimum and maximum corners."""

    __slots__ = ('minimum', 'maximum')

    def __init__(self, minimum: Point3, maximum: Point3):
        self.minimum = minimum
        self.maximum = maximum

    def hit(self, ray: Ray, t_min: float, t_max: float) -> bool:
        """Slab test: does the ray overlap the box for some t in (t_min, t_max)?

        A zero direction component makes that slab's bounds infinite. When
        the origin also lies on the slab plane the bound is NaN and the
        slab does not narrow the interval.
        """
        origin = ray.origin.to_array()
        with np.errstate(divide='ignore', invalid='ignore'):
            inv_d = 1.0 / ray.direction.to_array()
            lo = (self.minimum.to_array() - origin) * inv_d
            hi = (self.maximum.to_array() - origin) * inv_d

        flipped = inv_d < 0
        near = np.where(flipped, hi, lo)
        far = np.where(flipped, lo, hi)

        # fmax and fmin skip NaN operands
        enter = np.fmax.reduce(near, initial=t_min)
        leave = np.fmin.reduce(far, initial=t_max)
        return bool(leave > enter)

    def contains(self, other: AABB) -> bool:
        return bool(
            np.all(self.minimum.to_array() <= other.minimum.to_array())
            and np.all(other.maximum.to_array() <= self.maximum.to_array())
        )

    def centroid(self, axis: int) -> float:
        return 0.5 * (self.minimum[axis] + self.maximum[axis])

    @staticmethod
    def surrounding_box(box0: AABB, box1: AABB) -> AABB:
        """Smallest box holding both arguments."""
        return AABB(
            Point3.from_array(np.minimum(box0.minimum.to_array(), box1.minimum.to_array())),
            Point3.from_array(np.maximum(box0.maximum.to_array(), box1.maximum.to_array())),
        )

    def __repr__(self) -> str:
        return f"AABB(min={self.minimum}, max={self.maximum})"


class HittableList(Hittable):
    """Linear collection of hittables.

    Used as the flat world before a BVH is built and as the set of lights
    for importance sampling, where a member is picked uniformly.
    """

    def __init__(self, objects: Optional[list[Hittable]] = None):
        self.objects: list[Hittable] = [] if objects is None else objects

    def add(self, obj: Hittable) -> None:
        self.objects.append(obj)

    def clear(self) -> None:
        self.objects.clear()

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        nearest: Optional[HitRecord] = None
        for obj in self.objects:
            rec = obj.hit(ray, t_min, t_max if nearest is None else nearest.t)
            if rec is not None:
                nearest = rec
        return nearest

    def bounding_box(self, time0: float, time1: float) -> Optional[AABB]:
        """Union of the members' boxes; None if empty or any member is unbounded."""
        box: Optional[AABB] = None
        for obj in self.objects:
            member = obj.bounding_box(time0, time1)
            if member is None:
                return None
            box = member if box is None else AABB.surrounding_box(box, member)
        return box

    def pdf_value(self, origin: Point3, direction: Vec3) -> float:
        if not self.objects:
            return 0.0
        return sum(obj.pdf_value(origin, direction) for obj in self.objects) / len(self.objects)

    def random(self, origin: Point3, rng: np.random.Generator) -> Vec3:
        if not self.objects:
            raise ValueError("cannot sample a direction toward an empty HittableList")
        return self.objects[int(rng.integers(len(self.objects)))].random(origin, rng)

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self) -> Iterator[Hittable]:
        return iter(self.objects)
