"""
Rays: P(t) = origin + t * direction, stamped with a shutter time.
"""

from __future__ import annotations
from .vec3 import Vec3, Point3


class Ray:
    """A half-line traced through the scene.

    The direction need not be unit length; hit distances are measured in
    multiples of it. ``time`` places the ray inside the camera shutter so
    moving geometry can be evaluated where it was when the ray left.
    """

    __slots__ = ('origin', 'direction', 'time')

    def __init__(self, origin: Point3, direction: Vec3, time: float = 0.0):
        self.origin = origin
        self.direction = direction
        self.time = time

    def at(self, t: float) -> Point3:
        return self.origin + self.direction * t

    def __repr__(self) -> str:
        return f"Ray({self.origin} -> {self.direction}, time={self.time})"
