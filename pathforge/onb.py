"""
Orthonormal basis used to map locally sampled directions into world space.
"""

from __future__ import annotations

from .vec3 import Vec3


class Onb:
    """A right-handed frame (u, v, w) with w as the principal axis."""

    __slots__ = ('u', 'v', 'w')

    def __init__(self, u: Vec3, v: Vec3, w: Vec3):
        self.u = u
        self.v = v
        self.w = w

    @classmethod
    def build_from_w(cls, n: Vec3) -> Onb:
        """Build a basis whose w axis is the direction of ``n``."""
        w = n.normalize()
        a = Vec3(0, 1, 0) if abs(w.x) > 0.9 else Vec3(1, 0, 0)
        v = w.cross(a).normalize()
        u = w.cross(v)
        return cls(u, v, w)

    def local(self, a: float, b: float, c: float) -> Vec3:
        """Return a*u + b*v + c*w."""
        return self.u * a + self.v * b + self.w * c

    def local_vec(self, a: Vec3) -> Vec3:
        return self.local(a.x, a.y, a.z)

    def __repr__(self) -> str:
        return f"Onb(u={self.u}, v={self.v}, w={self.w})"
