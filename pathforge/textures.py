"""
Surface color lookups.

Materials never read a color directly; they ask a Texture for the value at
the hit's surface coordinates. Only constant colors ship today.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Union

from .vec3 import Color, Point3


class Texture(ABC):
    """Maps a surface location to a linear RGB color."""

    @abstractmethod
    def value(self, u: float, v: float, point: Point3) -> Color:
        """Color at surface coordinates (u, v) and world position ``point``."""


class SolidColor(Texture):
    """The same color everywhere."""

    def __init__(self, color: Color):
        self.color = color

    @classmethod
    def from_rgb(cls, r: float, g: float, b: float) -> SolidColor:
        return cls(Color(r, g, b))

    def value(self, u: float, v: float, point: Point3) -> Color:
        return self.color

    def __repr__(self) -> str:
        return f"SolidColor({self.color})"


def as_texture(source: Union[Texture, Color]) -> Texture:
    """Accept either a texture or a bare color."""
    return source if isinstance(source, Texture) else SolidColor(source)
