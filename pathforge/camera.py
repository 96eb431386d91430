"""
Camera module for generating primary rays.

Supports:
- Perspective projection with a vertical field of view
- Thin-lens depth of field (aperture and focus distance)
- Motion blur (rays carry a time inside the shutter interval)
- Jittered pixel sampling for antialiasing
"""

from __future__ import annotations
import math

import numpy as np

from .vec3 import Vec3, Point3
from .ray import Ray


class Camera:
    """A thin-lens perspective camera with a shutter interval."""

    def __init__(
        self,
        look_from: Point3,
        look_at: Point3,
        vup: Vec3 = Vec3(0, 1, 0),
        vfov: float = 90.0,
        aspect_ratio: float = 16.0 / 9.0,
        aperture: float = 0.0,
        focus_dist: float = 1.0,
        shutter_open: float = 0.0,
        shutter_close: float = 0.0
    ):
        """Create a camera.

        Args:
            look_from: Camera position in world space
            look_at: Point the camera is looking at
            vup: World up vector (usually (0, 1, 0))
            vfov: Vertical field of view in degrees, in (0, 180)
            aspect_ratio: Width / Height ratio
            aperture: Lens diameter for depth of field (0 = pinhole)
            focus_dist: Distance to the plane in perfect focus
            shutter_open: Time when shutter opens (for motion blur)
            shutter_close: Time when shutter closes (for motion blur)

        Raises:
            ValueError: If the parameters describe no usable view
        """
        if not 0.0 < vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {vfov}")
        if aspect_ratio <= 0 or focus_dist <= 0:
            raise ValueError("aspect_ratio and focus_dist must be positive")
        if shutter_close < shutter_open:
            raise ValueError(f"shutter closes before it opens: [{shutter_open}, {shutter_close}]")

        view = look_from - look_at
        if view.near_zero():
            raise ValueError("look_from and look_at coincide")
        right = vup.cross(view)
        if right.near_zero():
            raise ValueError("vup is parallel to the view direction")

        # w points backward from the view, u right, v up
        self.w = view.normalize()
        self.u = right.normalize()
        self.v = self.w.cross(self.u)

        viewport_height = 2.0 * math.tan(math.radians(vfov) / 2)
        viewport_width = aspect_ratio * viewport_height

        self.origin = look_from
        self.look_at = look_at
        self.horizontal = self.u * (viewport_width * focus_dist)
        self.vertical = self.v * (viewport_height * focus_dist)
        self.lower_left_corner = (
            self.origin
            - self.horizontal / 2
            - self.vertical / 2
            - self.w * focus_dist
        )

        self.lens_radius = aperture / 2
        self.shutter_open = shutter_open
        self.shutter_close = shutter_close

    def lens_offset(self, rng: np.random.Generator) -> Vec3:
        """Random point on the lens disk, relative to the camera origin."""
        if self.lens_radius <= 0:
            return Vec3(0, 0, 0)
        rd = Vec3.random_in_unit_disk(rng) * self.lens_radius
        return self.u * rd.x + self.v * rd.y

    def sample_time(self, rng: np.random.Generator) -> float:
        """Uniform time within the shutter interval."""
        if self.shutter_close > self.shutter_open:
            return float(rng.uniform(self.shutter_open, self.shutter_close))
        return self.shutter_open

    def get_ray(self, s: float, t: float, rng: np.random.Generator) -> Ray:
        """Generate a ray through a point of the focus plane.

        Args:
            s: Horizontal coordinate [0, 1] (0 = left, 1 = right)
            t: Vertical coordinate [0, 1] (0 = bottom, 1 = top)
            rng: Random generator for lens and shutter jitter

        Returns:
            A ray from the lens through the specified point, unit direction
        """
        offset = self.lens_offset(rng)
        target = self.lower_left_corner + self.horizontal * s + self.vertical * t
        direction = target - self.origin - offset

        return Ray(self.origin + offset, direction.normalize(), self.sample_time(rng))

    def get_pixel_ray(self, x: int, y: int, width: int, height: int, rng: np.random.Generator) -> Ray:
        """Jittered ray through pixel (x, y) of a width x height image.

        ``y`` counts image rows from the top, while ``t`` on the viewport
        runs from the bottom.
        """
        s = (x + rng.random()) / max(width - 1, 1)
        t = (height - 1 - y + rng.random()) / max(height - 1, 1)
        return self.get_ray(s, t, rng)

    def __repr__(self) -> str:
        return (f"Camera(look_from={self.origin}, look_at={self.look_at}, "
                f"lens_radius={self.lens_radius})")
