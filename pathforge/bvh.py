"""
Bounding volume hierarchy over the scene's primitives.

Each node caches the box of everything below it for the camera's shutter
interval, so a ray that misses the box skips the whole subtree. Nodes
split their primitives at the median along the axis where the box
centroids are spread widest.
"""

from __future__ import annotations
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .ray import Ray
from .shapes import Hittable, HitRecord, AABB, HittableList

logger = logging.getLogger(__name__)

Boxed = Tuple[AABB, Hittable]


def _boxed(objects: Sequence[Hittable], time0: float, time1: float) -> List[Boxed]:
    pairs = []
    for obj in objects:
        box = obj.bounding_box(time0, time1)
        if box is None:
            raise ValueError(f"Cannot put an unbounded object in a BVH: {obj!r}")
        pairs.append((box, obj))
    return pairs


def _widest_axis(pairs: Sequence[Boxed]) -> int:
    centroids = np.array([[box.centroid(axis) for axis in range(3)] for box, _ in pairs])
    return int(np.argmax(centroids.max(axis=0) - centroids.min(axis=0)))


class BVHNode(Hittable):
    """One node of the hierarchy.

    ``left`` and ``right`` are either further nodes or primitives. A node
    over a single primitive holds it in ``left`` with ``right`` unset, and a
    node over nothing has no box at all.
    """

    def __init__(self, objects: Sequence[Hittable], time0: float = 0.0, time1: float = 0.0):
        """Build the subtree over ``objects``; the sequence itself is not modified.

        Raises:
            ValueError: If an object has no bounding box
        """
        self._build(_boxed(objects, time0, time1))

    @classmethod
    def _from_boxed(cls, pairs: List[Boxed]) -> BVHNode:
        node = cls.__new__(cls)
        node._build(pairs)
        return node

    def _build(self, pairs: List[Boxed]) -> None:
        self.left: Optional[Hittable] = None
        self.right: Optional[Hittable] = None
        self.bbox: Optional[AABB] = None

        if not pairs:
            return
        if len(pairs) == 1:
            self.bbox, self.left = pairs[0]
            return

        if len(pairs) == 2:
            (left_box, self.left), (right_box, self.right) = pairs
        else:
            axis = _widest_axis(pairs)
            pairs = sorted(pairs, key=lambda pair: pair[0].minimum[axis])
            mid = len(pairs) // 2
            self.left = BVHNode._from_boxed(pairs[:mid])
            self.right = BVHNode._from_boxed(pairs[mid:])
            left_box, right_box = self.left.bbox, self.right.bbox

        self.bbox = AABB.surrounding_box(left_box, right_box)

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        if self.bbox is None or not self.bbox.hit(ray, t_min, t_max):
            return None

        nearest = self.left.hit(ray, t_min, t_max)
        if self.right is not None:
            # Anything the right side reports is closer than the left hit
            far_hit = self.right.hit(ray, t_min, t_max if nearest is None else nearest.t)
            if far_hit is not None:
                nearest = far_hit
        return nearest

    def bounding_box(self, time0: float, time1: float) -> Optional[AABB]:
        """The box cached at build time; the arguments are ignored."""
        return self.bbox

    def depth(self) -> int:
        """Levels of BVHNode in this subtree, counting this one."""
        return 1 + max(
            (child.depth() for child in (self.left, self.right) if isinstance(child, BVHNode)),
            default=0
        )


class BVH(Hittable):
    """A BVH over a fixed list of objects, built once for a shutter interval."""

    def __init__(self, objects: Sequence[Hittable], time0: float = 0.0, time1: float = 0.0):
        self.objects = list(objects)
        self.time0 = time0
        self.time1 = time1
        self.root = BVHNode(self.objects, time0, time1) if self.objects else None
        if self.root is not None:
            logger.debug("Built BVH over %d objects, depth %d", len(self.objects), self.root.depth())

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        return None if self.root is None else self.root.hit(ray, t_min, t_max)

    def bounding_box(self, time0: float, time1: float) -> Optional[AABB]:
        return None if self.root is None else self.root.bbox

    def depth(self) -> int:
        return 0 if self.root is None else self.root.depth()

    def __len__(self) -> int:
        return len(self.objects)


def build_bvh(scene: HittableList, time0: float = 0.0, time1: float = 0.0) -> BVH:
    """Wrap the members of ``scene`` in a BVH for the shutter [time0, time1]."""
    return BVH(scene.objects, time0, time1)
