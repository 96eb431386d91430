"""
PathForge - A Python Monte Carlo path tracer

An offline renderer with support for:
- Bounding volume hierarchy acceleration
- Diffuse, metal, dielectric, emissive and isotropic materials
- Cosine-weighted and light importance sampling
- Depth of field and motion blur
- Multi-threaded tile rendering with reproducible random streams
"""

__version__ = "0.1.0"
__author__ = "PathForge Team"

from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .onb import Onb
from .shapes import AABB, HitRecord, Hittable, Sphere, MovingSphere, HittableList, get_sphere_uv
from .bvh import BVH, BVHNode, build_bvh
from .textures import Texture, SolidColor
from .materials import Material, ScatterResult, Lambertian, Metal, Dielectric, DiffuseLight, Isotropic
from .pdf import Pdf, CosinePdf, HittablePdf, MixturePdf
from .integrator import estimate_radiance, sky_gradient
from .camera import Camera
from .renderer import Renderer, RenderSettings, to_ldr
from .scene_parser import Scene, SceneParser, SceneParseError, load_scene, parse_scene
