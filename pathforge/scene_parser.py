"""
Scene files: YAML (or JSON) documents turned into a ready-to-render Scene.

Top-level keys, all optional::

    camera:      look_from, look_at, vup, vfov, aspect_ratio, aperture,
                 focus_dist, shutter_open, shutter_close
    render:      width, height, samples, max_depth, tile_size, threads, seed
    background:  "sky" (default) or a color
    materials:   name -> {type, ...}
    objects:     list of {type, ..., material, light}

Colors are ``[r, g, b]``, ``{r, g, b}`` or ``"#rrggbb"``; vectors are
``[x, y, z]`` or ``{x, y, z}``. An object's ``material`` is either the
name of an entry under ``materials`` or an inline mapping. Objects
marked ``light: true`` are also importance-sampled.

Every malformed input surfaces as :class:`SceneParseError`.
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import yaml

from .vec3 import Vec3, Color
from .camera import Camera
from .shapes import Hittable, Sphere, MovingSphere, HittableList
from .materials import Material, Lambertian, Metal, Dielectric, DiffuseLight, Isotropic
from .renderer import RenderSettings
from .bvh import BVH

logger = logging.getLogger(__name__)


class SceneParseError(Exception):
    """A scene document could not be read or is malformed."""


@dataclass
class Scene:
    """Everything the renderer needs for one image."""
    world: Hittable
    camera: Camera
    settings: RenderSettings
    lights: Optional[HittableList] = None


def _section(data: Dict[str, Any], key: str, kind: type) -> Any:
    """Top-level section ``key``; absent or empty sections read as empty."""
    value = data.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        raise SceneParseError(f"'{key}' must be a {'mapping' if kind is dict else 'list'}")
    return value


class SceneParser:
    """Builds a Scene from a parsed document.

    Named materials and collected objects stay on the instance after
    parsing, which is handy for inspection.
    """

    def __init__(self):
        self.materials: Dict[str, Material] = {}
        self.objects = HittableList()
        self.lights = HittableList()
        self.camera: Optional[Camera] = None
        self.settings: Optional[RenderSettings] = None

        self._material_builders: Dict[str, Callable[[Dict[str, Any]], Material]] = {
            'lambertian': lambda d: Lambertian(self._parse_color(d.get('albedo', [0.5, 0.5, 0.5]))),
            'metal': lambda d: Metal(self._parse_color(d.get('albedo', [0.8, 0.8, 0.8])),
                                     float(d.get('fuzz', 0.0))),
            'dielectric': lambda d: Dielectric(float(d.get('ir', 1.5))),
            'diffuse_light': lambda d: DiffuseLight(self._parse_color(d.get('emit', [1, 1, 1]))),
            'isotropic': lambda d: Isotropic(self._parse_color(d.get('albedo', [1, 1, 1]))),
        }
        self._object_builders: Dict[str, Callable[[Dict[str, Any], Optional[Material]], Hittable]] = {
            'sphere': self._build_sphere,
            'moving_sphere': self._build_moving_sphere,
        }

    def parse_file(self, filepath: Union[str, Path],
                   render_overrides: Optional[Dict[str, Any]] = None) -> Scene:
        """Read and parse a scene file; ``.json`` files use the JSON parser."""
        path = Path(filepath)
        try:
            content = path.read_text()
        except OSError as exc:
            raise SceneParseError(f"Cannot open scene file {filepath}: {exc}") from exc

        try:
            data = json.loads(content) if path.suffix.lower() == '.json' else yaml.safe_load(content)
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise SceneParseError(f"Cannot read {filepath}: {exc}") from exc

        if not isinstance(data, dict):
            raise SceneParseError(f"Scene file must contain a mapping: {filepath}")

        logger.info("Loading scene from %s", path)
        return self.parse_dict(data, render_overrides)

    def parse_dict(self, data: Dict[str, Any],
                   render_overrides: Optional[Dict[str, Any]] = None) -> Scene:
        """Build a Scene from an already-decoded document.

        ``render_overrides`` replaces keys of the ``render`` section before
        anything is built, so an overridden image size also sets the
        camera's default aspect ratio. The world is wrapped in a BVH built
        over the camera's shutter interval.
        """
        # Objects refer to materials by name
        for name, definition in _section(data, 'materials', dict).items():
            self.materials[name] = self._material(definition, f"material {name!r}")
        for entry in _section(data, 'objects', list):
            self._add_object(entry)

        # The camera's default aspect ratio comes from the image size
        render = dict(_section(data, 'render', dict), **(render_overrides or {}))
        self._parse_settings(render)
        self._parse_background(data.get('background', 'sky'))
        self._parse_camera(_section(data, 'camera', dict))

        world = BVH(self.objects.objects, self.camera.shutter_open, self.camera.shutter_close)
        logger.info("Scene has %d objects, %d light(s)", len(self.objects), len(self.lights))

        return Scene(world, self.camera, self.settings, self.lights if len(self.lights) else None)

    # Values

    def _parse_vec3(self, data: Any) -> Vec3:
        if isinstance(data, dict):
            data = [data.get(axis, 0) for axis in 'xyz']
        if not isinstance(data, (list, tuple)):
            raise SceneParseError(f"Cannot parse Vec3 from: {data!r}")
        if len(data) != 3:
            raise SceneParseError(f"Vec3 must have 3 components, got {len(data)}")
        try:
            return Vec3(*(float(c) for c in data))
        except (TypeError, ValueError) as exc:
            raise SceneParseError(f"Cannot parse Vec3 from: {data!r}") from exc

    def _parse_color(self, data: Any) -> Color:
        if isinstance(data, str):
            digits = data[1:] if data.startswith('#') else ''
            try:
                if len(digits) != 6:
                    raise ValueError(digits)
                return Color(*(int(digits[i:i + 2], 16) / 255.0 for i in (0, 2, 4)))
            except ValueError as exc:
                raise SceneParseError(f"Cannot parse color from string: {data!r}") from exc
        if isinstance(data, dict):
            data = [data.get(channel, 0) for channel in 'rgb']
        return self._parse_vec3(data)

    # Materials and objects

    def _material(self, definition: Any, what: str) -> Material:
        if not isinstance(definition, dict):
            raise SceneParseError(f"{what} must be a mapping")
        kind = str(definition.get('type', 'lambertian')).lower()
        builder = self._material_builders.get(kind)
        if builder is None:
            raise SceneParseError(f"Unknown material type: {kind}")
        try:
            return builder(definition)
        except (TypeError, ValueError) as exc:
            raise SceneParseError(f"Invalid {what}: {exc}") from exc

    def _resolve_material(self, ref: Any) -> Optional[Material]:
        """A material name, an inline definition, or None for no material."""
        if ref is None:
            return None
        if isinstance(ref, str):
            try:
                return self.materials[ref]
            except KeyError:
                raise SceneParseError(f"Unknown material: {ref}") from None
        if isinstance(ref, dict):
            return self._material(ref, "inline material")
        raise SceneParseError(f"Invalid material reference: {ref!r}")

    def _add_object(self, entry: Any) -> None:
        if not isinstance(entry, dict):
            raise SceneParseError(f"Object entry must be a mapping: {entry!r}")

        kind = str(entry.get('type', 'sphere')).lower()
        builder = self._object_builders.get(kind)
        if builder is None:
            raise SceneParseError(f"Unknown object type: {kind}")

        material = self._resolve_material(entry.get('material'))
        try:
            obj = builder(entry, material)
        except (TypeError, ValueError) as exc:
            raise SceneParseError(f"Invalid object {entry!r}: {exc}") from exc

        if entry.get('light', False):
            if not obj.samples_as_light:
                raise SceneParseError(f"{kind} cannot be used as a light: {entry!r}")
            self.lights.add(obj)
        self.objects.add(obj)

    def _build_sphere(self, entry: Dict[str, Any], material: Optional[Material]) -> Sphere:
        return Sphere(self._parse_vec3(entry.get('center', [0, 0, 0])),
                      float(entry.get('radius', 1.0)), material)

    def _build_moving_sphere(self, entry: Dict[str, Any], material: Optional[Material]) -> MovingSphere:
        missing = sorted({'center0', 'center1'} - entry.keys())
        if missing:
            raise SceneParseError(f"moving_sphere is missing {', '.join(missing)}")
        return MovingSphere(
            self._parse_vec3(entry['center0']),
            self._parse_vec3(entry['center1']),
            float(entry.get('time0', 0.0)),
            float(entry.get('time1', 1.0)),
            float(entry.get('radius', 1.0)),
            material
        )

    # Camera and render settings

    def _parse_camera(self, cam: Dict[str, Any]) -> None:
        try:
            self.camera = Camera(
                look_from=self._parse_vec3(cam.get('look_from', [0, 0, 5])),
                look_at=self._parse_vec3(cam.get('look_at', [0, 0, 0])),
                vup=self._parse_vec3(cam.get('vup', [0, 1, 0])),
                vfov=float(cam.get('vfov', 60)),
                aspect_ratio=float(cam.get('aspect_ratio', self.settings.aspect_ratio)),
                aperture=float(cam.get('aperture', 0.0)),
                focus_dist=float(cam.get('focus_dist', 1.0)),
                shutter_open=float(cam.get('shutter_open', 0.0)),
                shutter_close=float(cam.get('shutter_close', 0.0))
            )
        except (TypeError, ValueError) as exc:
            raise SceneParseError(f"Invalid camera: {exc}") from exc

    def _parse_settings(self, render: Dict[str, Any]) -> None:
        seed = render.get('seed')
        try:
            self.settings = RenderSettings(
                width=int(render.get('width', 400)),
                height=int(render.get('height', 225)),
                samples_per_pixel=int(render.get('samples', 100)),
                max_depth=int(render.get('max_depth', 50)),
                tile_size=int(render.get('tile_size', 16)),
                num_threads=int(render.get('threads', 0)),
                seed=None if seed is None else int(seed)
            )
        except (TypeError, ValueError) as exc:
            raise SceneParseError(f"Invalid render settings: {exc}") from exc

    def _parse_background(self, background: Any) -> None:
        self.settings.use_sky_gradient = background == 'sky'
        if not self.settings.use_sky_gradient:
            self.settings.background_color = self._parse_color(background)


def load_scene(filepath: Union[str, Path],
               render_overrides: Optional[Dict[str, Any]] = None) -> Scene:
    """Parse the scene file at ``filepath``, with optional ``render`` section overrides."""
    return SceneParser().parse_file(filepath, render_overrides)


def parse_scene(data: Dict[str, Any]) -> Scene:
    """Parse a scene already loaded into a dictionary."""
    return SceneParser().parse_dict(data)
