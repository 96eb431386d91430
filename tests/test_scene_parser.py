"""Tests for scene file parsing."""

import pytest
import json
import math

from pathforge.vec3 import Vec3, Point3, Color
from pathforge.ray import Ray
from pathforge.shapes import Sphere, MovingSphere
from pathforge.materials import Lambertian, Metal, Dielectric, DiffuseLight, Isotropic
from pathforge.bvh import BVH
from pathforge.scene_parser import (
    Scene, SceneParser, SceneParseError, load_scene, parse_scene
)


SCENE_YAML = """
camera:
  look_from: [0, 0, 5]
  look_at: [0, 0, 0]
  vfov: 40
  shutter_open: 0.0
  shutter_close: 1.0

render:
  width: 32
  height: 16
  samples: 4
  max_depth: 8
  seed: 7

background: [0.1, 0.2, 0.3]

materials:
  ground:
    type: lambertian
    albedo: [0.5, 0.5, 0.5]
  mirror:
    type: metal
    albedo: "#ff8000"
    fuzz: 0.2
  lamp:
    type: diffuse_light
    emit: [4, 4, 4]

objects:
  - type: sphere
    center: [0, -100.5, 0]
    radius: 100
    material: ground
  - type: moving_sphere
    center0: [0, 0, 0]
    center1: [0, 0.5, 0]
    radius: 0.5
    material: mirror
  - type: sphere
    center: [0, 5, 0]
    radius: 1
    material: lamp
    light: true
"""


@pytest.fixture
def scene_file(tmp_path):
    path = tmp_path / "scene.yaml"
    path.write_text(SCENE_YAML)
    return path


class TestLoadScene:
    """Test loading scene files from disk."""

    def test_yaml_file(self, scene_file):
        scene = load_scene(scene_file)

        assert isinstance(scene, Scene)
        assert isinstance(scene.world, BVH)
        assert len(scene.world) == 3
        assert scene.settings.width == 32
        assert scene.settings.height == 16
        assert scene.settings.samples_per_pixel == 4
        assert scene.settings.max_depth == 8
        assert scene.settings.seed == 7

    def test_background_color(self, scene_file):
        scene = load_scene(scene_file)
        assert scene.settings.use_sky_gradient is False
        assert scene.settings.background_color == Color(0.1, 0.2, 0.3)

    def test_camera_defaults_to_image_aspect(self, scene_file):
        scene = load_scene(scene_file)
        camera = scene.camera

        assert camera.origin == Point3(0, 0, 5)
        assert abs(camera.horizontal.length() / camera.vertical.length() - 2.0) < 1e-9
        assert (camera.shutter_open, camera.shutter_close) == (0.0, 1.0)

    def test_lights_collected(self, scene_file):
        scene = load_scene(scene_file)

        assert len(scene.lights) == 1
        lamp = scene.lights.objects[0]
        assert isinstance(lamp.material, DiffuseLight)

    def test_render_overrides_set_camera_aspect(self, scene_file):
        scene = load_scene(scene_file, render_overrides={'width': 12, 'height': 12, 'samples': 2})
        camera = scene.camera

        assert (scene.settings.width, scene.settings.height) == (12, 12)
        assert scene.settings.samples_per_pixel == 2
        assert scene.settings.max_depth == 8
        assert camera.horizontal.length() / camera.vertical.length() == pytest.approx(1.0)

    def test_named_materials(self, scene_file):
        scene = load_scene(scene_file)
        objects = scene.world.objects

        mirror = next(o for o in objects if isinstance(o, MovingSphere))
        assert isinstance(mirror.material, Metal)
        assert mirror.material.fuzz == 0.2
        assert mirror.material.albedo == Color(1.0, 128 / 255, 0.0)

    def test_world_box_covers_shutter(self, scene_file):
        scene = load_scene(scene_file)
        mover = next(o for o in scene.world.objects if isinstance(o, MovingSphere))

        # The moving sphere reaches y = 1.0 at shutter close
        box = mover.bounding_box(scene.camera.shutter_open, scene.camera.shutter_close)
        assert box.maximum.y == 1.0
        assert scene.world.bounding_box(0, 1).contains(box)

    def test_json_file(self, tmp_path):
        data = {
            "render": {"width": 20, "height": 10, "samples": 1},
            "objects": [{"type": "sphere", "center": [0, 0, -1], "radius": 0.5,
                         "material": {"type": "dielectric", "ir": 1.3}}],
        }
        path = tmp_path / "scene.json"
        path.write_text(json.dumps(data))

        scene = load_scene(path)

        sphere = scene.world.objects[0]
        assert isinstance(sphere.material, Dielectric)
        assert sphere.material.ir == 1.3
        assert scene.settings.use_sky_gradient is True
        assert scene.lights is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(SceneParseError):
            load_scene(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("objects: [unclosed")
        with pytest.raises(SceneParseError):
            load_scene(path)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(SceneParseError):
            load_scene(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(SceneParseError):
            load_scene(path)


class TestParseScene:
    """Test parsing scene dictionaries."""

    def test_empty_scene_uses_defaults(self):
        scene = parse_scene({})

        assert len(scene.world) == 0
        assert scene.settings.width == 400
        assert scene.settings.height == 225
        assert scene.settings.samples_per_pixel == 100
        assert scene.lights is None

    def test_all_material_types(self):
        scene = parse_scene({
            "materials": {
                "a": {"type": "lambertian", "albedo": {"r": 1, "g": 0, "b": 0}},
                "b": {"type": "metal"},
                "c": {"type": "dielectric"},
                "d": {"type": "diffuse_light", "emit": [2, 2, 2]},
                "e": {"type": "Isotropic", "albedo": [0.3, 0.3, 0.3]},
            },
            "objects": [
                {"type": "sphere", "center": [i * 3, 0, 0], "radius": 1, "material": name}
                for i, name in enumerate("abcde")
            ],
        })

        kinds = sorted(type(o.material).__name__ for o in scene.world.objects)
        assert kinds == sorted(["Lambertian", "Metal", "Dielectric", "DiffuseLight", "Isotropic"])

    def test_hit_through_parsed_world(self):
        scene = parse_scene({
            "objects": [{"type": "sphere", "center": [0, 0, -5], "radius": 1,
                         "material": {"type": "lambertian"}}],
        })
        hit = scene.world.hit(Ray(Point3(0, 0, 0), Vec3(0, 0, -1)), 0.001, math.inf)
        assert abs(hit.t - 4.0) < 1e-9
        assert isinstance(hit.material, Lambertian)

    def test_vec3_mapping_form(self):
        scene = parse_scene({"objects": [{"type": "sphere", "center": {"x": 1, "z": -2}}]})
        assert scene.world.objects[0].center == Point3(1, 0, -2)

    def test_parser_instance_reusable_state(self):
        parser = SceneParser()
        scene = parser.parse_dict({"materials": {"m": {"type": "metal", "fuzz": 5}}})
        assert parser.materials["m"].fuzz == 1.0
        assert scene.camera is parser.camera

    @pytest.mark.parametrize("data", [
        {"materials": {"m": {"type": "plasma"}}},
        {"materials": {"m": "not a mapping"}},
        {"materials": {"m": {"type": "metal", "fuzz": "rough"}}},
        {"objects": [{"type": "cube"}]},
        {"objects": [{"type": "sphere", "material": "undefined"}]},
        {"objects": [{"type": "sphere", "material": 42}]},
        {"objects": [{"type": "sphere", "radius": "big"}]},
        {"objects": [{"type": "moving_sphere", "center0": [0, 0, 0]}]},
        {"objects": ["sphere"]},
        {"objects": [{"type": "sphere", "center": [1, 2]}]},
        {"objects": [{"type": "sphere", "center": "origin"}]},
        {"render": {"width": "wide"}},
        {"render": {"samples": 0}},
        {"background": "#zzzzzz"},
        {"background": "purple"},
        {"camera": {"vfov": None}},
        {"camera": {"look_from": [1, 1, 1], "look_at": [1, 1, 1]}},
        {"materials": ["a", "b"]},
        {"objects": {"type": "sphere"}},
        {"camera": [0, 0, 5]},
        {"objects": [{"type": "sphere", "material": {"type": "metal", "fuzz": "x"}}]},
        {"objects": [{"type": "moving_sphere", "center0": [0, 0, 0], "center1": [0, 1, 0],
                      "material": {"type": "diffuse_light"}, "light": True}]},
    ])
    def test_invalid_input(self, data):
        with pytest.raises(SceneParseError):
            parse_scene(data)

    def test_empty_sections_read_as_empty(self):
        scene = parse_scene({"materials": None, "objects": None, "render": None, "camera": None})

        assert len(scene.world) == 0
        assert scene.settings.width == 400
        assert scene.camera.origin == Point3(0, 0, 5)
