"""
Renderer module - the sampling driver.

Implements:
- Per-pixel multi-sample estimation with sub-pixel and shutter jitter
- Multi-threaded tile-based rendering
- Reproducible per-tile random streams
- Gamma-2 conversion to 8-bit output
"""

from __future__ import annotations
import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Callable, Tuple, Union

import numpy as np

from .vec3 import Color
from .camera import Camera
from .shapes import Hittable
from .integrator import estimate_radiance, sky_gradient

logger = logging.getLogger(__name__)

Tile = Tuple[int, int, int, int]
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderSettings:
    """Configuration for the renderer."""
    width: int = 400
    height: int = 225
    samples_per_pixel: int = 100
    max_depth: int = 50
    tile_size: int = 16
    num_threads: int = 0  # 0 = auto-detect
    seed: Optional[int] = None
    background_color: Color = None
    use_sky_gradient: bool = True

    def __post_init__(self):
        if self.background_color is None:
            self.background_color = Color(0.0, 0.0, 0.0)
        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 4
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


def to_ldr(hdr_image: np.ndarray) -> np.ndarray:
    """Convert averaged linear colors to 8-bit with gamma-2 correction.

    Args:
        hdr_image: Linear image array (float64)

    Returns:
        LDR image as uint8 array
    """
    corrected = np.sqrt(np.clip(hdr_image, 0, None))
    return (np.clip(corrected, 0.0, 0.999) * 255.999).astype(np.uint8)


class Renderer:
    """Path tracing renderer with multi-threading support."""

    def __init__(self, settings: RenderSettings = None):
        """Create a renderer with the given settings.

        Args:
            settings: Render configuration (uses defaults if None)
        """
        self.settings = settings if settings else RenderSettings()
        self._progress_callback: Optional[ProgressCallback] = None

    def set_progress_callback(self, callback: ProgressCallback) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function called with (pixels_completed, total_pixels);
                calls never overlap and the completed count only grows
        """
        self._progress_callback = callback

    @property
    def background(self):
        if self.settings.use_sky_gradient:
            return sky_gradient
        return self.settings.background_color

    def render(self, scene: Hittable, camera: Camera, lights: Optional[Hittable] = None) -> np.ndarray:
        """Render the scene and return the image as a numpy array.

        Args:
            scene: The scene to render (any Hittable)
            camera: The camera to render from
            lights: Optional emitters to importance-sample

        Returns:
            Linear image as numpy array of shape (height, width, 3);
            row 0 is the top of the image
        """
        width = self.settings.width
        height = self.settings.height

        image = np.zeros((height, width, 3), dtype=np.float64)

        tiles = self._generate_tiles(width, height)
        seeds = np.random.SeedSequence(self.settings.seed).spawn(len(tiles))

        total_pixels = width * height
        completed = [0]
        lock = threading.Lock()

        def render_tile(job: Tuple[Tile, np.random.SeedSequence]) -> None:
            tile, seed_seq = job
            rng = np.random.default_rng(seed_seq)
            x0, y0, x1, y1 = tile
            # Each worker writes only inside its own tile
            image[y0:y1, x0:x1] = self._render_tile(scene, camera, lights, tile, rng)

            # Reporting under the lock keeps the observed count increasing
            with lock:
                completed[0] += (x1 - x0) * (y1 - y0)
                done = completed[0]
                logger.debug("Finished tile %s (%d/%d pixels)", tile, done, total_pixels)
                if self._progress_callback:
                    self._progress_callback(done, total_pixels)

        logger.info("Rendering %dx%d, %d spp, depth %d on %d thread(s)",
                    width, height, self.settings.samples_per_pixel,
                    self.settings.max_depth, self.settings.num_threads)
        start = time.perf_counter()

        jobs = list(zip(tiles, seeds))
        if self.settings.num_threads > 1:
            with ThreadPoolExecutor(max_workers=self.settings.num_threads) as executor:
                # list() re-raises any worker exception here
                list(executor.map(render_tile, jobs))
        else:
            for job in jobs:
                render_tile(job)

        logger.info("Render finished in %.2fs", time.perf_counter() - start)
        return image

    def _render_tile(
        self,
        scene: Hittable,
        camera: Camera,
        lights: Optional[Hittable],
        tile: Tile,
        rng: np.random.Generator
    ) -> np.ndarray:
        """Average ``samples_per_pixel`` radiance estimates for each pixel."""
        width = self.settings.width
        height = self.settings.height
        samples = self.settings.samples_per_pixel
        max_depth = self.settings.max_depth
        background = self.background

        x0, y0, x1, y1 = tile
        tile_image = np.zeros((y1 - y0, x1 - x0, 3), dtype=np.float64)

        for j in range(y1 - y0):
            for i in range(x1 - x0):
                pixel = np.zeros(3, dtype=np.float64)

                for _ in range(samples):
                    ray = camera.get_pixel_ray(x0 + i, y0 + j, width, height, rng)
                    sample = estimate_radiance(ray, scene, max_depth, rng, lights, background).to_array()
                    # A NaN sample from degenerate geometry must not poison the pixel
                    pixel += np.nan_to_num(sample, nan=0.0)

                tile_image[j, i] = pixel / samples

        return tile_image

    def _generate_tiles(self, width: int, height: int) -> list[Tile]:
        """Generate tiles for parallel rendering.

        Args:
            width: Image width
            height: Image height

        Returns:
            List of tiles as (x0, y0, x1, y1) tuples
        """
        tile_size = self.settings.tile_size
        tiles = []

        for y in range(0, height, tile_size):
            for x in range(0, width, tile_size):
                x1 = min(x + tile_size, width)
                y1 = min(y + tile_size, height)
                tiles.append((x, y, x1, y1))

        return tiles

    def to_ldr(self, hdr_image: np.ndarray) -> np.ndarray:
        return to_ldr(hdr_image)

    def save_image(self, image: np.ndarray, filename: Union[str, Path], quality: int = 95) -> None:
        """Save image to file.

        Args:
            image: Linear float image or 8-bit image
            filename: Output filename (extension determines format)
            quality: JPEG quality (ignored by lossless formats)
        """
        from PIL import Image as PILImage

        if image.dtype != np.uint8:
            image = to_ldr(image)

        pil_image = PILImage.fromarray(image)
        try:
            pil_image.save(filename, quality=quality)
        except (OSError, ValueError) as exc:
            logger.error("Writing %s failed: %s", filename, exc)
            raise
        logger.info("Saved %s", filename)
