#!/usr/bin/env python3
"""
PathForge - A Python Monte Carlo path tracer

Main entry point for rendering scenes.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from pathforge.renderer import Renderer, RenderSettings
from pathforge.scene_parser import SceneParseError, load_scene
from pathforge.scenes import BUILTIN_SCENES


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='PathForge - A Python Monte Carlo path tracer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py --scene three-spheres --output render.png
  python main.py --scene random-spheres --samples 50 --seed 7 --output final.jpg
  python main.py --scene scenes/my_scene.yaml --output custom.png
        '''
    )

    parser.add_argument('--scene', type=str, default='three-spheres',
                        help=f"Built-in scene ({', '.join(BUILTIN_SCENES)}) or a YAML/JSON scene file")
    parser.add_argument('--width', type=int, default=None, help='Image width (default: 400)')
    parser.add_argument('--height', type=int, default=None, help='Image height (default: 225)')
    parser.add_argument('--samples', type=int, default=None, help='Samples per pixel (default: 100)')
    parser.add_argument('--depth', type=int, default=None, help='Max ray depth (default: 50)')
    parser.add_argument('--threads', type=int, default=0, help='Number of threads (0=auto)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible renders')
    parser.add_argument('--output', type=str, default='output/render.png', help='Output filename')
    parser.add_argument('--quality', type=int, default=95, help='JPEG quality 1-100 (default: 95)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    print("=" * 60)
    print("PathForge Path Tracer")
    print("=" * 60)

    # Create scene
    print(f"\nCreating scene: {args.scene}")
    if args.scene in BUILTIN_SCENES:
        settings = RenderSettings(
            width=args.width or 400,
            height=args.height or 225,
            samples_per_pixel=args.samples or 100,
            max_depth=args.depth or 50,
            num_threads=args.threads,
            seed=args.seed
        )
        scene = BUILTIN_SCENES[args.scene](settings)
    else:
        # Command-line flags override the file's render section
        flags = {'width': args.width, 'height': args.height, 'samples': args.samples,
                 'max_depth': args.depth, 'threads': args.threads or None, 'seed': args.seed}
        overrides = {key: value for key, value in flags.items() if value is not None}
        try:
            scene = load_scene(args.scene, render_overrides=overrides)
        except SceneParseError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        settings = scene.settings

    print(f"\nRender Settings:")
    print(f"  Resolution: {settings.width}x{settings.height}")
    print(f"  Samples: {settings.samples_per_pixel}")
    print(f"  Max Depth: {settings.max_depth}")
    print(f"  Threads: {settings.num_threads}")
    print(f"  Seed: {settings.seed}")

    renderer = Renderer(settings)

    # Progress tracking
    last_progress = [0]

    def progress_callback(done: int, total: int):
        pct = done * 100 // total
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = bar_len * done // total
            bar = '█' * filled + '░' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}% ({done}/{total} px)', end='', flush=True)

    renderer.set_progress_callback(progress_callback)

    print("\nRendering...")
    start_time = time.perf_counter()

    image = renderer.render(scene.world, scene.camera, scene.lights)

    elapsed = max(time.perf_counter() - start_time, 1e-9)
    print(f"\nRender completed in {elapsed:.2f} seconds")
    print(f"  Samples per second: {(settings.width * settings.height * settings.samples_per_pixel) / elapsed:.0f}")

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    print(f"\nSaving to: {args.output}")
    try:
        renderer.save_image(image, output_path, quality=args.quality)
    except (OSError, ValueError) as exc:
        print(f"Error: could not write {args.output}: {exc}", file=sys.stderr)
        return 1

    print("\nDone!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
