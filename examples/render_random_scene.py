#!/usr/bin/env python3
"""Render one of the preset sphere scenes.

This script builds a scene, sets up the thin-lens camera, and renders with
progressive refinement, showing a progress bar while samples accumulate.

Usage:
    python -m examples.render_random_scene [options]

Options:
    --width WIDTH           Image width in pixels (default: 1200)
    --aspect-ratio RATIO    Width / height (default: 1.5)
    --samples SAMPLES       Number of samples per pixel (default: 500)
    --max-depth DEPTH       Maximum bounces per path (default: 50)
    --seed SEED             Seed for the scene layout and sampling (default: 0)
    --scene NAME            random, simple or materials (default: random)
    --output OUTPUT         Output file path, .ppm or .png (default: image.png)
    --batch-size SIZE       Samples per progress update (default: 10)
    --cpu                   Force the CPU backend
    --quiet                 Suppress progress output

Example:
    python -m examples.render_random_scene --width 400 --samples 50 --output out.ppm
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import taichi as ti
from tqdm import tqdm

SCENES = ("random", "simple", "materials")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a preset sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=1200,
        help="Image width in pixels (default: 1200)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=3.0 / 2.0,
        help="Image width divided by height (default: 1.5)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=500,
        help="Number of samples per pixel (default: 500)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the scene layout and sampling (default: 0)",
    )
    parser.add_argument(
        "--scene",
        choices=SCENES,
        default="random",
        help="Scene to render (default: random)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.png",
        help="Output file path, .ppm or .png (default: image.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force the CPU backend",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_scene(
    scene_name: str = "random",
    width: int = 1200,
    aspect_ratio: float = 3.0 / 2.0,
    num_samples: int = 500,
    max_depth: int = 50,
    seed: int = 0,
    output_path: str = "image.png",
    batch_size: int = 10,
    quiet: bool = False,
) -> Path:
    """Render a preset scene and save it to a file.

    Args:
        scene_name: One of "random", "simple" or "materials".
        width: Image width in pixels.
        aspect_ratio: Image width divided by height.
        num_samples: Number of samples per pixel.
        max_depth: Maximum bounces per path.
        seed: Seed for the scene layout and the per-pixel generators.
        output_path: Output file path (.ppm or .png).
        batch_size: Number of samples to render between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi is initialized before fields are declared
    from raylight.camera.thin_lens import setup_camera
    from raylight.core.renderer import Renderer, RenderSettings
    from raylight.scene.presets import (
        create_material_showcase,
        create_random_scene,
        create_two_sphere_scene,
    )

    output_file = Path(output_path)
    if output_file.suffix.lower() not in (".ppm", ".png"):
        raise ValueError(f"Output must end in .ppm or .png, got '{output_file.name}'")

    settings = RenderSettings.from_aspect_ratio(
        width,
        aspect_ratio,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        seed=seed,
    )

    if not quiet:
        print(f"Creating {scene_name} scene ({settings.width}x{settings.height})...")

    if scene_name == "random":
        scene, camera = create_random_scene(seed=seed, aspect_ratio=aspect_ratio)
    elif scene_name == "simple":
        scene, camera = create_two_sphere_scene(aspect_ratio=aspect_ratio)
    elif scene_name == "materials":
        scene, camera = create_material_showcase(aspect_ratio=aspect_ratio)
    else:
        raise ValueError(f"Unknown scene '{scene_name}', expected one of {SCENES}")

    setup_camera(camera)
    renderer = Renderer(settings)

    if not quiet:
        print(f"Rendering {scene.get_sphere_count()} spheres at {num_samples} samples per pixel...")

    start_time = time.time()

    with tqdm(total=num_samples, unit="spp", disable=quiet) as progress:
        for current, _ in renderer.render_progressive(batch_size=batch_size):
            progress.update(current - progress.n)

    renderer.save_image(output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.cpu:
        ti.init(arch=ti.cpu)
    else:
        # Taichi falls back to CPU when no GPU backend is available
        ti.init(arch=ti.gpu)

    try:
        render_scene(
            scene_name=args.scene,
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
