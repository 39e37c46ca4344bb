#!/usr/bin/env python3
"""Render an orbit around the demo scene.

This script renders the demo scene (coloured ellipsoids around a walnut
volume) from cameras orbiting the scene center, writing one numbered PNG
per frame.

Usage:
    python -m examples.render_orbit [options]

Options:
    --width WIDTH         Image width in pixels (default: 800)
    --height HEIGHT       Image height in pixels (default: 600)
    --frames FRAMES       Number of frames in the orbit (default: 90)
    --output-dir DIR      Directory for the PNG files (default: frames)
    --metadata PATH       Walnut metadata file (requires --raw)
    --raw PATH            Walnut raw density file (requires --metadata)
    --workers WORKERS     Threads writing PNG files (default: 4)
    --no-volume           Leave the walnut volume out
    --quiet               Suppress progress output

Example:
    python -m examples.render_orbit --width 320 --height 240 --frames 12
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render an orbit around the demo scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=800,
        help="Image width in pixels (default: 800)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=600,
        help="Image height in pixels (default: 600)",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=90,
        help="Number of frames in the orbit (default: 90)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="frames",
        help="Directory for the PNG files (default: frames)",
    )
    parser.add_argument(
        "--metadata",
        type=str,
        default=None,
        help="Walnut metadata file; a synthetic walnut is used when omitted",
    )
    parser.add_argument(
        "--raw",
        type=str,
        default=None,
        help="Walnut raw density file",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=4,
        help="Threads writing PNG files (default: 4)",
    )
    parser.add_argument(
        "--no-volume",
        action="store_true",
        help="Leave the walnut volume out",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    args = parser.parse_args()
    if (args.metadata is None) != (args.raw is None):
        parser.error("--metadata and --raw must be given together")
    return args


def render_orbit(
    width: int = 800,
    height: int = 600,
    num_frames: int = 90,
    output_dir: str = "frames",
    metadata_path: str | None = None,
    raw_path: str | None = None,
    max_workers: int = 4,
    include_volume: bool = True,
    quiet: bool = False,
) -> list[Path]:
    """Render the orbit and write the frames.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        num_frames: Number of frames in the orbit.
        output_dir: Directory receiving 001.png, 002.png, ...
        metadata_path: Walnut metadata file, or None for a synthetic walnut.
        raw_path: Walnut raw density file.
        max_workers: Threads writing PNG files.
        include_volume: If False, render the quadrics only.
        quiet: If True, suppress progress output.

    Returns:
        Paths of the written frames.
    """
    # Lazy imports to allow Taichi initialization first
    from src.tracer.core.animation import FrameSpec, render_frames
    from src.tracer.geometry.volume_io import load_volume
    from src.tracer.scene.demo import create_demo_scene, demo_cameras

    out = Path(output_dir)
    if out.exists():
        for stale in out.glob("*.png"):
            stale.unlink()

    walnut = None
    if include_volume and metadata_path is not None:
        if not quiet:
            print(f"Loading walnut from {metadata_path}...")
        walnut = load_volume(metadata_path, raw_path)

    if not quiet:
        print(f"Creating demo scene ({width}x{height}, {num_frames} frames)...")

    scene = create_demo_scene(walnut=walnut, include_walnut=include_volume)
    geometries = scene.snapshot()
    frames = [
        FrameSpec(index, camera, geometries)
        for index, camera in enumerate(demo_cameras(num_frames))
    ]

    start_time = time.time()
    paths = render_frames(scene, frames, width, height, out, max_workers=max_workers)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved {len(paths)} frames to: {out.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return paths


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize Taichi
    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_orbit(
            width=args.width,
            height=args.height,
            num_frames=args.frames,
            output_dir=args.output_dir,
            metadata_path=args.metadata,
            raw_path=args.raw,
            max_workers=args.workers,
            include_volume=not args.no_volume,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
