"""Rendering of frame sequences to numbered PNG files.

Each frame owns its camera and geometry snapshot, so frames are independent
of each other. Kernel execution is already pixel-parallel inside Taichi, and
the Taichi scene tables are global, so frames are issued to the renderer one
at a time. The per-frame pixel hand-off to a PNG sink and the PNG encoding
run on a thread pool while later frames render. All outstanding work is
joined before render_frames returns; the first exception raised by a frame
task propagates from the join. When rendering itself fails, frames already
submitted are awaited, their write errors are logged, and the render error
propagates.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.core.animation import FrameSpec, render_frames
    >>> frames = [FrameSpec(k, camera, scene.snapshot()) for k, camera in enumerate(cameras)]
    >>> paths = render_frames(scene, frames, 800, 600, "frames")
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from src.tracer.camera.view_plane import Camera
from src.tracer.core.renderer import Renderer, RenderSettings, write_to_sink
from src.tracer.preview.export import PngImage
from src.tracer.scene.manager import Geometry, SceneManager

logger = logging.getLogger(__name__)

# Worker threads used for sink hand-off and PNG encoding
DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class FrameSpec:
    """One frame of an animation.

    Attributes:
        index: Zero-based frame number; the output file is numbered index + 1.
        camera: Camera for this frame.
        geometries: Geometry snapshot for this frame.
    """

    index: int
    camera: Camera
    geometries: tuple[Geometry, ...]


def frame_path(output_dir: str | Path, index: int) -> Path:
    """Output path of a frame: 001.png for index 0, 002.png for index 1, ..."""
    return Path(output_dir) / f"{index + 1:03d}.png"


def render_frames(
    scene: SceneManager,
    frames: list[FrameSpec],
    width: int,
    height: int,
    output_dir: str | Path,
    *,
    settings: RenderSettings | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[Path]:
    """Render every frame and write it as a numbered PNG.

    Args:
        scene: Scene whose lights and uploaded volumes are shared by all frames.
        frames: Frames to render.
        width: Image width in pixels.
        height: Image height in pixels.
        output_dir: Directory receiving the PNG files. Created if missing.
        settings: Render settings for every frame.
        max_workers: Number of threads writing frames.

    Returns:
        Output paths in the order of frames.

    Raises:
        ValueError: If the image size or max_workers is invalid.
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}")

    renderer = Renderer(width, height, settings)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    total = len(frames)
    paths = [frame_path(output_dir, frame.index) for frame in frames]

    def store(image, path: Path, number: int) -> None:
        write_to_sink(image, PngImage(width, height), path)
        logger.info("Frame %d/%d completed", number, total)

    futures: list[Future] = []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        try:
            for number, (frame, path) in enumerate(zip(frames, paths), start=1):
                scene.upload_geometry(frame.geometries)
                image = renderer.render(frame.camera)
                futures.append(executor.submit(store, image, path, number))
        except Exception:
            # Frames already handed to the pool still finish; report their failures
            for future, path in zip(futures, paths):
                error = future.exception()
                if error is not None:
                    logger.error("Writing %s failed: %s", path, error)
            raise

        for future in futures:
            future.result()

    return paths
